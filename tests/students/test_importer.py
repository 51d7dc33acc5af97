from __future__ import annotations

import csv

import pytest

from school_records.core.exceptions import DomainError, ErrorKind, duplicate_error
from school_records.students.importer import DUPLICATE_ACCOUNT, MISSING_FIELDS, StudentImporter

HEADER = "username,email,password,mobile,first_name,last_name,date_of_birth,address\n"


def write_csv(tmp_path, body: str, name: str = "upload.csv"):
    path = tmp_path / name
    path.write_text(HEADER + body, encoding="utf-8")
    return path


@pytest.fixture
def importer(students, users):
    return StudentImporter(students, users, hasher=lambda pw: f"hashed:{pw}")


def test_row_missing_email_is_the_only_rejection(importer, tmp_path):
    rows = [f"kid{i},kid{i}@school.test,secret1,+1555100{i:04d},Kid,Number{i},,\n" for i in range(5)]
    rows[2] = "kid2,,secret1,+15551000002,Kid,Number2,,\n"
    path = write_csv(tmp_path, "".join(rows))

    summary = importer.import_file(str(path))

    assert (summary.created_count, summary.rejected_count) == (4, 1)
    assert summary.rejected[0]["reason"] == MISSING_FIELDS
    assert summary.rejected[0]["row"]["username"] == "kid2"
    assert "password" not in summary.rejected[0]["row"]
    assert [c["username"] for c in summary.created] == ["kid0", "kid1", "kid3", "kid4"]


def test_duplicates_within_file_and_database_are_rejected(importer, store, tmp_path):
    store.add_user("taken")
    path = write_csv(
        tmp_path,
        "taken,new@school.test,secret1,+15552000001,A,B,,\n"
        "fresh,fresh@school.test,secret1,+15552000002,C,D,2010-04-02,12 Elm St\n"
        "fresh,other@school.test,secret1,+15552000003,E,F,,\n",
    )

    summary = importer.import_file(str(path))

    assert summary.created_count == 1
    assert [r["reason"] for r in summary.rejected] == [DUPLICATE_ACCOUNT, DUPLICATE_ACCOUNT]
    created = store.students[summary.created[0]["student_id"]]
    assert created.address == "12 Elm St"
    assert created.date_of_birth.isoformat() == "2010-04-02"


def test_lost_insert_race_is_counted_as_rejection(importer, students, tmp_path):
    def racing_create(account, profile, *, role_id):
        raise duplicate_error("User", account.username)

    students.create_account = racing_create
    path = write_csv(tmp_path, "kid,kid@school.test,secret1,+15553000001,Kid,One,,\n")

    summary = importer.import_file(str(path))

    assert summary.to_dict()["rejectedCount"] == 1
    assert summary.to_dict()["createdCount"] == 0


def test_headers_and_cells_are_normalized(importer, store, tmp_path):
    path = tmp_path / "messy.csv"
    path.write_text(
        " Username , EMAIL ,password,mobile,first_name,last_name\n"
        " kid , KID@School.Test ,secret1,+15554000001, Kid , One \n",
        encoding="utf-8-sig",
    )

    summary = importer.import_file(str(path))

    assert summary.created_count == 1
    user = store.users[summary.created[0]["user_id"]]
    assert (user.username, user.email) == ("kid", "kid@school.test")


def test_upload_is_removed_after_success_and_failure(importer, users, store, tmp_path):
    ok = write_csv(tmp_path, "kid,kid@school.test,secret1,+15555000001,Kid,One,,\n", name="ok.csv")
    importer.import_file(str(ok))
    assert not ok.exists()

    store.roles.pop(2)
    failing = write_csv(tmp_path, "kid2,kid2@school.test,secret1,+15555000002,Kid,Two,,\n", name="bad.csv")
    with pytest.raises(DomainError) as exc:
        importer.import_file(str(failing))

    assert exc.value.kind is ErrorKind.CONFIGURATION
    assert not failing.exists()


def test_missing_file_is_a_file_error(importer, tmp_path):
    with pytest.raises(DomainError) as exc:
        importer.import_file(str(tmp_path / "nope.csv"))

    assert exc.value.kind is ErrorKind.FILE


def test_undecodable_file_is_a_file_error_and_is_removed(importer, tmp_path):
    path = tmp_path / "latin1.csv"
    path.write_bytes(HEADER.encode() + b"k\xe9id,kid@school.test,secret1,+15556000001,Kid,One,,\n")

    with pytest.raises(DomainError) as exc:
        importer.import_file(str(path))

    assert exc.value.kind is ErrorKind.FILE
    assert exc.value.message == "Could not read CSV file"
    assert not path.exists()


def test_oversized_cell_is_a_file_error(importer, tmp_path):
    path = write_csv(tmp_path, "kid,kid@school.test,secret1,+15556000002,Kid,One,," + "x" * 200 + "\n")

    previous = csv.field_size_limit(64)
    try:
        with pytest.raises(DomainError) as exc:
            importer.import_file(str(path))
    finally:
        csv.field_size_limit(previous)

    assert exc.value.kind is ErrorKind.FILE
    assert not path.exists()
