from __future__ import annotations

from datetime import date
from types import GeneratorType

import pytest

from school_records.core.exceptions import DomainError, ErrorKind
from school_records.students.exporter import StudentExporter, encode_rows


def test_header_first_and_every_field_quoted():
    rows = [
        {
            "username": "kid",
            "email": "kid@school.test",
            "mobile": "+15550000001",
            "first_name": 'Jo "JJ"',
            "last_name": "Smith, Jr",
            "date_of_birth": date(2011, 3, 4),
            "address": None,
        }
    ]

    lines = list(encode_rows(rows))

    assert lines[0] == '"username","email","mobile","first_name","last_name","date_of_birth","address"\n'
    assert lines[1] == '"kid","kid@school.test","+15550000001","Jo ""JJ""","Smith, Jr","2011-03-04",""\n'


def test_rows_are_pulled_lazily():
    pulled = []

    def source():
        for i in range(10_000):
            pulled.append(i)
            yield {"username": f"kid{i}"}

    stream = encode_rows(source())
    next(stream)
    next(stream)

    assert isinstance(stream, GeneratorType)
    assert len(pulled) == 1


def test_unknown_filter_is_rejected_before_streaming(students):
    with pytest.raises(DomainError) as exc:
        StudentExporter(students).export(filter_by="password_hash", filter_value="x")

    assert exc.value.kind is ErrorKind.VALIDATION


def test_export_streams_repository_rows(students):
    students.export_rows = [{"username": "a"}, {"username": "b"}]

    body = "".join(StudentExporter(students).export(filter_by="username", filter_value="a"))

    assert body.count("\n") == 3
    assert '"a"' in body and '"b"' in body
