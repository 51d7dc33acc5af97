from __future__ import annotations

import logging

import mysql.connector
import pytest

from school_records.core.exceptions import DomainError, ErrorKind, duplicate_error
from school_records.database.mysql_base import db_cursor, duplicates_as, is_duplicate_key, iter_rows


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.closed = False
        self.batches = []

    def execute(self, sql, params=()):
        self.conn.executed.append((" ".join(sql.split()), params))

    def fetchmany(self, size):
        return self.batches.pop(0) if self.batches else []

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, *, rollback_error=None):
        self.executed = []
        self.commits = 0
        self.rollbacks = 0
        self.closed = False
        self.rollback_error = rollback_error

    def cursor(self, dictionary=True, **kwargs):
        return FakeCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1
        if self.rollback_error:
            raise self.rollback_error

    def close(self):
        self.closed = True


class FakeFactory:
    def __init__(self, conn):
        self.conn = conn

    def connect(self, with_database: bool = True):
        return self.conn


def test_block_commits_on_success():
    conn = FakeConnection()

    with db_cursor(FakeFactory(conn)) as (_, cur):
        cur.execute("INSERT INTO users(username) VALUES(%s)", ("a",))

    assert (conn.commits, conn.rollbacks, conn.closed) == (1, 0, True)


def test_failure_between_inserts_rolls_back_everything():
    conn = FakeConnection()

    with pytest.raises(RuntimeError):
        with db_cursor(FakeFactory(conn)) as (_, cur):
            cur.execute("INSERT INTO users(username) VALUES(%s)", ("a",))
            raise RuntimeError("boom before user_roles insert")

    assert conn.commits == 0
    assert conn.rollbacks == 1
    assert conn.closed


def test_rollback_failure_does_not_mask_original_error(caplog):
    conn = FakeConnection(rollback_error=mysql.connector.OperationalError(msg="connection lost"))

    with caplog.at_level(logging.ERROR):
        with pytest.raises(ValueError, match="original"):
            with db_cursor(FakeFactory(conn)):
                raise ValueError("original")

    assert "Rollback failed" in caplog.text
    assert conn.closed


def test_duplicate_key_is_translated():
    dup = mysql.connector.IntegrityError(msg="Duplicate entry 'a' for key 'username'", errno=1062)
    assert is_duplicate_key(dup)

    with pytest.raises(DomainError) as exc:
        with duplicates_as(lambda: duplicate_error("User", "a")):
            raise dup

    assert exc.value.kind is ErrorKind.DUPLICATE
    assert exc.value.__cause__ is dup


def test_other_integrity_errors_pass_through():
    fk = mysql.connector.IntegrityError(msg="Cannot add or update a child row", errno=1452)

    with pytest.raises(mysql.connector.IntegrityError):
        with duplicates_as(lambda: duplicate_error("User", "a")):
            raise fk


def test_iter_rows_reads_in_batches():
    cur = FakeCursor(FakeConnection())
    cur.batches = [[{"n": 1}, {"n": 2}], [{"n": 3}]]

    assert [r["n"] for r in iter_rows(cur, size=2)] == [1, 2, 3]


def test_schema_splitter_keeps_semicolons_inside_quotes():
    from school_records.database.bootstrap import iter_sql_statements

    sql = "CREATE TABLE a (x INT);\nINSERT INTO a VALUES (';');\n"

    assert list(iter_sql_statements(sql)) == ["CREATE TABLE a (x INT)", "INSERT INTO a VALUES (';')"]
