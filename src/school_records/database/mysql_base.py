from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import DomainError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One connection, one transaction.

    Commits when the block exits normally and rolls back on any exception. A
    failing rollback is logged and the original exception is re-raised.
    """

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        try:
            conn.rollback()
        except Exception:
            logger.exception("Rollback failed")
        raise
    finally:
        conn.close()


@contextmanager
def streaming_cursor(conn_factory: DatabaseConnection):
    """Unbuffered dictionary cursor for reading large result sets row by row."""

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=True, buffered=False)
        try:
            yield cur
        finally:
            # Unread rows must be consumed before an unbuffered cursor closes.
            try:
                if conn.unread_result:
                    conn.consume_results()
            finally:
                cur.close()
    finally:
        conn.close()


def iter_rows(cur, *, size: int) -> Iterator[Dict[str, Any]]:
    while True:
        batch = cur.fetchmany(size)
        if not batch:
            return
        yield from batch


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def is_duplicate_key(exc: BaseException) -> bool:
    return isinstance(exc, mysql.connector.IntegrityError) and getattr(exc, "errno", None) == errorcode.ER_DUP_ENTRY


@contextmanager
def duplicates_as(error_factory: Callable[[], DomainError]):
    """Turn a unique-key violation raised inside the block into ``error_factory()``."""

    try:
        yield
    except mysql.connector.IntegrityError as exc:
        if is_duplicate_key(exc):
            raise error_factory() from exc
        raise
