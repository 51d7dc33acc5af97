from __future__ import annotations

import csv
import io
import logging
from typing import Any, Iterable, Iterator, Optional

from ..common.validators import validation_error
from ..core.constants import EXPORT_FILTER_FIELDS, STUDENT_CSV_COLUMNS
from .repository import StudentRepository

logger = logging.getLogger(__name__)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def encode_rows(rows: Iterable[dict[str, Any]], columns=STUDENT_CSV_COLUMNS) -> Iterator[str]:
    """Yield the header line, then one fully quoted CSV line per row."""

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")

    def flush() -> str:
        line = buffer.getvalue()
        buffer.seek(0)
        buffer.truncate(0)
        return line

    writer.writerow(columns)
    yield flush()
    for row in rows:
        writer.writerow([_cell(row.get(col)) for col in columns])
        yield flush()


class StudentExporter:
    def __init__(self, students: StudentRepository):
        self._students = students

    def export(self, *, filter_by: Optional[str] = None, filter_value: Optional[str] = None) -> Iterator[str]:
        # Reject bad filters before the response starts streaming.
        if filter_by and filter_by not in EXPORT_FILTER_FIELDS:
            raise validation_error(f"Cannot filter by {filter_by}", field="filter_by")
        return self._stream(filter_by, filter_value)

    def _stream(self, filter_by: Optional[str], filter_value: Optional[str]) -> Iterator[str]:
        count = 0
        try:
            rows = self._students.iter_export_rows(filter_by=filter_by, filter_value=filter_value)
            for line in encode_rows(rows):
                count += 1
                yield line
        except Exception:
            logger.exception("Student export aborted after %s lines", count)
            raise
        logger.info("Exported %s students", max(count - 1, 0))
