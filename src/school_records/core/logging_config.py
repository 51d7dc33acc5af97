from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_HANDLER_TAG = "_school_records_handler"


def setup_logging(level: str | int = "INFO", log_dir: Optional[str] = None) -> None:
    """Configure the root logger once.

    Console output always; ``combined.log`` and ``error.log`` under ``log_dir``
    when a directory is given. Re-running replaces the handlers installed by a
    previous call instead of stacking them.
    """

    root = logging.getLogger()
    root.setLevel(level if isinstance(level, int) else str(level).upper())

    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path / "combined.log", encoding="utf-8"))
        error_handler = logging.FileHandler(path / "error.log", encoding="utf-8")
        error_handler.setLevel(logging.ERROR)
        handlers.append(error_handler)

    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_TAG, True)
        root.addHandler(handler)
