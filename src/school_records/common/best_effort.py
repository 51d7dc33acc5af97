from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


def best_effort(operation: Callable[..., T], *args, description: str, **kwargs) -> Optional[T]:
    """Run ``operation`` and report, never propagate, its failure.

    Returns the operation's result, or ``None`` when it raised.
    """

    try:
        return operation(*args, **kwargs)
    except Exception:
        logger.exception("Best-effort operation failed: %s", description)
        return None
