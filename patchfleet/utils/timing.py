"""Performance timing decorator."""

from __future__ import annotations

import functools
import logging
import time
from typing import Any, Callable

logger = logging.getLogger("patchfleet")


def timed(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator that logs execution time of async functions."""

    @functools.wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        start = time.monotonic()
        try:
            return await fn(*args, **kwargs)
        finally:
            elapsed = time.monotonic() - start
            logger.debug("%s completed in %.3fs", fn.__qualname__, elapsed)

    return wrapper
