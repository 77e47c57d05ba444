"""
Fan-out limits shared by the resolvers.

Every network call made during reconciliation goes through one CallLimiter,
which caps how many calls are in flight at once and turns a hang into
Unreachable after a fixed time. Only leaf calls take a slot; the composite
steps that wait on them do not, so nested fan-out cannot starve itself.
"""

import asyncio
import logging
from typing import Any, Awaitable, Optional, TypeVar

from cairn.errors import CairnError, NotFound, Unreachable

T = TypeVar("T")


class CallLimiter:
    """Bound concurrency and duration of individual network calls."""

    def __init__(self, max_concurrency: int = 16, timeout: Optional[float] = 20.0):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.max_concurrency = max_concurrency
        self.timeout = timeout
        self._semaphore = asyncio.Semaphore(max_concurrency)

    async def run(
        self,
        call: Awaitable[T],
        *,
        what: str,
        address: Optional[str] = None,
    ) -> T:
        async with self._semaphore:
            try:
                return await asyncio.wait_for(call, self.timeout)
            except asyncio.TimeoutError as exc:
                raise Unreachable(
                    f"{what} timed out after {self.timeout}s", address=address
                ) from exc


def log_leaf_failure(
    log: logging.Logger,
    message: str,
    exc: BaseException,
    **fields: Any,
) -> None:
    """
    Log a failure that was absorbed at a leaf.

    NotFound is an ordinary empty result; Unreachable and Malformed are
    expected faults; anything else is a bug and keeps its traceback.
    """
    extra = {k: str(v) for k, v in fields.items()}
    extra["error"] = str(exc)
    extra["error_type"] = type(exc).__name__

    if isinstance(exc, NotFound):
        level = logging.INFO
    elif isinstance(exc, CairnError):
        level = logging.WARNING
    else:
        log.error(message, extra=extra, exc_info=(type(exc), exc, exc.__traceback__))
        return
    log.log(level, message, extra=extra)
