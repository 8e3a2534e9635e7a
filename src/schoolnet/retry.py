"""schoolnet.retry

Bounded retry for transient network failures. The backoff schedule is a fixed
list of waits consumed longest first: with three retries the first waits five
minutes, the second one minute and the last three seconds.
"""
from __future__ import annotations

import errno
import time
from typing import Any, Callable, Iterable, Optional, Sequence, Tuple

import requests

from .log import logger

__all__ = [
    "BACKOFF",
    "MAX_RETRIES",
    "RETRY_CODES",
    "RetryPolicy",
    "error_code",
]

BACKOFF: Tuple[float, ...] = (5 * 60, 60, 3)
MAX_RETRIES = 3
RETRY_CODES = frozenset({"ETIMEDOUT", "ECONNRESET"})


def _causes(exc: BaseException) -> Iterable[BaseException]:
    """Walk an exception and everything it wraps (args, reason, cause, context)."""
    pending = [exc]
    seen = set()
    while pending:
        current = pending.pop(0)
        if id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        linked = [current.__cause__, current.__context__, getattr(current, "reason", None)]
        linked.extend(a for a in getattr(current, "args", ()) if isinstance(a, BaseException))
        pending.extend(e for e in linked if isinstance(e, BaseException))


def error_code(exc: BaseException) -> Optional[str]:
    """Return a node-style error code ("ETIMEDOUT", "ECONNRESET", ...) for *exc*.

    ``requests`` nests the socket error several levels deep, so the whole
    chain is searched. An explicit ``code`` attribute wins.
    """
    code = getattr(exc, "code", None)
    if isinstance(code, str):
        return code
    if isinstance(exc, requests.exceptions.Timeout):
        return "ETIMEDOUT"
    for cause in _causes(exc):
        if isinstance(cause, ConnectionResetError):
            return "ECONNRESET"
        if isinstance(cause, TimeoutError):
            return "ETIMEDOUT"
        if isinstance(cause, OSError) and cause.errno:
            return errno.errorcode.get(cause.errno)
    return None


class RetryPolicy:
    """Retry a callable while it fails with a retryable error code."""

    def __init__(
        self,
        retries: int = MAX_RETRIES,
        backoff: Sequence[float] = BACKOFF,
        retry_codes: Iterable[str] = RETRY_CODES,
        sleep: Callable[[float], Any] = time.sleep,
    ):
        self.retries = retries
        self.backoff = tuple(backoff)
        self.retry_codes = frozenset(retry_codes)
        self.sleep = sleep

    def delay(self, attempts_remaining: int) -> float:
        """Wait before the retry made while *attempts_remaining* retries are left."""
        if not self.backoff:
            return 0
        idx = min(self.retries - attempts_remaining, len(self.backoff) - 1)
        return self.backoff[max(idx, 0)]

    def wait(self, attempts_remaining: int) -> float:
        timeout = self.delay(attempts_remaining)
        logger.info("Retrying request after: %ss", timeout)
        self.sleep(timeout)
        return timeout

    def is_retryable(self, exc: BaseException) -> bool:
        return error_code(exc) in self.retry_codes

    def call(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        attempts_remaining = self.retries
        while True:
            try:
                return fn(*args, **kwargs)
            except requests.exceptions.RequestException as e:
                logger.error("Request failed with error: %s", e)
                if not (self.is_retryable(e) and attempts_remaining):
                    raise
                self.wait(attempts_remaining)
                attempts_remaining -= 1
