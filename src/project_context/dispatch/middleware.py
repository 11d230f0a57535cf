"""Per-request context, timing, error normalization and rate limiting."""

from __future__ import annotations

import logging
import secrets
import time
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from project_context.config import RateLimitConfig
from project_context.errors import PermissionDeniedError, ProjectContextError, normalize_error

logger = logging.getLogger(__name__)


def generate_request_id() -> str:
    return f"req_{int(time.time() * 1000)}_{secrets.token_hex(5)[:9]}"


@dataclass(frozen=True)
class MiddlewareContext:
    method: str
    params: Any = None
    request_id: str = field(default_factory=generate_request_id)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def log_extra(self, **values: Any) -> dict[str, Any]:
        return {"request_id": self.request_id, "method": self.method, **values}


async def run_with_middleware(operation: Callable[[], Awaitable[Any]], context: MiddlewareContext) -> Any:
    """Run *operation*, logging its lifecycle and normalizing any failure.

    The raised error is always a ``ProjectContextError`` whose message is safe
    to show the caller; the underlying exception is logged, not chained.
    """
    started = time.perf_counter()
    logger.debug("[%s] %s - Started", context.request_id, context.method, extra=context.log_extra())
    try:
        result = await operation()
    except Exception as exc:
        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.error(
            "[%s] %s - Failed (%sms): %s",
            context.request_id,
            context.method,
            duration_ms,
            exc,
            extra=context.log_extra(duration_ms=duration_ms),
            exc_info=not isinstance(exc, ProjectContextError),
        )
        raise normalize_error(exc) from None
    duration_ms = round((time.perf_counter() - started) * 1000, 2)
    logger.debug(
        "[%s] %s - Completed (%sms)",
        context.request_id,
        context.method,
        duration_ms,
        extra=context.log_extra(duration_ms=duration_ms),
    )
    return result


class RateLimiter:
    """Sliding-window request counter keyed by caller.

    A caller holding ``max_requests`` timestamps younger than the window is
    rejected; rejected requests are not recorded.
    """

    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._requests: dict[str, deque[float]] = {}

    @classmethod
    def from_config(cls, config: RateLimitConfig) -> RateLimiter:
        return cls(max_requests=config.max_requests, window_seconds=config.window_seconds)

    def check_limit(self, caller: str) -> bool:
        now = self._clock()
        window = self._requests.setdefault(caller, deque())
        while window and now - window[0] >= self.window_seconds:
            window.popleft()
        if len(window) >= self.max_requests:
            logger.warning("Rate limit exceeded for client %s", caller)
            return False
        window.append(now)
        return True

    def enforce(self, caller: str) -> None:
        if not self.check_limit(caller):
            raise PermissionDeniedError(f"Rate limit exceeded for client {caller}")
