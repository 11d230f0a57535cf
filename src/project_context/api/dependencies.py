from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Request

from project_context.config import ServerConfig
from project_context.dispatch import Dispatcher, build_dispatcher

ANONYMOUS_CALLER = "anonymous"

_dispatcher: Dispatcher | None = None


async def get_dispatcher() -> AsyncIterator[Dispatcher]:
    """Yield the process-wide ``Dispatcher``, building it from the environment on first call."""
    global _dispatcher  # noqa: PLW0603
    if _dispatcher is None:
        _dispatcher = build_dispatcher(ServerConfig.from_environment())
    yield _dispatcher


def get_caller(request: Request) -> str:
    """Rate-limit key for the request: the client host."""
    return request.client.host if request.client else ANONYMOUS_CALLER


def shutdown_dispatcher() -> None:
    global _dispatcher  # noqa: PLW0603
    _dispatcher = None
