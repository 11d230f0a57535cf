from project_context.dispatch.dispatcher import LOCAL_CALLER, SERVER_INFO_URI, Dispatcher, build_dispatcher
from project_context.dispatch.middleware import MiddlewareContext, RateLimiter, generate_request_id, run_with_middleware

__all__ = [
    "LOCAL_CALLER",
    "SERVER_INFO_URI",
    "Dispatcher",
    "MiddlewareContext",
    "RateLimiter",
    "build_dispatcher",
    "generate_request_id",
    "run_with_middleware",
]
