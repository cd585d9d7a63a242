"""Middleware registration."""

from fastapi import FastAPI

from appdedupe.config import Settings
from appdedupe.middleware.cors import setup_cors
from appdedupe.middleware.error_handler import setup_error_handlers
from appdedupe.middleware.logging import setup_logging
from appdedupe.middleware.rate_limit import RateLimitMiddleware
from appdedupe.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware in the correct order.

    Starlette runs middleware in reverse-add order (last added = outermost).
    The request id is bound before rate limiting so 429s are logged with it,
    and CORS wraps everything so browsers can read error responses.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
