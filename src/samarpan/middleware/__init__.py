"""Middleware stack for the Samarpan API.

Outermost first: CORS, request id and access log, per-IP rate limit.
Exception handlers are registered on the app rather than as middleware.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from samarpan.config import Settings
from samarpan.middleware.error_handler import setup_error_handlers
from samarpan.middleware.logging import setup_logging
from samarpan.middleware.rate_limit import RateLimitMiddleware
from samarpan.middleware.request_id import RequestIdMiddleware

# The browser client reads these for retry hints and support tickets.
EXPOSED_HEADERS = ["X-Request-Id", "X-RateLimit-Limit", "X-RateLimit-Remaining", "X-Process-Time-MS"]


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestIdMiddleware)
    # Added last so limiter 429s still carry CORS headers. The session cookie
    # needs credentials, which rules out a wildcard origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Request-Id"],
        expose_headers=EXPOSED_HEADERS,
    )
