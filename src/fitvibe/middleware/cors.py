"""CORS for the FitnessVibe web and mobile-web clients."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fitvibe.config import Settings

# Angular and Vite dev servers pick arbitrary ports
LOCAL_DEV_ORIGIN_REGEX = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"

# Headers set by RequestIdMiddleware and RateLimitMiddleware
EXPOSED_HEADERS = ["X-Request-Id", "X-RateLimit-Remaining", "X-RateLimit-Limit", "Retry-After"]


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Allow the configured client origins, plus any localhost port in debug mode.

    Credentials are allowed, so origins are always listed explicitly; a ``*``
    in ``FV_CORS_ORIGINS`` is dropped.
    """
    origins = [origin for origin in settings.cors_origins if origin != "*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_origin_regex=LOCAL_DEV_ORIGIN_REGEX if settings.debug else None,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-Id"],
        expose_headers=EXPOSED_HEADERS,
        max_age=600,
    )
