from collections.abc import Awaitable, Callable
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import sentry_sdk
from starlette.responses import Response

from loggers import get_logger
from src.core.errors.handlers import format_error_response

logger = get_logger(__name__)
timing_logger = get_logger("src.request.timing", plain_format=True)

UNEXPECTED_ERROR_DETAIL = "Unexpected error"
MODERATE_REQUEST_SECONDS = 0.5
SLOW_REQUEST_SECONDS = 2.0


def classify_duration(seconds: float) -> str:
    if seconds < MODERATE_REQUEST_SECONDS:
        return "[FAST]"
    if seconds < SLOW_REQUEST_SECONDS:
        return "[MODERATE]"
    return "[SLOW]"


def register_middlewares(app: FastAPI) -> None:
    """Registers all custom middlewares; the last one registered runs outermost."""

    @app.middleware("http")
    async def security_headers_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Content-Security-Policy", "frame-ancestors 'none'")
        # Token-bearing responses must never be cached
        response.headers.setdefault("Cache-Control", "no-store")
        return response

    @app.middleware("http")
    async def request_timing_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = time.perf_counter() - start_time

        category = classify_duration(process_time)
        log = timing_logger.info if category == "[FAST]" else timing_logger.warning
        log(
            "%s %s %s |%.3fs|%s",
            category,
            request.method,
            request.url.path,
            process_time,
            response.status_code,
        )
        return response

    @app.middleware("http")
    async def unexpected_error_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception("Unexpected error at %s: %s", request.url.path, exc)
            sentry_sdk.capture_exception(exc)
            return JSONResponse(
                status_code=500,
                content=format_error_response("Server error", UNEXPECTED_ERROR_DETAIL),
            )
