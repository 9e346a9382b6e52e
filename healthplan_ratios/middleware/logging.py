"""
Request logging middleware and structlog processors.

Tags every request with a correlation ID, logs one line per request with
its timing, and keeps connection strings out of log entries.
"""
import time
import uuid
from contextvars import ContextVar
from typing import Any, Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

logger = structlog.get_logger(__name__)

# Keys whose values never reach the logs
SENSITIVE_FIELDS = {"database_url", "dsn", "password", "secret", "token", "api_key"}

# Period endpoints walk the whole roster
SLOW_REQUEST_MS = 1000

MAX_DEPTH = 5


def get_correlation_id() -> str:
    """Get the current request's correlation ID."""
    return correlation_id.get()


def _redact(value: Any, depth: int) -> Any:
    if depth > MAX_DEPTH:
        return value
    if isinstance(value, dict):
        return {
            key: "[REDACTED]"
            if any(field in str(key).lower() for field in SENSITIVE_FIELDS)
            else _redact(item, depth + 1)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [_redact(item, depth + 1) for item in value]
    return value


def redact_sensitive_data(data: dict) -> dict:
    """Replace values of sensitive keys, in nested dicts and lists too."""
    return _redact(data, 0)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Reuse the caller's X-Correlation-ID or mint one, and echo it back."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        correlation_id.set(request_id)

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each API request once it completes or fails."""

    SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.SKIP_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            raise

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )
        if duration_ms > SLOW_REQUEST_MS:
            logger.warning("slow_request", path=request.url.path, duration_ms=duration_ms)

        return response


def add_correlation_id_processor(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Structlog processor that adds the correlation ID to all log entries."""
    event_dict["correlation_id"] = get_correlation_id()
    return event_dict


def redact_sensitive_processor(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Structlog processor that redacts sensitive data from log entries."""
    return redact_sensitive_data(event_dict)
