from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from salessync.core.config import SLOW_REQUEST_MS
from salessync.core.metrics import request_metrics
from salessync.core.request_context import clear_request_context, set_request_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _state_value(request: Request, user_attr: str, state_attr: str) -> str | None:
    """Prefer the authenticated user, fall back to the token-derived state."""
    value = getattr(getattr(request.state, "user", None), user_attr, None)
    if value is None:
        value = getattr(request.state, state_attr, None)
    return str(value) if value is not None else None


def _log_level(status_code: int, duration_ms: float) -> int:
    if status_code >= 500:
        return logging.ERROR
    if duration_ms >= SLOW_REQUEST_MS:
        return logging.WARNING
    return logging.INFO


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Request id propagation, one structured log line and metrics per request."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        set_request_context(request_id=request_id)

        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            status_code = response.status_code if response is not None else 500
            duration_ms = round((time.perf_counter() - started) * 1000, 2)
            company_id = _state_value(request, "company_id", "company_id")
            user_id = _state_value(request, "id", "user_id")

            request_metrics.observe(
                endpoint=request.url.path,
                method=request.method,
                status_code=status_code,
                duration_ms=duration_ms,
                company_id=company_id,
            )
            set_request_context(company_id=company_id, user_id=user_id)
            logger.log(
                _log_level(status_code, duration_ms),
                "request completed",
                extra={
                    "request_id": request_id,
                    "company_id": company_id,
                    "user_id": user_id,
                    "endpoint": request.url.path,
                    "method": request.method,
                    "status_code": status_code,
                    "duration_ms": duration_ms,
                    "client_ip": request.client.host if request.client else None,
                },
            )
            if response is not None:
                response.headers[REQUEST_ID_HEADER] = request_id
            clear_request_context()
