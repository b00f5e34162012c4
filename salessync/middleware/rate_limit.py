from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from salessync.core.errors import error_body
from salessync.core.rate_limiter import RateLimiterService, build_rate_limiter

EXEMPT_PATHS = {"/health", "/api/health", "/status"}


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, *, rate_limiter: RateLimiterService | None = None) -> None:
        super().__init__(app)
        self._rate_limiter = rate_limiter or build_rate_limiter()

    async def dispatch(self, request: Request, call_next):
        if request.url.path in EXEMPT_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        decision = self._rate_limiter.check(key=_rate_limit_key(request))
        if not decision.allowed:
            return JSONResponse(
                status_code=429,
                content=error_body(429, "Too many requests, please try again later"),
                headers={
                    "Retry-After": str(decision.retry_after_seconds),
                    "X-RateLimit-Limit": str(decision.limit),
                    "X-RateLimit-Remaining": str(decision.remaining),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(decision.limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        return response


def _rate_limit_key(request: Request) -> str:
    company_id = getattr(request.state, "company_id", None)
    if company_id is not None:
        return f"company:{company_id}"
    client_ip = request.client.host if request.client else "unknown"
    return f"ip:{client_ip}"
