from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware

from salessync.services.security import TokenError, decode_token, extract_user_id, normalize_bearer_token


class TenantContextMiddleware(BaseHTTPMiddleware):
    """Expose the caller's company and user id on ``request.state``.

    The token is only decoded here, never checked against the database;
    authentication happens in ``get_current_user``. The rate limiter keys on
    these values.
    """

    async def dispatch(self, request, call_next):
        request.state.company_id = None
        request.state.user_id = None

        token = normalize_bearer_token(request.headers.get("Authorization"))
        if token:
            try:
                payload = decode_token(token)
            except TokenError:
                payload = None
            if payload:
                request.state.company_id = payload.get("company_id")
                request.state.user_id = extract_user_id(payload)

        return await call_next(request)
