from __future__ import annotations

import logging
from typing import Iterable

from fastapi import HTTPException, Request, status

from salessync.core.roles import normalize_role

logger = logging.getLogger(__name__)


class AuthorizationService:
    """Centralize role checks and access-denied logging for API endpoints."""

    @staticmethod
    def log_access_denied(*, reason: str, user, company_id: int | None, request: Request | None) -> None:
        endpoint = f"{request.method} {request.url.path}" if request is not None else None
        logger.warning(
            "Access denied (%s): user_id=%s user_role=%s user_company=%s company_id=%s endpoint=%s",
            reason,
            getattr(user, "id", None),
            getattr(user, "role", None),
            getattr(user, "company_id", None),
            company_id,
            endpoint,
        )

    @classmethod
    def ensure_role(cls, *, request: Request | None, user, roles: Iterable[str]) -> None:
        allowed = {normalize_role(role) for role in roles}
        if normalize_role(getattr(user, "role", None)) not in allowed:
            cls.log_access_denied(
                reason="role_denied",
                user=user,
                company_id=getattr(user, "company_id", None),
                request=request,
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")

    @classmethod
    def ensure_company_access(cls, *, request: Request | None, user, company_id: int | None, row_company_id) -> None:
        if company_id is None:
            return
        if row_company_id is None or int(row_company_id) != int(company_id):
            cls.log_access_denied(
                reason="tenant_mismatch",
                user=user,
                company_id=row_company_id,
                request=request,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access to this resource is not allowed",
            )
