from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Type

from fastapi import HTTPException, Request, status
from sqlalchemy.orm import Query, Session

from salessync.core.roles import is_agent, is_super_admin
from salessync.services.authorization_service import AuthorizationService

TENANT_HEADER = "X-Tenant-ID"


def resolve_company_id(user, header_value: str | None) -> Optional[int]:
    """Effective company for a request.

    Regular users always act inside their own company; the header is ignored
    for them. Super admins pick a company with ``X-Tenant-ID`` and act
    platform-wide when it is absent.
    """
    if not is_super_admin(user):
        return int(user.company_id)

    raw = (header_value or "").strip()
    if not raw:
        return None
    if not raw.isdigit():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid {TENANT_HEADER} header")
    return int(raw)


@dataclass
class TenantScope:
    user: Any
    company_id: Optional[int]
    request: Optional[Request] = None

    @property
    def is_super_admin(self) -> bool:
        return is_super_admin(self.user)

    @property
    def is_agent(self) -> bool:
        return is_agent(self.user)

    def require_company(self) -> int:
        if self.company_id is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Tenant context required")
        return self.company_id

    def filter(self, query: Query, model: Type) -> Query:
        if self.company_id is None and self.is_super_admin:
            return query
        return query.filter(model.company_id == self.company_id)

    def filter_own(self, query: Query, model: Type, field: str = "agent_id") -> Query:
        """Company filter plus, for agent-level roles, only the caller's rows."""
        query = self.filter(query, model)
        if self.is_agent:
            query = query.filter(getattr(model, field) == self.user.id)
        return query

    def get_or_404(self, db: Session, model: Type, object_id: int, *, label: str | None = None):
        row = db.query(model).filter(model.id == object_id).first()
        if row is None:
            name = label or model.__name__
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{name} not found")

        if self.company_id is None and self.is_super_admin:
            return row

        AuthorizationService.ensure_company_access(
            request=self.request,
            user=self.user,
            company_id=self.company_id,
            row_company_id=row.company_id,
        )
        return row

    def ensure_own(self, row, field: str = "agent_id") -> None:
        if not self.is_agent:
            return
        if getattr(row, field, None) != self.user.id:
            AuthorizationService.log_access_denied(
                reason="not_owner",
                user=self.user,
                company_id=getattr(row, "company_id", None),
                request=self.request,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access to this resource is not allowed",
            )
