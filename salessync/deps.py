from __future__ import annotations

import logging
from typing import Iterable, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from salessync.core.database import get_db
from salessync.core.request_context import set_request_context
from salessync.models.user import User
from salessync.services.authorization_service import AuthorizationService
from salessync.services.security import TokenError, decode_token, extract_user_id, normalize_bearer_token
from salessync.services.tenant_scope import TENANT_HEADER, TenantScope, resolve_company_id

bearer_scheme = HTTPBearer(auto_error=False)

logger = logging.getLogger(__name__)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _token_from_request(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials is not None and credentials.credentials:
        return normalize_bearer_token(credentials.credentials)
    return normalize_bearer_token(request.headers.get("Authorization"))


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Read the bearer JWT, validate it and return the active user."""
    token = _token_from_request(request, credentials)
    if not token:
        raise _unauthorized("Access token required")

    try:
        payload = decode_token(token)
    except TokenError:
        raise _unauthorized("Invalid or expired token")

    user_id = extract_user_id(payload)
    if user_id is None:
        raise _unauthorized("Invalid token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise _unauthorized("User not found or inactive")
    if user.company is None or not user.company.is_active:
        raise _unauthorized("Company is inactive")

    request.state.user = user
    set_request_context(user_id=str(user.id), company_id=str(user.company_id))
    return user


def require_role(roles: Iterable[str]):
    allowed = frozenset(roles)

    def _dependency(request: Request, user: User = Depends(get_current_user)) -> User:
        AuthorizationService.ensure_role(request=request, user=user, roles=allowed)
        return user

    return _dependency


def get_tenant_scope(request: Request, user: User = Depends(get_current_user)) -> TenantScope:
    company_id = resolve_company_id(user, request.headers.get(TENANT_HEADER))
    if company_id is not None:
        set_request_context(company_id=str(company_id))
    return TenantScope(user=user, company_id=company_id, request=request)


def require_scope(roles: Iterable[str]):
    """Role check and tenant scope in one dependency."""
    allowed = frozenset(roles)

    def _dependency(request: Request, user: User = Depends(get_current_user)) -> TenantScope:
        AuthorizationService.ensure_role(request=request, user=user, roles=allowed)
        return get_tenant_scope(request, user)

    return _dependency
