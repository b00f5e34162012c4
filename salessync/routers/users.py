from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from salessync.core.database import get_db
from salessync.core.roles import ADMIN_ROLES, MANAGER_ROLES, UserRole, normalize_role
from salessync.deps import require_scope
from salessync.models.user import User
from salessync.schemas.auth import UserRead
from salessync.schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, ok, paginated
from salessync.schemas.users import UserCreate, UserUpdate
from salessync.services.passwords import hash_password
from salessync.services.tenant_scope import TenantScope

router = APIRouter(prefix="/api/users", tags=["users"])
logger = logging.getLogger(__name__)


def _ensure_assignable_role(scope: TenantScope, role: UserRole) -> None:
    if role == UserRole.SUPER_ADMIN and not scope.is_super_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot assign the SUPER_ADMIN role")


def _ensure_editable_target(scope: TenantScope, target: User) -> None:
    if target.role == UserRole.SUPER_ADMIN.value and not scope.is_super_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot change a super admin")


def _ensure_email_available(db: Session, email: str, *, exclude_id: Optional[int] = None) -> None:
    query = db.query(User.id).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first() is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")


@router.get("")
def list_users(
    role: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    scope: TenantScope = Depends(require_scope(MANAGER_ROLES)),
    db: Session = Depends(get_db),
):
    query = scope.filter(db.query(User), User)
    if role:
        query = query.filter(User.role == normalize_role(role))
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(
            or_(User.first_name.ilike(term), User.last_name.ilike(term), User.email.ilike(term))
        )
    return paginated(UserRead, query.order_by(User.id.asc()), page, limit)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    scope: TenantScope = Depends(require_scope(ADMIN_ROLES)),
    db: Session = Depends(get_db),
):
    company_id = scope.require_company()
    _ensure_assignable_role(scope, payload.role)

    email = payload.email.strip().lower()
    _ensure_email_available(db, email)

    user = User(
        company_id=company_id,
        email=email,
        password_hash=hash_password(payload.password),
        first_name=payload.first_name.strip(),
        last_name=payload.last_name.strip(),
        phone=payload.phone,
        role=payload.role.value,
        permissions=payload.permissions,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User created user_id=%s company_id=%s role=%s", user.id, company_id, user.role)
    return ok(UserRead.model_validate(user))


@router.get("/{user_id}")
def get_user(
    user_id: int,
    scope: TenantScope = Depends(require_scope(ADMIN_ROLES)),
    db: Session = Depends(get_db),
):
    return ok(UserRead.model_validate(scope.get_or_404(db, User, user_id, label="User")))


@router.put("/{user_id}")
def update_user(
    user_id: int,
    payload: UserUpdate,
    scope: TenantScope = Depends(require_scope(ADMIN_ROLES)),
    db: Session = Depends(get_db),
):
    target = scope.get_or_404(db, User, user_id, label="User")
    _ensure_editable_target(scope, target)
    changes = payload.model_dump(exclude_unset=True)

    if "role" in changes and changes["role"] is not None:
        _ensure_assignable_role(scope, payload.role)
        changes["role"] = payload.role.value
    if changes.get("is_active") is False and target.id == scope.user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot deactivate your own account")

    password = changes.pop("password", None)
    if password:
        target.password_hash = hash_password(password)
    for field, value in changes.items():
        setattr(target, field, value)

    db.commit()
    db.refresh(target)
    logger.info("User updated user_id=%s by user_id=%s", target.id, scope.user.id)
    return ok(UserRead.model_validate(target))


@router.delete("/{user_id}")
def deactivate_user(
    user_id: int,
    scope: TenantScope = Depends(require_scope(ADMIN_ROLES)),
    db: Session = Depends(get_db),
):
    target = scope.get_or_404(db, User, user_id, label="User")
    if target.id == scope.user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot deactivate your own account")
    _ensure_editable_target(scope, target)

    target.is_active = False
    db.commit()
    logger.info("User deactivated user_id=%s by user_id=%s", target.id, scope.user.id)
    return ok({"message": "User deactivated successfully"})
