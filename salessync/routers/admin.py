from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from salessync.core.database import get_db
from salessync.core.metrics import request_metrics
from salessync.core.roles import UserRole
from salessync.deps import require_role
from salessync.models.company import Company
from salessync.models.user import User
from salessync.schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, ok, paginated
from salessync.schemas.companies import CompanyCreate, CompanyRead, CompanyUpdate
from salessync.utils.slug import SLUG_PATTERN, normalize_slug

router = APIRouter(prefix="/api/admin", tags=["admin"])
logger = logging.getLogger(__name__)

require_super_admin = require_role([UserRole.SUPER_ADMIN.value])


def _get_company(db: Session, company_id: int) -> Company:
    company = db.query(Company).filter(Company.id == company_id).first()
    if company is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return company


def _resolve_slug(db: Session, raw: str, *, exclude_id: Optional[int] = None) -> str:
    slug = normalize_slug(raw)
    if not slug or not SLUG_PATTERN.match(slug):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid company slug")

    query = db.query(Company.id).filter(Company.slug == slug)
    if exclude_id is not None:
        query = query.filter(Company.id != exclude_id)
    if query.first() is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Company slug already in use")
    return slug


@router.get("/companies")
def list_companies(
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    _user: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    query = db.query(Company)
    if search:
        query = query.filter(Company.name.ilike(f"%{search.strip()}%"))
    return paginated(CompanyRead, query.order_by(Company.id.asc()), page, limit)


@router.post("/companies", status_code=status.HTTP_201_CREATED)
def create_company(
    payload: CompanyCreate,
    user: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    company = Company(
        name=payload.name.strip(),
        slug=_resolve_slug(db, payload.slug or payload.name),
        logo=payload.logo,
        settings=payload.settings,
        subscription_tier=payload.subscription_tier,
        is_active=True,
    )
    db.add(company)
    db.commit()
    db.refresh(company)
    logger.info("Company created company_id=%s slug=%s by user_id=%s", company.id, company.slug, user.id)
    return ok(CompanyRead.model_validate(company))


@router.get("/companies/{company_id}")
def get_company(
    company_id: int,
    _user: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    company = _get_company(db, company_id)
    data = CompanyRead.model_validate(company).model_dump()
    data["user_count"] = db.query(User).filter(User.company_id == company.id).count()
    return ok(data)


@router.put("/companies/{company_id}")
def update_company(
    company_id: int,
    payload: CompanyUpdate,
    user: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    company = _get_company(db, company_id)
    changes = payload.model_dump(exclude_unset=True)
    if "slug" in changes:
        changes["slug"] = _resolve_slug(db, changes["slug"], exclude_id=company.id)
    if "name" in changes:
        changes["name"] = changes["name"].strip()
    for field, value in changes.items():
        setattr(company, field, value)

    db.commit()
    db.refresh(company)
    logger.info("Company updated company_id=%s by user_id=%s", company.id, user.id)
    return ok(CompanyRead.model_validate(company))


@router.delete("/companies/{company_id}")
def deactivate_company(
    company_id: int,
    user: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    company = _get_company(db, company_id)
    if company.id == user.company_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot deactivate your own company")

    company.is_active = False
    db.commit()
    logger.info("Company deactivated company_id=%s by user_id=%s", company.id, user.id)
    return ok({"message": "Company deactivated successfully"})


@router.get("/metrics")
def metrics(_user: User = Depends(require_super_admin)):
    return ok(
        {
            "endpoints": request_metrics.snapshot(),
            "companies": request_metrics.snapshot_per_company(),
        }
    )
