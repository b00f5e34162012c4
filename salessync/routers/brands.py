from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from salessync.core.database import get_db
from salessync.core.roles import ADMIN_ROLES, ALL_ROLES
from salessync.deps import require_scope
from salessync.models.brand import Brand
from salessync.models.campaign import Campaign
from salessync.models.product import Product
from salessync.schemas.catalog import BrandCreate, BrandRead, BrandUpdate, BrandWithCounts
from salessync.schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, ok, paginate
from salessync.services.tenant_scope import TenantScope

router = APIRouter(prefix="/api/brands", tags=["brands"])
logger = logging.getLogger(__name__)


def _counts(db: Session, model, brand_ids: list[int]) -> dict[int, int]:
    if not brand_ids:
        return {}
    rows = (
        db.query(model.brand_id, func.count(model.id))
        .filter(model.brand_id.in_(brand_ids))
        .group_by(model.brand_id)
        .all()
    )
    return {brand_id: count for brand_id, count in rows}


def _with_counts(db: Session, brands: list[Brand]) -> list[BrandWithCounts]:
    ids = [brand.id for brand in brands]
    product_counts = _counts(db, Product, ids)
    campaign_counts = _counts(db, Campaign, ids)
    return [
        BrandWithCounts(
            **BrandRead.model_validate(brand).model_dump(),
            product_count=product_counts.get(brand.id, 0),
            campaign_count=campaign_counts.get(brand.id, 0),
        )
        for brand in brands
    ]


@router.get("")
def list_brands(
    search: Optional[str] = None,
    include_inactive: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    scope: TenantScope = Depends(require_scope(ALL_ROLES)),
    db: Session = Depends(get_db),
):
    query = scope.filter(db.query(Brand), Brand)
    if not include_inactive:
        query = query.filter(Brand.is_active.is_(True))
    if search:
        query = query.filter(Brand.name.ilike(f"%{search.strip()}%"))
    brands, pagination = paginate(query.order_by(Brand.name.asc()), page, limit)
    return ok(_with_counts(db, brands), pagination=pagination)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_brand(
    payload: BrandCreate,
    scope: TenantScope = Depends(require_scope(ADMIN_ROLES)),
    db: Session = Depends(get_db),
):
    brand = Brand(company_id=scope.require_company(), **payload.model_dump())
    db.add(brand)
    db.commit()
    db.refresh(brand)
    logger.info("Brand created brand_id=%s", brand.id)
    return ok(BrandRead.model_validate(brand))


@router.get("/{brand_id}")
def get_brand(
    brand_id: int,
    scope: TenantScope = Depends(require_scope(ALL_ROLES)),
    db: Session = Depends(get_db),
):
    brand = scope.get_or_404(db, Brand, brand_id)
    return ok(_with_counts(db, [brand])[0])


@router.put("/{brand_id}")
def update_brand(
    brand_id: int,
    payload: BrandUpdate,
    scope: TenantScope = Depends(require_scope(ADMIN_ROLES)),
    db: Session = Depends(get_db),
):
    brand = scope.get_or_404(db, Brand, brand_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(brand, field, value)
    db.commit()
    db.refresh(brand)
    return ok(BrandRead.model_validate(brand))


@router.delete("/{brand_id}")
def deactivate_brand(
    brand_id: int,
    scope: TenantScope = Depends(require_scope(ADMIN_ROLES)),
    db: Session = Depends(get_db),
):
    brand = scope.get_or_404(db, Brand, brand_id)
    brand.is_active = False
    db.commit()
    logger.info("Brand deactivated brand_id=%s", brand.id)
    return ok({"message": "Brand deactivated successfully"})
