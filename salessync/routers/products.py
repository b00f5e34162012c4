from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from salessync.core.database import get_db
from salessync.core.roles import ALL_ROLES, MANAGER_ROLES
from salessync.deps import require_scope
from salessync.models.brand import Brand
from salessync.models.product import Product
from salessync.schemas.catalog import ProductCreate, ProductRead, ProductUpdate
from salessync.schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, ok, paginated
from salessync.services.tenant_scope import TenantScope

router = APIRouter(prefix="/api/products", tags=["products"])
logger = logging.getLogger(__name__)


def _ensure_sku_available(db: Session, company_id: int, sku: str, *, exclude_id: Optional[int] = None) -> None:
    query = db.query(Product.id).filter(Product.company_id == company_id, Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first() is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="SKU already exists in this company")


@router.get("")
def list_products(
    search: Optional[str] = None,
    category: Optional[str] = None,
    brand_id: Optional[int] = None,
    include_inactive: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    scope: TenantScope = Depends(require_scope(ALL_ROLES)),
    db: Session = Depends(get_db),
):
    query = scope.filter(db.query(Product), Product)
    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))
    if category:
        query = query.filter(Product.category == category)
    if brand_id is not None:
        query = query.filter(Product.brand_id == brand_id)
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(or_(Product.name.ilike(term), Product.sku.ilike(term), Product.barcode.ilike(term)))
    return paginated(ProductRead, query.order_by(Product.name.asc()), page, limit)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    scope: TenantScope = Depends(require_scope(MANAGER_ROLES)),
    db: Session = Depends(get_db),
):
    company_id = scope.require_company()
    if payload.brand_id is not None:
        scope.get_or_404(db, Brand, payload.brand_id)

    sku = payload.sku.strip()
    _ensure_sku_available(db, company_id, sku)
    product = Product(company_id=company_id, **{**payload.model_dump(), "sku": sku})
    db.add(product)
    db.commit()
    db.refresh(product)
    logger.info("Product created product_id=%s sku=%s", product.id, product.sku)
    return ok(ProductRead.model_validate(product))


@router.get("/{product_id}")
def get_product(
    product_id: int,
    scope: TenantScope = Depends(require_scope(ALL_ROLES)),
    db: Session = Depends(get_db),
):
    return ok(ProductRead.model_validate(scope.get_or_404(db, Product, product_id)))


@router.put("/{product_id}")
def update_product(
    product_id: int,
    payload: ProductUpdate,
    scope: TenantScope = Depends(require_scope(MANAGER_ROLES)),
    db: Session = Depends(get_db),
):
    product = scope.get_or_404(db, Product, product_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("brand_id") is not None:
        brand = scope.get_or_404(db, Brand, changes["brand_id"])
        if brand.company_id != product.company_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Brand belongs to another company")
    if changes.get("sku"):
        changes["sku"] = changes["sku"].strip()
        _ensure_sku_available(db, product.company_id, changes["sku"], exclude_id=product.id)

    for field, value in changes.items():
        setattr(product, field, value)
    db.commit()
    db.refresh(product)
    return ok(ProductRead.model_validate(product))


@router.delete("/{product_id}")
def deactivate_product(
    product_id: int,
    scope: TenantScope = Depends(require_scope(MANAGER_ROLES)),
    db: Session = Depends(get_db),
):
    product = scope.get_or_404(db, Product, product_id)
    product.is_active = False
    db.commit()
    logger.info("Product deactivated product_id=%s", product.id)
    return ok({"message": "Product deactivated successfully"})
