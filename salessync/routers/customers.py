from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from salessync.core.database import get_db
from salessync.core.roles import ALL_ROLES, MANAGER_ROLES
from salessync.deps import require_scope
from salessync.models.customer import Customer
from salessync.schemas.catalog import CustomerCreate, CustomerRead, CustomerUpdate
from salessync.schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, ok, paginated
from salessync.services.tenant_scope import TenantScope

router = APIRouter(prefix="/api/customers", tags=["customers"])
logger = logging.getLogger(__name__)


@router.get("")
def list_customers(
    search: Optional[str] = None,
    category: Optional[str] = None,
    include_inactive: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    scope: TenantScope = Depends(require_scope(ALL_ROLES)),
    db: Session = Depends(get_db),
):
    query = scope.filter(db.query(Customer), Customer)
    if not include_inactive:
        query = query.filter(Customer.is_active.is_(True))
    if category:
        query = query.filter(Customer.category == category)
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(
            or_(Customer.name.ilike(term), Customer.phone.ilike(term), Customer.email.ilike(term))
        )
    return paginated(CustomerRead, query.order_by(Customer.name.asc()), page, limit)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_customer(
    payload: CustomerCreate,
    scope: TenantScope = Depends(require_scope(MANAGER_ROLES)),
    db: Session = Depends(get_db),
):
    customer = Customer(company_id=scope.require_company(), **payload.model_dump())
    db.add(customer)
    db.commit()
    db.refresh(customer)
    logger.info("Customer created customer_id=%s", customer.id)
    return ok(CustomerRead.model_validate(customer))


@router.get("/{customer_id}")
def get_customer(
    customer_id: int,
    scope: TenantScope = Depends(require_scope(ALL_ROLES)),
    db: Session = Depends(get_db),
):
    return ok(CustomerRead.model_validate(scope.get_or_404(db, Customer, customer_id)))


@router.put("/{customer_id}")
def update_customer(
    customer_id: int,
    payload: CustomerUpdate,
    scope: TenantScope = Depends(require_scope(MANAGER_ROLES)),
    db: Session = Depends(get_db),
):
    customer = scope.get_or_404(db, Customer, customer_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(customer, field, value)
    db.commit()
    db.refresh(customer)
    return ok(CustomerRead.model_validate(customer))


@router.delete("/{customer_id}")
def deactivate_customer(
    customer_id: int,
    scope: TenantScope = Depends(require_scope(MANAGER_ROLES)),
    db: Session = Depends(get_db),
):
    customer = scope.get_or_404(db, Customer, customer_id)
    customer.is_active = False
    db.commit()
    logger.info("Customer deactivated customer_id=%s", customer.id)
    return ok({"message": "Customer deactivated successfully"})
