from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from salessync.core.database import get_db
from salessync.core.roles import ADMIN_ROLES, ALL_ROLES
from salessync.deps import require_scope
from salessync.models.user import User
from salessync.models.warehouse import Warehouse
from salessync.schemas.catalog import WarehouseCreate, WarehouseRead, WarehouseUpdate
from salessync.schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, ok, paginated
from salessync.services.tenant_scope import TenantScope

router = APIRouter(prefix="/api/warehouses", tags=["warehouses"])
logger = logging.getLogger(__name__)


def list_company_warehouses(db: Session, scope: TenantScope, page: int, limit: int) -> dict:
    query = scope.filter(db.query(Warehouse), Warehouse).filter(Warehouse.is_active.is_(True))
    return paginated(WarehouseRead, query.order_by(Warehouse.name.asc()), page, limit)


@router.get("")
def list_warehouses(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    scope: TenantScope = Depends(require_scope(ALL_ROLES)),
    db: Session = Depends(get_db),
):
    return list_company_warehouses(db, scope, page, limit)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_warehouse(
    payload: WarehouseCreate,
    scope: TenantScope = Depends(require_scope(ADMIN_ROLES)),
    db: Session = Depends(get_db),
):
    company_id = scope.require_company()
    if payload.manager_id is not None:
        scope.get_or_404(db, User, payload.manager_id, label="Manager")

    warehouse = Warehouse(company_id=company_id, **payload.model_dump())
    db.add(warehouse)
    db.commit()
    db.refresh(warehouse)
    logger.info("Warehouse created warehouse_id=%s", warehouse.id)
    return ok(WarehouseRead.model_validate(warehouse))


@router.put("/{warehouse_id}")
def update_warehouse(
    warehouse_id: int,
    payload: WarehouseUpdate,
    scope: TenantScope = Depends(require_scope(ADMIN_ROLES)),
    db: Session = Depends(get_db),
):
    warehouse = scope.get_or_404(db, Warehouse, warehouse_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("manager_id") is not None:
        manager = scope.get_or_404(db, User, changes["manager_id"], label="Manager")
        if manager.company_id != warehouse.company_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Manager belongs to another company")
    for field, value in changes.items():
        setattr(warehouse, field, value)
    db.commit()
    db.refresh(warehouse)
    return ok(WarehouseRead.model_validate(warehouse))
