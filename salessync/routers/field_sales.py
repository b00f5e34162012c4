from __future__ import annotations

import logging
from datetime import datetime, time, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from salessync.core.database import get_db, utcnow
from salessync.core.roles import FIELD_SALES_ROLES
from salessync.deps import require_scope
from salessync.models.customer import Customer
from salessync.models.sale import Sale, SaleItem
from salessync.models.survey import SurveyResponse
from salessync.models.user import User
from salessync.models.visit import VISIT_STATUSES, Visit
from salessync.routers.warehouses import list_company_warehouses
from salessync.schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, ok, paginated
from salessync.schemas.field_sales import SaleCreate, SaleRead, VisitCreate, VisitRead, VisitTransition
from salessync.services.sales import create_sale
from salessync.services.tenant_scope import TenantScope

router = APIRouter(prefix="/api/field-sales", tags=["field-sales"])
logger = logging.getLogger(__name__)

field_sales_scope = require_scope(FIELD_SALES_ROLES)

# allowed source states per visit action
VISIT_TRANSITIONS = {
    "start": ({"PLANNED"}, "IN_PROGRESS"),
    "complete": ({"IN_PROGRESS"}, "COMPLETED"),
    "cancel": ({"PLANNED", "IN_PROGRESS"}, "CANCELLED"),
}


def _load_visit(db: Session, scope: TenantScope, visit_id: int) -> Visit:
    visit = scope.get_or_404(db, Visit, visit_id)
    scope.ensure_own(visit)
    return visit


def _visit_has_records(db: Session, visit_id: int) -> bool:
    if db.query(Sale.id).filter(Sale.visit_id == visit_id).first() is not None:
        return True
    return db.query(SurveyResponse.id).filter(SurveyResponse.visit_id == visit_id).first() is not None


def apply_visit_transition(visit: Visit, action: str, payload: Optional[VisitTransition] = None) -> Visit:
    sources, target = VISIT_TRANSITIONS[action]
    if visit.status not in sources:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot {action} a visit in status {visit.status}",
        )

    now = utcnow()
    visit.status = target
    if action == "start":
        visit.actual_start_time = now
    elif action == "complete":
        visit.actual_end_time = now
    elif action == "cancel" and visit.actual_start_time is not None:
        visit.actual_end_time = now

    if payload is not None:
        if payload.latitude is not None:
            visit.latitude = payload.latitude
        if payload.longitude is not None:
            visit.longitude = payload.longitude
        if payload.notes:
            visit.notes = payload.notes
    return visit


@router.get("/dashboard")
def dashboard(
    scope: TenantScope = Depends(field_sales_scope),
    db: Session = Depends(get_db),
):
    now = utcnow()
    day_start = datetime.combine(now.date(), time.min)
    day_end = day_start + timedelta(days=1)
    week_start = now - timedelta(days=7)

    todays_visits = (
        scope.filter_own(db.query(Visit), Visit)
        .options(joinedload(Visit.customer))
        .filter(Visit.planned_start_time >= day_start, Visit.planned_start_time < day_end)
        .order_by(Visit.planned_start_time.asc())
        .all()
    )
    sales_count, sales_value = (
        scope.filter_own(db.query(func.count(Sale.id), func.coalesce(func.sum(Sale.total_amount), 0)), Sale)
        .filter(Sale.created_at >= week_start)
        .one()
    )
    return ok(
        {
            "todays_visits": [VisitRead.model_validate(visit) for visit in todays_visits],
            "weekly_sales": {"count": int(sales_count or 0), "total_amount": float(sales_value or 0)},
        }
    )


@router.get("/visits")
def list_visits(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    scope: TenantScope = Depends(field_sales_scope),
    db: Session = Depends(get_db),
):
    query = scope.filter_own(db.query(Visit), Visit).options(joinedload(Visit.customer), joinedload(Visit.agent))
    if status_filter:
        value = status_filter.strip().upper()
        if value not in VISIT_STATUSES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid visit status")
        query = query.filter(Visit.status == value)
    return paginated(VisitRead, query.order_by(Visit.planned_start_time.desc(), Visit.id.desc()), page, limit)


@router.post("/visits", status_code=status.HTTP_201_CREATED)
def create_visit(
    payload: VisitCreate,
    scope: TenantScope = Depends(field_sales_scope),
    db: Session = Depends(get_db),
):
    company_id = scope.require_company()
    customer = scope.get_or_404(db, Customer, payload.customer_id, label="Customer")

    agent_id = scope.user.id
    if payload.agent_id is not None and payload.agent_id != scope.user.id:
        if scope.is_agent:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Agents can only plan their own visits")
        agent_id = scope.get_or_404(db, User, payload.agent_id, label="Agent").id

    visit = Visit(
        company_id=company_id,
        agent_id=agent_id,
        customer_id=customer.id,
        planned_start_time=payload.planned_start_time or utcnow(),
        latitude=payload.latitude,
        longitude=payload.longitude,
        notes=payload.notes,
        status="PLANNED",
    )
    db.add(visit)
    db.commit()
    db.refresh(visit)
    logger.info("Visit planned visit_id=%s agent_id=%s customer_id=%s", visit.id, agent_id, customer.id)
    return ok(VisitRead.model_validate(visit))


@router.get("/visits/{visit_id}")
def get_visit(
    visit_id: int,
    scope: TenantScope = Depends(field_sales_scope),
    db: Session = Depends(get_db),
):
    return ok(VisitRead.model_validate(_load_visit(db, scope, visit_id)))


def _transition(action: str, visit_id: int, payload: Optional[VisitTransition], scope: TenantScope, db: Session):
    visit = apply_visit_transition(_load_visit(db, scope, visit_id), action, payload)
    db.commit()
    db.refresh(visit)
    logger.info("Visit %s visit_id=%s status=%s", action, visit.id, visit.status)
    return ok(VisitRead.model_validate(visit))


@router.put("/visits/{visit_id}/start")
def start_visit(
    visit_id: int,
    payload: Optional[VisitTransition] = None,
    scope: TenantScope = Depends(field_sales_scope),
    db: Session = Depends(get_db),
):
    return _transition("start", visit_id, payload, scope, db)


@router.put("/visits/{visit_id}/complete")
def complete_visit(
    visit_id: int,
    payload: Optional[VisitTransition] = None,
    scope: TenantScope = Depends(field_sales_scope),
    db: Session = Depends(get_db),
):
    return _transition("complete", visit_id, payload, scope, db)


@router.put("/visits/{visit_id}/cancel")
def cancel_visit(
    visit_id: int,
    payload: Optional[VisitTransition] = None,
    scope: TenantScope = Depends(field_sales_scope),
    db: Session = Depends(get_db),
):
    return _transition("cancel", visit_id, payload, scope, db)


@router.delete("/visits/{visit_id}")
def delete_visit(
    visit_id: int,
    scope: TenantScope = Depends(field_sales_scope),
    db: Session = Depends(get_db),
):
    visit = _load_visit(db, scope, visit_id)
    if visit.status != "PLANNED":
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Only planned visits can be deleted")
    if _visit_has_records(db, visit.id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Visit has recorded sales or survey responses and cannot be deleted",
        )
    db.delete(visit)
    db.commit()
    logger.info("Visit deleted visit_id=%s", visit_id)
    return ok({"message": "Visit deleted successfully"})


@router.get("/sales")
def list_sales(
    payment_status: Optional[str] = None,
    customer_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    scope: TenantScope = Depends(field_sales_scope),
    db: Session = Depends(get_db),
):
    query = scope.filter_own(db.query(Sale), Sale).options(
        joinedload(Sale.customer),
        joinedload(Sale.agent),
        joinedload(Sale.items).joinedload(SaleItem.product),
    )
    if payment_status:
        query = query.filter(Sale.payment_status == payment_status.strip().upper())
    if customer_id is not None:
        query = query.filter(Sale.customer_id == customer_id)
    return paginated(SaleRead, query.order_by(Sale.created_at.desc(), Sale.id.desc()), page, limit)


@router.post("/sales", status_code=status.HTTP_201_CREATED)
def create_sale_endpoint(
    payload: SaleCreate,
    scope: TenantScope = Depends(field_sales_scope),
    db: Session = Depends(get_db),
):
    return ok(SaleRead.model_validate(create_sale(db, scope, payload)))


@router.get("/sales/{sale_id}")
def get_sale(
    sale_id: int,
    scope: TenantScope = Depends(field_sales_scope),
    db: Session = Depends(get_db),
):
    sale = scope.get_or_404(db, Sale, sale_id)
    scope.ensure_own(sale)
    return ok(SaleRead.model_validate(sale))


@router.get("/warehouses")
def warehouses(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    scope: TenantScope = Depends(field_sales_scope),
    db: Session = Depends(get_db),
):
    return list_company_warehouses(db, scope, page, limit)
