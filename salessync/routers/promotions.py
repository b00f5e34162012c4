from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from salessync.core.database import get_db, utcnow
from salessync.core.roles import ADMIN_ROLES, PROMOTION_ROLES
from salessync.deps import require_scope
from salessync.models.activation import ACTIVATION_STATUSES, Activation
from salessync.models.campaign import Campaign
from salessync.schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, ok, paginate, paginated
from salessync.schemas.field_marketing import CampaignRead, CampaignWithCounts
from salessync.schemas.promotions import ActivationCreate, ActivationRead, ActivationTransition
from salessync.services.tenant_scope import TenantScope

router = APIRouter(prefix="/api/promotions", tags=["promotions"])
logger = logging.getLogger(__name__)

promotion_scope = require_scope(PROMOTION_ROLES)

ACTIVATION_TRANSITIONS = {
    "start": ({"SCHEDULED"}, "IN_PROGRESS"),
    "complete": ({"IN_PROGRESS"}, "COMPLETED"),
    "cancel": ({"SCHEDULED", "IN_PROGRESS"}, "CANCELLED"),
}


def apply_activation_transition(
    activation: Activation, action: str, payload: Optional[ActivationTransition] = None
) -> Activation:
    sources, target = ACTIVATION_TRANSITIONS[action]
    if activation.status not in sources:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot {action} an activation in status {activation.status}",
        )

    activation.status = target
    if action == "start":
        activation.actual_start = utcnow()
    elif action == "complete" or activation.actual_start is not None:
        activation.actual_end = utcnow()
    if payload is not None and payload.notes:
        activation.notes = payload.notes
    return activation


@router.get("/dashboard")
def dashboard(
    scope: TenantScope = Depends(promotion_scope),
    db: Session = Depends(get_db),
):
    rows = (
        scope.filter(db.query(Activation.status, func.count(Activation.id)), Activation)
        .group_by(Activation.status)
        .all()
    )
    by_status = {value: 0 for value in ACTIVATION_STATUSES}
    by_status.update({activation_status: count for activation_status, count in rows})
    now = utcnow()
    upcoming = (
        scope.filter(db.query(Activation), Activation)
        .filter(Activation.status == "SCHEDULED", Activation.scheduled_start >= now)
        .order_by(Activation.scheduled_start.asc())
        .limit(5)
        .all()
    )
    active_campaigns = scope.filter(db.query(Campaign), Campaign).filter(Campaign.status == "ACTIVE").count()
    return ok(
        {
            "activations_by_status": by_status,
            "total_activations": sum(by_status.values()),
            "active_campaigns": active_campaigns,
            "upcoming_activations": [ActivationRead.model_validate(row) for row in upcoming],
        }
    )


@router.get("/campaigns")
def list_promotion_campaigns(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    scope: TenantScope = Depends(promotion_scope),
    db: Session = Depends(get_db),
):
    query = scope.filter(db.query(Campaign), Campaign).order_by(Campaign.start_date.desc(), Campaign.id.desc())
    campaigns, pagination = paginate(query, page, limit)
    ids = [campaign.id for campaign in campaigns]
    counts = {}
    if ids:
        counts = dict(
            db.query(Activation.campaign_id, func.count(Activation.id))
            .filter(Activation.campaign_id.in_(ids))
            .group_by(Activation.campaign_id)
            .all()
        )
    data = [
        CampaignWithCounts(
            **CampaignRead.model_validate(campaign).model_dump(),
            activation_count=counts.get(campaign.id, 0),
        )
        for campaign in campaigns
    ]
    return ok(data, pagination=pagination)


@router.get("/activations")
def list_activations(
    status_filter: Optional[str] = Query(None, alias="status"),
    campaign_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    scope: TenantScope = Depends(promotion_scope),
    db: Session = Depends(get_db),
):
    query = scope.filter(db.query(Activation), Activation)
    if status_filter:
        query = query.filter(Activation.status == status_filter.strip().upper())
    if campaign_id is not None:
        query = query.filter(Activation.campaign_id == campaign_id)
    return paginated(ActivationRead, query.order_by(Activation.scheduled_start.desc()), page, limit)


@router.post("/activations", status_code=status.HTTP_201_CREATED)
def create_activation(
    payload: ActivationCreate,
    scope: TenantScope = Depends(require_scope(ADMIN_ROLES)),
    db: Session = Depends(get_db),
):
    company_id = scope.require_company()
    campaign = scope.get_or_404(db, Campaign, payload.campaign_id, label="Campaign")
    if campaign.status in {"COMPLETED", "CANCELLED"}:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Campaign is closed")

    activation = Activation(company_id=company_id, status="SCHEDULED", **payload.model_dump())
    db.add(activation)
    db.commit()
    db.refresh(activation)
    logger.info("Activation scheduled activation_id=%s campaign_id=%s", activation.id, campaign.id)
    return ok(ActivationRead.model_validate(activation))


@router.get("/activations/{activation_id}")
def get_activation(
    activation_id: int,
    scope: TenantScope = Depends(promotion_scope),
    db: Session = Depends(get_db),
):
    return ok(ActivationRead.model_validate(scope.get_or_404(db, Activation, activation_id)))


def activation_performance(activation: Activation) -> dict:
    """Actual against scheduled duration, in whole minutes."""
    scheduled = int((activation.scheduled_end - activation.scheduled_start).total_seconds() // 60)
    actual = 0
    if activation.actual_start is not None and activation.actual_end is not None:
        actual = int((activation.actual_end - activation.actual_start).total_seconds() // 60)
    on_time = activation.actual_start is not None and activation.actual_start <= activation.scheduled_start
    return {
        "activation_id": activation.id,
        "status": activation.status,
        "duration_minutes": actual,
        "scheduled_duration_minutes": scheduled,
        "on_time": on_time,
    }


@router.get("/activations/{activation_id}/performance")
def get_activation_performance(
    activation_id: int,
    scope: TenantScope = Depends(promotion_scope),
    db: Session = Depends(get_db),
):
    return ok(activation_performance(scope.get_or_404(db, Activation, activation_id)))


def _transition(action: str, activation_id: int, payload, scope: TenantScope, db: Session):
    activation = apply_activation_transition(scope.get_or_404(db, Activation, activation_id), action, payload)
    db.commit()
    db.refresh(activation)
    logger.info("Activation %s activation_id=%s status=%s", action, activation.id, activation.status)
    return ok(ActivationRead.model_validate(activation))


@router.put("/activations/{activation_id}/start")
def start_activation(
    activation_id: int,
    payload: Optional[ActivationTransition] = None,
    scope: TenantScope = Depends(promotion_scope),
    db: Session = Depends(get_db),
):
    return _transition("start", activation_id, payload, scope, db)


@router.put("/activations/{activation_id}/complete")
def complete_activation(
    activation_id: int,
    payload: Optional[ActivationTransition] = None,
    scope: TenantScope = Depends(promotion_scope),
    db: Session = Depends(get_db),
):
    return _transition("complete", activation_id, payload, scope, db)


@router.put("/activations/{activation_id}/cancel")
def cancel_activation(
    activation_id: int,
    payload: Optional[ActivationTransition] = None,
    scope: TenantScope = Depends(promotion_scope),
    db: Session = Depends(get_db),
):
    return _transition("cancel", activation_id, payload, scope, db)
