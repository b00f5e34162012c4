from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from salessync.core.database import get_db, utcnow
from salessync.core.roles import ADMIN_ROLES, FIELD_MARKETING_ROLES
from salessync.deps import require_scope
from salessync.models.activation import Activation
from salessync.models.brand import Brand
from salessync.models.campaign import Campaign
from salessync.models.customer import Customer
from salessync.models.street_interaction import StreetInteraction
from salessync.models.survey import Survey, SurveyResponse
from salessync.models.visit import Visit
from salessync.schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, ok, paginated
from salessync.schemas.field_marketing import (
    CampaignCreate,
    CampaignRead,
    CampaignUpdate,
    InteractionComplete,
    InteractionCustomer,
    InteractionRead,
    InteractionStart,
    SurveyCreate,
    SurveyRead,
    SurveyResponseCreate,
    SurveyResponseRead,
)
from salessync.services import reporting
from salessync.services.tenant_scope import TenantScope

router = APIRouter(prefix="/api/field-marketing", tags=["field-marketing"])
logger = logging.getLogger(__name__)

marketing_scope = require_scope(FIELD_MARKETING_ROLES)
admin_scope = require_scope(ADMIN_ROLES)


@router.get("/dashboard")
def dashboard(
    scope: TenantScope = Depends(marketing_scope),
    db: Session = Depends(get_db),
):
    active_campaigns = scope.filter(db.query(Campaign), Campaign).filter(Campaign.status == "ACTIVE").count()
    my_responses = (
        scope.filter(db.query(SurveyResponse), SurveyResponse)
        .filter(SurveyResponse.agent_id == scope.user.id)
        .count()
    )
    active_surveys = scope.filter(db.query(Survey), Survey).filter(Survey.is_active.is_(True)).count()
    return ok(
        {
            "active_campaigns": active_campaigns,
            "active_surveys": active_surveys,
            "my_survey_responses": my_responses,
        }
    )


@router.get("/campaigns")
def list_campaigns(
    status_filter: Optional[str] = Query(None, alias="status"),
    campaign_type: Optional[str] = Query(None, alias="type"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    scope: TenantScope = Depends(marketing_scope),
    db: Session = Depends(get_db),
):
    query = scope.filter(db.query(Campaign), Campaign)
    if status_filter:
        query = query.filter(Campaign.status == status_filter.strip().upper())
    if campaign_type:
        query = query.filter(Campaign.type == campaign_type.strip().upper())
    return paginated(CampaignRead, query.order_by(Campaign.start_date.desc(), Campaign.id.desc()), page, limit)


@router.get("/campaigns/{campaign_id}")
def get_campaign(
    campaign_id: int,
    scope: TenantScope = Depends(marketing_scope),
    db: Session = Depends(get_db),
):
    return ok(CampaignRead.model_validate(scope.get_or_404(db, Campaign, campaign_id)))


@router.post("/campaigns", status_code=status.HTTP_201_CREATED)
def create_campaign(
    payload: CampaignCreate,
    scope: TenantScope = Depends(admin_scope),
    db: Session = Depends(get_db),
):
    company_id = scope.require_company()
    if payload.brand_id is not None:
        scope.get_or_404(db, Brand, payload.brand_id)

    campaign = Campaign(company_id=company_id, **payload.model_dump())
    db.add(campaign)
    db.commit()
    db.refresh(campaign)
    logger.info("Campaign created campaign_id=%s", campaign.id)
    return ok(CampaignRead.model_validate(campaign))


@router.put("/campaigns/{campaign_id}")
def update_campaign(
    campaign_id: int,
    payload: CampaignUpdate,
    scope: TenantScope = Depends(admin_scope),
    db: Session = Depends(get_db),
):
    campaign = scope.get_or_404(db, Campaign, campaign_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("brand_id") is not None:
        brand = scope.get_or_404(db, Brand, changes["brand_id"])
        if brand.company_id != campaign.company_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Brand belongs to another company")

    start_date = changes.get("start_date") or campaign.start_date
    end_date = changes.get("end_date") or campaign.end_date
    if end_date < start_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end_date must be on or after start_date")

    for field, value in changes.items():
        setattr(campaign, field, value)
    db.commit()
    db.refresh(campaign)
    return ok(CampaignRead.model_validate(campaign))


@router.delete("/campaigns/{campaign_id}")
def delete_campaign(
    campaign_id: int,
    scope: TenantScope = Depends(admin_scope),
    db: Session = Depends(get_db),
):
    campaign = scope.get_or_404(db, Campaign, campaign_id)
    if campaign.status != "DRAFT":
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Only draft campaigns can be deleted")
    if db.query(Activation.id).filter(Activation.campaign_id == campaign.id).first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Campaign has activations and cannot be deleted",
        )
    db.delete(campaign)
    db.commit()
    logger.info("Campaign deleted campaign_id=%s", campaign_id)
    return ok({"message": "Campaign deleted successfully"})


@router.get("/surveys")
def list_surveys(
    include_inactive: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    scope: TenantScope = Depends(marketing_scope),
    db: Session = Depends(get_db),
):
    query = scope.filter(db.query(Survey), Survey)
    if not include_inactive:
        query = query.filter(Survey.is_active.is_(True))
    return paginated(SurveyRead, query.order_by(Survey.id.desc()), page, limit)


@router.post("/surveys", status_code=status.HTTP_201_CREATED)
def create_survey(
    payload: SurveyCreate,
    scope: TenantScope = Depends(admin_scope),
    db: Session = Depends(get_db),
):
    survey = Survey(company_id=scope.require_company(), **payload.model_dump())
    db.add(survey)
    db.commit()
    db.refresh(survey)
    logger.info("Survey created survey_id=%s", survey.id)
    return ok(SurveyRead.model_validate(survey))


@router.get("/surveys/{survey_id}/responses")
def list_survey_responses(
    survey_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    scope: TenantScope = Depends(marketing_scope),
    db: Session = Depends(get_db),
):
    survey = scope.get_or_404(db, Survey, survey_id)
    query = scope.filter_own(db.query(SurveyResponse), SurveyResponse).filter(SurveyResponse.survey_id == survey.id)
    return paginated(SurveyResponseRead, query.order_by(SurveyResponse.id.desc()), page, limit)


@router.post("/surveys/{survey_id}/responses", status_code=status.HTTP_201_CREATED)
def submit_survey_response(
    survey_id: int,
    payload: SurveyResponseCreate,
    scope: TenantScope = Depends(marketing_scope),
    db: Session = Depends(get_db),
):
    survey = scope.get_or_404(db, Survey, survey_id)
    if not survey.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Survey is not active")
    if payload.customer_id is not None:
        scope.get_or_404(db, Customer, payload.customer_id, label="Customer")
    if payload.visit_id is not None:
        visit = scope.get_or_404(db, Visit, payload.visit_id, label="Visit")
        scope.ensure_own(visit)

    response = SurveyResponse(
        company_id=survey.company_id,
        survey_id=survey.id,
        agent_id=scope.user.id,
        customer_id=payload.customer_id,
        visit_id=payload.visit_id,
        responses=payload.responses,
        completion_time=payload.completion_time,
    )
    db.add(response)
    db.commit()
    db.refresh(response)
    logger.info("Survey response recorded survey_id=%s response_id=%s", survey.id, response.id)
    return ok(SurveyResponseRead.model_validate(response))


def _load_interaction(db: Session, scope: TenantScope, interaction_id: int) -> StreetInteraction:
    interaction = scope.get_or_404(db, StreetInteraction, interaction_id, label="Interaction")
    scope.ensure_own(interaction)
    return interaction


def _ensure_in_progress(interaction: StreetInteraction) -> None:
    if interaction.status != "IN_PROGRESS":
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Interaction is already completed")


def _find_or_create_prospect(db: Session, company_id: int, payload: InteractionCustomer) -> Customer:
    contacts = []
    if payload.phone:
        contacts.append(Customer.phone == payload.phone.strip())
    if payload.email:
        contacts.append(Customer.email == payload.email.lower())
    customer = db.query(Customer).filter(Customer.company_id == company_id, or_(*contacts)).first()
    if customer is not None:
        return customer

    customer = Customer(
        company_id=company_id,
        name=payload.full_name.strip(),
        phone=payload.phone.strip() if payload.phone else None,
        email=payload.email.lower() if payload.email else None,
        category="PROSPECT",
    )
    db.add(customer)
    db.flush()
    return customer


@router.post("/interactions/start", status_code=status.HTTP_201_CREATED)
def start_interaction(
    payload: InteractionStart,
    scope: TenantScope = Depends(marketing_scope),
    db: Session = Depends(get_db),
):
    scope.require_company()
    campaign = scope.get_or_404(db, Campaign, payload.campaign_id, label="Campaign")
    if campaign.status != "ACTIVE":
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Campaign is not active")

    interaction = StreetInteraction(
        company_id=campaign.company_id,
        campaign_id=campaign.id,
        agent_id=scope.user.id,
        customer_type=payload.customer_type.strip().upper(),
        location=payload.location or {},
        status="IN_PROGRESS",
        start_time=utcnow(),
    )
    db.add(interaction)
    db.commit()
    db.refresh(interaction)
    logger.info("Interaction started interaction_id=%s campaign_id=%s", interaction.id, campaign.id)
    return ok(InteractionRead.model_validate(interaction))


@router.put("/interactions/{interaction_id}/customer")
def capture_interaction_customer(
    interaction_id: int,
    payload: InteractionCustomer,
    scope: TenantScope = Depends(marketing_scope),
    db: Session = Depends(get_db),
):
    interaction = _load_interaction(db, scope, interaction_id)
    _ensure_in_progress(interaction)

    customer = _find_or_create_prospect(db, interaction.company_id, payload)
    interaction.customer_id = customer.id
    interaction.customer_data = payload.model_dump(mode="json")
    db.commit()
    db.refresh(interaction)
    logger.info("Interaction customer captured interaction_id=%s customer_id=%s", interaction.id, customer.id)
    return ok(InteractionRead.model_validate(interaction))


@router.put("/interactions/{interaction_id}/complete")
def complete_interaction(
    interaction_id: int,
    payload: Optional[InteractionComplete] = None,
    scope: TenantScope = Depends(marketing_scope),
    db: Session = Depends(get_db),
):
    interaction = _load_interaction(db, scope, interaction_id)
    _ensure_in_progress(interaction)

    payload = payload or InteractionComplete()
    interaction.status = "COMPLETED"
    interaction.end_time = utcnow()
    interaction.outcome = payload.outcome
    interaction.notes = payload.notes
    interaction.follow_up_required = payload.follow_up_required
    interaction.quality_metrics = payload.quality_metrics or {}
    db.commit()
    db.refresh(interaction)
    logger.info("Interaction completed interaction_id=%s outcome=%s", interaction.id, interaction.outcome)
    return ok(InteractionRead.model_validate(interaction))


@router.get("/interactions/my")
def list_my_interactions(
    campaign_id: Optional[int] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    scope: TenantScope = Depends(marketing_scope),
    db: Session = Depends(get_db),
):
    query = scope.filter(db.query(StreetInteraction), StreetInteraction).filter(
        StreetInteraction.agent_id == scope.user.id
    )
    if campaign_id is not None:
        query = query.filter(StreetInteraction.campaign_id == campaign_id)
    if status_filter:
        query = query.filter(StreetInteraction.status == status_filter.strip().upper())
    order = (StreetInteraction.created_at.desc(), StreetInteraction.id.desc())
    return paginated(InteractionRead, query.order_by(*order), page, limit)


@router.get("/analytics/my")
def my_interaction_analytics(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    campaign_id: Optional[int] = None,
    scope: TenantScope = Depends(marketing_scope),
    db: Session = Depends(get_db),
):
    return ok(
        reporting.interaction_analytics(
            db, scope, start_date=start_date, end_date=end_date, campaign_id=campaign_id
        )
    )
