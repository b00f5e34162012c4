from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from salessync.schemas.common import PartialUpdate, UtcDateTime

CampaignType = Literal["FIELD_MARKETING", "STREET_MARKETING", "BRAND_ACTIVATION", "PRODUCT_LAUNCH", "PROMOTIONAL"]
CampaignStatus = Literal["DRAFT", "ACTIVE", "PAUSED", "COMPLETED", "CANCELLED"]


class CampaignRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    brand_id: Optional[int] = None
    name: str
    description: Optional[str] = None
    type: str
    start_date: datetime
    end_date: datetime
    budget: Optional[float] = None
    status: str
    materials: Optional[Any] = None
    targets: Optional[Any] = None
    territories: Optional[Any] = None
    created_at: Optional[datetime] = None


class CampaignWithCounts(CampaignRead):
    activation_count: int = 0


class CampaignCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    brand_id: Optional[int] = None
    type: CampaignType = "FIELD_MARKETING"
    start_date: UtcDateTime
    end_date: UtcDateTime
    budget: Optional[Decimal] = Field(None, ge=0)
    status: CampaignStatus = "DRAFT"
    materials: Optional[Any] = None
    targets: Optional[Any] = None
    territories: Optional[Any] = None

    @model_validator(mode="after")
    def _check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class CampaignUpdate(PartialUpdate):
    non_nullable = ("name", "type", "start_date", "end_date", "status")

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    brand_id: Optional[int] = None
    type: Optional[CampaignType] = None
    start_date: Optional[UtcDateTime] = None
    end_date: Optional[UtcDateTime] = None
    budget: Optional[Decimal] = Field(None, ge=0)
    status: Optional[CampaignStatus] = None
    materials: Optional[Any] = None
    targets: Optional[Any] = None
    territories: Optional[Any] = None


class SurveyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    title: str
    description: Optional[str] = None
    questions: list[Any] = Field(default_factory=list)
    is_active: bool
    created_at: Optional[datetime] = None


class SurveyCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    questions: list[dict[str, Any]] = Field(..., min_length=1)


class SurveyResponseCreate(BaseModel):
    responses: dict[str, Any]
    customer_id: Optional[int] = None
    visit_id: Optional[int] = None
    completion_time: Optional[int] = Field(None, ge=0)


class SurveyResponseRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    survey_id: int
    agent_id: int
    customer_id: Optional[int] = None
    visit_id: Optional[int] = None
    responses: dict[str, Any]
    completion_time: Optional[int] = None
    created_at: Optional[datetime] = None


InteractionOutcome = Literal["POSITIVE", "NEUTRAL", "NEGATIVE"]


class InteractionStart(BaseModel):
    campaign_id: int
    location: Optional[dict[str, Any]] = None
    customer_type: str = Field("PROSPECT", min_length=1, max_length=30)


class InteractionCustomer(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    age: Optional[int] = Field(None, ge=0, le=130)
    consent_marketing: bool = False

    @model_validator(mode="after")
    def _require_contact(self):
        if not self.phone and not self.email:
            raise ValueError("phone or email is required")
        return self


class InteractionComplete(BaseModel):
    outcome: InteractionOutcome = "NEUTRAL"
    notes: Optional[str] = None
    follow_up_required: bool = False
    quality_metrics: Optional[dict[str, Any]] = None


class InteractionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    campaign_id: int
    agent_id: int
    customer_id: Optional[int] = None
    customer_type: str
    location: Optional[Any] = None
    customer_data: Optional[dict[str, Any]] = None
    status: str
    start_time: datetime
    end_time: Optional[datetime] = None
    outcome: Optional[str] = None
    follow_up_required: bool
    quality_metrics: Optional[dict[str, Any]] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
