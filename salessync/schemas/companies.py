from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from salessync.schemas.common import PartialUpdate

SubscriptionTier = Literal["basic", "professional", "enterprise"]


class CompanyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    logo: Optional[str] = None
    settings: dict[str, Any] = Field(default_factory=dict)
    subscription_tier: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CompanyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    slug: Optional[str] = Field(None, max_length=120)
    logo: Optional[str] = None
    settings: dict[str, Any] = Field(default_factory=dict)
    subscription_tier: SubscriptionTier = "basic"


class CompanyUpdate(PartialUpdate):
    non_nullable = ("name", "slug", "settings", "subscription_tier", "is_active")

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = Field(None, min_length=1, max_length=120)
    logo: Optional[str] = None
    settings: Optional[dict[str, Any]] = None
    subscription_tier: Optional[SubscriptionTier] = None
    is_active: Optional[bool] = None
