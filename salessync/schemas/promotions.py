from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from salessync.schemas.common import UtcDateTime


class ActivationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    campaign_id: int
    name: str
    description: Optional[str] = None
    location: Optional[Any] = None
    scheduled_start: datetime
    scheduled_end: datetime
    actual_start: Optional[datetime] = None
    actual_end: Optional[datetime] = None
    status: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class ActivationCreate(BaseModel):
    campaign_id: int
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    location: Optional[dict[str, Any]] = None
    scheduled_start: UtcDateTime
    scheduled_end: UtcDateTime
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _check_schedule(self):
        if self.scheduled_end < self.scheduled_start:
            raise ValueError("scheduled_end must be on or after scheduled_start")
        return self


class ActivationTransition(BaseModel):
    notes: Optional[str] = None
