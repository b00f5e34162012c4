from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from salessync.schemas.common import UtcDateTime

PaymentMethod = Literal["CASH", "CARD", "MOBILE_MONEY", "BANK_TRANSFER", "CREDIT"]
PaymentStatus = Literal["PENDING", "PARTIAL", "PAID", "OVERDUE", "CANCELLED"]


class PartyRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: Optional[str] = None


class AgentRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: str


class VisitRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    agent_id: int
    customer_id: int
    planned_start_time: Optional[datetime] = None
    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None
    status: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    customer: Optional[PartyRef] = None
    agent: Optional[AgentRef] = None


class VisitCreate(BaseModel):
    customer_id: int
    agent_id: Optional[int] = None
    planned_start_time: Optional[UtcDateTime] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    notes: Optional[str] = None


class VisitTransition(BaseModel):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    notes: Optional[str] = None


class SaleItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(..., ge=1)
    unit_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    discount: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)


class SaleCreate(BaseModel):
    customer_id: int
    visit_id: Optional[int] = None
    agent_id: Optional[int] = None
    items: list[SaleItemCreate] = Field(..., min_length=1)
    tax_amount: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    discount_amount: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    payment_method: PaymentMethod = "CASH"
    payment_status: Optional[PaymentStatus] = None
    paid_amount: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    due_date: Optional[UtcDateTime] = None


class SaleItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    quantity: int
    unit_price: float
    discount: float
    total: float
    product: Optional[PartyRef] = None


class SaleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    agent_id: int
    customer_id: int
    visit_id: Optional[int] = None
    invoice_number: str
    total_amount: float
    tax_amount: float
    discount_amount: float
    payment_method: str
    payment_status: str
    paid_amount: float
    due_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    customer: Optional[PartyRef] = None
    agent: Optional[AgentRef] = None
    items: list[SaleItemRead] = Field(default_factory=list)
