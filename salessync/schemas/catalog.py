from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from salessync.schemas.common import PartialUpdate


class CustomerRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    name: str
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    category: Optional[str] = None
    credit_limit: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_active: bool
    created_at: Optional[datetime] = None


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    contact_person: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    credit_limit: Optional[Decimal] = Field(None, ge=0)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class CustomerUpdate(PartialUpdate):
    non_nullable = ("name", "is_active")

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    contact_person: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    credit_limit: Optional[Decimal] = Field(None, ge=0)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    is_active: Optional[bool] = None


class BrandRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    name: str
    logo: Optional[str] = None
    description: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None


class BrandWithCounts(BrandRead):
    product_count: int = 0
    campaign_count: int = 0


class BrandCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    logo: Optional[str] = None
    description: Optional[str] = None


class BrandUpdate(PartialUpdate):
    non_nullable = ("name", "is_active")

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    logo: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class ProductRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    brand_id: Optional[int] = None
    name: str
    description: Optional[str] = None
    sku: str
    barcode: Optional[str] = None
    category: Optional[str] = None
    unit_price: float
    is_active: bool
    created_at: Optional[datetime] = None


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    sku: str = Field(..., min_length=1, max_length=80)
    brand_id: Optional[int] = None
    description: Optional[str] = None
    barcode: Optional[str] = Field(None, max_length=80)
    category: Optional[str] = Field(None, max_length=100)
    unit_price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)


class ProductUpdate(PartialUpdate):
    non_nullable = ("name", "sku", "unit_price", "is_active")

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    sku: Optional[str] = Field(None, min_length=1, max_length=80)
    brand_id: Optional[int] = None
    description: Optional[str] = None
    barcode: Optional[str] = Field(None, max_length=80)
    category: Optional[str] = Field(None, max_length=100)
    unit_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    is_active: Optional[bool] = None


class WarehouseRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    name: str
    address: Optional[str] = None
    manager_id: Optional[int] = None
    is_active: bool
    created_at: Optional[datetime] = None


class WarehouseCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    address: Optional[str] = None
    manager_id: Optional[int] = None


class WarehouseUpdate(PartialUpdate):
    non_nullable = ("name", "is_active")

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    address: Optional[str] = None
    manager_id: Optional[int] = None
    is_active: Optional[bool] = None
