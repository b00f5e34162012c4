from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, EmailStr, Field

from salessync.core.roles import UserRole
from salessync.schemas.common import PartialUpdate


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    role: UserRole = UserRole.AGENT
    permissions: list[Any] = Field(default_factory=list)


class UserUpdate(PartialUpdate):
    non_nullable = ("first_name", "last_name", "role", "permissions", "is_active")

    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    role: Optional[UserRole] = None
    permissions: Optional[list[Any]] = None
    is_active: Optional[bool] = None
    password: Optional[str] = Field(None, min_length=8)
