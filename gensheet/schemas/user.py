"""Pydantic schemas for user administration."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from gensheet.db.enums import Role


class UserCreate(BaseModel):
    email: EmailStr
    name: str | None = Field(default=None, max_length=255)
    password: str = Field(min_length=8, max_length=200)
    role: Role = Role.INSPECTOR
    organization_id: UUID | None = None


class UserUpdate(BaseModel):
    """Admin update. `password` is optional; leave unset to keep the current one."""

    email: EmailStr | None = None
    name: str | None = Field(default=None, max_length=255)
    password: str | None = Field(default=None, min_length=8, max_length=200)
    role: Role | None = None
    organization_id: UUID | None = None
    is_active: bool | None = None


class UserRead(BaseModel):
    id: UUID
    email: str
    name: str | None
    role: Role
    organization_id: UUID | None
    phone: str | None
    image: str | None
    language: str
    timezone: str
    is_active: bool
    created_at: datetime
    checksheet_count: int = 0
    result_count: int = 0

    model_config = {"from_attributes": True}
