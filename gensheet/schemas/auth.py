"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from gensheet.db.enums import Role


class UserSession(BaseModel):
    """
    Full session context for authenticated requests.

    This is returned by the get_current_session dependency
    and contains all information needed for authorization.
    """
    user_id: UUID
    org_id: UUID | None
    role: Role  # Validated enum
    email: str
    name: str | None = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=200)


class MeResponse(BaseModel):
    """Response schema for GET /auth/me."""
    user_id: UUID
    email: str
    name: str | None
    role: Role
    org_id: UUID | None
    org_name: str | None = None
    phone: str | None = None
    image: str | None = None
    language: str
    timezone: str


class ProfileUpdate(BaseModel):
    """Self-service profile fields (settings page)."""
    name: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    image: str | None = Field(default=None, max_length=1024)
    language: str | None = Field(default=None, max_length=10)
    timezone: str | None = Field(default=None, max_length=50)
