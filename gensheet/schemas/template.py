"""Pydantic schemas for the best-practice template catalog."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class TemplateListItem(BaseModel):
    id: UUID
    title: str
    description: str | None
    category: str
    industry: str | None
    usage_count: int
    checkpoint_count: int = 0
    created_at: datetime


class TemplateListResponse(BaseModel):
    """Paginated template list."""
    items: list[TemplateListItem]
    total: int
    page: int
    per_page: int
    pages: int


class TemplateRead(BaseModel):
    id: UUID
    title: str
    description: str | None
    category: str
    industry: str | None
    template_data: dict[str, Any]
    is_public: bool
    usage_count: int
    created_by_name: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class TemplateFromChecksheet(BaseModel):
    """Publish an existing checksheet to the catalog."""

    checksheet_id: UUID
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    category: str | None = Field(default=None, max_length=100)
    is_public: bool = True


class TemplateCategory(BaseModel):
    category: str
    count: int
