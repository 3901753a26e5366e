"""Pydantic schemas for global search."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ChecksheetHit(BaseModel):
    id: UUID
    title: str
    description: str | None
    category: str | None
    status: str
    created_at: datetime


class TemplateHit(BaseModel):
    id: UUID
    title: str
    description: str | None
    category: str
    usage_count: int


class ResultHit(BaseModel):
    id: UUID
    checksheet_id: UUID
    checksheet_title: str
    inspector_name: str | None
    status: str
    created_at: datetime


class SearchResponse(BaseModel):
    checksheets: list[ChecksheetHit] = Field(default_factory=list)
    templates: list[TemplateHit] = Field(default_factory=list)
    results: list[ResultHit] = Field(default_factory=list)
