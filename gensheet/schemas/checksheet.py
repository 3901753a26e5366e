"""Pydantic schemas for checksheets and their checkpoints."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from gensheet.db.enums import DEFAULT_SECTION, ChecksheetStatus, FieldType
from gensheet.schemas.checkpoint_config import normalize_config


# =============================================================================
# Checkpoints
# =============================================================================

class CheckpointIn(BaseModel):
    """
    Checkpoint as sent by the builder.

    `id` is set when editing an existing checkpoint; omitted for new ones.
    Position in the submitted list becomes the checkpoint's order.
    """

    id: UUID | None = None
    title: str = Field(min_length=1, max_length=500)
    description: str | None = None
    field_type: FieldType = Field(
        default=FieldType.TEXT, validation_alias=AliasChoices("field_type", "fieldType")
    )
    section: str = Field(default=DEFAULT_SECTION, max_length=255)
    is_required: bool = Field(
        default=False, validation_alias=AliasChoices("is_required", "isRequired")
    )
    config: dict[str, Any] = Field(default_factory=dict)

    @field_validator("section", mode="before")
    @classmethod
    def _default_section(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_SECTION
        return v

    @field_validator("config", mode="before")
    @classmethod
    def _none_config(cls, v):
        return v or {}

    @model_validator(mode="after")
    def _normalize_config(self):
        self.config = normalize_config(self.field_type, self.config)
        return self


class CheckpointRead(BaseModel):
    id: UUID
    order: int
    title: str
    description: str | None
    field_type: FieldType
    section: str
    is_required: bool
    config: dict[str, Any]

    model_config = {"from_attributes": True}


class CheckpointOrderUpdate(BaseModel):
    """New order for a checksheet's checkpoints: every id exactly once."""

    checkpoint_ids: list[UUID] = Field(min_length=1)

    @field_validator("checkpoint_ids")
    @classmethod
    def _unique_ids(cls, v: list[UUID]) -> list[UUID]:
        if len(set(v)) != len(v):
            raise ValueError("checkpoint_ids must not contain duplicates")
        return v


# =============================================================================
# Checksheets
# =============================================================================

class ChecksheetBase(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    category: str | None = Field(default=None, max_length=100)
    industry: str | None = Field(default=None, max_length=100)
    tags: list[str] = Field(default_factory=list, max_length=50)

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, v: list[str]) -> list[str]:
        seen: list[str] = []
        for tag in v:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen


class ChecksheetCreate(ChecksheetBase):
    is_template: bool = Field(
        default=False, validation_alias=AliasChoices("is_template", "isTemplate")
    )
    checkpoints: list[CheckpointIn] = Field(default_factory=list, max_length=500)


class ChecksheetUpdate(BaseModel):
    """
    Partial update.

    When `checkpoints` is present it replaces the full list: entries with a
    known `id` are updated in place, entries without one are created, and
    existing checkpoints missing from the list are deleted.
    `expected_version` enables optimistic locking (409 on mismatch).
    """

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    category: str | None = Field(default=None, max_length=100)
    industry: str | None = Field(default=None, max_length=100)
    tags: list[str] | None = Field(default=None, max_length=50)
    is_template: bool | None = Field(
        default=None, validation_alias=AliasChoices("is_template", "isTemplate")
    )
    status: ChecksheetStatus | None = None
    checkpoints: list[CheckpointIn] | None = Field(default=None, max_length=500)
    expected_version: int | None = Field(
        default=None, ge=1, validation_alias=AliasChoices("expected_version", "expectedVersion")
    )

    @field_validator("checkpoints")
    @classmethod
    def _unique_checkpoint_ids(cls, v: list[CheckpointIn] | None) -> list[CheckpointIn] | None:
        if v is None:
            return v
        ids = [item.id for item in v if item.id is not None]
        if len(set(ids)) != len(ids):
            raise ValueError("checkpoints must not repeat a checkpoint id")
        return v


class ChecksheetRead(ChecksheetBase):
    id: UUID
    is_template: bool
    status: ChecksheetStatus
    version: int
    creator_id: UUID
    creator_name: str | None = None
    organization_id: UUID | None
    checkpoints: list[CheckpointRead]
    result_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ChecksheetListItem(BaseModel):
    id: UUID
    title: str
    description: str | None
    category: str | None
    industry: str | None
    tags: list[str]
    is_template: bool
    status: ChecksheetStatus
    version: int
    creator_id: UUID
    creator_name: str | None = None
    checkpoint_count: int = 0
    result_count: int = 0
    created_at: datetime
    updated_at: datetime


class ChecksheetListResponse(BaseModel):
    """Paginated checksheet list."""
    items: list[ChecksheetListItem]
    total: int
    page: int
    per_page: int
    pages: int
