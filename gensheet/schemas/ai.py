"""Pydantic schemas for AI checksheet generation."""

from typing import Any, Literal
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from gensheet.db.enums import FieldType


class GenerateRequest(BaseModel):
    prompt: str = Field(min_length=1, max_length=4000)
    category: str | None = Field(default=None, max_length=100)


class GeneratedCheckpoint(BaseModel):
    """Shape the model must produce for each checkpoint."""

    model_config = ConfigDict(extra="allow")

    title: str = Field(min_length=1)
    description: str | None = None
    field_type: FieldType = Field(validation_alias=AliasChoices("fieldType", "field_type"))
    section: str | None = None
    is_required: bool = Field(
        default=False, validation_alias=AliasChoices("isRequired", "is_required")
    )
    config: dict[str, Any] | None = None


class GeneratedChecksheet(BaseModel):
    """Shape the model must produce. Validation only; callers get the raw object."""

    model_config = ConfigDict(extra="allow")

    title: str = Field(min_length=1)
    description: str | None = None
    category: str | None = None
    industry: str | None = None
    checkpoints: list[GeneratedCheckpoint] = Field(min_length=1)
    tags: list[str] = Field(default_factory=list)


class GenerateResponse(BaseModel):
    success: bool = True
    data: dict[str, Any]


class Suggestion(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["add", "modify", "remove"]
    checkpoint: str
    suggestion: str
    priority: Literal["high", "medium", "low"] = "medium"


class SuggestionsRequest(BaseModel):
    checksheet_id: UUID | None = None
    checksheet: dict[str, Any] | None = None


class SuggestionsResponse(BaseModel):
    success: bool = True
    suggestions: list[dict[str, Any]]
