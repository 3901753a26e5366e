"""Pydantic schemas for checksheet executions (results) and their responses."""

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field

from gensheet.db.enums import FieldType, ResponseStatus, ResultStatus


def _alias(name: str, camel: str) -> AliasChoices:
    return AliasChoices(name, camel)


class ResponseIn(BaseModel):
    """One recorded answer. `value` is the raw string as entered."""

    checkpoint_id: UUID = Field(validation_alias=_alias("checkpoint_id", "checkpointId"))
    value: str | None = None
    status: ResponseStatus | None = None
    photo_urls: list[str] = Field(
        default_factory=list, max_length=20, validation_alias=_alias("photo_urls", "photoUrls")
    )
    file_urls: list[str] = Field(
        default_factory=list, max_length=20, validation_alias=_alias("file_urls", "fileUrls")
    )
    gps_lat: float | None = Field(
        default=None, ge=-90, le=90, validation_alias=_alias("gps_lat", "gpsLat")
    )
    gps_lng: float | None = Field(
        default=None, ge=-180, le=180, validation_alias=_alias("gps_lng", "gpsLng")
    )
    notes: str | None = None


class ResultCreate(BaseModel):
    checksheet_id: UUID = Field(validation_alias=_alias("checksheet_id", "checksheetId"))
    status: ResultStatus = ResultStatus.IN_PROGRESS
    location: str | None = Field(default=None, max_length=500)
    gps_lat: float | None = Field(
        default=None, ge=-90, le=90, validation_alias=_alias("gps_lat", "gpsLat")
    )
    gps_lng: float | None = Field(
        default=None, ge=-180, le=180, validation_alias=_alias("gps_lng", "gpsLng")
    )
    notes: str | None = None
    responses: list[ResponseIn] = Field(default_factory=list, max_length=500)


class ResultUpdate(BaseModel):
    """
    Partial update of a result.

    `responses` are upserted by checkpoint; responses not mentioned are kept.
    Setting status COMPLETED stamps completed_at.
    """

    status: ResultStatus | None = None
    location: str | None = Field(default=None, max_length=500)
    notes: str | None = None
    responses: list[ResponseIn] | None = Field(default=None, max_length=500)


class ResponseRead(BaseModel):
    id: UUID
    checkpoint_id: UUID
    checkpoint_title: str | None = None
    field_type: FieldType | None = None
    is_required: bool | None = None
    value: str | None
    text_value: str | None
    number_value: float | None
    bool_value: bool | None
    date_value: datetime | None
    photo_urls: list[str]
    file_urls: list[str]
    gps_lat: float | None
    gps_lng: float | None
    status: ResponseStatus
    notes: str | None
    created_at: datetime


class ResultRead(BaseModel):
    id: UUID
    checksheet_id: UUID
    checksheet_title: str | None = None
    checksheet_category: str | None = None
    inspector_id: UUID
    inspector_name: str | None = None
    inspector_email: str | None = None
    status: ResultStatus
    location: str | None
    gps_lat: float | None
    gps_lng: float | None
    notes: str | None
    responses: list[ResponseRead] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None


class ResultListItem(BaseModel):
    id: UUID
    checksheet_id: UUID
    checksheet_title: str | None = None
    checksheet_category: str | None = None
    inspector_id: UUID
    inspector_name: str | None = None
    status: ResultStatus
    location: str | None
    response_count: int = 0
    created_at: datetime
    completed_at: datetime | None


class ResultListResponse(BaseModel):
    """Paginated result list."""
    items: list[ResultListItem]
    total: int
    page: int
    per_page: int
    pages: int
