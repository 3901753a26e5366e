"""Pydantic schemas for API request/response models."""

from gensheet.schemas.auth import LoginRequest, MeResponse, ProfileUpdate, UserSession
from gensheet.schemas.checksheet import (
    CheckpointIn,
    CheckpointOrderUpdate,
    CheckpointRead,
    ChecksheetCreate,
    ChecksheetListItem,
    ChecksheetListResponse,
    ChecksheetRead,
    ChecksheetUpdate,
)
from gensheet.schemas.result import (
    ResponseIn,
    ResultCreate,
    ResultListResponse,
    ResultRead,
    ResultUpdate,
)
from gensheet.schemas.user import UserCreate, UserRead, UserUpdate

__all__ = [
    # Auth
    "UserSession",
    "LoginRequest",
    "MeResponse",
    "ProfileUpdate",
    # Checksheets
    "CheckpointIn",
    "CheckpointOrderUpdate",
    "CheckpointRead",
    "ChecksheetCreate",
    "ChecksheetListItem",
    "ChecksheetListResponse",
    "ChecksheetRead",
    "ChecksheetUpdate",
    # Results
    "ResponseIn",
    "ResultCreate",
    "ResultListResponse",
    "ResultRead",
    "ResultUpdate",
    # Users
    "UserCreate",
    "UserRead",
    "UserUpdate",
]
