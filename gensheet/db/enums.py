"""Domain enums and role sets."""

from enum import Enum


class Role(str, Enum):
    """
    User roles with decreasing privilege levels.

    - ADMIN: Platform admin (sees every organization, manages users)
    - SUPERVISOR: Edits and publishes checksheets within the organization
    - INSPECTOR: Executes checksheets, sees own results
    - VIEWER: Read-only access to the organization
    """

    ADMIN = "ADMIN"
    SUPERVISOR = "SUPERVISOR"
    INSPECTOR = "INSPECTOR"
    VIEWER = "VIEWER"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_


class ChecksheetStatus(str, Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


class FieldType(str, Enum):
    """Input type of a checkpoint."""

    CHECKBOX = "CHECKBOX"
    NUMBER = "NUMBER"
    TEXT = "TEXT"
    TEXTAREA = "TEXTAREA"
    PHOTO = "PHOTO"
    FILE = "FILE"
    DROPDOWN = "DROPDOWN"
    MULTISELECT = "MULTISELECT"
    GPS = "GPS"
    SIGNATURE = "SIGNATURE"
    DATE = "DATE"
    TIME = "TIME"
    DATETIME = "DATETIME"
    RATING = "RATING"

    @classmethod
    def has_value(cls, value: str) -> bool:
        return value in cls._value2member_map_


class ResultStatus(str, Enum):
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class ResponseStatus(str, Enum):
    """Inspector's verdict on a single checkpoint."""

    PENDING = "PENDING"
    PASS = "PASS"
    FAIL = "FAIL"
    NA = "NA"


DEFAULT_CHECKSHEET_STATUS = ChecksheetStatus.DRAFT
DEFAULT_RESULT_STATUS = ResultStatus.IN_PROGRESS
DEFAULT_RESPONSE_STATUS = ResponseStatus.PENDING
DEFAULT_SECTION = "General"

# Status changes an owner/admin may apply to a checksheet
CHECKSHEET_STATUS_TRANSITIONS: dict[ChecksheetStatus, set[ChecksheetStatus]] = {
    ChecksheetStatus.DRAFT: {ChecksheetStatus.ACTIVE, ChecksheetStatus.ARCHIVED},
    ChecksheetStatus.ACTIVE: {ChecksheetStatus.ARCHIVED},
    ChecksheetStatus.ARCHIVED: {ChecksheetStatus.ACTIVE},
}

# Field types whose recorded value is an uploaded asset URL
UPLOAD_FIELD_TYPES = {FieldType.PHOTO, FieldType.FILE, FieldType.SIGNATURE}


# =============================================================================
# Role sets (consumed by core.permissions)
# =============================================================================

# Roles that can author checksheets, execute them, clone templates, use AI
ROLES_CAN_AUTHOR = {Role.ADMIN, Role.SUPERVISOR, Role.INSPECTOR}

# Roles that can edit any checksheet visible to them (not only their own)
ROLES_CAN_EDIT_VISIBLE = {Role.ADMIN, Role.SUPERVISOR}

# Roles that can publish checksheets to the template catalog
ROLES_CAN_PUBLISH_TEMPLATES = {Role.ADMIN, Role.SUPERVISOR}

# Roles that manage users
ROLES_CAN_MANAGE_USERS = {Role.ADMIN}
