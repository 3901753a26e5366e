"""Centralized capability checks.

Every write path asks `can(session, resource, action, obj)` instead of
branching on roles itself. Rules live in one table so endpoints cannot
drift apart.

Rule shapes:
- a set of roles: the role must be in the set
- a callable: receives (session, obj) and decides
"""

from dataclasses import dataclass
from typing import Any, Callable

from fastapi import HTTPException

from gensheet.core.access import can_view_checksheet, can_view_result
from gensheet.db.enums import (
    ROLES_CAN_AUTHOR, ROLES_CAN_EDIT_VISIBLE, ROLES_CAN_MANAGE_USERS,
    ROLES_CAN_PUBLISH_TEMPLATES, Role,
)
from gensheet.schemas.auth import UserSession


Rule = set[Role] | Callable[[UserSession, Any], bool]


class PermissionDeniedError(Exception):
    """Raised when a capability check fails."""

    def __init__(self, resource: str, action: str):
        self.resource = resource
        self.action = action
        super().__init__(f"Not authorized to {action} {resource}")


@dataclass(frozen=True)
class ResourcePolicy:
    """Per-action rules for one resource."""

    actions: dict[str, Rule]


def _is_admin(session: UserSession) -> bool:
    return session.role == Role.ADMIN


def _checksheet_owner_or_admin(session: UserSession, checksheet) -> bool:
    return _is_admin(session) or checksheet.creator_id == session.user_id


def _checksheet_editor(session: UserSession, checksheet) -> bool:
    if _checksheet_owner_or_admin(session, checksheet):
        return True
    return session.role in ROLES_CAN_EDIT_VISIBLE and can_view_checksheet(session, checksheet)


def _checksheet_executor(session: UserSession, checksheet) -> bool:
    return session.role in ROLES_CAN_AUTHOR and can_view_checksheet(session, checksheet)


def _result_owner_or_admin(session: UserSession, result) -> bool:
    return _is_admin(session) or result.inspector_id == session.user_id


POLICIES: dict[str, ResourcePolicy] = {
    "checksheet": ResourcePolicy(actions={
        "view": can_view_checksheet,
        "create": ROLES_CAN_AUTHOR,
        "duplicate": lambda s, cs: s.role in ROLES_CAN_AUTHOR and can_view_checksheet(s, cs),
        "edit": _checksheet_editor,
        "change_status": _checksheet_owner_or_admin,
        "delete": _checksheet_owner_or_admin,
        "execute": _checksheet_executor,
    }),
    "result": ResourcePolicy(actions={
        "view": can_view_result,
        "edit": _result_owner_or_admin,
        "delete": _result_owner_or_admin,
    }),
    "template": ResourcePolicy(actions={
        "view": set(Role),
        "clone": ROLES_CAN_AUTHOR,
        "publish": ROLES_CAN_PUBLISH_TEMPLATES,
    }),
    "user": ResourcePolicy(actions={"manage": ROLES_CAN_MANAGE_USERS}),
    "ai": ResourcePolicy(actions={"generate": ROLES_CAN_AUTHOR}),
    "asset": ResourcePolicy(actions={"upload": ROLES_CAN_AUTHOR}),
    "report": ResourcePolicy(actions={"view": set(Role)}),
}


def can(session: UserSession, resource: str, action: str, obj: Any = None) -> bool:
    """
    Return True if the session may perform `action` on `resource`.

    Raises:
        KeyError: unknown resource/action (a programming error, not a denial)
    """
    rule = POLICIES[resource].actions[action]
    if callable(rule):
        return bool(rule(session, obj))
    return session.role in rule


def require(session: UserSession, resource: str, action: str, obj: Any = None) -> None:
    """Raise PermissionDeniedError unless `can(...)` holds."""
    if not can(session, resource, action, obj):
        raise PermissionDeniedError(resource, action)


def require_http(session: UserSession, resource: str, action: str, obj: Any = None) -> None:
    """Router helper: `require` translated to HTTP 403."""
    try:
        require(session, resource, action, obj)
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))
