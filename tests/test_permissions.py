"""Capability table checks."""

from types import SimpleNamespace
from uuid import uuid4

import pytest
from fastapi import HTTPException

from gensheet.core.permissions import PermissionDeniedError, can, require, require_http
from gensheet.db.enums import Role
from gensheet.schemas.auth import UserSession


ORG = uuid4()
OTHER_ORG = uuid4()


def _session(role: Role, org_id=ORG) -> UserSession:
    return UserSession(user_id=uuid4(), org_id=org_id, role=role, email=f"{role.value.lower()}@gensheet.io")


def _checksheet(creator_id=None, org_id=ORG):
    return SimpleNamespace(creator_id=creator_id or uuid4(), organization_id=org_id)


@pytest.mark.parametrize("role,allowed", [
    (Role.ADMIN, True),
    (Role.SUPERVISOR, True),
    (Role.INSPECTOR, True),
    (Role.VIEWER, False),
])
def test_create_checksheet(role, allowed):
    assert can(_session(role), "checksheet", "create") is allowed


def test_supervisor_edits_visible_checksheets_but_cannot_change_status():
    supervisor = _session(Role.SUPERVISOR)
    checksheet = _checksheet()
    assert can(supervisor, "checksheet", "edit", checksheet)
    assert not can(supervisor, "checksheet", "change_status", checksheet)
    assert not can(supervisor, "checksheet", "delete", checksheet)


def test_supervisor_cannot_edit_other_org_checksheet():
    supervisor = _session(Role.SUPERVISOR)
    assert not can(supervisor, "checksheet", "edit", _checksheet(org_id=OTHER_ORG))


def test_creator_owns_lifecycle():
    inspector = _session(Role.INSPECTOR)
    own = _checksheet(creator_id=inspector.user_id)
    assert can(inspector, "checksheet", "edit", own)
    assert can(inspector, "checksheet", "change_status", own)
    assert can(inspector, "checksheet", "delete", own)
    assert not can(inspector, "checksheet", "edit", _checksheet())


def test_admin_can_do_everything_on_any_checksheet():
    admin = _session(Role.ADMIN, org_id=None)
    foreign = _checksheet(org_id=OTHER_ORG)
    for action in ("view", "edit", "change_status", "delete", "execute", "duplicate"):
        assert can(admin, "checksheet", action, foreign), action


def test_viewer_cannot_execute():
    assert not can(_session(Role.VIEWER), "checksheet", "execute", _checksheet())


def test_result_edit_limited_to_inspector_and_admin():
    inspector = _session(Role.INSPECTOR)
    result = SimpleNamespace(inspector_id=inspector.user_id, checksheet=_checksheet())
    assert can(inspector, "result", "edit", result)
    assert not can(_session(Role.SUPERVISOR), "result", "edit", result)
    assert can(_session(Role.ADMIN), "result", "delete", result)


@pytest.mark.parametrize("role,allowed", [
    (Role.ADMIN, True),
    (Role.SUPERVISOR, True),
    (Role.INSPECTOR, False),
    (Role.VIEWER, False),
])
def test_publish_template(role, allowed):
    assert can(_session(role), "template", "publish") is allowed


def test_everyone_views_templates_and_reports():
    for role in Role:
        assert can(_session(role), "template", "view")
        assert can(_session(role), "report", "view")


def test_only_admin_manages_users():
    assert can(_session(Role.ADMIN), "user", "manage")
    assert not can(_session(Role.SUPERVISOR), "user", "manage")


def test_require_raises_domain_error_and_http_403():
    viewer = _session(Role.VIEWER)
    with pytest.raises(PermissionDeniedError):
        require(viewer, "ai", "generate")
    with pytest.raises(HTTPException) as exc:
        require_http(viewer, "asset", "upload")
    assert exc.value.status_code == 403
    assert exc.value.detail == "Not authorized to upload asset"


def test_unknown_action_is_a_programming_error():
    with pytest.raises(KeyError):
        can(_session(Role.ADMIN), "checksheet", "teleport")
