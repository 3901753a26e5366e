"""Visibility scoping for checksheet and result lists and details."""

import pytest

from gensheet.db.enums import ResultStatus, Role
from gensheet.db.models import ChecksheetResult
from gensheet.services import checksheet_service, result_service


def _add_result(db, checksheet, inspector, status=ResultStatus.IN_PROGRESS):
    result = ChecksheetResult(
        checksheet_id=checksheet.id,
        inspector_id=inspector.id,
        status=status.value,
    )
    db.add(result)
    db.commit()
    return result


def test_non_admin_list_excludes_other_org_checksheets(db, session_for, inspector, supervisor, outsider, make_checksheet):
    mine = make_checksheet(inspector, title="Mine")
    colleague = make_checksheet(supervisor, title="Colleague")
    foreign = make_checksheet(outsider, title="Foreign")

    items, total = checksheet_service.list_checksheets(db, session_for(inspector))
    ids = {cs.id for cs in items}

    assert total == 2
    assert ids == {mine.id, colleague.id}
    assert foreign.id not in ids


def test_user_without_org_sees_only_own_checksheets(db, session_for, make_user, inspector, make_checksheet):
    loner = make_user(Role.INSPECTOR, None)
    own = make_checksheet(loner, title="Solo")
    make_checksheet(inspector, title="Org sheet")

    items, total = checksheet_service.list_checksheets(db, session_for(loner))
    assert total == 1
    assert items[0].id == own.id


def test_admin_list_is_unrestricted(db, session_for, admin, outsider, inspector, make_checksheet):
    make_checksheet(outsider)
    make_checksheet(inspector)

    _, total = checksheet_service.list_checksheets(db, session_for(admin))
    assert total == 2


def test_inspector_sees_only_own_results(db, session_for, inspector, supervisor, make_checksheet, make_user, test_org):
    checksheet = make_checksheet(supervisor)
    colleague = make_user(Role.INSPECTOR, test_org)
    own = _add_result(db, checksheet, inspector)
    _add_result(db, checksheet, colleague)

    results, total = result_service.list_results(db, session_for(inspector))
    assert total == 1
    assert results[0].id == own.id


def test_supervisor_sees_org_results(db, session_for, inspector, supervisor, outsider, make_checksheet):
    org_sheet = make_checksheet(supervisor)
    foreign_sheet = make_checksheet(outsider)
    _add_result(db, org_sheet, inspector)
    _add_result(db, foreign_sheet, outsider)

    _, total = result_service.list_results(db, session_for(supervisor))
    assert total == 1


@pytest.mark.asyncio
async def test_detail_outside_scope_is_forbidden(outsider_client, inspector, make_checksheet):
    checksheet = make_checksheet(inspector)

    resp = await outsider_client.get(f"/checksheets/{checksheet.id}")
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_missing_detail_is_not_found(inspector_client):
    resp = await inspector_client.get("/checksheets/00000000-0000-0000-0000-000000000000")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_result_detail_hidden_from_other_inspector(
    db, client_factory, inspector, make_user, test_org, make_checksheet
):
    checksheet = make_checksheet(inspector)
    result = _add_result(db, checksheet, inspector)
    colleague = make_user(Role.INSPECTOR, test_org)

    resp = await client_factory(colleague).get(f"/results/{result.id}")
    assert resp.status_code == 403

    resp = await client_factory(inspector).get(f"/results/{result.id}")
    assert resp.status_code == 200, resp.text


@pytest.mark.asyncio
async def test_unauthenticated_requests_are_rejected(client):
    resp = await client.get("/checksheets")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Not authenticated"
