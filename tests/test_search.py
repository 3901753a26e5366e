"""Global search scoping and limits."""

import pytest

from gensheet.db.models import BestPracticeTemplate, ChecksheetResult
from gensheet.services import search_service


def test_short_query_returns_empty_lists(db, session_for, inspector, make_checksheet):
    make_checksheet(inspector, title="a")
    for q in (None, "", " a ", "a"):
        assert search_service.search(db, session_for(inspector), q) == {
            "checksheets": [], "templates": [], "results": [],
        }


@pytest.mark.asyncio
async def test_search_is_scoped_and_case_insensitive(
    db, inspector_client, inspector, outsider, make_checksheet
):
    ours = make_checksheet(inspector, title="Forklift Daily Check")
    make_checksheet(inspector, title="Kitchen audit", description="Includes forklift bay")
    foreign = make_checksheet(outsider, title="Forklift foreign")
    db.add_all([
        BestPracticeTemplate(title="Forklift Pre-Operation Check", category="equipment", template_data={}),
        BestPracticeTemplate(title="Forklift private", category="equipment", template_data={}, is_public=False),
        ChecksheetResult(checksheet_id=ours.id, inspector_id=inspector.id, status="IN_PROGRESS"),
        ChecksheetResult(checksheet_id=foreign.id, inspector_id=outsider.id, status="IN_PROGRESS"),
    ])
    db.commit()

    resp = await inspector_client.get("/search", params={"q": "FORKLIFT"})
    assert resp.status_code == 200, resp.text
    data = resp.json()

    assert {hit["title"] for hit in data["checksheets"]} == {"Forklift Daily Check", "Kitchen audit"}
    assert [hit["title"] for hit in data["templates"]] == ["Forklift Pre-Operation Check"]
    assert len(data["results"]) == 1
    assert data["results"][0]["checksheet_title"] == "Forklift Daily Check"


@pytest.mark.asyncio
async def test_at_most_five_hits_per_kind(db, admin_client, admin, make_checksheet):
    for i in range(7):
        make_checksheet(admin, title=f"Boiler check {i}")
        db.add(BestPracticeTemplate(title=f"Boiler template {i}", category="utilities", template_data={}))
    db.commit()

    data = (await admin_client.get("/search", params={"q": "boiler"})).json()
    assert len(data["checksheets"]) == 5
    assert len(data["templates"]) == 5


@pytest.mark.asyncio
async def test_search_requires_auth(client):
    resp = await client.get("/search", params={"q": "forklift"})
    assert resp.status_code == 401
