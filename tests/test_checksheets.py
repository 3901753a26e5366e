"""Checksheet authoring, lifecycle and ordering through the API."""

import pytest


CHECKPOINTS = [
    {"title": "Emergency exits clear", "fieldType": "CHECKBOX", "isRequired": True, "section": "Safety"},
    {
        "title": "Fire extinguisher",
        "fieldType": "DROPDOWN",
        "isRequired": True,
        "config": {"options": ["OK", "Needs Attention", "Not OK"]},
    },
    {"title": "Temperature", "fieldType": "NUMBER", "config": {"min": -20, "max": 50, "unit": "°C"}},
]


async def _create(client, **overrides):
    body = {
        "title": "Daily Safety Inspection",
        "description": "Warehouse walk-through",
        "category": "safety",
        "tags": ["daily", " daily ", "warehouse"],
        "checkpoints": CHECKPOINTS,
        **overrides,
    }
    resp = await client.post("/checksheets", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_create_checksheet_as_draft_with_ordered_checkpoints(inspector_client, inspector):
    data = await _create(inspector_client)

    assert data["status"] == "DRAFT"
    assert data["version"] == 1
    assert data["creator_id"] == str(inspector.id)
    assert data["organization_id"] == str(inspector.organization_id)
    assert data["tags"] == ["daily", "warehouse"]
    assert [cp["order"] for cp in data["checkpoints"]] == [0, 1, 2]
    assert data["checkpoints"][0]["section"] == "Safety"
    assert data["checkpoints"][1]["section"] == "General"
    assert data["checkpoints"][2]["config"] == {"min": -20, "max": 50, "unit": "°C"}


@pytest.mark.asyncio
async def test_viewer_cannot_create(viewer_client):
    resp = await viewer_client.post("/checksheets", json={"title": "Nope"})
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_mutation_requires_csrf_header(client_factory, inspector):
    resp = await client_factory(inspector, csrf=False).post("/checksheets", json={"title": "No header"})
    assert resp.status_code == 403
    assert "CSRF" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_invalid_field_type_is_422(inspector_client):
    resp = await inspector_client.post(
        "/checksheets",
        json={"title": "Bad", "checkpoints": [{"title": "Slider", "fieldType": "SLIDER"}]},
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_list_is_paginated(inspector_client):
    for i in range(3):
        await _create(inspector_client, title=f"Sheet {i}")

    resp = await inspector_client.get("/checksheets", params={"per_page": 2})
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["total"] == 3
    assert data["pages"] == 2
    assert len(data["items"]) == 2
    assert data["items"][0]["checkpoint_count"] == 3


@pytest.mark.asyncio
async def test_list_filters_by_search_term(inspector_client):
    await _create(inspector_client, title="Forklift check")
    await _create(inspector_client, title="Kitchen audit")

    resp = await inspector_client.get("/checksheets", params={"q": "fork"})
    assert [item["title"] for item in resp.json()["items"]] == ["Forklift check"]


@pytest.mark.asyncio
async def test_update_replaces_checkpoints_and_keeps_orders_contiguous(inspector_client):
    created = await _create(inspector_client)
    first, second, third = created["checkpoints"]

    resp = await inspector_client.patch(
        f"/checksheets/{created['id']}",
        json={
            "title": "Daily Safety Inspection v2",
            "checkpoints": [
                {**third, "title": "Ambient temperature"},
                {"title": "Photo of loading bay", "fieldType": "PHOTO"},
                first,
            ],
        },
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()

    assert data["title"] == "Daily Safety Inspection v2"
    assert data["version"] == 2
    assert [cp["order"] for cp in data["checkpoints"]] == [0, 1, 2]
    assert [cp["title"] for cp in data["checkpoints"]] == [
        "Ambient temperature", "Photo of loading bay", "Emergency exits clear",
    ]
    assert data["checkpoints"][0]["id"] == third["id"]
    assert second["id"] not in {cp["id"] for cp in data["checkpoints"]}


@pytest.mark.asyncio
async def test_stale_expected_version_conflicts(inspector_client):
    created = await _create(inspector_client)
    url = f"/checksheets/{created['id']}"

    ok = await inspector_client.patch(url, json={"title": "First edit", "expected_version": 1})
    assert ok.status_code == 200, ok.text

    stale = await inspector_client.patch(url, json={"title": "Second edit", "expected_version": 1})
    assert stale.status_code == 409

    current = await inspector_client.get(url)
    assert current.json()["title"] == "First edit"


@pytest.mark.asyncio
async def test_foreign_checkpoint_id_is_rejected(inspector_client):
    a = await _create(inspector_client, title="A")
    b = await _create(inspector_client, title="B")

    resp = await inspector_client.patch(
        f"/checksheets/{a['id']}",
        json={"checkpoints": [b["checkpoints"][0]]},
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_repeated_checkpoint_id_is_rejected(inspector_client):
    created = await _create(inspector_client)
    first = created["checkpoints"][0]
    url = f"/checksheets/{created['id']}"

    resp = await inspector_client.patch(url, json={"checkpoints": [first, first]})
    assert resp.status_code == 422

    current = (await inspector_client.get(url)).json()
    assert current["version"] == 1
    assert [cp["order"] for cp in current["checkpoints"]] == [0, 1, 2]


@pytest.mark.asyncio
async def test_status_lifecycle(inspector_client):
    created = await _create(inspector_client)
    url = f"/checksheets/{created['id']}"

    resp = await inspector_client.patch(url, json={"status": "ACTIVE"})
    assert resp.status_code == 200, resp.text
    assert resp.json()["status"] == "ACTIVE"

    resp = await inspector_client.patch(url, json={"status": "DRAFT"})
    assert resp.status_code == 400

    resp = await inspector_client.patch(url, json={"status": "ARCHIVED"})
    assert resp.json()["status"] == "ARCHIVED"

    resp = await inspector_client.patch(url, json={"status": "ACTIVE"})
    assert resp.json()["status"] == "ACTIVE"


@pytest.mark.asyncio
async def test_supervisor_edits_but_cannot_change_status_of_others_checksheet(
    inspector_client, supervisor_client
):
    created = await _create(inspector_client)
    url = f"/checksheets/{created['id']}"

    edit = await supervisor_client.patch(url, json={"description": "Reviewed"})
    assert edit.status_code == 200, edit.text

    status = await supervisor_client.patch(url, json={"status": "ACTIVE"})
    assert status.status_code == 403


@pytest.mark.asyncio
async def test_viewer_cannot_edit(inspector_client, viewer_client):
    created = await _create(inspector_client)
    resp = await viewer_client.patch(f"/checksheets/{created['id']}", json={"title": "Hijack"})
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_reorder_checkpoints(inspector_client):
    created = await _create(inspector_client)
    ids = [cp["id"] for cp in created["checkpoints"]]

    resp = await inspector_client.put(
        f"/checksheets/{created['id']}/checkpoints/order",
        json={"checkpoint_ids": list(reversed(ids))},
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert [cp["id"] for cp in data["checkpoints"]] == list(reversed(ids))
    assert [cp["order"] for cp in data["checkpoints"]] == [0, 1, 2]


@pytest.mark.asyncio
async def test_reorder_requires_every_checkpoint(inspector_client):
    created = await _create(inspector_client)
    ids = [cp["id"] for cp in created["checkpoints"]]

    resp = await inspector_client.put(
        f"/checksheets/{created['id']}/checkpoints/order",
        json={"checkpoint_ids": ids[:2]},
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_duplicate_creates_owned_draft_copy(inspector_client, supervisor_client, supervisor):
    created = await _create(inspector_client)
    await inspector_client.patch(f"/checksheets/{created['id']}", json={"status": "ACTIVE"})

    resp = await supervisor_client.post(f"/checksheets/{created['id']}/duplicate")
    assert resp.status_code == 201, resp.text
    copy = resp.json()

    assert copy["id"] != created["id"]
    assert copy["title"] == "Daily Safety Inspection (Copy)"
    assert copy["status"] == "DRAFT"
    assert copy["creator_id"] == str(supervisor.id)
    assert len(copy["checkpoints"]) == 3


@pytest.mark.asyncio
async def test_delete_requires_confirmation(inspector_client):
    created = await _create(inspector_client)
    url = f"/checksheets/{created['id']}"

    resp = await inspector_client.delete(url)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Confirmation required"

    resp = await inspector_client.delete(url, params={"confirm": "true"})
    assert resp.status_code == 200, resp.text

    resp = await inspector_client.get(url)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_supervisor_cannot_delete_others_checksheet(inspector_client, supervisor_client):
    created = await _create(inspector_client)
    resp = await supervisor_client.delete(
        f"/checksheets/{created['id']}", params={"confirm": "true"}
    )
    assert resp.status_code == 403
