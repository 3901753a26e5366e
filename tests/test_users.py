"""User administration endpoints."""

import pytest

from gensheet.db.models import User


@pytest.mark.asyncio
async def test_non_admin_is_forbidden(supervisor_client):
    resp = await supervisor_client.get("/users")
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Not authorized to manage user"


@pytest.mark.asyncio
async def test_non_admin_cannot_create_or_update_users(supervisor_client, inspector_client, inspector, test_org):
    created = await supervisor_client.post(
        "/users",
        json={
            "email": "someone@gensheet.io",
            "name": "Someone",
            "password": "s3cure-password",
            "organization_id": str(test_org.id),
        },
    )
    assert created.status_code == 403
    assert created.json()["detail"] == "Not authorized to manage user"

    promoted = await inspector_client.patch(f"/users/{inspector.id}", json={"role": "ADMIN"})
    assert promoted.status_code == 403
    assert promoted.json()["detail"] == "Not authorized to manage user"


@pytest.mark.asyncio
async def test_list_users_with_activity_counts(admin_client, inspector, make_checksheet):
    make_checksheet(inspector)
    make_checksheet(inspector)

    resp = await admin_client.get("/users", params={"role": "INSPECTOR"})
    assert resp.status_code == 200, resp.text
    users = resp.json()
    assert [u["id"] for u in users] == [str(inspector.id)]
    assert users[0]["checksheet_count"] == 2
    assert users[0]["result_count"] == 0
    assert "password_hash" not in users[0]


@pytest.mark.asyncio
async def test_create_user(admin_client, test_org):
    resp = await admin_client.post(
        "/users",
        json={
            "email": "New.Inspector@Gensheet.io",
            "name": "New Inspector",
            "password": "s3cure-password",
            "organization_id": str(test_org.id),
        },
    )
    assert resp.status_code == 201, resp.text
    data = resp.json()
    assert data["email"] == "new.inspector@gensheet.io"
    assert data["role"] == "INSPECTOR"
    assert data["organization_id"] == str(test_org.id)


@pytest.mark.asyncio
async def test_duplicate_email_conflicts(admin_client, inspector):
    resp = await admin_client.post(
        "/users", json={"email": inspector.email.upper(), "password": "s3cure-password"}
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_unknown_organization_is_400(admin_client):
    resp = await admin_client.post(
        "/users",
        json={
            "email": "someone@gensheet.io",
            "password": "s3cure-password",
            "organization_id": "00000000-0000-0000-0000-000000000000",
        },
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_role_change_revokes_sessions(admin_client, client_factory, inspector, db):
    inspector_client = client_factory(inspector)
    assert (await inspector_client.get("/auth/me")).status_code == 200

    resp = await admin_client.patch(f"/users/{inspector.id}", json={"role": "SUPERVISOR"})
    assert resp.status_code == 200, resp.text
    assert resp.json()["role"] == "SUPERVISOR"

    resp = await inspector_client.get("/auth/me")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Session revoked"


@pytest.mark.asyncio
async def test_name_change_keeps_sessions(admin_client, client_factory, inspector):
    inspector_client = client_factory(inspector)
    resp = await admin_client.patch(f"/users/{inspector.id}", json={"name": "Renamed"})
    assert resp.json()["name"] == "Renamed"
    assert (await inspector_client.get("/auth/me")).status_code == 200


@pytest.mark.asyncio
async def test_update_missing_user_is_404(admin_client):
    resp = await admin_client.patch(
        "/users/00000000-0000-0000-0000-000000000000", json={"name": "Ghost"}
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_user_requires_confirmation(admin_client, inspector, make_checksheet, db):
    make_checksheet(inspector)
    url = f"/users/{inspector.id}"
    inspector_id = inspector.id

    assert (await admin_client.delete(url)).status_code == 400

    resp = await admin_client.delete(url, params={"confirm": "true"})
    assert resp.status_code == 200, resp.text
    db.expire_all()
    assert db.get(User, inspector_id) is None


@pytest.mark.asyncio
async def test_admin_cannot_delete_self(admin_client, admin):
    resp = await admin_client.delete(f"/users/{admin.id}", params={"confirm": "true"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "You cannot delete your own account"
