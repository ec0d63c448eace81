from decimal import Decimal

import pytest

from cleansuite.core.security import AuthenticatedUser, get_current_user
from cleansuite.models.company import Company
from cleansuite.models.enums import CompanyRole
from cleansuite.models.user import User
from cleansuite.services import members as members_service
from conftest import as_user, create_member


@pytest.fixture
def firebase_accounts(monkeypatch):
    """Record Firebase lookups instead of calling the Admin SDK."""
    created = []

    async def fake_resolve(email, display_name=None):
        created.append(email)
        return f"uid-{email}"

    monkeypatch.setattr(members_service, "resolve_firebase_uid", fake_resolve)
    return created


async def test_admin_adds_new_member(api, admin_user, firebase_accounts):
    api.login(admin_user)

    response = await api.post("/company/members", json={
        "email": "Riley@Example.com",
        "role": "cleaner",
        "hourly_wage": "22.50",
        "first_name": "Riley",
        "last_name": "Park",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["email"] == "riley@example.com"
    assert body["full_name"] == "Riley Park"
    assert body["role"] == "cleaner"
    assert Decimal(body["hourly_wage"]) == Decimal("22.50")
    assert body["is_active"] is True
    assert firebase_accounts == ["riley@example.com"]

    listed = (await api.get("/company/members")).json()
    assert "riley@example.com" in [m["email"] for m in listed]

    activity = (await api.get("/activity", params={"action": "user_created"})).json()
    assert activity["total"] == 1
    assert activity["items"][0]["entity_name"] == "Riley Park"


async def test_existing_user_without_company_is_linked(api, db, admin_user, firebase_accounts):
    user = User(firebase_uid="uid-drew", email="drew@example.com", first_name="Drew")
    db.add(user)
    await db.commit()
    api.login(admin_user)

    response = await api.post("/company/members", json={"email": "drew@example.com", "role": "manager"})

    assert response.status_code == 201
    assert response.json()["user_id"] == str(user.id)
    assert response.json()["role"] == "manager"
    assert firebase_accounts == []


async def test_adding_an_existing_member_conflicts(api, admin_user, cleaner, firebase_accounts):
    api.login(admin_user)

    response = await api.post("/company/members", json={"email": cleaner.email, "role": "cleaner"})

    assert response.status_code == 409
    assert response.json()["error"] == "conflict"


async def test_managers_cannot_manage_members(api, manager_user, cleaner, firebase_accounts):
    api.login(manager_user)

    assert (await api.post("/company/members", json={"email": "x@example.com"})).status_code == 403
    assert (await api.patch(f"/company/members/{cleaner.id}", json={"hourly_wage": "30"})).status_code == 403
    assert (await api.delete(f"/company/members/{cleaner.id}")).status_code == 403


async def test_update_member_role_wage_and_phone(api, admin_user, cleaner):
    api.login(admin_user)

    response = await api.patch(f"/company/members/{cleaner.id}", json={
        "role": "manager",
        "hourly_wage": "24.00",
        "phone": "416-555-0101",
    })

    assert response.status_code == 200
    body = response.json()
    assert body["role"] == "manager"
    assert Decimal(body["hourly_wage"]) == Decimal("24.00")
    assert body["phone"] == "416-555-0101"

    activity = (await api.get("/activity", params={"action": "user_updated"})).json()
    assert activity["total"] == 1
    assert activity["items"][0]["details"]["role"] == "manager"


async def test_admin_cannot_demote_or_deactivate_themselves(api, admin, admin_user):
    api.login(admin_user)

    demote = await api.patch(f"/company/members/{admin.id}", json={"role": "cleaner"})
    assert demote.status_code == 422
    assert "role" in demote.json()["fields"]

    deactivate = await api.delete(f"/company/members/{admin.id}")
    assert deactivate.status_code == 422
    assert "is_active" in deactivate.json()["fields"]


async def test_unknown_member_is_not_found(api, admin_user, db, company):
    outsider = User(firebase_uid="uid-outsider", email="outsider@example.com")
    db.add(outsider)
    await db.commit()
    api.login(admin_user)

    assert (await api.patch(f"/company/members/{outsider.id}", json={"phone": "1"})).status_code == 404


async def test_deactivated_member_loses_access_and_assignments(
    api, db, company, admin_user, client_record, cleaner
):
    api.login(admin_user)

    response = await api.delete(f"/company/members/{cleaner.id}")

    assert response.status_code == 200
    assert response.json()["is_active"] is False

    active = (await api.get("/company/members")).json()
    assert cleaner.email not in [m["email"] for m in active]
    everyone = (await api.get("/company/members", params={"include_inactive": True})).json()
    assert cleaner.email in [m["email"] for m in everyone]

    scheduled = await api.post("/jobs", json={
        "client_id": str(client_record.id),
        "cleaner_id": str(cleaner.id),
        "scheduled_date": "2026-03-10",
    })
    assert scheduled.status_code == 422
    assert "cleaner_id" in scheduled.json()["fields"]

    token_identity = AuthenticatedUser(uid=cleaner.firebase_uid, email=cleaner.email)
    resolved = await get_current_user(token_identity, db)
    assert resolved.db_user_id == cleaner.id
    assert resolved.company_id is None
    assert resolved.role is None

    activity = (await api.get("/activity", params={"action": "user_deleted"})).json()
    assert activity["total"] == 1


async def test_reactivating_restores_membership(api, db, admin_user, cleaner):
    api.login(admin_user)
    await api.delete(f"/company/members/{cleaner.id}")

    response = await api.patch(f"/company/members/{cleaner.id}", json={"is_active": True})

    assert response.status_code == 200
    assert response.json()["is_active"] is True
    resolved = await get_current_user(AuthenticatedUser(uid=cleaner.firebase_uid), db)
    assert resolved.role == CompanyRole.CLEANER


async def test_deactivated_member_cannot_register_a_company(api, db, company, admin_user, cleaner):
    api.login(admin_user)
    await api.delete(f"/company/members/{cleaner.id}")

    identity = await get_current_user(AuthenticatedUser(uid=cleaner.firebase_uid, email=cleaner.email), db)
    api.login(identity)
    response = await api.post("/auth/register", json={"trade_name": "Casey's Cleaning"})

    assert response.status_code == 409


async def test_member_changes_are_scoped_to_company(api, db, cleaner):
    other_company = Company(trade_name="Other Co")
    db.add(other_company)
    await db.commit()
    quinn = await create_member(db, other_company, CompanyRole.ADMIN, "Quinn")
    outsider_admin = as_user(quinn, other_company, CompanyRole.ADMIN)
    api.login(outsider_admin)

    response = await api.patch(f"/company/members/{cleaner.id}", json={"role": "admin"})

    assert response.status_code == 404
