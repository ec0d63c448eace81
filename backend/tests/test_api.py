from datetime import date
from decimal import Decimal

from cleansuite.core.security import AuthenticatedUser
from cleansuite.models.enums import CompanyRole, JobStatus, PaymentMethod
from conftest import as_user, create_member, seed_job

HOUSE = {
    "square_footage": 1500,
    "bedrooms": 2,
    "bathrooms": 1,
    "living_areas": 1,
    "frequency": "biweekly",
}

E_TRANSFER = {"method": "e_transfer", "amount": "113.00"}


async def _schedule(api, client_record, cleaner, scheduled_date="2026-03-10"):
    response = await api.post("/jobs", json={
        "client_id": str(client_record.id),
        "location_id": str(client_record.locations[0].id),
        "cleaner_id": str(cleaner.id),
        "scheduled_date": scheduled_date,
        "start_time": "09:30:00",
        "duration_minutes": 150,
    })
    assert response.status_code == 201
    return response.json()


# === Auth ===

async def test_me_reports_company_role(api, admin_user, company):
    api.login(admin_user)

    response = await api.get("/auth/me")

    assert response.status_code == 200
    body = response.json()
    assert body["company_id"] == str(company.id)
    assert body["role"] == "admin"


async def test_register_creates_company_with_caller_as_admin(api):
    newcomer = AuthenticatedUser(uid="uid-newcomer", email="owner@fresh.example.com", email_verified=True)
    api.login(newcomer)

    response = await api.post("/auth/register", json={"trade_name": "Fresh Start Cleaning", "province": "BC"})

    assert response.status_code == 201
    assert response.json()["role"] == "admin"
    assert response.json()["company_id"] is not None

    again = await api.post("/auth/register", json={"trade_name": "Second Try"})
    assert again.status_code == 409


# === Estimates ===

async def test_quote_uses_company_rate(api, admin_user):
    api.login(admin_user)

    response = await api.post("/estimates/quote", json=HOUSE)

    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["hourly_rate"]) == Decimal("40")
    assert Decimal(body["total_hours"]) == Decimal("6.75")
    # 6.75h x $40 x 0.9 biweekly
    assert body["total"] == 243


async def test_cleaners_cannot_quote(api, cleaner_user):
    api.login(cleaner_user)

    response = await api.post("/estimates/quote", json=HOUSE)

    assert response.status_code == 403


async def test_estimate_lifecycle_to_scheduled_job(api, manager_user, client_record, cleaner):
    api.login(manager_user)

    created = await api.post("/estimates", json={**HOUSE, "client_name": "Taylor Brown", "include_pets": True})
    assert created.status_code == 201
    estimate = created.json()
    assert estimate["status"] == "draft"
    assert estimate["total_amount"] == 258
    assert Decimal(estimate["fee_snapshot"]["pets"]) == Decimal("15")

    early = await api.post(f"/estimates/{estimate['id']}/schedule", json={
        "client_id": str(client_record.id),
        "scheduled_date": "2026-03-12",
    })
    assert early.status_code == 409

    for action in ("send", "accept"):
        response = await api.post(f"/estimates/{estimate['id']}/{action}")
        assert response.status_code == 200
    assert response.json()["status"] == "accepted"

    scheduled = await api.post(f"/estimates/{estimate['id']}/schedule", json={
        "client_id": str(client_record.id),
        "cleaner_id": str(cleaner.id),
        "scheduled_date": "2026-03-12",
    })
    assert scheduled.status_code == 201
    job = scheduled.json()
    assert job["estimate_id"] == estimate["id"]
    assert job["status"] == "scheduled"
    assert job["duration_minutes"] == 405
    assert job["client_name"] == "Jordan Smith"

    deleted = await api.delete(f"/estimates/{estimate['id']}")
    assert deleted.status_code == 409


async def test_estimate_pdf(api, admin_user):
    api.login(admin_user)
    estimate = (await api.post("/estimates", json={**HOUSE, "client_name": "Taylor Brown"})).json()

    response = await api.get(f"/estimates/{estimate['id']}/pdf")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")


# === Jobs ===

async def test_cleaner_sees_only_own_jobs(api, db, company, admin_user, cleaner_user, client_record, cleaner):
    api.login(admin_user)
    await _schedule(api, client_record, cleaner)
    await seed_job(db, company, client_record, None)

    assert len((await api.get("/jobs")).json()) == 2

    api.login(cleaner_user)
    jobs = (await api.get("/jobs")).json()
    assert [job["cleaner_id"] for job in jobs] == [str(cleaner.id)]


async def test_start_then_cancel_notifies_cleaner(api, admin_user, cleaner_user, client_record, cleaner):
    api.login(admin_user)
    job = await _schedule(api, client_record, cleaner)

    api.login(cleaner_user)
    started = await api.post(f"/jobs/{job['id']}/start")
    assert started.json()["status"] == "in_progress"

    api.login(admin_user)
    cancelled = await api.post(f"/jobs/{job['id']}/cancel", json={"reason": "Client away"})
    assert cancelled.json()["status"] == "cancelled"
    assert cancelled.json()["cancellation_reason"] == "Client away"

    api.login(cleaner_user)
    titles = [n["title"] for n in (await api.get("/notifications")).json()]
    assert sorted(titles) == ["Job Cancelled", "New Job Scheduled"]


async def test_scheduling_for_inactive_client_is_rejected(api, admin_user, client_record, cleaner):
    api.login(admin_user)
    assert (await api.delete(f"/clients/{client_record.id}")).status_code == 200

    response = await api.post("/jobs", json={
        "client_id": str(client_record.id),
        "scheduled_date": "2026-03-10",
    })

    assert response.status_code == 422
    assert response.json()["fields"]["client_id"] == "Client is inactive"


async def test_completion_requires_payment(api, admin_user, cleaner_user, client_record, cleaner):
    api.login(admin_user)
    job = await _schedule(api, client_record, cleaner)

    api.login(cleaner_user)
    response = await api.post(f"/jobs/{job['id']}/complete", json={
        "payment": {"method": "cash", "amount": "0"},
    })

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "validation_failed"
    assert set(body["fields"]) == {"amount", "received_by"}

    unchanged = await api.get(f"/jobs/{job['id']}")
    assert unchanged.json()["status"] == "scheduled"


async def test_completion_with_e_transfer_issues_receipt(api, admin_user, cleaner_user, client_record, cleaner):
    api.login(admin_user)
    created = (await api.post("/company/checklist-items", json={"name": "Vacuum floors"})).json()
    job = await _schedule(api, client_record, cleaner)

    api.login(cleaner_user)
    template = (await api.get(f"/jobs/{job['id']}/checklist")).json()
    assert {"item": created["name"], "completed": False} in template["items"]

    response = await api.post(f"/jobs/{job['id']}/complete", json={
        "after_photos": ["https://cdn.example.com/after-1.jpg"],
        "checklist": [{"item": "Vacuum floors", "completed": True}],
        "payment": E_TRANSFER,
    })

    assert response.status_code == 200
    body = response.json()
    assert body["job"]["status"] == "completed"
    assert body["job"]["payment_method"] == "e_transfer"
    assert body["receipt"]["receipt_number"].startswith("RCP-")
    assert body["cash_collection"] is None
    assert body["invoice"] is None

    again = await api.post(f"/jobs/{job['id']}/complete", json={"payment": E_TRANSFER})
    assert again.status_code == 409


async def test_completion_by_another_cleaner_is_forbidden(api, db, company, admin_user, client_record, cleaner):
    api.login(admin_user)
    job = await _schedule(api, client_record, cleaner)
    other = await create_member(db, company, CompanyRole.CLEANER, "Riley")

    api.login(as_user(other, company, CompanyRole.CLEANER))
    response = await api.post(f"/jobs/{job['id']}/complete", json={"payment": E_TRANSFER})

    assert response.status_code == 403


# === Invoices ===

async def test_generate_requires_admin(api, db, company, manager_user, client_record, cleaner):
    job = await seed_job(
        db, company, client_record, cleaner,
        status=JobStatus.COMPLETED,
        payment_method=PaymentMethod.E_TRANSFER,
        payment_amount=Decimal("113.00"),
    )
    api.login(manager_user)

    response = await api.post("/invoices/generate", json={"job_ids": [str(job.id)]})

    assert response.status_code == 403


async def test_invoice_generate_send_and_mark_paid(api, db, company, admin_user, client_record, cleaner):
    job = await seed_job(
        db, company, client_record, cleaner,
        status=JobStatus.COMPLETED,
        payment_method=PaymentMethod.E_TRANSFER,
        payment_amount=Decimal("113.00"),
    )
    api.login(admin_user)

    pending = (await api.get("/invoices/pending")).json()
    assert [row["job_id"] for row in pending] == [str(job.id)]

    generated = await api.post("/invoices/generate", json={"job_ids": [str(job.id)]})
    assert generated.status_code == 200
    batch = generated.json()
    assert (batch["created"], batch["skipped"], batch["failed"]) == (1, 0, 0)
    invoice_id = batch["invoice_ids"][0]

    rerun = (await api.post("/invoices/generate", json={"job_ids": [str(job.id)]})).json()
    assert (rerun["created"], rerun["skipped"]) == (0, 1)
    assert (await api.get("/invoices/pending")).json() == []

    sent = await api.post(f"/invoices/{invoice_id}/send")
    assert sent.json()["status"] == "sent"

    paid = await api.post(f"/invoices/{invoice_id}/mark-paid", json={"payment_method": "e_transfer"})
    assert paid.status_code == 200
    assert paid.json()["status"] == "paid"
    assert Decimal(paid.json()["payment_amount"]) == Decimal("113.00")

    cancelled = await api.post(f"/invoices/{invoice_id}/cancel")
    assert cancelled.status_code == 409

    pdf = await api.get(f"/invoices/{invoice_id}/pdf")
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"


# === Cash ===

async def test_cash_completion_reconciliation(api, admin_user, manager_user, cleaner_user, client_record, cleaner):
    api.login(admin_user)
    job = await _schedule(api, client_record, cleaner)

    api.login(cleaner_user)
    completed = (await api.post(f"/jobs/{job['id']}/complete", json={
        "payment": {"method": "cash", "amount": "80", "received_by": "cleaner"},
    })).json()
    collection = completed["cash_collection"]
    assert collection["cash_handling"] == "kept_by_cleaner"
    assert collection["compensation_status"] == "pending"

    assert (await api.get("/cash-collections")).status_code == 403

    api.login(manager_user)
    summary = (await api.get("/cash-collections/summary")).json()
    assert Decimal(summary["pending"]) == Decimal("80.00")

    missing_reason = await api.post(f"/cash-collections/{collection['id']}/dispute", json={"reason": " "})
    assert missing_reason.status_code == 422
    assert "reason" in missing_reason.json()["fields"]

    approved = await api.post(f"/cash-collections/{collection['id']}/approve")
    assert approved.json()["compensation_status"] == "approved"

    late_dispute = await api.post(f"/cash-collections/{collection['id']}/dispute", json={"reason": "Short"})
    assert late_dispute.status_code == 409

    api.login(cleaner_user)
    notifications = (await api.get("/notifications", params={"unread_only": True})).json()
    assert {n["type"] for n in notifications} == {"job", "financial"}


# === Clients & company ===

async def test_client_create_and_soft_delete(api, manager_user):
    api.login(manager_user)

    created = await api.post("/clients", json={
        "name": "Avery Chen",
        "email": "avery@example.com",
        "locations": [{"address": "400 Queen St", "city": "Ottawa", "province": "ON"}],
    })
    assert created.status_code == 201
    client = created.json()
    assert client["status"] == "active"
    assert client["locations"][0]["city"] == "Ottawa"

    removed = await api.delete(f"/clients/{client['id']}")
    assert removed.json()["status"] == "inactive"

    still_there = await api.get(f"/clients/{client['id']}")
    assert still_there.status_code == 200


async def test_extra_fees_list_every_kind(api, cleaner_user):
    api.login(cleaner_user)

    fees = (await api.get("/company/extra-fees")).json()

    assert len(fees) == 7
    assert {fee["kind"]: Decimal(fee["amount"]) for fee in fees}["pets"] == Decimal("15")


async def test_only_admins_change_settings(api, manager_user):
    api.login(manager_user)

    response = await api.patch("/company/estimate-config", json={"default_hourly_rate": "50.00"})

    assert response.status_code == 403


# === Payroll & activity ===

async def test_pay_preview_from_completed_jobs(api, db, company, admin_user, client_record, cleaner):
    for day in (9, 10):
        await seed_job(
            db, company, client_record, cleaner,
            status=JobStatus.COMPLETED,
            scheduled_date=date(2026, 3, day),
            payment_method=PaymentMethod.E_TRANSFER,
            payment_amount=Decimal("113.00"),
        )
    api.login(admin_user)

    response = await api.post("/payroll/preview", json={
        "cleaner_id": str(cleaner.id),
        "period_start": "2026-03-01",
        "period_end": "2026-03-31",
    })

    assert response.status_code == 200
    body = response.json()
    assert body["jobs_counted"] == 2
    assert Decimal(body["regular_hours"]) == Decimal("5")
    assert Decimal(body["gross_pay"]) == Decimal("100.00")
    assert Decimal(body["net_pay"]) == Decimal("100.00")


async def test_activity_page_records_actions(api, admin_user, manager_user, cleaner_user, client_record, cleaner):
    api.login(admin_user)
    await _schedule(api, client_record, cleaner)

    api.login(manager_user)
    page = (await api.get("/activity", params={"action": "job_created"})).json()
    assert page["total"] == 1
    assert page["items"][0]["performer_name"] == "Alice Test"

    api.login(cleaner_user)
    assert (await api.get("/activity")).status_code == 403
