from datetime import date
from decimal import Decimal

import pytest_asyncio

from cleansuite.models.client import Client
from cleansuite.models.company import Company
from cleansuite.models.enums import CompanyRole, JobStatus, PaymentMethod
from cleansuite.models.payment import PaymentReceipt
from cleansuite.services.pdf_generator import get_pdf_generator
from conftest import as_user, create_member, seed_job


async def _receipt(db, company, client, cleaner, number, service_date, method=PaymentMethod.CASH, amount="113.00"):
    job = await seed_job(
        db, company, client, cleaner,
        status=JobStatus.COMPLETED,
        scheduled_date=service_date,
        payment_method=method,
        payment_amount=Decimal(amount),
    )
    receipt = PaymentReceipt(
        company_id=company.id,
        job_id=job.id,
        client_id=client.id,
        cleaner_id=cleaner.id if cleaner else None,
        receipt_number=number,
        payment_method=method,
        amount=Decimal(amount),
        tax_amount=Decimal("0"),
        total=Decimal(amount),
        service_date=service_date,
        service_description="Standard cleaning",
    )
    db.add(receipt)
    await db.commit()
    return receipt


@pytest_asyncio.fixture
async def riley(db, company):
    return await create_member(db, company, CompanyRole.CLEANER, "Riley", hourly_wage=Decimal("18.00"))


@pytest_asyncio.fixture
async def receipts(db, company, client_record, cleaner, riley):
    other_client = Client(company_id=company.id, name="Avery Lee", locations=[])
    db.add(other_client)
    await db.commit()
    return {
        "march": await _receipt(db, company, client_record, cleaner, "RCP-1001", date(2026, 3, 10)),
        "april": await _receipt(db, company, client_record, riley, "RCP-1002", date(2026, 4, 2),
                                method=PaymentMethod.E_TRANSFER),
        "other_client": await _receipt(db, company, other_client, cleaner, "RCP-1003", date(2026, 4, 20),
                                       amount="90.00"),
    }


async def test_list_receipts_newest_first(api, admin_user, receipts):
    api.login(admin_user)

    response = await api.get("/receipts")

    assert response.status_code == 200
    numbers = [r["receipt_number"] for r in response.json()]
    assert numbers == ["RCP-1003", "RCP-1002", "RCP-1001"]


async def test_list_receipts_filters(api, admin_user, client_record, cleaner, receipts):
    api.login(admin_user)

    by_client = (await api.get("/receipts", params={"client_id": str(client_record.id)})).json()
    assert {r["receipt_number"] for r in by_client} == {"RCP-1001", "RCP-1002"}

    by_cleaner = (await api.get("/receipts", params={"cleaner_id": str(cleaner.id)})).json()
    assert {r["receipt_number"] for r in by_cleaner} == {"RCP-1001", "RCP-1003"}

    in_april = (await api.get("/receipts", params={"date_from": "2026-04-01", "date_to": "2026-04-30"})).json()
    assert {r["receipt_number"] for r in in_april} == {"RCP-1002", "RCP-1003"}

    by_method = (await api.get("/receipts", params={"payment_method": "e_transfer"})).json()
    assert [r["receipt_number"] for r in by_method] == ["RCP-1002"]


async def test_cleaner_sees_only_own_receipts(api, cleaner_user, riley, receipts):
    api.login(cleaner_user)

    listed = (await api.get("/receipts", params={"cleaner_id": str(riley.id)})).json()
    assert {r["receipt_number"] for r in listed} == {"RCP-1001", "RCP-1003"}

    other = await api.get(f"/receipts/{receipts['april'].id}")
    assert other.status_code == 403


async def test_get_receipt_includes_names(api, manager_user, receipts):
    api.login(manager_user)

    response = await api.get(f"/receipts/{receipts['march'].id}")

    assert response.status_code == 200
    body = response.json()
    assert body["receipt_number"] == "RCP-1001"
    assert body["client_name"] == "Jordan Smith"
    assert body["cleaner_name"] == "Casey Test"
    assert body["payment_method"] == "cash"
    assert Decimal(body["total"]) == Decimal("113.00")


async def test_receipt_pdf(api, cleaner_user, receipts):
    api.login(cleaner_user)

    response = await api.get(f"/receipts/{receipts['march'].id}/pdf")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert "RCP-1001.pdf" in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


async def test_receipts_of_other_companies_are_hidden(api, db, receipts):
    other_company = Company(trade_name="Other Co")
    db.add(other_company)
    await db.commit()
    outsider = await create_member(db, other_company, CompanyRole.ADMIN, "Quinn")
    api.login(as_user(outsider, other_company, CompanyRole.ADMIN))

    assert (await api.get("/receipts")).json() == []
    assert (await api.get(f"/receipts/{receipts['march'].id}")).status_code == 404
    assert (await api.get(f"/receipts/{receipts['march'].id}/pdf")).status_code == 404


def test_generate_receipt_renders_pdf():
    pdf = get_pdf_generator("#0055aa").generate_receipt(
        {"trade_name": "Sparkle Cleaning", "gst_hst_number": "123456789RT0001"},
        {
            "receipt_number": "RCP-42",
            "client_name": "Jordan Smith",
            "service_date": date(2026, 3, 10),
            "payment_method": PaymentMethod.CASH,
            "amount": Decimal("113.00"),
            "tax_amount": Decimal("0"),
            "total": Decimal("113.00"),
            "notes": "Paid at the door",
        },
    )

    assert pdf.startswith(b"%PDF")
