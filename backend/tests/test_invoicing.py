import uuid
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from cleansuite.core.errors import InvalidTransition
from cleansuite.models.activity import ActivityLog
from cleansuite.models.company import Company
from cleansuite.models.client import Client
from cleansuite.models.enums import ActivityAction, InvoiceStatus, JobStatus, PaymentMethod, Province
from cleansuite.models.invoice import Invoice
from cleansuite.models.notification import Notification
from cleansuite.services.invoicing import (
    InvoiceBatchResult,
    InvoiceService,
    change_invoice_status,
    compute_totals,
    generate_invoice_number,
    parse_duration_hours,
)
from conftest import seed_job


# === Pure helpers ===

@pytest.mark.parametrize(
    "label, expected",
    [
        ("2.5h", Decimal("2.5")),
        ("3 hours", Decimal("3")),
        ("4", Decimal("4")),
        (None, Decimal("2.0")),
        ("", Decimal("2.0")),
        ("abc", Decimal("2.0")),
        ("0h", Decimal("2.0")),
        ("1.5.2h", Decimal("2.0")),
    ],
)
def test_parse_duration_hours(label, expected):
    assert parse_duration_hours(label) == expected


def test_invoice_number_layout():
    number = generate_invoice_number(date(2026, 3, 10), 1700000012345, 7, 2)
    assert number == "INV-20260310-23450072"


def test_totals_round_to_cents():
    assert compute_totals(Decimal("2.5"), Decimal("40"), Decimal("13")) == (
        Decimal("100.00"), Decimal("13.00"), Decimal("113.00"),
    )
    # 61.25 x 13% = 7.9625
    assert compute_totals(Decimal("1.75"), Decimal("35"), Decimal("13")) == (
        Decimal("61.25"), Decimal("7.96"), Decimal("69.21"),
    )


def test_zero_tax_rate_is_honoured():
    subtotal, tax, total = compute_totals(Decimal("2"), Decimal("35"), Decimal("0"))
    assert tax == Decimal("0.00")
    assert total == subtotal == Decimal("70.00")


def test_batch_messages():
    assert InvoiceBatchResult(created=2).message == "2 invoice(s) generated successfully"
    assert InvoiceBatchResult(created=1, skipped=1).message == "1 invoice(s) generated, 1 already existed"
    assert InvoiceBatchResult(created=0, skipped=1, failed=1).message == (
        "0 invoice(s) generated, 1 already existed, 1 failed"
    )


def test_invoice_status_transitions():
    invoice = Invoice(status=InvoiceStatus.DRAFT)
    change_invoice_status(invoice, InvoiceStatus.SENT)
    assert invoice.sent_at is not None

    change_invoice_status(invoice, InvoiceStatus.PAID)
    assert invoice.paid_at is not None

    with pytest.raises(InvalidTransition):
        change_invoice_status(invoice, InvoiceStatus.CANCELLED)


# === Generation ===

async def _completed(db, company, client, cleaner, method=PaymentMethod.E_TRANSFER, minutes=150):
    return await seed_job(
        db, company, client, cleaner,
        status=JobStatus.COMPLETED,
        duration_minutes=minutes,
        payment_method=method,
        payment_amount=Decimal("113.00"),
    )


async def _invoice_count(db) -> int:
    return (await db.execute(select(func.count()).select_from(Invoice))).scalar_one()


async def test_generation_skips_cash_and_is_idempotent(db, company, client_record, cleaner):
    first = await _completed(db, company, client_record, cleaner)
    second = await _completed(db, company, client_record, cleaner, minutes=90)
    cash = await _completed(db, company, client_record, cleaner, method=PaymentMethod.CASH)
    job_ids = [first.id, second.id, cash.id]

    service = InvoiceService(db, company.id)
    result = await service.generate(job_ids)

    assert (result.created, result.skipped, result.failed) == (2, 1, 0)
    assert len(result.invoice_ids) == 2
    assert await _invoice_count(db) == 2

    again = await service.generate(job_ids)
    assert (again.created, again.skipped, again.failed) == (0, 3, 0)
    assert again.message == "0 invoice(s) generated, 3 already existed"
    assert await _invoice_count(db) == 2


async def test_generated_invoice_fields(db, company, client_record, cleaner):
    job = await _completed(db, company, client_record, cleaner, minutes=150)

    result = await InvoiceService(db, company.id).generate([job.id])

    invoice = await db.get(Invoice, result.invoice_ids[0])
    assert invoice.status == InvoiceStatus.DRAFT
    assert invoice.job_id == job.id
    assert invoice.client_id == client_record.id
    assert invoice.cleaner_id == cleaner.id
    assert invoice.service_duration == "2.5h"
    assert invoice.subtotal == Decimal("100.00")
    assert invoice.tax_rate == Decimal("13.00")
    assert invoice.total == Decimal("113.00")
    assert invoice.invoice_number.startswith(f"INV-{datetime.utcnow():%Y%m%d}-")
    assert invoice.due_date == datetime.utcnow().date() + timedelta(days=30)

    logged = (
        await db.execute(select(ActivityLog).where(ActivityLog.action == ActivityAction.INVOICE_CREATED))
    ).scalars().all()
    assert [entry.entity_name for entry in logged] == [invoice.invoice_number]

    notifications = (await db.execute(select(Notification))).scalars().all()
    assert len(notifications) == 1
    assert notifications[0].meta["invoice_number"] == invoice.invoice_number


async def test_missing_duration_uses_default_hours(db, company, client_record, cleaner):
    job = await _completed(db, company, client_record, cleaner, minutes=None)

    result = await InvoiceService(db, company.id).generate([job.id])

    invoice = await db.get(Invoice, result.invoice_ids[0])
    # 2h default x $40
    assert invoice.subtotal == Decimal("80.00")


async def test_duplicate_ids_in_selection_create_one_invoice(db, company, client_record, cleaner):
    job = await _completed(db, company, client_record, cleaner)

    result = await InvoiceService(db, company.id).generate([job.id, job.id])

    assert (result.created, result.skipped) == (1, 0)
    assert await _invoice_count(db) == 1


async def test_unfinished_and_foreign_jobs_fail_without_aborting_batch(db, company, client_record, cleaner):
    scheduled = await seed_job(db, company, client_record, cleaner)
    done = await _completed(db, company, client_record, cleaner)

    other_company = Company(trade_name="Other Co", province=Province.BC)
    db.add(other_company)
    await db.flush()
    other_client = Client(company_id=other_company.id, name="Someone Else")
    db.add(other_client)
    await db.commit()
    await db.refresh(other_client, ["locations"])
    foreign = await _completed(db, other_company, other_client, None)

    result = await InvoiceService(db, company.id).generate([scheduled.id, foreign.id, uuid.uuid4(), done.id])

    assert (result.created, result.skipped, result.failed) == (1, 0, 3)
    assert await _invoice_count(db) == 1


async def test_insert_if_absent_reports_conflict(db, company, client_record, cleaner):
    job = await _completed(db, company, client_record, cleaner)
    service = InvoiceService(db, company.id)
    values = {
        "company_id": company.id,
        "client_id": client_record.id,
        "job_id": job.id,
        "subtotal": Decimal("100.00"),
        "tax_rate": Decimal("13.00"),
        "tax_amount": Decimal("13.00"),
        "total": Decimal("113.00"),
        "status": InvoiceStatus.DRAFT,
    }

    created = await service.insert_if_absent({**values, "invoice_number": "INV-20260310-00000001"})
    duplicate = await service.insert_if_absent({**values, "invoice_number": "INV-20260310-00000002"})
    await db.commit()

    assert created is not None
    assert duplicate is None
    assert await _invoice_count(db) == 1


async def test_pending_jobs_excludes_invoiced_and_unfinished(db, company, client_record, cleaner):
    invoiced = await _completed(db, company, client_record, cleaner)
    waiting = await _completed(db, company, client_record, cleaner)
    await seed_job(db, company, client_record, cleaner)

    service = InvoiceService(db, company.id)
    await service.generate([invoiced.id])

    pending = await service.pending_jobs()
    assert [job.id for job in pending] == [waiting.id]
