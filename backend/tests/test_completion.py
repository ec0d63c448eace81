import re
from decimal import Decimal

import pytest
from sqlalchemy import select

from cleansuite.core.errors import InvalidTransition, PermissionDenied, ValidationFailed
from cleansuite.models.activity import ActivityLog
from cleansuite.models.company import CompanyEstimateConfig
from cleansuite.models.enums import (
    ActivityAction,
    CashHandling,
    CompanyRole,
    CompensationStatus,
    InvoiceGenerationMode,
    JobStatus,
    PaymentMethod,
    PaymentReceiver,
)
from cleansuite.models.invoice import Invoice
from cleansuite.models.payment import CashCollection, PaymentReceipt
from cleansuite.services.completion import (
    CompletionService,
    build_checklist_snapshot,
    generate_receipt_number,
    payment_errors,
    validate_payment,
)
from cleansuite.services.scheduling import get_job
from conftest import as_user, create_member, seed_job


# === Payment validation ===

def test_valid_e_transfer_needs_no_receiver():
    payment = validate_payment("e_transfer", "150", None)

    assert payment.method == PaymentMethod.E_TRANSFER
    assert payment.amount == Decimal("150.00")
    assert payment.received_by is None


def test_cash_keeps_receiver():
    payment = validate_payment("cash", 80, "company")

    assert payment.is_cash
    assert payment.received_by == PaymentReceiver.COMPANY


def test_zero_cash_without_receiver_reports_every_field():
    errors = payment_errors("cash", "0", None)
    assert set(errors) == {"amount", "received_by"}


@pytest.mark.parametrize("method", [None, "", "   "])
def test_missing_method_is_rejected(method):
    assert "method" in payment_errors(method, "100", None)


@pytest.mark.parametrize("amount", [None, "", "abc", "-5", "0", "NaN", "Infinity"])
def test_non_positive_or_malformed_amount_is_rejected(amount):
    assert "amount" in payment_errors("e_transfer", amount, None)


def test_unknown_method_is_rejected():
    errors = payment_errors("cheque", "100", None)
    assert errors["method"].startswith("Payment method must be one of")


def test_validate_payment_raises_with_field_errors():
    with pytest.raises(ValidationFailed) as exc_info:
        validate_payment("cash", "0", None)
    assert set(exc_info.value.errors) == {"amount", "received_by"}


def test_receipt_number_format():
    assert re.fullmatch(r"RCP-1700000000000-[0-9A-Z]{4}", generate_receipt_number(1700000000000))


def test_checklist_snapshot_drops_blank_items():
    snapshot = build_checklist_snapshot([
        {"item": "Vacuum all floors", "completed": True},
        {"item": "  ", "completed": True},
        {"item": "Clean kitchen"},
    ])
    assert snapshot == [
        {"item": "Vacuum all floors", "completed": True},
        {"item": "Clean kitchen", "completed": False},
    ]


# === Completing jobs ===

async def _actions(db, company_id):
    result = await db.execute(
        select(ActivityLog.action).where(ActivityLog.company_id == company_id)
    )
    return list(result.scalars().all())


async def test_e_transfer_completion_issues_receipt(db, company, client_record, cleaner, cleaner_user):
    seeded = await seed_job(db, company, client_record, cleaner)
    job = await get_job(db, cleaner_user, seeded.id)

    result = await CompletionService(db, cleaner_user).complete(
        job,
        payment_method="e_transfer",
        payment_amount="120.50",
        checklist=[{"item": "Dust surfaces", "completed": True}],
        after_photos=["https://cdn.example.com/a.jpg", ""],
    )

    assert job.status == JobStatus.COMPLETED
    assert job.completed_at is not None
    assert job.payment_amount == Decimal("120.50")
    assert job.after_photos == ["https://cdn.example.com/a.jpg"]
    assert job.checklist == [{"item": "Dust surfaces", "completed": True}]
    assert result.receipt is not None
    assert result.receipt.total == Decimal("120.50")
    assert result.cash_collection is None
    assert result.invoice_result is None

    actions = await _actions(db, company.id)
    assert ActivityAction.JOB_COMPLETED in actions
    assert ActivityAction.PAYMENT_REGISTERED in actions


async def test_cash_kept_by_cleaner_creates_pending_collection(db, company, client_record, cleaner, cleaner_user):
    seeded = await seed_job(db, company, client_record, cleaner)
    job = await get_job(db, cleaner_user, seeded.id)

    result = await CompletionService(db, cleaner_user).complete(
        job, payment_method="cash", payment_amount="90", payment_received_by="cleaner"
    )

    collection = result.cash_collection
    assert collection is not None
    assert collection.cash_handling == CashHandling.KEPT_BY_CLEANER
    assert collection.compensation_status == CompensationStatus.PENDING
    assert collection.cleaner_id == cleaner.id
    assert collection.amount == Decimal("90.00")

    receipts = (await db.execute(select(PaymentReceipt).where(PaymentReceipt.job_id == job.id))).scalars().all()
    assert len(receipts) == 1
    assert ActivityAction.CASH_KEPT_BY_CLEANER in await _actions(db, company.id)


async def test_cash_delivered_to_office(db, company, client_record, cleaner, cleaner_user):
    seeded = await seed_job(db, company, client_record, cleaner)
    job = await get_job(db, cleaner_user, seeded.id)

    result = await CompletionService(db, cleaner_user).complete(
        job, payment_method="cash", payment_amount="90", payment_received_by="company"
    )

    assert result.cash_collection.cash_handling == CashHandling.DELIVERED_TO_OFFICE
    assert ActivityAction.CASH_DELIVERED_TO_OFFICE in await _actions(db, company.id)


async def test_invalid_payment_leaves_job_scheduled(db, company, client_record, cleaner, cleaner_user):
    seeded = await seed_job(db, company, client_record, cleaner)
    job = await get_job(db, cleaner_user, seeded.id)

    with pytest.raises(ValidationFailed):
        await CompletionService(db, cleaner_user).complete(
            job, payment_method="cash", payment_amount="0", payment_received_by=None
        )

    await db.refresh(job)
    assert job.status == JobStatus.SCHEDULED
    assert job.payment_method is None
    collections = (await db.execute(select(CashCollection))).scalars().all()
    assert collections == []
    assert await _actions(db, company.id) == []


async def test_cleaner_cannot_complete_someone_elses_job(db, company, client_record, cleaner, admin_user):
    other = await create_member(db, company, CompanyRole.CLEANER, "Riley")
    seeded = await seed_job(db, company, client_record, cleaner)
    job = await get_job(db, admin_user, seeded.id)

    with pytest.raises(PermissionDenied):
        await CompletionService(db, as_user(other, company, CompanyRole.CLEANER)).complete(
            job, payment_method="e_transfer", payment_amount="100"
        )


async def test_completed_job_cannot_be_completed_again(db, company, client_record, cleaner, admin_user):
    seeded = await seed_job(
        db, company, client_record, cleaner,
        status=JobStatus.COMPLETED, payment_method=PaymentMethod.E_TRANSFER, payment_amount=Decimal("100"),
    )
    job = await get_job(db, admin_user, seeded.id)

    with pytest.raises(InvalidTransition):
        await CompletionService(db, admin_user).complete(
            job, payment_method="e_transfer", payment_amount="100"
        )


async def test_automatic_mode_invoices_non_cash_completion(db, company, client_record, cleaner, cleaner_user):
    config = (
        await db.execute(select(CompanyEstimateConfig).where(CompanyEstimateConfig.company_id == company.id))
    ).scalar_one()
    config.invoice_generation_mode = InvoiceGenerationMode.AUTOMATIC
    await db.commit()

    seeded = await seed_job(db, company, client_record, cleaner, duration_minutes=150)
    job = await get_job(db, cleaner_user, seeded.id)

    result = await CompletionService(db, cleaner_user).complete(
        job, payment_method="e_transfer", payment_amount="113"
    )

    assert result.invoice_result.created == 1
    invoice = (await db.execute(select(Invoice).where(Invoice.job_id == job.id))).scalar_one()
    # 2.5h x $40 + 13%
    assert invoice.subtotal == Decimal("100.00")
    assert invoice.tax_amount == Decimal("13.00")
    assert invoice.total == Decimal("113.00")


async def test_automatic_mode_never_invoices_cash(db, company, client_record, cleaner, cleaner_user):
    config = (
        await db.execute(select(CompanyEstimateConfig).where(CompanyEstimateConfig.company_id == company.id))
    ).scalar_one()
    config.invoice_generation_mode = InvoiceGenerationMode.AUTOMATIC
    await db.commit()

    seeded = await seed_job(db, company, client_record, cleaner)
    job = await get_job(db, cleaner_user, seeded.id)

    result = await CompletionService(db, cleaner_user).complete(
        job, payment_method="cash", payment_amount="113", payment_received_by="cleaner"
    )

    assert result.invoice_result is None
    assert (await db.execute(select(Invoice))).scalars().all() == []
