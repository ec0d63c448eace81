from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import select

from cleansuite.core.errors import InvalidTransition, ValidationFailed
from cleansuite.models.activity import ActivityLog
from cleansuite.models.enums import (
    ActivityAction,
    CashHandling,
    CompanyRole,
    CompensationStatus,
    JobStatus,
    NotificationType,
    PaymentMethod,
    PayrollPeriodStatus,
)
from cleansuite.models.notification import Notification
from cleansuite.models.payment import CashCollection
from cleansuite.services.payroll_periods import PayrollPeriodService
from conftest import create_member, seed_job

MARCH_START = date(2026, 3, 9)
MARCH_END = date(2026, 3, 22)


async def _cash_job(db, company, client, cleaner, service_date, handling, amount="40.00"):
    job = await seed_job(
        db, company, client, cleaner,
        status=JobStatus.COMPLETED,
        scheduled_date=service_date,
        payment_method=PaymentMethod.CASH,
        payment_amount=Decimal(amount),
    )
    collection = CashCollection(
        company_id=company.id,
        job_id=job.id,
        client_id=client.id,
        cleaner_id=cleaner.id,
        amount=Decimal(amount),
        service_date=service_date,
        cash_handling=handling,
        compensation_status=CompensationStatus.APPROVED,
    )
    db.add(collection)
    await db.commit()
    return collection


@pytest_asyncio.fixture
async def riley(db, company):
    return await create_member(db, company, CompanyRole.CLEANER, "Riley")


@pytest_asyncio.fixture
async def worked(db, company, client_record, cleaner, riley):
    """Casey: 7.5h at $20 with $40 kept cash. Riley: 2h with no wage set."""
    kept = await _cash_job(db, company, client_record, cleaner, date(2026, 3, 10), CashHandling.KEPT_BY_CLEANER)
    delivered = await _cash_job(
        db, company, client_record, cleaner, date(2026, 3, 11), CashHandling.DELIVERED_TO_OFFICE, amount="113.00"
    )
    await seed_job(db, company, client_record, cleaner, status=JobStatus.COMPLETED, scheduled_date=date(2026, 3, 12))
    await seed_job(db, company, client_record, riley, status=JobStatus.COMPLETED,
                   scheduled_date=date(2026, 3, 11), duration_minutes=120)
    # not counted: outside the range, or not completed
    await seed_job(db, company, client_record, cleaner, status=JobStatus.COMPLETED, scheduled_date=date(2026, 3, 23))
    await seed_job(db, company, client_record, cleaner, status=JobStatus.SCHEDULED, scheduled_date=date(2026, 3, 13))
    return {"kept": kept, "delivered": delivered}


def _entry(period, user):
    return next(e for e in period.entries if e.cleaner_id == user.id)


async def test_generate_persists_entry_per_cleaner(db, manager_user, cleaner, riley, worked):
    period = await PayrollPeriodService(db, manager_user).generate(MARCH_START, MARCH_END)

    assert period.status == PayrollPeriodStatus.PENDING
    assert period.period_name == "Mar 09, 2026 - Mar 22, 2026"
    assert len(period.entries) == 2

    casey = _entry(period, cleaner)
    assert casey.jobs_counted == 3
    assert casey.regular_hours == Decimal("7.50")
    assert casey.hourly_rate == Decimal("20.00")
    assert casey.gross_pay == Decimal("150.00")
    assert casey.cpp_deduction == Decimal("8.93")
    assert casey.ei_deduction == Decimal("2.37")
    assert casey.tax_deduction == Decimal("22.50")
    assert casey.cash_deduction == Decimal("40.00")
    assert casey.net_pay == Decimal("76.20")
    assert casey.cleaner.display_name == "Casey Test"

    # no wage on the membership falls back to the configured default
    riley_entry = _entry(period, riley)
    assert riley_entry.hourly_rate == Decimal("15.00")
    assert riley_entry.gross_pay == Decimal("30.00")
    assert riley_entry.net_pay == Decimal("23.24")

    assert period.total_gross == Decimal("180.00")
    assert period.total_net == Decimal("99.44")
    assert period.total_deductions == Decimal("80.56")


async def test_generate_settles_kept_cash_against_period(db, manager_user, cleaner, worked):
    period = await PayrollPeriodService(db, manager_user).generate(MARCH_START, MARCH_END)

    kept = await db.get(CashCollection, worked["kept"].id)
    await db.refresh(kept)
    assert kept.compensation_status == CompensationStatus.SETTLED
    assert kept.payroll_period_id == period.id
    assert kept.settled_at is not None

    delivered = await db.get(CashCollection, worked["delivered"].id)
    await db.refresh(delivered)
    assert delivered.compensation_status == CompensationStatus.APPROVED
    assert delivered.payroll_period_id is None

    actions = (await db.execute(select(ActivityLog.action))).scalars().all()
    assert ActivityAction.PAYROLL_CREATED in actions
    assert actions.count(ActivityAction.CASH_COMPENSATION_SETTLED) == 1


async def test_settled_cash_is_not_deducted_twice(db, company, client_record, manager_user, cleaner, worked):
    service = PayrollPeriodService(db, manager_user)
    await service.generate(MARCH_START, MARCH_END)
    await seed_job(db, company, client_record, cleaner, status=JobStatus.COMPLETED, scheduled_date=date(2026, 3, 24))

    later = await service.generate(date(2026, 3, 23), date(2026, 4, 5))

    assert _entry(later, cleaner).cash_deduction == Decimal("0.00")


async def test_overlapping_period_is_rejected(db, manager_user, worked):
    service = PayrollPeriodService(db, manager_user)
    await service.generate(MARCH_START, MARCH_END)

    with pytest.raises(ValidationFailed) as exc:
        await service.generate(date(2026, 3, 20), date(2026, 4, 2))
    assert "start_date" in exc.value.errors


async def test_range_without_completed_jobs_is_rejected(db, manager_user, worked):
    with pytest.raises(ValidationFailed):
        await PayrollPeriodService(db, manager_user).generate(date(2025, 1, 1), date(2025, 1, 14))


async def test_period_lifecycle_approve_then_close(db, admin, admin_user, cleaner, worked):
    service = PayrollPeriodService(db, admin_user)
    period = await service.generate(MARCH_START, MARCH_END)

    with pytest.raises(InvalidTransition):
        await service.close(period.id)

    approved = await service.approve(period.id)
    assert approved.status == PayrollPeriodStatus.APPROVED
    assert approved.approved_by == admin.id
    assert approved.approved_at is not None

    with pytest.raises(InvalidTransition):
        await service.approve(period.id)

    paid = await service.close(period.id, date(2026, 3, 27))
    assert paid.status == PayrollPeriodStatus.PAID
    assert paid.pay_date == date(2026, 3, 27)

    result = await db.execute(
        select(Notification).where(
            Notification.recipient_user_id == cleaner.id,
            Notification.type == NotificationType.PAYROLL,
        )
    )
    notice = result.scalar_one()
    assert "$76.20" in notice.message


async def test_period_api(api, admin_user, manager_user, cleaner_user, cleaner, worked):
    api.login(manager_user)
    created = await api.post("/payroll/periods", json={"start_date": "2026-03-09", "end_date": "2026-03-22"})
    assert created.status_code == 201
    body = created.json()
    assert body["status"] == "pending"
    casey = next(e for e in body["entries"] if e["cleaner_id"] == str(cleaner.id))
    assert casey["cleaner_name"] == "Casey Test"
    assert Decimal(casey["net_pay"]) == Decimal("76.20")

    period_id = body["id"]
    assert (await api.post(f"/payroll/periods/{period_id}/approve")).status_code == 403

    listed = (await api.get("/payroll/periods", params={"period_status": "pending"})).json()
    assert [p["id"] for p in listed] == [period_id]

    api.login(admin_user)
    approved = await api.post(f"/payroll/periods/{period_id}/approve")
    assert approved.json()["status"] == "approved"
    closed = await api.post(f"/payroll/periods/{period_id}/close", json={"pay_date": "2026-03-27"})
    assert closed.status_code == 200
    assert closed.json()["status"] == "paid"
    assert closed.json()["pay_date"] == "2026-03-27"

    again = await api.post(f"/payroll/periods/{period_id}/close")
    assert again.status_code == 409

    api.login(cleaner_user)
    assert (await api.get(f"/payroll/periods/{period_id}")).status_code == 403


async def test_period_dates_are_validated(api, admin_user):
    api.login(admin_user)

    response = await api.post("/payroll/periods", json={"start_date": "2026-03-22", "end_date": "2026-03-09"})

    assert response.status_code == 422
