import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select

from cleansuite.core.errors import InvalidTransition, NotFound, ValidationFailed
from cleansuite.models.company import Company
from cleansuite.models.enums import (
    CashHandling,
    CompanyRole,
    CompensationStatus,
    JobStatus,
    NotificationType,
    PaymentMethod,
)
from cleansuite.models.notification import Notification
from cleansuite.models.payment import CashCollection
from cleansuite.services.cash import CashReconciliationService, can_transition, outstanding_cash_kept
from conftest import as_user, seed_job

PENDING = CompensationStatus.PENDING
APPROVED = CompensationStatus.APPROVED
DISPUTED = CompensationStatus.DISPUTED
SETTLED = CompensationStatus.SETTLED


@pytest.mark.parametrize(
    "current, target, allowed",
    [
        (PENDING, APPROVED, True),
        (PENDING, DISPUTED, True),
        (APPROVED, SETTLED, True),
        (APPROVED, DISPUTED, False),
        (APPROVED, PENDING, False),
        (DISPUTED, APPROVED, False),
        (DISPUTED, PENDING, False),
        (SETTLED, APPROVED, False),
        (PENDING, SETTLED, False),
    ],
)
def test_transition_table(current, target, allowed):
    assert can_transition(current, target) is allowed


async def _collection(
    db, company, client, cleaner,
    amount="80.00",
    status=PENDING,
    handling=CashHandling.KEPT_BY_CLEANER,
    service_date=date(2026, 3, 10),
):
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
        compensation_status=status,
    )
    db.add(collection)
    await db.commit()
    return collection


async def test_approve_records_reviewer_and_notifies_cleaner(db, company, client_record, cleaner, manager_user):
    collection = await _collection(db, company, client_record, cleaner)

    approved = await CashReconciliationService(db, manager_user).approve(collection.id)

    assert approved.compensation_status == APPROVED
    assert approved.approved_by == manager_user.db_user_id
    assert approved.approved_at is not None

    notification = (await db.execute(select(Notification))).scalar_one()
    assert notification.recipient_user_id == cleaner.id
    assert notification.type == NotificationType.FINANCIAL


async def test_dispute_requires_reason(db, company, client_record, cleaner, manager_user):
    collection = await _collection(db, company, client_record, cleaner)
    service = CashReconciliationService(db, manager_user)

    for reason in (None, "", "   "):
        with pytest.raises(ValidationFailed) as exc_info:
            await service.dispute(collection.id, reason)
        assert "reason" in exc_info.value.errors

    assert collection.compensation_status == PENDING


async def test_dispute_stores_reason(db, company, client_record, cleaner, manager_user):
    collection = await _collection(db, company, client_record, cleaner)

    disputed = await CashReconciliationService(db, manager_user).dispute(collection.id, " Amount short by $10 ")

    assert disputed.compensation_status == DISPUTED
    assert disputed.dispute_reason == "Amount short by $10"
    assert disputed.disputed_by == manager_user.db_user_id


async def test_approved_collection_cannot_be_disputed(db, company, client_record, cleaner, manager_user):
    collection = await _collection(db, company, client_record, cleaner, status=APPROVED)

    with pytest.raises(InvalidTransition):
        await CashReconciliationService(db, manager_user).dispute(collection.id, "Too late")


async def test_disputed_collection_is_final(db, company, client_record, cleaner, manager_user):
    collection = await _collection(db, company, client_record, cleaner, status=DISPUTED)
    service = CashReconciliationService(db, manager_user)

    with pytest.raises(InvalidTransition):
        await service.approve(collection.id)
    with pytest.raises(InvalidTransition):
        await service.settle(collection.id)


async def test_settle_only_after_approval(db, company, client_record, cleaner, manager_user):
    collection = await _collection(db, company, client_record, cleaner)
    service = CashReconciliationService(db, manager_user)

    with pytest.raises(InvalidTransition):
        await service.settle(collection.id)

    await service.approve(collection.id)
    settled = await service.settle(collection.id)
    assert settled.compensation_status == SETTLED
    assert settled.settled_at is not None


async def test_settle_rejects_unknown_payroll_period(db, company, client_record, cleaner, manager_user):
    collection = await _collection(db, company, client_record, cleaner, status=APPROVED)
    service = CashReconciliationService(db, manager_user)

    with pytest.raises(ValidationFailed) as exc:
        await service.settle(collection.id, uuid.uuid4())
    assert "payroll_period_id" in exc.value.errors

    refreshed = await service.get(collection.id)
    assert refreshed.compensation_status == APPROVED


async def test_other_company_collection_is_not_found(db, company, client_record, cleaner, manager_user):
    other = Company(trade_name="Other Co")
    db.add(other)
    await db.commit()
    collection = await _collection(db, company, client_record, cleaner)

    outsider = as_user(cleaner, other, CompanyRole.ADMIN)
    with pytest.raises(NotFound):
        await CashReconciliationService(db, outsider).approve(collection.id)


async def test_summary_and_list_filters(db, company, client_record, cleaner, manager_user):
    await _collection(db, company, client_record, cleaner, amount="50.00")
    await _collection(db, company, client_record, cleaner, amount="25.50", status=APPROVED,
                      service_date=date(2026, 3, 20))
    await _collection(db, company, client_record, cleaner, amount="10.00", status=DISPUTED,
                      service_date=date(2026, 4, 2))
    service = CashReconciliationService(db, manager_user)

    totals = await service.summary()
    assert totals == {
        "pending": Decimal("50.00"),
        "approved": Decimal("25.50"),
        "disputed": Decimal("10.00"),
        "settled": Decimal("0.00"),
    }

    march = await service.list_collections(date_from=date(2026, 3, 1), date_to=date(2026, 3, 31))
    assert sorted(c.amount for c in march) == [Decimal("25.50"), Decimal("50.00")]

    pending = await service.list_collections(status=PENDING)
    assert [c.amount for c in pending] == [Decimal("50.00")]


async def test_outstanding_cash_counts_approved_kept_cash_only(db, company, client_record, cleaner):
    await _collection(db, company, client_record, cleaner, amount="40.00", status=APPROVED)
    await _collection(db, company, client_record, cleaner, amount="15.00", status=APPROVED,
                      handling=CashHandling.DELIVERED_TO_OFFICE)
    await _collection(db, company, client_record, cleaner, amount="30.00", status=PENDING)
    await _collection(db, company, client_record, cleaner, amount="20.00", status=SETTLED)

    assert await outstanding_cash_kept(db, company.id, cleaner.id) == Decimal("40.00")
