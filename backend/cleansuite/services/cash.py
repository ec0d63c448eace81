"""Cash collection reconciliation (approve, dispute, settle)."""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cleansuite.core.errors import InvalidTransition, NotFound, ValidationFailed
from cleansuite.core.security import AuthenticatedUser
from cleansuite.models.enums import ActivityAction, CashHandling, CompensationStatus
from cleansuite.models.payment import CashCollection
from cleansuite.models.payroll import PayrollPeriod
from cleansuite.services.activity import ActivityService
from cleansuite.services.notifications import NotificationService

logger = logging.getLogger(__name__)

# Nothing ever returns to pending.
ALLOWED_TRANSITIONS: dict[CompensationStatus, frozenset[CompensationStatus]] = {
    CompensationStatus.PENDING: frozenset({CompensationStatus.APPROVED, CompensationStatus.DISPUTED}),
    CompensationStatus.APPROVED: frozenset({CompensationStatus.SETTLED}),
    CompensationStatus.DISPUTED: frozenset(),
    CompensationStatus.SETTLED: frozenset(),
}


def can_transition(current: CompensationStatus, target: CompensationStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


class CashReconciliationService:
    """Reviews cash collected by cleaners for one company."""

    def __init__(self, db: AsyncSession, current_user: AuthenticatedUser):
        self.db = db
        self.current_user = current_user
        self.company_id = current_user.company_id
        self.activity = ActivityService.for_user(db, current_user)
        self.notifications = NotificationService(db, current_user.company_id)

    async def get(self, collection_id: UUID) -> CashCollection:
        result = await self.db.execute(
            select(CashCollection).where(
                CashCollection.id == collection_id,
                CashCollection.company_id == self.company_id,
            )
        )
        collection = result.scalar_one_or_none()
        if collection is None:
            raise NotFound("Cash collection not found")
        return collection

    async def list_collections(
        self,
        status: Optional[CompensationStatus] = None,
        cleaner_id: Optional[UUID] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[CashCollection]:
        query = select(CashCollection).where(CashCollection.company_id == self.company_id)
        if status:
            query = query.where(CashCollection.compensation_status == status)
        if cleaner_id:
            query = query.where(CashCollection.cleaner_id == cleaner_id)
        if date_from:
            query = query.where(CashCollection.service_date >= date_from)
        if date_to:
            query = query.where(CashCollection.service_date <= date_to)
        result = await self.db.execute(
            query.order_by(CashCollection.service_date.desc(), CashCollection.created_at.desc())
        )
        return list(result.scalars().all())

    async def summary(self, cleaner_id: Optional[UUID] = None) -> dict[str, Decimal]:
        """Total amount per compensation status."""
        query = (
            select(CashCollection.compensation_status, func.sum(CashCollection.amount))
            .where(CashCollection.company_id == self.company_id)
            .group_by(CashCollection.compensation_status)
        )
        if cleaner_id:
            query = query.where(CashCollection.cleaner_id == cleaner_id)
        result = await self.db.execute(query)

        totals = {s.value: Decimal("0.00") for s in CompensationStatus}
        for status, amount in result.all():
            totals[status.value] = Decimal(str(amount or 0)).quantize(Decimal("0.01"))
        return totals

    def _transition(self, collection: CashCollection, target: CompensationStatus) -> None:
        current = collection.compensation_status
        if not can_transition(current, target):
            raise InvalidTransition("cash collection", current.value, target.value)
        collection.compensation_status = target

    async def approve(self, collection_id: UUID) -> CashCollection:
        collection = await self.get(collection_id)
        self._transition(collection, CompensationStatus.APPROVED)
        collection.approved_by = self.current_user.db_user_id
        collection.approved_at = datetime.utcnow()

        await self.activity.log(
            ActivityAction.CASH_APPROVED,
            f"Approved cash collection of ${collection.amount:.2f}",
            entity_type="cash_collection",
            entity_id=collection.id,
            details={"cleaner_id": str(collection.cleaner_id), "amount": str(collection.amount)},
        )
        await self.notifications.cash_approved(collection.cleaner_id, collection.amount, collection.id)
        await self.db.commit()
        return collection

    async def dispute(self, collection_id: UUID, reason: Optional[str]) -> CashCollection:
        reason = (reason or "").strip()
        if not reason:
            raise ValidationFailed({"reason": "A reason is required to dispute a cash collection"})

        collection = await self.get(collection_id)
        self._transition(collection, CompensationStatus.DISPUTED)
        collection.disputed_by = self.current_user.db_user_id
        collection.disputed_at = datetime.utcnow()
        collection.dispute_reason = reason

        await self.activity.log(
            ActivityAction.CASH_DISPUTED,
            f"Disputed cash collection of ${collection.amount:.2f}: {reason}",
            entity_type="cash_collection",
            entity_id=collection.id,
            details={"cleaner_id": str(collection.cleaner_id), "reason": reason},
        )
        await self.notifications.cash_disputed(
            collection.cleaner_id, collection.amount, reason, collection.id
        )
        await self.db.commit()
        return collection

    async def settle(self, collection_id: UUID, payroll_period_id: Optional[UUID] = None) -> CashCollection:
        """Mark approved cash as deducted in a payroll period."""
        collection = await self.get(collection_id)
        if payroll_period_id is not None:
            period = await self.db.get(PayrollPeriod, payroll_period_id)
            if period is None or period.company_id != self.company_id:
                raise ValidationFailed({"payroll_period_id": "Payroll period not found"})
        self._transition(collection, CompensationStatus.SETTLED)
        collection.settled_at = datetime.utcnow()
        collection.payroll_period_id = payroll_period_id

        await self.activity.log(
            ActivityAction.CASH_COMPENSATION_SETTLED,
            f"Settled cash collection of ${collection.amount:.2f} in payroll",
            entity_type="cash_collection",
            entity_id=collection.id,
            details={"payroll_period_id": str(payroll_period_id) if payroll_period_id else None},
        )
        await self.db.commit()
        logger.info("Cash collection %s settled", collection.id)
        return collection


async def outstanding_cash_kept(
    db: AsyncSession,
    company_id: UUID,
    cleaner_id: UUID,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> Decimal:
    """Approved, unsettled cash the cleaner kept; deducted from their pay."""
    query = select(func.coalesce(func.sum(CashCollection.amount), 0)).where(
        CashCollection.company_id == company_id,
        CashCollection.cleaner_id == cleaner_id,
        CashCollection.compensation_status == CompensationStatus.APPROVED,
        CashCollection.cash_handling == CashHandling.KEPT_BY_CLEANER,
    )
    if date_from:
        query = query.where(CashCollection.service_date >= date_from)
    if date_to:
        query = query.where(CashCollection.service_date <= date_to)
    result = await db.execute(query)
    return Decimal(str(result.scalar_one() or 0)).quantize(Decimal("0.01"))
