"""Payroll periods: generate entries from completed jobs, approve, close as paid."""

import logging
from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cleansuite.core.config import get_settings
from cleansuite.core.errors import InvalidTransition, NotFound, ValidationFailed
from cleansuite.core.security import AuthenticatedUser
from cleansuite.models.company import Company, CompanyMembership
from cleansuite.models.enums import (
    ActivityAction,
    CashHandling,
    CompensationStatus,
    JobStatus,
    PayrollPeriodStatus,
)
from cleansuite.models.job import Job
from cleansuite.models.payment import CashCollection
from cleansuite.models.payroll import PayrollEntry, PayrollPeriod
from cleansuite.services.activity import ActivityService
from cleansuite.services.cash import CashReconciliationService, outstanding_cash_kept
from cleansuite.services.notifications import NotificationService
from cleansuite.services.payroll import calculate_pay, group_hours_by_week, statutory_deductions

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

NEXT_STATUS = {
    PayrollPeriodStatus.PENDING: PayrollPeriodStatus.APPROVED,
    PayrollPeriodStatus.APPROVED: PayrollPeriodStatus.PAID,
}


def period_name(start: date, end: date) -> str:
    return f"{start:%b %d, %Y} - {end:%b %d, %Y}"


class PayrollPeriodService:
    def __init__(self, db: AsyncSession, current_user: AuthenticatedUser):
        self.db = db
        self.current_user = current_user
        self.company_id = current_user.company_id
        self.activity = ActivityService.for_user(db, current_user)
        self.notifications = NotificationService(db, current_user.company_id)

    async def get(self, period_id: UUID) -> PayrollPeriod:
        result = await self.db.execute(
            select(PayrollPeriod)
            .options(selectinload(PayrollPeriod.entries).selectinload(PayrollEntry.cleaner))
            .where(
                PayrollPeriod.id == period_id,
                PayrollPeriod.company_id == self.company_id,
            )
            .execution_options(populate_existing=True)
        )
        period = result.scalar_one_or_none()
        if period is None:
            raise NotFound("Payroll period not found")
        return period

    async def list_periods(self, status: Optional[PayrollPeriodStatus] = None) -> list[PayrollPeriod]:
        query = (
            select(PayrollPeriod)
            .options(selectinload(PayrollPeriod.entries).selectinload(PayrollEntry.cleaner))
            .where(PayrollPeriod.company_id == self.company_id)
            .order_by(PayrollPeriod.start_date.desc())
        )
        if status:
            query = query.where(PayrollPeriod.status == status)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def _check_overlap(self, start: date, end: date) -> None:
        result = await self.db.execute(
            select(PayrollPeriod.period_name).where(
                PayrollPeriod.company_id == self.company_id,
                PayrollPeriod.start_date <= end,
                PayrollPeriod.end_date >= start,
            )
        )
        existing = result.scalars().first()
        if existing:
            raise ValidationFailed(
                {"start_date": f"Overlaps payroll period {existing}"},
                "Payroll periods cannot overlap",
            )

    async def _hours_by_cleaner(self, start: date, end: date) -> dict[UUID, tuple[int, dict[date, Decimal]]]:
        result = await self.db.execute(
            select(Job.cleaner_id, Job.scheduled_date, Job.duration_minutes).where(
                Job.company_id == self.company_id,
                Job.status == JobStatus.COMPLETED,
                Job.cleaner_id.is_not(None),
                Job.scheduled_date >= start,
                Job.scheduled_date <= end,
            )
        )
        jobs: dict[UUID, int] = defaultdict(int)
        hours: dict[UUID, dict[date, Decimal]] = defaultdict(lambda: defaultdict(Decimal))
        for cleaner_id, scheduled_date, minutes in result.all():
            jobs[cleaner_id] += 1
            hours[cleaner_id][scheduled_date] += Decimal(minutes or 0) / Decimal(60)
        return {cleaner_id: (jobs[cleaner_id], hours[cleaner_id]) for cleaner_id in jobs}

    async def generate(self, start: date, end: date) -> PayrollPeriod:
        """Create a pending period with one entry per cleaner who completed jobs.

        Approved cash kept by a cleaner in the range is deducted from their
        net pay and settled against the new period.
        """
        await self._check_overlap(start, end)
        worked = await self._hours_by_cleaner(start, end)
        if not worked:
            raise ValidationFailed({"start_date": "No completed jobs in this date range"})

        company = await self.db.get(Company, self.company_id)
        wages_result = await self.db.execute(
            select(CompanyMembership.user_id, CompanyMembership.hourly_wage).where(
                CompanyMembership.company_id == self.company_id,
                CompanyMembership.user_id.in_(list(worked)),
            )
        )
        wages = dict(wages_result.all())
        fallback_wage = get_settings().default_cleaner_wage

        period = PayrollPeriod(
            company_id=self.company_id,
            period_name=period_name(start, end),
            start_date=start,
            end_date=end,
            status=PayrollPeriodStatus.PENDING,
            created_by_id=self.current_user.db_user_id,
            entries=[],
        )
        for cleaner_id, (jobs_counted, hours_by_day) in worked.items():
            wage = wages.get(cleaner_id) or fallback_wage
            cash = await outstanding_cash_kept(self.db, self.company_id, cleaner_id, start, end)
            pay = calculate_pay(group_hours_by_week(hours_by_day), company.province, Decimal(wage), cash)
            deductions = statutory_deductions(pay.gross_pay)
            period.entries.append(PayrollEntry(
                cleaner_id=cleaner_id,
                jobs_counted=jobs_counted,
                regular_hours=pay.regular_hours.quantize(CENT, rounding=ROUND_HALF_UP),
                overtime_hours=pay.overtime_hours.quantize(CENT, rounding=ROUND_HALF_UP),
                hourly_rate=pay.hourly_wage,
                overtime_multiplier=pay.overtime_multiplier,
                regular_pay=pay.regular_pay,
                overtime_pay=pay.overtime_pay,
                gross_pay=pay.gross_pay,
                cpp_deduction=deductions.cpp,
                ei_deduction=deductions.ei,
                tax_deduction=deductions.tax,
                cash_deduction=cash,
                net_pay=pay.gross_pay - deductions.total - cash,
            ))

        period.total_hours = sum((e.total_hours for e in period.entries), Decimal("0"))
        period.total_gross = sum((e.gross_pay for e in period.entries), Decimal("0"))
        period.total_deductions = sum((e.total_deductions for e in period.entries), Decimal("0"))
        period.total_net = sum((e.net_pay for e in period.entries), Decimal("0"))
        self.db.add(period)
        await self.db.flush()

        await self.activity.log(
            ActivityAction.PAYROLL_CREATED,
            f"Generated payroll {period.period_name} for {len(period.entries)} cleaner(s)",
            entity_type="payroll_period",
            entity_id=period.id,
            entity_name=period.period_name,
            details={"total_gross": str(period.total_gross), "total_net": str(period.total_net)},
        )
        await self.db.commit()

        await self._settle_cash(period, list(worked))
        logger.info("Payroll period %s generated with %d entries", period.id, len(period.entries))
        return await self.get(period.id)

    async def _settle_cash(self, period: PayrollPeriod, cleaner_ids: list[UUID]) -> None:
        result = await self.db.execute(
            select(CashCollection.id).where(
                CashCollection.company_id == self.company_id,
                CashCollection.cleaner_id.in_(cleaner_ids),
                CashCollection.compensation_status == CompensationStatus.APPROVED,
                CashCollection.cash_handling == CashHandling.KEPT_BY_CLEANER,
                CashCollection.service_date >= period.start_date,
                CashCollection.service_date <= period.end_date,
            )
        )
        cash = CashReconciliationService(self.db, self.current_user)
        for collection_id in result.scalars().all():
            await cash.settle(collection_id, period.id)

    def _advance(self, period: PayrollPeriod, target: PayrollPeriodStatus) -> None:
        if NEXT_STATUS.get(period.status) != target:
            raise InvalidTransition("payroll period", period.status.value, target.value)
        period.status = target

    async def approve(self, period_id: UUID) -> PayrollPeriod:
        period = await self.get(period_id)
        self._advance(period, PayrollPeriodStatus.APPROVED)
        period.approved_by = self.current_user.db_user_id
        period.approved_at = datetime.utcnow()

        await self.activity.log(
            ActivityAction.PAYROLL_APPROVED,
            f"Approved payroll {period.period_name}",
            entity_type="payroll_period",
            entity_id=period.id,
            entity_name=period.period_name,
        )
        await self.db.commit()
        return period

    async def close(self, period_id: UUID, pay_date: Optional[date] = None) -> PayrollPeriod:
        """Mark an approved period paid. Each cleaner is notified of their net pay."""
        period = await self.get(period_id)
        self._advance(period, PayrollPeriodStatus.PAID)
        period.pay_date = pay_date or date.today()

        await self.activity.log(
            ActivityAction.PAYROLL_PAID,
            f"Paid payroll {period.period_name} (${period.total_net:.2f})",
            entity_type="payroll_period",
            entity_id=period.id,
            entity_name=period.period_name,
            details={"pay_date": period.pay_date.isoformat()},
        )
        for entry in period.entries:
            await self.notifications.payroll_paid(entry.cleaner_id, period.period_name, entry.net_pay, period.id)
        await self.db.commit()
        return period
