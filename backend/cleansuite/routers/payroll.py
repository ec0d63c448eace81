"""Payroll router - provincial overtime rules, pay previews and payroll periods."""

from collections import defaultdict
from dataclasses import asdict
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import Field, model_validator
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cleansuite.core.database import get_db
from cleansuite.core.errors import ValidationFailed
from cleansuite.core.security import AuthenticatedUser, require_admin, require_admin_or_manager
from cleansuite.models.company import Company, CompanyMembership
from cleansuite.models.enums import JobStatus, PayrollPeriodStatus, Province
from cleansuite.models.job import Job
from cleansuite.models.payroll import PayrollEntry, PayrollPeriod
from cleansuite.schemas.base import BaseSchema
from cleansuite.services.cash import outstanding_cash_kept
from cleansuite.services.payroll import OVERTIME_RULES, calculate_pay, group_hours_by_week
from cleansuite.services.payroll_periods import PayrollPeriodService

router = APIRouter(prefix="/payroll", tags=["payroll"])


# === Schemas ===

class OvertimeRuleResponse(BaseSchema):
    province: Province
    daily_threshold: Decimal
    weekly_threshold: Decimal
    multiplier: Decimal


class PayPreviewRequest(BaseSchema):
    cleaner_id: UUID
    period_start: date
    period_end: date
    hourly_wage: Optional[Decimal] = Field(None, gt=0)

    @model_validator(mode="after")
    def check_period(self):
        if self.period_end < self.period_start:
            raise ValueError("period_end must not be before period_start")
        return self


class PayPreviewResponse(BaseSchema):
    cleaner_id: UUID
    period_start: date
    period_end: date
    province: Province
    jobs_counted: int
    regular_hours: Decimal
    overtime_hours: Decimal
    hourly_wage: Decimal
    overtime_multiplier: Decimal
    regular_pay: Decimal
    overtime_pay: Decimal
    gross_pay: Decimal
    cash_deduction: Decimal
    net_pay: Decimal


class PayrollPeriodCreate(BaseSchema):
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def check_period(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class PayrollClose(BaseSchema):
    pay_date: Optional[date] = None


class PayrollEntryResponse(BaseSchema):
    id: UUID
    cleaner_id: UUID
    cleaner_name: Optional[str] = None
    jobs_counted: int
    regular_hours: Decimal
    overtime_hours: Decimal
    hourly_rate: Decimal
    overtime_multiplier: Decimal
    regular_pay: Decimal
    overtime_pay: Decimal
    gross_pay: Decimal
    cpp_deduction: Decimal
    ei_deduction: Decimal
    tax_deduction: Decimal
    cash_deduction: Decimal
    net_pay: Decimal


class PayrollPeriodResponse(BaseSchema):
    id: UUID
    period_name: str
    start_date: date
    end_date: date
    status: PayrollPeriodStatus
    total_hours: Decimal
    total_gross: Decimal
    total_deductions: Decimal
    total_net: Decimal
    approved_by: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    pay_date: Optional[date] = None
    created_at: datetime
    entries: list[PayrollEntryResponse] = []


def entry_response(entry: PayrollEntry) -> PayrollEntryResponse:
    response = PayrollEntryResponse.model_validate(entry)
    response.cleaner_name = entry.cleaner.display_name if entry.cleaner else None
    return response


def period_response(period: PayrollPeriod) -> PayrollPeriodResponse:
    response = PayrollPeriodResponse.model_validate(period)
    response.entries = [entry_response(e) for e in period.entries]
    return response


# === Endpoints ===

@router.get("/overtime-rules", response_model=List[OvertimeRuleResponse])
async def overtime_rules(
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    return [
        OvertimeRuleResponse(
            province=province,
            daily_threshold=rule.daily_threshold,
            weekly_threshold=rule.weekly_threshold,
            multiplier=rule.multiplier,
        )
        for province, rule in OVERTIME_RULES.items()
    ]


@router.post("/preview", response_model=PayPreviewResponse)
async def preview_pay(
    data: PayPreviewRequest,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    """Preview a cleaner's pay for a period from their completed jobs.

    Approved cash the cleaner kept and that is not yet settled is deducted.
    """
    result = await db.execute(
        select(CompanyMembership).where(
            CompanyMembership.company_id == current_user.company_id,
            CompanyMembership.user_id == data.cleaner_id,
        )
    )
    membership = result.scalar_one_or_none()
    if not membership:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cleaner not found")

    hourly_wage = data.hourly_wage or membership.hourly_wage
    if not hourly_wage:
        raise ValidationFailed({"hourly_wage": "No hourly wage set for this cleaner"})

    company = await db.get(Company, current_user.company_id)

    jobs_result = await db.execute(
        select(Job.scheduled_date, Job.duration_minutes).where(
            Job.company_id == current_user.company_id,
            Job.cleaner_id == data.cleaner_id,
            Job.status == JobStatus.COMPLETED,
            Job.scheduled_date >= data.period_start,
            Job.scheduled_date <= data.period_end,
        )
    )
    rows = jobs_result.all()
    hours_by_day: dict[date, Decimal] = defaultdict(Decimal)
    for scheduled_date, minutes in rows:
        hours_by_day[scheduled_date] += Decimal(minutes or 0) / Decimal(60)

    deduction = await outstanding_cash_kept(
        db, current_user.company_id, data.cleaner_id, data.period_start, data.period_end
    )
    preview = calculate_pay(
        group_hours_by_week(hours_by_day),
        company.province,
        Decimal(hourly_wage),
        cash_deduction=deduction,
    )

    return PayPreviewResponse(
        cleaner_id=data.cleaner_id,
        period_start=data.period_start,
        period_end=data.period_end,
        province=company.province,
        jobs_counted=len(rows),
        **asdict(preview),
    )


# === Payroll periods ===

@router.get("/periods", response_model=List[PayrollPeriodResponse])
async def list_periods(
    period_status: Optional[PayrollPeriodStatus] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    periods = await PayrollPeriodService(db, current_user).list_periods(period_status)
    return [period_response(p) for p in periods]


@router.post("/periods", response_model=PayrollPeriodResponse, status_code=status.HTTP_201_CREATED)
async def generate_period(
    data: PayrollPeriodCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    """Generate a pending period from completed jobs in the date range.

    Approved cash each cleaner kept in the range is deducted and settled.
    """
    period = await PayrollPeriodService(db, current_user).generate(data.start_date, data.end_date)
    return period_response(period)


@router.get("/periods/{period_id}", response_model=PayrollPeriodResponse)
async def get_period(
    period_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin_or_manager),
):
    return period_response(await PayrollPeriodService(db, current_user).get(period_id))


@router.post("/periods/{period_id}/approve", response_model=PayrollPeriodResponse)
async def approve_period(
    period_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return period_response(await PayrollPeriodService(db, current_user).approve(period_id))


@router.post("/periods/{period_id}/close", response_model=PayrollPeriodResponse)
async def close_period(
    period_id: UUID,
    data: Optional[PayrollClose] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Mark an approved period paid."""
    pay_date = data.pay_date if data else None
    return period_response(await PayrollPeriodService(db, current_user).close(period_id, pay_date))
