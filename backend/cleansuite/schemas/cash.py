"""Cash collection schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from cleansuite.models.enums import CashHandling, CompensationStatus
from cleansuite.schemas.base import BaseSchema, IDMixin


class CashDisputeRequest(BaseSchema):
    reason: Optional[str] = None


class CashSettleRequest(BaseSchema):
    payroll_period_id: Optional[UUID] = None


class CashCollectionResponse(BaseSchema, IDMixin):
    job_id: UUID
    client_id: UUID
    cleaner_id: UUID
    amount: Decimal
    service_date: date
    cash_handling: CashHandling
    notes: Optional[str] = None
    compensation_status: CompensationStatus
    approved_by: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    disputed_by: Optional[UUID] = None
    disputed_at: Optional[datetime] = None
    dispute_reason: Optional[str] = None
    settled_at: Optional[datetime] = None
    payroll_period_id: Optional[UUID] = None
    created_at: datetime


class CashSummaryResponse(BaseSchema):
    pending: Decimal
    approved: Decimal
    disputed: Decimal
    settled: Decimal
