"""Scheduled job and completion schemas."""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from pydantic import Field

from cleansuite.models.enums import (
    CashHandling,
    CompensationStatus,
    JobStatus,
    PaymentMethod,
    PaymentReceiver,
    PhotoPurpose,
)
from cleansuite.schemas.base import BaseSchema, IDMixin, PresignRequest, TimestampMixin


class JobCreate(BaseSchema):
    client_id: UUID
    location_id: Optional[UUID] = None
    cleaner_id: Optional[UUID] = None
    job_type: str = Field("standard", max_length=50)
    scheduled_date: date
    start_time: Optional[time] = None
    duration_minutes: Optional[int] = Field(None, gt=0, le=24 * 60)
    notes: Optional[str] = None


class JobUpdate(BaseSchema):
    location_id: Optional[UUID] = None
    cleaner_id: Optional[UUID] = None
    job_type: Optional[str] = Field(None, max_length=50)
    scheduled_date: Optional[date] = None
    start_time: Optional[time] = None
    duration_minutes: Optional[int] = Field(None, gt=0, le=24 * 60)
    notes: Optional[str] = None


class JobCancel(BaseSchema):
    reason: Optional[str] = None


class ChecklistEntry(BaseSchema):
    item: str = Field(..., min_length=1, max_length=255)
    completed: bool = False


class PaymentInput(BaseSchema):
    """Raw payment fields; checked together so every error is reported at once."""

    method: Optional[str] = None
    amount: Optional[Any] = None
    received_by: Optional[str] = None
    payment_date: Optional[date] = None
    reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class JobCompletionRequest(BaseSchema):
    before_photos: list[str] = []
    after_photos: list[str] = []
    checklist: list[ChecklistEntry] = []
    notes: Optional[str] = None
    payment: PaymentInput = PaymentInput()


class PhotoPresignRequest(PresignRequest):
    purpose: PhotoPurpose


class JobResponse(BaseSchema, IDMixin, TimestampMixin):
    company_id: UUID
    client_id: UUID
    client_name: Optional[str] = None
    location_id: Optional[UUID] = None
    cleaner_id: Optional[UUID] = None
    estimate_id: Optional[UUID] = None
    job_type: str
    scheduled_date: date
    start_time: Optional[time] = None
    duration_minutes: Optional[int] = None
    status: JobStatus
    checklist: Optional[list[ChecklistEntry]] = None
    before_photos: Optional[list[str]] = None
    after_photos: Optional[list[str]] = None
    notes: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    payment_amount: Optional[Decimal] = None
    payment_received_by: Optional[PaymentReceiver] = None
    payment_date: Optional[date] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None


class ChecklistTemplateResponse(BaseSchema):
    items: list[ChecklistEntry]


class ReceiptSummary(BaseSchema):
    id: UUID
    receipt_number: str
    total: Decimal


class CashCollectionSummary(BaseSchema):
    id: UUID
    amount: Decimal
    cash_handling: CashHandling
    compensation_status: CompensationStatus


class InvoiceOutcome(BaseSchema):
    created: int
    skipped: int
    failed: int
    invoice_ids: list[UUID] = []
    message: str


class JobCompletionResponse(BaseSchema):
    job: JobResponse
    receipt: Optional[ReceiptSummary] = None
    cash_collection: Optional[CashCollectionSummary] = None
    invoice: Optional[InvoiceOutcome] = None
