"""Invoice schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import Field

from cleansuite.models.enums import InvoiceStatus, PaymentMethod
from cleansuite.schemas.base import BaseSchema, IDMixin, TimestampMixin


class InvoiceGenerateRequest(BaseSchema):
    job_ids: list[UUID] = Field(..., min_length=1)


class InvoiceGenerateResponse(BaseSchema):
    created: int
    skipped: int
    failed: int
    invoice_ids: list[UUID] = []
    message: str


class InvoiceMarkPaid(BaseSchema):
    payment_method: PaymentMethod
    payment_amount: Optional[Decimal] = Field(None, gt=0)
    payment_date: Optional[date] = None
    payment_reference: Optional[str] = Field(None, max_length=100)


class PendingJobResponse(BaseSchema):
    """A completed job awaiting an invoice."""

    job_id: UUID
    client_id: UUID
    client_name: str
    cleaner_name: Optional[str] = None
    service_date: date
    service_duration: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    payment_amount: Optional[Decimal] = None


class InvoiceResponse(BaseSchema, IDMixin, TimestampMixin):
    client_id: UUID
    job_id: Optional[UUID] = None
    cleaner_id: Optional[UUID] = None
    location_id: Optional[UUID] = None
    invoice_number: str
    service_date: Optional[date] = None
    service_duration: Optional[str] = None
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal
    status: InvoiceStatus
    due_date: Optional[date] = None
    notes: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    payment_amount: Optional[Decimal] = None
    payment_date: Optional[date] = None
    payment_reference: Optional[str] = None
    sent_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None


class ReceiptResponse(BaseSchema, IDMixin):
    job_id: UUID
    client_id: UUID
    client_name: Optional[str] = None
    cleaner_id: Optional[UUID] = None
    cleaner_name: Optional[str] = None
    receipt_number: str
    payment_method: PaymentMethod
    amount: Decimal
    tax_amount: Decimal
    total: Decimal
    service_date: date
    service_description: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
