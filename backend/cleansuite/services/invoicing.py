"""Invoice generation for completed jobs.

Jobs are processed one at a time and each one commits or rolls back on its own,
so a failure never aborts the rest of the batch. Duplicate prevention is a
create-if-absent insert against the (company_id, job_id) unique constraint.
"""

import logging
import re
import secrets
import time
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cleansuite.core.config import get_settings
from cleansuite.core.errors import InvalidTransition
from cleansuite.models.enums import ActivityAction, InvoiceStatus, JobStatus, PaymentMethod
from cleansuite.models.invoice import Invoice
from cleansuite.models.job import Job
from cleansuite.services.activity import ActivityService
from cleansuite.services.company_config import CompanyConfigSnapshot, load_company_config
from cleansuite.services.notifications import NotificationService

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
MAX_NUMBER_ATTEMPTS = 3

_NON_NUMERIC = re.compile(r"[^0-9.]")


class ItemOutcome(str, Enum):
    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"


def parse_duration_hours(duration: Optional[str], default: Optional[float] = None) -> Decimal:
    """Hours from a duration label such as ``"2.5h"``.

    Anything that does not parse to a positive number falls back to the default.
    """
    if default is None:
        default = get_settings().default_job_duration_hours
    fallback = Decimal(str(default))
    if not duration:
        return fallback
    cleaned = _NON_NUMERIC.sub("", str(duration))
    try:
        hours = Decimal(cleaned)
    except InvalidOperation:
        return fallback
    return hours if hours > 0 else fallback


def generate_invoice_number(
    issued_on: date, timestamp_ms: int, random_part: int, sequence: int
) -> str:
    """``INV-<yyyymmdd>-<last 4 of ms timestamp><3 digit random><batch sequence>``."""
    return f"INV-{issued_on:%Y%m%d}-{str(timestamp_ms)[-4:]}{random_part:03d}{sequence}"


def compute_totals(hours: Decimal, hourly_rate: Decimal, tax_rate: Decimal) -> tuple[Decimal, Decimal, Decimal]:
    """Return (subtotal, tax_amount, total) rounded to cents."""
    subtotal = (hours * Decimal(hourly_rate)).quantize(CENT, rounding=ROUND_HALF_UP)
    tax_amount = (subtotal * Decimal(tax_rate) / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)
    return subtotal, tax_amount, subtotal + tax_amount


@dataclass
class InvoiceBatchResult:
    created: int = 0
    skipped: int = 0
    failed: int = 0
    invoice_ids: list[uuid.UUID] = field(default_factory=list)

    @property
    def message(self) -> str:
        if self.skipped > 0:
            text = f"{self.created} invoice(s) generated, {self.skipped} already existed"
        else:
            text = f"{self.created} invoice(s) generated successfully"
        if self.failed:
            text += f", {self.failed} failed"
        return text


INVOICE_TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.SENT, InvoiceStatus.PAID, InvoiceStatus.CANCELLED}),
    InvoiceStatus.SENT: frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED}),
    InvoiceStatus.PAID: frozenset(),
    InvoiceStatus.CANCELLED: frozenset(),
}


def change_invoice_status(invoice: Invoice, target: InvoiceStatus) -> None:
    if target not in INVOICE_TRANSITIONS[invoice.status]:
        raise InvalidTransition("invoice", invoice.status.value, target.value)
    invoice.status = target
    if target == InvoiceStatus.SENT:
        invoice.sent_at = datetime.utcnow()
    elif target == InvoiceStatus.PAID:
        invoice.paid_at = datetime.utcnow()


class InvoiceService:
    """Generates invoices for one company."""

    def __init__(
        self,
        db: AsyncSession,
        company_id: uuid.UUID,
        activity: Optional[ActivityService] = None,
        notifications: Optional[NotificationService] = None,
    ):
        self.db = db
        self.company_id = company_id
        self.activity = activity or ActivityService(db, company_id)
        self.notifications = notifications or NotificationService(db, company_id)

    async def pending_jobs(self) -> list[Job]:
        """Completed jobs of the company that have no invoice yet."""
        invoiced = select(Invoice.job_id).where(
            Invoice.company_id == self.company_id,
            Invoice.job_id.is_not(None),
        )
        result = await self.db.execute(
            select(Job)
            .options(selectinload(Job.client), selectinload(Job.cleaner))
            .where(
                Job.company_id == self.company_id,
                Job.status == JobStatus.COMPLETED,
                Job.id.not_in(invoiced),
            )
            .order_by(Job.scheduled_date.desc())
        )
        return list(result.scalars().all())

    def _insert(self):
        dialect = self.db.get_bind().dialect.name
        return postgresql.insert if dialect == "postgresql" else sqlite.insert

    async def insert_if_absent(self, values: dict[str, Any]) -> Optional[uuid.UUID]:
        """Insert an invoice unless a conflicting row exists.

        Returns the new invoice id, or None when a unique constraint was hit.
        """
        invoice_id = values.setdefault("id", uuid.uuid4())
        stmt = self._insert()(Invoice).values(**values).on_conflict_do_nothing()
        result = await self.db.execute(stmt)
        if result.rowcount == 0:
            return None
        return invoice_id

    async def _existing_invoice_id(self, job_id: uuid.UUID) -> Optional[uuid.UUID]:
        result = await self.db.execute(
            select(Invoice.id).where(
                Invoice.company_id == self.company_id,
                Invoice.job_id == job_id,
            )
        )
        return result.scalar_one_or_none()

    async def generate(
        self,
        job_ids: Iterable[uuid.UUID],
        config: Optional[CompanyConfigSnapshot] = None,
    ) -> InvoiceBatchResult:
        """Invoice the given jobs, skipping cash-paid and already-invoiced ones."""
        if config is None:
            config = await load_company_config(self.db, self.company_id)
        settings = get_settings()

        batch = InvoiceBatchResult()
        timestamp_ms = int(time.time() * 1000)
        random_part = secrets.randbelow(1000)

        for job_id in dict.fromkeys(job_ids):
            try:
                outcome, invoice_id = await self._generate_one(
                    job_id, config, timestamp_ms, random_part, batch.created, settings.invoice_due_days
                )
            except SQLAlchemyError:
                await self.db.rollback()
                logger.exception("Invoice generation failed for job %s", job_id)
                batch.failed += 1
                continue

            if outcome == ItemOutcome.CREATED:
                batch.created += 1
                batch.invoice_ids.append(invoice_id)
            elif outcome == ItemOutcome.SKIPPED:
                batch.skipped += 1
            else:
                batch.failed += 1

        logger.info(
            "Invoice batch for company %s: created=%d skipped=%d failed=%d",
            self.company_id, batch.created, batch.skipped, batch.failed,
        )
        return batch

    async def _generate_one(
        self,
        job_id: uuid.UUID,
        config: CompanyConfigSnapshot,
        timestamp_ms: int,
        random_part: int,
        sequence: int,
        due_days: int,
    ) -> tuple[ItemOutcome, Optional[uuid.UUID]]:
        result = await self.db.execute(
            select(Job)
            .options(selectinload(Job.client))
            .where(Job.id == job_id, Job.company_id == self.company_id)
        )
        job = result.scalar_one_or_none()
        if job is None or job.status != JobStatus.COMPLETED:
            logger.warning("Job %s is not a completed job of company %s", job_id, self.company_id)
            return ItemOutcome.FAILED, None

        if job.payment_method == PaymentMethod.CASH:
            return ItemOutcome.SKIPPED, None

        if await self._existing_invoice_id(job.id):
            return ItemOutcome.SKIPPED, None

        hours = parse_duration_hours(job.service_duration)
        subtotal, tax_amount, total = compute_totals(hours, config.hourly_rate, config.tax_rate)
        today = datetime.utcnow().date()

        values = {
            "company_id": self.company_id,
            "client_id": job.client_id,
            "job_id": job.id,
            "cleaner_id": job.cleaner_id,
            "location_id": job.location_id,
            "service_date": job.scheduled_date,
            "service_duration": job.service_duration,
            "subtotal": subtotal,
            "tax_rate": Decimal(config.tax_rate),
            "tax_amount": tax_amount,
            "total": total,
            "status": InvoiceStatus.DRAFT,
            "due_date": today + timedelta(days=due_days),
        }

        invoice_id = None
        invoice_number = None
        for attempt in range(MAX_NUMBER_ATTEMPTS):
            suffix = random_part if attempt == 0 else secrets.randbelow(1000)
            invoice_number = generate_invoice_number(today, timestamp_ms, suffix, sequence)
            invoice_id = await self.insert_if_absent({**values, "invoice_number": invoice_number})
            if invoice_id is not None:
                break
            if await self._existing_invoice_id(job.id):
                # Created concurrently by another request
                return ItemOutcome.SKIPPED, None
            logger.warning("Invoice number %s already taken, retrying", invoice_number)

        if invoice_id is None:
            logger.error("Could not allocate an invoice number for job %s", job.id)
            await self.db.rollback()
            return ItemOutcome.FAILED, None

        client_name = job.client.name if job.client else "client"
        await self.activity.log(
            ActivityAction.INVOICE_CREATED,
            f"Generated invoice {invoice_number} for {client_name}",
            entity_type="invoice",
            entity_id=invoice_id,
            entity_name=invoice_number,
            details={"job_id": str(job.id), "total": str(total)},
        )
        await self.notifications.invoice_generated(invoice_number, client_name, total, invoice_id)
        await self.db.commit()
        return ItemOutcome.CREATED, invoice_id
