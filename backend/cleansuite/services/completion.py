"""Job completion: payment validation, checklist snapshot, receipts and cash.

Validation runs before anything is written. A completion either commits the
job, its payment record and activity entries together, or changes nothing.
"""

import logging
import secrets
import time
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from cleansuite.core.errors import InvalidTransition, PermissionDenied, ValidationFailed
from cleansuite.core.security import AuthenticatedUser
from cleansuite.models.enums import (
    ActivityAction,
    CashHandling,
    CompensationStatus,
    JobStatus,
    PaymentMethod,
    PaymentReceiver,
)
from cleansuite.models.job import Job
from cleansuite.models.payment import CashCollection, PaymentReceipt
from cleansuite.services.activity import ActivityService
from cleansuite.services.company_config import CompanyConfigSnapshot, load_company_config
from cleansuite.services.invoicing import InvoiceBatchResult, InvoiceService
from cleansuite.services.notifications import NotificationService

logger = logging.getLogger(__name__)

COMPLETABLE_STATUSES = (JobStatus.SCHEDULED, JobStatus.IN_PROGRESS)

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


@dataclass(frozen=True)
class ValidatedPayment:
    method: PaymentMethod
    amount: Decimal
    received_by: Optional[PaymentReceiver]

    @property
    def is_cash(self) -> bool:
        return self.method == PaymentMethod.CASH


def payment_errors(method: Any, amount: Any, received_by: Any) -> dict[str, str]:
    """Every problem with a payment record, keyed by field. Empty when valid."""
    errors: dict[str, str] = {}

    parsed_method: Optional[PaymentMethod] = None
    if method is None or (isinstance(method, str) and not method.strip()):
        errors["method"] = "Payment method is required"
    else:
        try:
            parsed_method = PaymentMethod(method)
        except ValueError:
            allowed = ", ".join(m.value for m in PaymentMethod)
            errors["method"] = f"Payment method must be one of: {allowed}"

    try:
        parsed_amount = Decimal(str(amount)) if amount is not None else None
    except (InvalidOperation, ValueError):
        parsed_amount = None
    if parsed_amount is None or not parsed_amount.is_finite() or parsed_amount <= 0:
        errors["amount"] = "Payment amount must be greater than 0"

    if parsed_method == PaymentMethod.CASH:
        try:
            PaymentReceiver(received_by)
        except ValueError:
            errors["received_by"] = "Select who received the cash payment"

    return errors


def validate_payment(method: Any, amount: Any, received_by: Any) -> ValidatedPayment:
    """Parse a payment record or raise ``ValidationFailed`` with all field errors."""
    errors = payment_errors(method, amount, received_by)
    if errors:
        raise ValidationFailed(errors, "Payment information is incomplete")

    parsed_method = PaymentMethod(method)
    return ValidatedPayment(
        method=parsed_method,
        amount=Decimal(str(amount)).quantize(Decimal("0.01")),
        received_by=PaymentReceiver(received_by) if parsed_method == PaymentMethod.CASH else None,
    )


def generate_receipt_number(timestamp_ms: Optional[int] = None) -> str:
    """``RCP-<epoch ms>-<4 base36 chars>``."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"RCP-{timestamp_ms}-{suffix}"


def build_checklist_snapshot(entries: Sequence[Any]) -> list[dict[str, Any]]:
    """Copy checklist entries by value so catalog edits never rewrite history."""
    snapshot = []
    for entry in entries:
        item = entry["item"] if isinstance(entry, dict) else entry.item
        completed = entry.get("completed", False) if isinstance(entry, dict) else entry.completed
        name = str(item).strip()
        if name:
            snapshot.append({"item": name, "completed": bool(completed)})
    return snapshot


@dataclass
class CompletionResult:
    job: Job
    receipt: Optional[PaymentReceipt] = None
    cash_collection: Optional[CashCollection] = None
    invoice_result: Optional[InvoiceBatchResult] = None


class CompletionService:
    """Completes jobs on behalf of the current user."""

    def __init__(self, db: AsyncSession, current_user: AuthenticatedUser):
        self.db = db
        self.current_user = current_user
        self.company_id = current_user.company_id
        self.activity = ActivityService.for_user(db, current_user)

    def check_can_complete(self, job: Job) -> None:
        if self.current_user.is_cleaner and job.cleaner_id != self.current_user.db_user_id:
            raise PermissionDenied("You are not assigned to this job")
        if job.status not in COMPLETABLE_STATUSES:
            raise InvalidTransition("job", job.status.value, JobStatus.COMPLETED.value)

    async def complete(
        self,
        job: Job,
        *,
        payment_method: Any,
        payment_amount: Any,
        payment_received_by: Any = None,
        checklist: Sequence[Any] = (),
        before_photos: Sequence[str] = (),
        after_photos: Sequence[str] = (),
        notes: Optional[str] = None,
        payment_date: Optional[date] = None,
        payment_reference: Optional[str] = None,
        payment_notes: Optional[str] = None,
        config: Optional[CompanyConfigSnapshot] = None,
    ) -> CompletionResult:
        """Complete a job with its mandatory payment record."""
        self.check_can_complete(job)
        payment = validate_payment(payment_method, payment_amount, payment_received_by)

        if config is None:
            config = await load_company_config(self.db, self.company_id)

        now = datetime.utcnow()
        client_name = job.client.name if job.client else "client"

        job.status = JobStatus.COMPLETED
        job.completed_at = now
        job.checklist = build_checklist_snapshot(checklist)
        job.before_photos = [url for url in before_photos if url]
        job.after_photos = [url for url in after_photos if url]
        job.notes = notes
        job.payment_method = payment.method
        job.payment_amount = payment.amount
        job.payment_received_by = payment.received_by
        job.payment_date = payment_date or now.date()
        job.payment_reference = payment_reference
        job.payment_notes = payment_notes

        result = CompletionResult(job=job)

        if payment.is_cash:
            result.cash_collection = self._record_cash(job, payment)
            if config.auto_generate_cash_receipt:
                result.receipt = self._issue_receipt(job, payment, client_name)
        else:
            result.receipt = self._issue_receipt(job, payment, client_name)

        await self.db.flush()

        await self.activity.log(
            ActivityAction.JOB_COMPLETED,
            f"Completed job for {client_name}",
            entity_type="job",
            entity_id=job.id,
            entity_name=client_name,
            details={"checklist_items": len(job.checklist), "after_photos": len(job.after_photos)},
        )
        await self.activity.log(
            ActivityAction.PAYMENT_REGISTERED,
            f"Registered {payment.method.value} payment of ${payment.amount:.2f} for {client_name}",
            entity_type="job",
            entity_id=job.id,
            entity_name=client_name,
            details={
                "method": payment.method.value,
                "amount": str(payment.amount),
                "receipt_number": result.receipt.receipt_number if result.receipt else None,
            },
        )
        if result.cash_collection is not None:
            kept = result.cash_collection.cash_handling == CashHandling.KEPT_BY_CLEANER
            await self.activity.log(
                ActivityAction.CASH_KEPT_BY_CLEANER if kept else ActivityAction.CASH_DELIVERED_TO_OFFICE,
                (
                    f"Cash ${payment.amount:.2f} from {client_name} "
                    + ("kept by cleaner" if kept else "delivered to office")
                ),
                entity_type="cash_collection",
                entity_id=result.cash_collection.id,
                entity_name=client_name,
                details={"job_id": str(job.id), "amount": str(payment.amount)},
            )

        await self.db.commit()
        logger.info("Job %s completed with %s payment", job.id, payment.method.value)

        if config.is_automatic_invoicing and not payment.is_cash:
            invoicing = InvoiceService(
                self.db,
                self.company_id,
                activity=self.activity,
                notifications=NotificationService(self.db, self.company_id),
            )
            result.invoice_result = await invoicing.generate([job.id], config=config)

        return result

    def _record_cash(self, job: Job, payment: ValidatedPayment) -> CashCollection:
        handling = (
            CashHandling.KEPT_BY_CLEANER
            if payment.received_by == PaymentReceiver.CLEANER
            else CashHandling.DELIVERED_TO_OFFICE
        )
        collection = CashCollection(
            company_id=job.company_id,
            job_id=job.id,
            client_id=job.client_id,
            cleaner_id=job.cleaner_id or self.current_user.db_user_id,
            amount=payment.amount,
            service_date=job.scheduled_date,
            cash_handling=handling,
            compensation_status=CompensationStatus.PENDING,
            handled_by_user_id=self.current_user.db_user_id,
            notes=job.payment_notes,
        )
        self.db.add(collection)
        return collection

    def _issue_receipt(self, job: Job, payment: ValidatedPayment, client_name: str) -> PaymentReceipt:
        receipt = PaymentReceipt(
            company_id=job.company_id,
            job_id=job.id,
            client_id=job.client_id,
            cleaner_id=job.cleaner_id,
            receipt_number=generate_receipt_number(),
            payment_method=payment.method,
            amount=payment.amount,
            tax_amount=Decimal("0"),
            total=payment.amount,
            service_date=job.scheduled_date,
            service_description=f"{job.job_type.replace('_', ' ').title()} cleaning - {client_name}",
            created_by_id=self.current_user.db_user_id,
        )
        self.db.add(receipt)
        return receipt
