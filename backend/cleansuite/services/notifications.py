"""In-app notifications. Dispatch is fire-and-forget."""

import logging
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cleansuite.models.enums import CompanyRole, NotificationSeverity, NotificationType
from cleansuite.models.notification import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    """Writes notification rows for a company.

    A failed write is logged and reported as ``False``; it never propagates to
    the operation that triggered it.
    """

    def __init__(self, db: AsyncSession, company_id: UUID):
        self.db = db
        self.company_id = company_id

    async def notify(
        self,
        title: str,
        message: str,
        type: NotificationType,
        severity: NotificationSeverity = NotificationSeverity.INFO,
        recipient_user_id: Optional[UUID] = None,
        role_target: Optional[CompanyRole] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> bool:
        notification = Notification(
            company_id=self.company_id,
            recipient_user_id=recipient_user_id,
            role_target=role_target,
            title=title,
            message=message,
            type=type,
            severity=severity,
            meta=metadata or {},
        )
        try:
            async with self.db.begin_nested():
                self.db.add(notification)
        except SQLAlchemyError as e:
            logger.warning("Notification %r for company %s not stored: %s", title, self.company_id, e)
            return False
        return True

    async def job_created(
        self,
        cleaner_id: UUID,
        client_name: str,
        scheduled_date: str,
        start_time: str,
        address: str,
        job_id: UUID,
    ) -> bool:
        return await self.notify(
            title="New Job Scheduled",
            message=(
                f"You have a new job scheduled for {scheduled_date} at {start_time}"
                f" - {client_name}, {address}"
            ),
            type=NotificationType.JOB,
            recipient_user_id=cleaner_id,
            metadata={"job_id": str(job_id), "client_name": client_name},
        )

    async def job_updated(self, cleaner_id: UUID, client_name: str, changes: str, job_id: UUID) -> bool:
        return await self.notify(
            title="Job Updated",
            message=f"Your job for {client_name} has been updated: {changes}",
            type=NotificationType.JOB,
            severity=NotificationSeverity.WARNING,
            recipient_user_id=cleaner_id,
            metadata={"job_id": str(job_id), "client_name": client_name},
        )

    async def job_cancelled(
        self, cleaner_id: UUID, client_name: str, scheduled_date: str, job_id: UUID
    ) -> bool:
        return await self.notify(
            title="Job Cancelled",
            message=f"Your job for {client_name} on {scheduled_date} has been cancelled",
            type=NotificationType.JOB,
            severity=NotificationSeverity.WARNING,
            recipient_user_id=cleaner_id,
            metadata={"job_id": str(job_id), "client_name": client_name},
        )

    async def invoice_generated(
        self, invoice_number: str, client_name: str, total: Decimal, invoice_id: UUID
    ) -> bool:
        return await self.notify(
            title="Invoice Generated",
            message=f"Invoice {invoice_number} for {client_name} - ${total:.2f} has been generated",
            type=NotificationType.INVOICE,
            role_target=CompanyRole.ADMIN,
            metadata={
                "invoice_id": str(invoice_id),
                "invoice_number": invoice_number,
                "client_name": client_name,
            },
        )

    async def cash_approved(self, cleaner_id: UUID, amount: Decimal, collection_id: UUID) -> bool:
        return await self.notify(
            title="Cash Collection Approved",
            message=f"Your cash collection of ${amount:.2f} has been approved",
            type=NotificationType.FINANCIAL,
            recipient_user_id=cleaner_id,
            metadata={"cash_collection_id": str(collection_id)},
        )

    async def cash_disputed(
        self, cleaner_id: UUID, amount: Decimal, reason: str, collection_id: UUID
    ) -> bool:
        return await self.notify(
            title="Cash Collection Disputed",
            message=f"Your cash collection of ${amount:.2f} has been disputed: {reason}",
            type=NotificationType.FINANCIAL,
            severity=NotificationSeverity.WARNING,
            recipient_user_id=cleaner_id,
            metadata={"cash_collection_id": str(collection_id), "reason": reason},
        )

    async def payroll_paid(self, cleaner_id: UUID, period_name: str, net_pay: Decimal, period_id: UUID) -> bool:
        return await self.notify(
            title="Payroll Paid",
            message=f"Your pay for {period_name} of ${net_pay:.2f} has been paid",
            type=NotificationType.PAYROLL,
            recipient_user_id=cleaner_id,
            metadata={"payroll_period_id": str(period_id)},
        )
