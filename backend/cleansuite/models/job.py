"""Scheduled job model."""

import uuid
from datetime import date, datetime, time
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import String, Date, DateTime, Time, ForeignKey, Text, Integer, Numeric, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cleansuite.core.database import Base, JSONType, pg_enum
from cleansuite.models.enums import JobStatus, PaymentMethod, PaymentReceiver

if TYPE_CHECKING:
    from cleansuite.models.client import Client, ClientLocation
    from cleansuite.models.user import User


class Job(Base):
    """A cleaning visit scheduled for a client location.

    The cleaner completes it with photos, a checklist snapshot and a payment
    record. ``completed`` and ``cancelled`` are terminal.
    """

    __tablename__ = "jobs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    location_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("client_locations.id", ondelete="SET NULL"),
        nullable=True,
    )
    cleaner_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    estimate_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("estimates.id", ondelete="SET NULL"),
        nullable=True,
    )

    job_type: Mapped[str] = mapped_column(String(50), default="standard")
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    start_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    duration_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    status: Mapped[JobStatus] = mapped_column(
        pg_enum(JobStatus),
        default=JobStatus.SCHEDULED,
        nullable=False,
        index=True,
    )

    # Completion capture
    checklist: Mapped[Optional[list[dict[str, Any]]]] = mapped_column(JSONType, nullable=True)
    before_photos: Mapped[Optional[list[str]]] = mapped_column(JSONType, nullable=True)
    after_photos: Mapped[Optional[list[str]]] = mapped_column(JSONType, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Payment captured at completion
    payment_method: Mapped[Optional[PaymentMethod]] = mapped_column(
        pg_enum(PaymentMethod), nullable=True
    )
    payment_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    payment_received_by: Mapped[Optional[PaymentReceiver]] = mapped_column(
        pg_enum(PaymentReceiver), nullable=True
    )
    payment_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    payment_reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    payment_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    cancellation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    client: Mapped["Client"] = relationship("Client")
    location: Mapped[Optional["ClientLocation"]] = relationship("ClientLocation")
    cleaner: Mapped[Optional["User"]] = relationship("User")

    @property
    def service_duration(self) -> Optional[str]:
        """Duration as the ``"<hours>h"`` string stored on invoices."""
        if not self.duration_minutes:
            return None
        return f"{self.duration_minutes / 60:g}h"
