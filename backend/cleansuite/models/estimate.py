"""Estimate model."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import String, DateTime, ForeignKey, Text, Boolean, Integer, Numeric, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from cleansuite.core.database import Base, JSONType, pg_enum
from cleansuite.models.enums import EstimateStatus, Frequency, ServiceType


class Estimate(Base):
    """A price quote for a prospective or existing client.

    ``total_amount`` is always recomputed from the property attributes and the
    rate/fee snapshots taken at creation; it is never written directly.
    """

    __tablename__ = "estimates"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Client identity (prospects may not exist as clients yet)
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    client_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Property
    square_footage: Mapped[int] = mapped_column(Integer, nullable=False)
    bedrooms: Mapped[int] = mapped_column(Integer, default=0)
    bathrooms: Mapped[int] = mapped_column(Integer, default=0)
    living_areas: Mapped[int] = mapped_column(Integer, default=0)
    has_kitchen: Mapped[bool] = mapped_column(Boolean, default=True)

    service_type: Mapped[ServiceType] = mapped_column(pg_enum(ServiceType), nullable=False)
    frequency: Mapped[Frequency] = mapped_column(pg_enum(Frequency), nullable=False)

    # Extras
    include_pets: Mapped[bool] = mapped_column(Boolean, default=False)
    include_children: Mapped[bool] = mapped_column(Boolean, default=False)
    include_green: Mapped[bool] = mapped_column(Boolean, default=False)
    include_fridge: Mapped[bool] = mapped_column(Boolean, default=False)
    include_oven: Mapped[bool] = mapped_column(Boolean, default=False)
    include_cabinets: Mapped[bool] = mapped_column(Boolean, default=False)
    include_windows: Mapped[bool] = mapped_column(Boolean, default=False)

    # Snapshots taken at creation
    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    fee_snapshot: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)

    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[EstimateStatus] = mapped_column(
        pg_enum(EstimateStatus),
        default=EstimateStatus.DRAFT,
        nullable=False,
        index=True,
    )
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    decided_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
