"""Company (tenant), membership and tenant configuration models."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    String, DateTime, ForeignKey, Text, Boolean, Integer, Numeric, Uuid, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cleansuite.core.database import Base, pg_enum
from cleansuite.models.enums import CompanyRole, ExtraKind, InvoiceGenerationMode, Province

if TYPE_CHECKING:
    from cleansuite.models.user import User


class Company(Base):
    """A cleaning business. Every tenant-owned row points here."""

    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    trade_name: Mapped[str] = mapped_column(String(255), nullable=False)
    legal_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Contact info
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    province: Mapped[Province] = mapped_column(pg_enum(Province), default=Province.ON)
    postal_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Tax registration
    business_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    gst_hst_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    timezone: Mapped[str] = mapped_column(String(50), default="America/Toronto")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    memberships: Mapped[list["CompanyMembership"]] = relationship(
        "CompanyMembership", back_populates="company", cascade="all, delete-orphan"
    )


class CompanyMembership(Base):
    """User membership in a company with role."""

    __tablename__ = "company_memberships"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,  # one company per user
    )
    role: Mapped[CompanyRole] = mapped_column(pg_enum(CompanyRole), nullable=False)
    hourly_wage: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    company: Mapped["Company"] = relationship("Company", back_populates="memberships")
    user: Mapped["User"] = relationship("User", back_populates="memberships")


class CompanyEstimateConfig(Base):
    """Pricing, tax and invoicing settings for a company (one row per company)."""

    __tablename__ = "company_estimate_config"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    default_hourly_rate: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    tax_rate: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2), nullable=True)
    invoice_generation_mode: Mapped[InvoiceGenerationMode] = mapped_column(
        pg_enum(InvoiceGenerationMode),
        default=InvoiceGenerationMode.MANUAL,
        nullable=False,
    )
    auto_generate_cash_receipt: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class CompanyExtraFee(Base):
    """Flat fee charged for one of the named estimate extras."""

    __tablename__ = "company_extra_fees"
    __table_args__ = (UniqueConstraint("company_id", "kind", name="uq_company_extra_fee_kind"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    kind: Mapped[ExtraKind] = mapped_column(pg_enum(ExtraKind), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class ChecklistItem(Base):
    """Tenant checklist catalog entry.

    Jobs copy the item name into their checklist snapshot, so editing or
    deactivating an item never changes completed jobs.
    """

    __tablename__ = "checklist_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class CompanyBranding(Base):
    """Logo and color used on estimates, invoices and receipts."""

    __tablename__ = "company_branding"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    logo_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    primary_color: Mapped[str] = mapped_column(String(20), default="#1a3d2e")

    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
