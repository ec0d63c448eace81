"""Payroll period and per-cleaner entry models."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    String, Date, DateTime, ForeignKey, Integer, Numeric, Uuid, CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cleansuite.core.database import Base, pg_enum
from cleansuite.models.enums import PayrollPeriodStatus

if TYPE_CHECKING:
    from cleansuite.models.user import User


class PayrollPeriod(Base):
    """A closed date range of pay, one entry per cleaner with completed jobs.

    Entries are computed once at generation. Later job or wage changes do not
    alter an existing period.
    """

    __tablename__ = "payroll_periods"
    __table_args__ = (CheckConstraint("end_date >= start_date", name="ck_payroll_period_dates"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    period_name: Mapped[str] = mapped_column(String(100), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[PayrollPeriodStatus] = mapped_column(
        pg_enum(PayrollPeriodStatus),
        default=PayrollPeriodStatus.PENDING,
        nullable=False,
    )

    total_hours: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    total_gross: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    total_deductions: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    total_net: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))

    approved_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    pay_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    created_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    entries: Mapped[list["PayrollEntry"]] = relationship(
        "PayrollEntry",
        back_populates="period",
        cascade="all, delete-orphan",
        order_by="PayrollEntry.created_at",
    )


class PayrollEntry(Base):
    """One cleaner's pay in a period."""

    __tablename__ = "payroll_entries"
    __table_args__ = (UniqueConstraint("period_id", "cleaner_id", name="uq_payroll_entry_cleaner"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    period_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("payroll_periods.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    cleaner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    jobs_counted: Mapped[int] = mapped_column(Integer, default=0)
    regular_hours: Mapped[Decimal] = mapped_column(Numeric(8, 2), default=Decimal("0"))
    overtime_hours: Mapped[Decimal] = mapped_column(Numeric(8, 2), default=Decimal("0"))
    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    overtime_multiplier: Mapped[Decimal] = mapped_column(Numeric(4, 2), default=Decimal("1.5"))
    regular_pay: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    overtime_pay: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    gross_pay: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    cpp_deduction: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    ei_deduction: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    tax_deduction: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    cash_deduction: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    net_pay: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    period: Mapped["PayrollPeriod"] = relationship("PayrollPeriod", back_populates="entries")
    cleaner: Mapped["User"] = relationship("User")

    @property
    def total_hours(self) -> Decimal:
        return self.regular_hours + self.overtime_hours

    @property
    def total_deductions(self) -> Decimal:
        return self.cpp_deduction + self.ei_deduction + self.tax_deduction + self.cash_deduction
