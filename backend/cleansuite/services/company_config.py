"""Read-only snapshot of a company's pricing and invoicing configuration."""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Mapping, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cleansuite.core.config import get_settings
from cleansuite.models.company import ChecklistItem, CompanyBranding, CompanyEstimateConfig, CompanyExtraFee
from cleansuite.models.enums import ExtraKind, InvoiceGenerationMode

logger = logging.getLogger(__name__)

DEFAULT_EXTRA_FEES: dict[ExtraKind, Decimal] = {
    ExtraKind.PETS: Decimal("15"),
    ExtraKind.CHILDREN: Decimal("10"),
    ExtraKind.GREEN_CLEANING: Decimal("20"),
    ExtraKind.FRIDGE: Decimal("25"),
    ExtraKind.OVEN: Decimal("30"),
    ExtraKind.CABINETS: Decimal("40"),
    ExtraKind.WINDOWS: Decimal("35"),
}

EXTRA_FEE_NAMES: dict[ExtraKind, str] = {
    ExtraKind.PETS: "Pets",
    ExtraKind.CHILDREN: "Children",
    ExtraKind.GREEN_CLEANING: "Green Cleaning",
    ExtraKind.FRIDGE: "Inside Fridge",
    ExtraKind.OVEN: "Inside Oven",
    ExtraKind.CABINETS: "Inside Cabinets",
    ExtraKind.WINDOWS: "Interior Windows",
}

DEFAULT_CHECKLIST: tuple[str, ...] = (
    "Vacuum all floors",
    "Mop hard floors",
    "Dust surfaces",
    "Clean bathrooms",
    "Clean kitchen",
    "Empty trash bins",
    "Make beds",
    "Wipe mirrors",
)


@dataclass(frozen=True)
class CompanyConfigSnapshot:
    """Tenant configuration as of one operation.

    ``extra_fees`` holds the amount actually charged per extra, so an inactive
    fee is already 0 here.
    """

    company_id: Optional[UUID]
    hourly_rate: Decimal
    tax_rate: Decimal
    extra_fees: Mapping[ExtraKind, Decimal] = field(default_factory=lambda: dict(DEFAULT_EXTRA_FEES))
    invoice_mode: InvoiceGenerationMode = InvoiceGenerationMode.MANUAL
    auto_generate_cash_receipt: bool = True

    @property
    def is_automatic_invoicing(self) -> bool:
        return self.invoice_mode == InvoiceGenerationMode.AUTOMATIC

    def fee_snapshot(self) -> dict[str, str]:
        """JSON-safe copy of the fee schedule, stored on estimates."""
        return {kind.value: str(amount) for kind, amount in self.extra_fees.items()}


def fees_from_snapshot(snapshot: Mapping[str, str]) -> dict[ExtraKind, Decimal]:
    """Inverse of ``CompanyConfigSnapshot.fee_snapshot``; unknown keys are dropped."""
    fees: dict[ExtraKind, Decimal] = {}
    for key, value in (snapshot or {}).items():
        try:
            fees[ExtraKind(key)] = Decimal(str(value))
        except ValueError:
            logger.warning("Ignoring unknown extra fee %r in snapshot", key)
    return fees


def default_snapshot(company_id: Optional[UUID] = None) -> CompanyConfigSnapshot:
    settings = get_settings()
    return CompanyConfigSnapshot(
        company_id=company_id,
        hourly_rate=settings.default_hourly_rate,
        tax_rate=settings.default_tax_rate,
    )


async def load_company_config(db: AsyncSession, company_id: UUID) -> CompanyConfigSnapshot:
    """Load the company's configuration, falling back to defaults per field."""
    settings = get_settings()

    config_result = await db.execute(
        select(CompanyEstimateConfig).where(CompanyEstimateConfig.company_id == company_id)
    )
    config = config_result.scalar_one_or_none()

    fees_result = await db.execute(
        select(CompanyExtraFee).where(CompanyExtraFee.company_id == company_id)
    )
    extra_fees = dict(DEFAULT_EXTRA_FEES)
    for fee in fees_result.scalars().all():
        extra_fees[fee.kind] = Decimal(fee.amount) if fee.is_active else Decimal("0")

    if config is None:
        logger.info("Company %s has no estimate config, using defaults", company_id)
        return CompanyConfigSnapshot(
            company_id=company_id,
            hourly_rate=settings.default_hourly_rate,
            tax_rate=settings.default_tax_rate,
            extra_fees=extra_fees,
        )

    hourly_rate = config.default_hourly_rate
    if not hourly_rate or hourly_rate <= 0:
        hourly_rate = settings.default_hourly_rate
    tax_rate = config.tax_rate if config.tax_rate is not None else settings.default_tax_rate

    return CompanyConfigSnapshot(
        company_id=company_id,
        hourly_rate=Decimal(hourly_rate),
        tax_rate=Decimal(tax_rate),
        extra_fees=extra_fees,
        invoice_mode=config.invoice_generation_mode,
        auto_generate_cash_receipt=config.auto_generate_cash_receipt,
    )


async def load_checklist_template(db: AsyncSession, company_id: UUID) -> list[str]:
    """Active checklist item names in display order.

    Never blocks job completion: an empty catalog or a failed lookup yields the
    default checklist.
    """
    try:
        result = await db.execute(
            select(ChecklistItem.name)
            .where(
                ChecklistItem.company_id == company_id,
                ChecklistItem.is_active.is_(True),
            )
            .order_by(ChecklistItem.display_order, ChecklistItem.created_at)
        )
        names = list(result.scalars().all())
    except SQLAlchemyError as e:
        logger.warning("Checklist lookup failed for company %s: %s", company_id, e)
        return list(DEFAULT_CHECKLIST)

    return names or list(DEFAULT_CHECKLIST)


async def load_primary_color(db: AsyncSession, company_id: UUID) -> Optional[str]:
    result = await db.execute(
        select(CompanyBranding.primary_color).where(CompanyBranding.company_id == company_id)
    )
    return result.scalar_one_or_none()
