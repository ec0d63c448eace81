"""Estimate pricing calculator.

Pure functions over property attributes and a company's rate/fee schedule.
All arithmetic is done in ``Decimal`` so the result matches hand calculation
exactly (6.75 h x $35 x 0.9 = 212.625 -> 213).
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping

from cleansuite.models.enums import ExtraKind, Frequency, ServiceType

SQFT_PER_HOUR = Decimal("400")

BEDROOM_HOURS = Decimal("0.5")
BATHROOM_HOURS = Decimal("0.75")
LIVING_AREA_HOURS = Decimal("0.5")
KITCHEN_HOURS = Decimal("0.75")

SERVICE_MULTIPLIERS: dict[ServiceType, Decimal] = {
    ServiceType.STANDARD: Decimal("1"),
    ServiceType.DEEP: Decimal("1.5"),
    ServiceType.MOVE_OUT: Decimal("2"),
    ServiceType.COMMERCIAL: Decimal("1.3"),
}

FREQUENCY_DISCOUNTS: dict[Frequency, Decimal] = {
    Frequency.ONE_TIME: Decimal("1"),
    Frequency.MONTHLY: Decimal("0.95"),
    Frequency.BIWEEKLY: Decimal("0.9"),
    Frequency.WEEKLY: Decimal("0.85"),
}


@dataclass(frozen=True)
class PricingInput:
    """Property and service attributes that determine a price."""

    square_footage: int
    bedrooms: int = 0
    bathrooms: int = 0
    living_areas: int = 0
    has_kitchen: bool = True
    service_type: ServiceType = ServiceType.STANDARD
    frequency: Frequency = Frequency.ONE_TIME
    extras: frozenset[ExtraKind] = field(default_factory=frozenset)


@dataclass(frozen=True)
class PriceBreakdown:
    base_hours: Decimal
    room_hours: Decimal
    total_hours: Decimal
    base_price: Decimal
    extras_total: Decimal
    total: int


def _room_hours(data: PricingInput) -> Decimal:
    hours = (
        data.bedrooms * BEDROOM_HOURS
        + data.bathrooms * BATHROOM_HOURS
        + data.living_areas * LIVING_AREA_HOURS
    )
    if data.has_kitchen:
        hours += KITCHEN_HOURS
    return hours


def calculate_breakdown(
    data: PricingInput,
    hourly_rate: Decimal,
    extra_fees: Mapping[ExtraKind, Decimal],
) -> PriceBreakdown:
    """Compute every intermediate figure of the price.

    ``extra_fees`` maps each extra to the amount charged when selected. Extras
    missing from the mapping are charged nothing.
    """
    base_hours = Decimal(data.square_footage) / SQFT_PER_HOUR
    room_hours = _room_hours(data)
    total_hours = (base_hours + room_hours) * SERVICE_MULTIPLIERS[data.service_type]
    base_price = total_hours * Decimal(hourly_rate) * FREQUENCY_DISCOUNTS[data.frequency]

    extras_total = sum(
        (Decimal(extra_fees.get(kind, 0)) for kind in data.extras),
        Decimal("0"),
    )

    raw_total = (base_price + extras_total).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return PriceBreakdown(
        base_hours=base_hours,
        room_hours=room_hours,
        total_hours=total_hours,
        base_price=base_price,
        extras_total=extras_total,
        total=max(int(raw_total), 0),
    )


def calculate_total(
    data: PricingInput,
    hourly_rate: Decimal,
    extra_fees: Mapping[ExtraKind, Decimal],
) -> int:
    """Return the rounded, non-negative estimate price."""
    return calculate_breakdown(data, hourly_rate, extra_fees).total
