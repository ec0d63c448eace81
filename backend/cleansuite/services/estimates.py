"""Estimate pricing against stored snapshots, and status transitions."""

from datetime import datetime
from typing import Any

from cleansuite.core.errors import InvalidTransition
from cleansuite.models.enums import EstimateStatus, ExtraKind
from cleansuite.models.estimate import Estimate
from cleansuite.services.company_config import fees_from_snapshot
from cleansuite.services.pricing import PricingInput, calculate_total

# Extra flag column -> extra kind
EXTRA_FLAGS: dict[str, ExtraKind] = {
    "include_pets": ExtraKind.PETS,
    "include_children": ExtraKind.CHILDREN,
    "include_green": ExtraKind.GREEN_CLEANING,
    "include_fridge": ExtraKind.FRIDGE,
    "include_oven": ExtraKind.OVEN,
    "include_cabinets": ExtraKind.CABINETS,
    "include_windows": ExtraKind.WINDOWS,
}

PRICING_FIELDS = frozenset({
    "square_footage",
    "bedrooms",
    "bathrooms",
    "living_areas",
    "has_kitchen",
    "service_type",
    "frequency",
    *EXTRA_FLAGS,
})

EDITABLE_STATUSES = (EstimateStatus.DRAFT, EstimateStatus.SENT)

TRANSITIONS: dict[EstimateStatus, frozenset[EstimateStatus]] = {
    EstimateStatus.DRAFT: frozenset({EstimateStatus.SENT, EstimateStatus.ACCEPTED, EstimateStatus.REJECTED}),
    EstimateStatus.SENT: frozenset({EstimateStatus.ACCEPTED, EstimateStatus.REJECTED}),
    EstimateStatus.ACCEPTED: frozenset(),
    EstimateStatus.REJECTED: frozenset(),
}


def pricing_input_from(source: Any) -> PricingInput:
    """Build calculator input from an estimate row or request schema."""
    extras = frozenset(kind for flag, kind in EXTRA_FLAGS.items() if getattr(source, flag, False))
    return PricingInput(
        square_footage=source.square_footage,
        bedrooms=source.bedrooms or 0,
        bathrooms=source.bathrooms or 0,
        living_areas=source.living_areas or 0,
        has_kitchen=bool(source.has_kitchen),
        service_type=source.service_type,
        frequency=source.frequency,
        extras=extras,
    )


def recalculate_total(estimate: Estimate) -> int:
    """Recompute the total from the rate and fee snapshots taken at creation."""
    estimate.total_amount = calculate_total(
        pricing_input_from(estimate),
        estimate.hourly_rate,
        fees_from_snapshot(estimate.fee_snapshot),
    )
    return estimate.total_amount


def transition(estimate: Estimate, target: EstimateStatus) -> None:
    if target not in TRANSITIONS[estimate.status]:
        raise InvalidTransition("estimate", estimate.status.value, target.value)
    estimate.status = target
    now = datetime.utcnow()
    if target == EstimateStatus.SENT:
        estimate.sent_at = now
    else:
        estimate.decided_at = now


def check_editable(estimate: Estimate) -> None:
    if estimate.status not in EDITABLE_STATUSES:
        raise InvalidTransition(
            "estimate",
            estimate.status.value,
            estimate.status.value,
            message=f"Estimate is {estimate.status.value} and can no longer be edited",
        )
