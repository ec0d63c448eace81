"""Provincial overtime rules, pay previews and source deductions."""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Mapping, Sequence

from cleansuite.models.enums import Province


@dataclass(frozen=True)
class OvertimeRule:
    daily_threshold: Decimal
    weekly_threshold: Decimal
    multiplier: Decimal = Decimal("1.5")


def _rule(daily: int, weekly: int) -> OvertimeRule:
    return OvertimeRule(Decimal(daily), Decimal(weekly))


# A daily threshold of 24 means the province has no daily overtime.
OVERTIME_RULES: dict[Province, OvertimeRule] = {
    Province.ON: _rule(24, 44),
    Province.QC: _rule(24, 40),
    Province.BC: _rule(8, 40),
    Province.AB: _rule(8, 44),
    Province.MB: _rule(24, 40),
    Province.SK: _rule(24, 40),
    Province.NS: _rule(24, 48),
    Province.NB: _rule(24, 44),
    Province.NL: _rule(24, 40),
    Province.PE: _rule(24, 48),
    Province.NT: _rule(8, 40),
    Province.YT: _rule(8, 40),
    Province.NU: _rule(24, 40),
}


@dataclass(frozen=True)
class HoursSplit:
    regular: Decimal
    overtime: Decimal


@dataclass(frozen=True)
class PayPreview:
    regular_hours: Decimal
    overtime_hours: Decimal
    hourly_wage: Decimal
    overtime_multiplier: Decimal
    regular_pay: Decimal
    overtime_pay: Decimal
    gross_pay: Decimal
    cash_deduction: Decimal
    net_pay: Decimal


def split_overtime(daily_hours: Sequence[Decimal], province: Province) -> HoursSplit:
    """Split one week of daily hours into regular and overtime hours.

    The daily threshold applies first; the weekly threshold then applies to the
    regular hours that remain.
    """
    rule = OVERTIME_RULES[province]
    regular = Decimal("0")
    overtime = Decimal("0")

    for hours in daily_hours:
        hours = Decimal(hours)
        regular += min(hours, rule.daily_threshold)
        overtime += max(hours - rule.daily_threshold, Decimal("0"))

    if regular > rule.weekly_threshold:
        overtime += regular - rule.weekly_threshold
        regular = rule.weekly_threshold

    return HoursSplit(regular=regular, overtime=overtime)


def group_hours_by_week(hours_by_day: Mapping[date, Decimal]) -> list[list[Decimal]]:
    """Daily totals grouped by ISO week, oldest week first."""
    weeks: dict[tuple[int, int], list[Decimal]] = defaultdict(list)
    for day in sorted(hours_by_day):
        iso = day.isocalendar()
        weeks[(iso[0], iso[1])].append(Decimal(hours_by_day[day]))
    return [weeks[key] for key in sorted(weeks)]


def calculate_pay(
    weeks: Iterable[Sequence[Decimal]],
    province: Province,
    hourly_wage: Decimal,
    cash_deduction: Decimal = Decimal("0"),
) -> PayPreview:
    rule = OVERTIME_RULES[province]
    regular = Decimal("0")
    overtime = Decimal("0")
    for week in weeks:
        split = split_overtime(week, province)
        regular += split.regular
        overtime += split.overtime

    cent = Decimal("0.01")
    wage = Decimal(hourly_wage)
    regular_pay = (regular * wage).quantize(cent, rounding=ROUND_HALF_UP)
    overtime_pay = (overtime * wage * rule.multiplier).quantize(cent, rounding=ROUND_HALF_UP)
    gross = regular_pay + overtime_pay
    return PayPreview(
        regular_hours=regular,
        overtime_hours=overtime,
        hourly_wage=wage,
        overtime_multiplier=rule.multiplier,
        regular_pay=regular_pay,
        overtime_pay=overtime_pay,
        gross_pay=gross,
        cash_deduction=cash_deduction,
        net_pay=gross - cash_deduction,
    )


# Simplified source deductions; the caps are the annual maximum contributions.
CPP_RATE = Decimal("0.0595")
CPP_MAX = Decimal("3867.50")
EI_RATE = Decimal("0.0158")
EI_MAX = Decimal("1049.12")
INCOME_TAX_RATE = Decimal("0.15")


@dataclass(frozen=True)
class Deductions:
    cpp: Decimal
    ei: Decimal
    tax: Decimal

    @property
    def total(self) -> Decimal:
        return self.cpp + self.ei + self.tax


def statutory_deductions(gross: Decimal) -> Deductions:
    cent = Decimal("0.01")
    gross = Decimal(gross)
    return Deductions(
        cpp=min(gross * CPP_RATE, CPP_MAX).quantize(cent, rounding=ROUND_HALF_UP),
        ei=min(gross * EI_RATE, EI_MAX).quantize(cent, rounding=ROUND_HALF_UP),
        tax=(gross * INCOME_TAX_RATE).quantize(cent, rounding=ROUND_HALF_UP),
    )
