from datetime import date
from decimal import Decimal

from cleansuite.models.enums import Province
from cleansuite.services.payroll import (
    OVERTIME_RULES,
    calculate_pay,
    group_hours_by_week,
    split_overtime,
    statutory_deductions,
)


def hours(*values):
    return [Decimal(str(v)) for v in values]


def test_every_province_has_a_rule():
    assert set(OVERTIME_RULES) == set(Province)


def test_ontario_has_weekly_overtime_only():
    split = split_overtime(hours(10, 10, 10, 10, 10), Province.ON)
    assert split.regular == Decimal("44")
    assert split.overtime == Decimal("6")

    long_day = split_overtime(hours(14), Province.ON)
    assert long_day.overtime == 0


def test_british_columbia_applies_daily_then_weekly():
    daily = split_overtime(hours(10, 10, 6), Province.BC)
    assert daily.regular == Decimal("22")
    assert daily.overtime == Decimal("4")

    weekly = split_overtime(hours(8, 8, 8, 8, 8, 8), Province.BC)
    assert weekly.regular == Decimal("40")
    assert weekly.overtime == Decimal("8")


def test_group_hours_by_iso_week():
    weeks = group_hours_by_week({
        date(2026, 3, 9): Decimal("8"),   # Monday
        date(2026, 3, 15): Decimal("4"),  # Sunday, same week
        date(2026, 3, 16): Decimal("6"),  # next Monday
    })
    assert weeks == [hours(8, 4), hours(6)]


def test_pay_preview_with_overtime_and_cash_deduction():
    preview = calculate_pay(
        [hours(10, 10, 10, 10, 10)],
        Province.ON,
        Decimal("20"),
        cash_deduction=Decimal("40.00"),
    )

    assert preview.regular_pay == Decimal("880.00")
    assert preview.overtime_pay == Decimal("180.00")
    assert preview.gross_pay == Decimal("1060.00")
    assert preview.net_pay == Decimal("1020.00")


def test_weeks_are_split_independently():
    # 30h + 30h never crosses the 44h weekly threshold
    preview = calculate_pay([hours(10, 10, 10), hours(10, 10, 10)], Province.ON, Decimal("20"))
    assert preview.overtime_hours == 0
    assert preview.regular_hours == Decimal("60")


def test_statutory_deductions_round_each_line():
    deductions = statutory_deductions(Decimal("150.00"))

    assert deductions.cpp == Decimal("8.93")
    assert deductions.ei == Decimal("2.37")
    assert deductions.tax == Decimal("22.50")
    assert deductions.total == Decimal("33.80")


def test_statutory_deductions_cap_at_annual_maximum():
    deductions = statutory_deductions(Decimal("100000.00"))

    assert deductions.cpp == Decimal("3867.50")
    assert deductions.ei == Decimal("1049.12")
    assert deductions.tax == Decimal("15000.00")
