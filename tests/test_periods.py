from datetime import date

import pandas as pd
import pytest

import treasury_finsight.periods as periods
from treasury_finsight.exceptions import ValidationError
from treasury_finsight.periods import PeriodMode, ReportingPeriod


def test_filter_movements_by_period_inclusive_bounds() -> None:
    """filter_movements_by_period should keep movements with dates in [start, end]."""
    df = pd.DataFrame(
        {
            "date": pd.to_datetime(
                ["2025-01-01", "2025-02-15", "2025-03-10", "2025-04-01", "2025-05-01"]
            ),
            "kind": ["INCOME", "INCOME", "EXPENSE", "EXPENSE", "INCOME"],
            "amount": [10.0, 20.0, 5.0, 15.0, 30.0],
        }
    )

    p = periods.Period(
        start=date(2025, 2, 1),
        end=date(2025, 4, 1),
        label="Test period",
    )

    filtered = periods.filter_movements_by_period(df, p)

    assert len(filtered) == 3
    assert filtered["date"].min() == pd.Timestamp("2025-02-15")
    assert filtered["date"].max() == pd.Timestamp("2025-04-01")


@pytest.mark.parametrize(
    "year, month, last_day",
    [
        (2025, 1, 31),
        (2025, 2, 28),
        (2024, 2, 29),
        (1900, 2, 28),
        (2000, 2, 29),
        (2025, 4, 30),
        (2025, 12, 31),
    ],
)
def test_month_end_is_calendar_aware(year, month, last_day) -> None:
    period = periods.resolve_period(ReportingPeriod.for_month(year, month))

    assert period.start == date(year, month, 1)
    assert period.end == date(year, month, last_day)


def test_leap_day_is_inside_february() -> None:
    """29 February 2024 belongs to the February 2024 period."""
    period = periods.resolve_period(ReportingPeriod.for_month(2024, 2))

    assert period.contains(date(2024, 2, 29))
    assert not period.contains(date(2024, 3, 1))


def test_year_period_bounds_and_label() -> None:
    period = periods.resolve_period(ReportingPeriod.for_year(2025))

    assert (period.start, period.end, period.label) == (
        date(2025, 1, 1),
        date(2025, 12, 31),
        "2025",
    )


def test_month_label() -> None:
    assert periods.resolve_period(ReportingPeriod.for_month(2025, 3)).label == "2025-03"


@pytest.mark.parametrize("month", [0, 13, None, True])
def test_invalid_month_is_rejected(month) -> None:
    with pytest.raises(ValidationError):
        ReportingPeriod(PeriodMode.MONTH, 2025, month)


@pytest.mark.parametrize("year", [0, 10000, "2025", 2025.0])
def test_invalid_year_is_rejected(year) -> None:
    with pytest.raises(ValidationError):
        ReportingPeriod.for_year(year)


def test_mode_accepts_strings() -> None:
    rp = ReportingPeriod("month", 2025, 5)

    assert rp.mode is PeriodMode.MONTH


def test_unknown_mode_is_rejected() -> None:
    with pytest.raises(ValidationError):
        ReportingPeriod("week", 2025, 1)


def test_year_mode_ignores_month() -> None:
    assert ReportingPeriod(PeriodMode.YEAR, 2025, 7).month is None


def test_year_mode_with_month_resolves_whole_year() -> None:
    period = periods.resolve_period(ReportingPeriod("year", 2025, 7))

    assert (period.start, period.end) == (date(2025, 1, 1), date(2025, 12, 31))


def test_containing() -> None:
    day = date(2025, 8, 17)

    assert ReportingPeriod.containing(day, PeriodMode.MONTH) == ReportingPeriod.for_month(
        2025, 8
    )
    assert ReportingPeriod.containing(day, PeriodMode.YEAR) == ReportingPeriod.for_year(2025)


def test_months_of_year() -> None:
    months = periods.months_of_year(2025)

    assert [m.month for m in months] == list(range(1, 13))
    assert all(m.year == 2025 for m in months)
