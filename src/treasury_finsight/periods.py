# Treasury FinSight - Treasury analytics & liquidity projection for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Period helpers for Treasury FinSight.

This module defines the reporting period requested by a caller
(``ReportingPeriod``: a calendar month or a calendar year) and the resolved
``Period`` value object holding inclusive date boundaries.

Month boundaries are calendar-aware: the end of a month is its true last
day (28, 29, 30 or 31), leap years included.
"""

from calendar import monthrange
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

import pandas as pd

from .exceptions import ValidationError

MIN_YEAR = 1
MAX_YEAR = 9999


class PeriodMode(str, Enum):
    MONTH = "MONTH"
    YEAR = "YEAR"


@dataclass(frozen=True)
class Period:
    """Represents a reporting period with a human-readable label."""

    start: date
    end: date
    label: str

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class ReportingPeriod:
    """
    Reporting period as requested by a caller.

    Attributes
    ----------
    mode:
        PeriodMode.MONTH or PeriodMode.YEAR.
    year:
        Calendar year.
    month:
        Month number (1-12), required in MONTH mode and ignored otherwise.
    """

    mode: PeriodMode
    year: int
    month: Optional[int] = None

    def __post_init__(self) -> None:
        try:
            mode = PeriodMode(str(getattr(self.mode, "value", self.mode)).upper())
        except ValueError as exc:
            raise ValidationError(f"Unknown period mode: {self.mode!r}") from exc
        object.__setattr__(self, "mode", mode)

        if isinstance(self.year, bool) or not isinstance(self.year, int):
            raise ValidationError(f"Year must be an integer, got {self.year!r}.")
        if not MIN_YEAR <= self.year <= MAX_YEAR:
            raise ValidationError(f"Year out of range: {self.year}.")

        if mode is PeriodMode.MONTH:
            if isinstance(self.month, bool) or not isinstance(self.month, int):
                raise ValidationError(
                    f"Month must be an integer in MONTH mode, got {self.month!r}."
                )
            if not 1 <= self.month <= 12:
                raise ValidationError(
                    f"Month must be between 1 and 12, got {self.month}."
                )
        else:
            object.__setattr__(self, "month", None)

    @classmethod
    def for_month(cls, year: int, month: int) -> "ReportingPeriod":
        return cls(mode=PeriodMode.MONTH, year=year, month=month)

    @classmethod
    def for_year(cls, year: int) -> "ReportingPeriod":
        return cls(mode=PeriodMode.YEAR, year=year)

    @classmethod
    def containing(cls, day: date, mode: PeriodMode) -> "ReportingPeriod":
        """Return the month or year period that contains ``day``."""
        if PeriodMode(mode) is PeriodMode.MONTH:
            return cls.for_month(day.year, day.month)
        return cls.for_year(day.year)


def resolve_period(reporting_period: ReportingPeriod) -> Period:
    """
    Resolve a ReportingPeriod into inclusive date boundaries.

    - MONTH: first calendar day through the last calendar day of the month.
    - YEAR:  1 January through 31 December.
    """
    year = reporting_period.year

    # ReportingPeriod keeps a month only in MONTH mode.
    month = reporting_period.month
    if month is not None:
        last_day = monthrange(year, month)[1]
        return Period(
            start=date(year, month, 1),
            end=date(year, month, last_day),
            label=f"{year:04d}-{month:02d}",
        )

    return Period(
        start=date(year, 1, 1),
        end=date(year, 12, 31),
        label=f"{year:04d}",
    )


def months_of_year(year: int) -> list[ReportingPeriod]:
    """Return the twelve monthly reporting periods of ``year``."""
    return [ReportingPeriod.for_month(year, m) for m in range(1, 13)]


def filter_movements_by_period(movements: pd.DataFrame, period: Period) -> pd.DataFrame:
    """
    Filter a movements DataFrame to keep only rows within the period.

    The ``movements`` DataFrame is expected to contain a 'date' column of
    type datetime64[ns] (as produced by ``analytics.movements_to_frame``).

    Parameters
    ----------
    movements:
        DataFrame with at least a 'date' column.
    period:
        Period defining the [start, end] boundaries (inclusive).

    Returns
    -------
    pandas.DataFrame
        Filtered DataFrame containing only movements within the period.
    """
    mask = (movements["date"] >= pd.Timestamp(period.start)) & (
        movements["date"] <= pd.Timestamp(period.end)
    )
    return movements.loc[mask].copy()
