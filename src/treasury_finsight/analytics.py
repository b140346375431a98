# Treasury FinSight - Treasury analytics & liquidity projection for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Period aggregation engine for Treasury FinSight.

This module computes the figures displayed by the treasury analytics
dashboard for one reporting period (a calendar month or a calendar year):

1. KPIs
   ----
   ``get_kpis()`` returns income, expense and profit for the period, plus a
   period-independent ``total_balance`` (all confirmed movements since
   inception, credits minus debits).

2. Breakdowns and rankings
   -----------------------
   - ``get_breakdown_by_project()``: income or expense per project,
   - ``get_project_ranking()``: income, expense, profit and margin per project,
   - ``get_top_providers()``: expense amount and count per provider,
   - ``get_top_clients()``: gross income attributed to each client's projects.

3. Time series
   -----------
   ``get_time_series()`` buckets income and expense by day of month (MONTH
   mode) or by month of year (YEAR mode), in chronological order.

Filtering rule
--------------
Every period figure only considers movements that are CONFIRMED, not
soft-deleted, dated, and whose date falls within the inclusive period
boundaries. Pending movements only matter for liquidity projection.

Top clients
-----------
The amount ranked by ``get_top_clients()`` is the gross income of the
client's projects. It is not net of the projects' expenses, unlike the
profit figures of ``get_kpis()`` and ``get_project_ranking()``.

Determinism
-----------
All functions are pure: the same snapshot and parameters always produce
the same result. Every sort uses explicit tie-breakers (name, then id).
"""

from calendar import month_abbr
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

import pandas as pd

from .currency import CurrencyNormalizer
from .exceptions import ValidationError
from .frames import movements_to_frame
from .logging import get_logger
from .models import KindGroup, Movement, MovementKind, MovementStatus, Snapshot
from .periods import (
    Period,
    PeriodMode,
    ReportingPeriod,
    filter_movements_by_period,
    resolve_period,
)

logger = get_logger(__name__)

UNASSIGNED_LABEL = "Unassigned"

# Margin reported for a project without any income ("no revenue basis").
MARGIN_NO_REVENUE = -100.0

DEFAULT_TOP_N = 5

# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KPIs:
    income: float
    expense: float
    profit: float
    total_balance: float


@dataclass(frozen=True)
class BreakdownItem:
    """One group of a breakdown. ``project_id`` is None for "Unassigned"."""

    name: str
    amount: float
    project_id: Optional[str] = None


@dataclass(frozen=True)
class Breakdown:
    items: tuple[BreakdownItem, ...]
    total: float


@dataclass(frozen=True)
class TimeSeriesBucket:
    """
    Income and expense of one sub-period.

    Attributes
    ----------
    order:
        Day of month (MONTH mode) or month number (YEAR mode).
    label:
        Display label ("5/3" for 5 March, "Mar" for March).
    date:
        First calendar day covered by the bucket.
    income, expense:
        Sums of normalized amounts.
    """

    order: int
    label: str
    date: date
    income: float
    expense: float


@dataclass(frozen=True)
class RankedProject:
    project_id: str
    name: str
    income: float
    expense: float
    profit: float
    margin: float


@dataclass(frozen=True)
class RankedProvider:
    provider_id: str
    name: str
    amount: float
    count: int


@dataclass(frozen=True)
class RankedClient:
    client_id: str
    name: str
    amount: float
    project_count: int


@dataclass(frozen=True)
class ProjectKPIs:
    """Confirmed income, expense and result of one project."""

    project_id: str
    name: str
    income: float
    expense: float
    result: float
    period_label: Optional[str] = None


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def _validate_top_n(n: int) -> int:
    if isinstance(n, bool) or not isinstance(n, int) or n < 1:
        raise ValidationError(f"n must be a positive integer, got {n!r}.")
    return n


def _group_sum(frame: pd.DataFrame, group: KindGroup) -> float:
    return float(frame.loc[frame["group"] == group.value, "amount"].sum())


class PeriodAggregationEngine:
    """
    Compute KPIs, breakdowns, rankings and time series for a period.

    Parameters
    ----------
    normalizer:
        CurrencyNormalizer used to read amounts in the reporting currency.
    treat_missing_as_zero:
        When True (default), a movement without an amount in the secondary
        currency contributes 0.0 instead of aborting the computation with
        ``IncompleteCurrencyData``.
    """

    def __init__(
        self,
        normalizer: Optional[CurrencyNormalizer] = None,
        treat_missing_as_zero: bool = True,
    ) -> None:
        self.normalizer = normalizer or CurrencyNormalizer()
        self.treat_missing_as_zero = treat_missing_as_zero

    # -- helpers -------------------------------------------------------------

    def _confirmed_frame(
        self,
        movements: Iterable[Movement],
        currency: str,
        period: Optional[Period] = None,
    ) -> pd.DataFrame:
        return movements_to_frame(
            movements,
            currency,
            self.normalizer,
            treat_missing_as_zero=self.treat_missing_as_zero,
            statuses=(MovementStatus.CONFIRMED,),
            start=period.start if period is not None else None,
            end=period.end if period is not None else None,
        )

    def _period_frame(
        self,
        snapshot: Snapshot,
        reporting_period: ReportingPeriod,
        currency: str,
    ) -> tuple[Period, pd.DataFrame]:
        period = resolve_period(reporting_period)
        frame = self._confirmed_frame(snapshot.movements, currency, period)
        logger.debug(
            "Period %s (%s -> %s): %d confirmed movements",
            period.label,
            period.start.isoformat(),
            period.end.isoformat(),
            len(frame),
        )
        return period, frame

    # -- KPIs ----------------------------------------------------------------

    def get_kpis(
        self,
        snapshot: Snapshot,
        reporting_period: ReportingPeriod,
        currency: str,
    ) -> KPIs:
        """
        Compute income, expense, profit and total balance.

        ``income`` sums INCOME and INVESTMENT_IN movements of the period,
        ``expense`` sums EXPENSE and INVESTMENT_OUT movements of the period.
        ``total_balance`` ignores the period: it is the signed sum of every
        confirmed movement ever recorded.
        """
        period = resolve_period(reporting_period)
        all_confirmed = self._confirmed_frame(snapshot.movements, currency)
        in_period = filter_movements_by_period(all_confirmed, period)

        income = _group_sum(in_period, KindGroup.INCOME)
        expense = _group_sum(in_period, KindGroup.EXPENSE)
        total_balance = float(all_confirmed["signed_amount"].sum())

        return KPIs(
            income=income,
            expense=expense,
            profit=income - expense,
            total_balance=total_balance,
        )

    def get_kpis_multi_period(
        self,
        snapshot: Snapshot,
        reporting_periods: list[ReportingPeriod],
        currency: str,
    ) -> pd.DataFrame:
        """
        Compute KPIs for several periods in a single pass.

        The movements frame is built once and filtered per period.

        Returns
        -------
        pandas.DataFrame
            Long-format DataFrame with one row per period and columns:
            period_label, start, end, income, expense, profit, total_balance.

        Raises
        ------
        ValidationError
            If no periods are provided.
        """
        if not reporting_periods:
            raise ValidationError("At least one reporting period is required.")

        periods = [resolve_period(rp) for rp in reporting_periods]
        all_confirmed = self._confirmed_frame(snapshot.movements, currency)
        total_balance = float(all_confirmed["signed_amount"].sum())

        rows: list[dict[str, Any]] = []
        for period in periods:
            in_period = filter_movements_by_period(all_confirmed, period)
            income = _group_sum(in_period, KindGroup.INCOME)
            expense = _group_sum(in_period, KindGroup.EXPENSE)
            rows.append(
                {
                    "period_label": period.label,
                    "start": period.start,
                    "end": period.end,
                    "income": income,
                    "expense": expense,
                    "profit": income - expense,
                    "total_balance": total_balance,
                }
            )

        return pd.DataFrame(rows)

    # -- Breakdowns & rankings -----------------------------------------------

    def get_breakdown_by_project(
        self,
        snapshot: Snapshot,
        reporting_period: ReportingPeriod,
        currency: str,
        kind_group: KindGroup,
    ) -> Breakdown:
        """
        Sum income or expense of the period per project.

        Movements without a project are grouped under "Unassigned". Items
        are sorted by amount, descending.
        """
        group = KindGroup(kind_group)
        _, frame = self._period_frame(snapshot, reporting_period, currency)
        subset = frame.loc[frame["group"] == group.value]

        if subset.empty:
            return Breakdown(items=(), total=0.0)

        assigned = subset.loc[subset["project_id"].notna()]
        unassigned = subset.loc[subset["project_id"].isna()]

        items: list[BreakdownItem] = []
        for project_id, amount in assigned.groupby("project_id")["amount"].sum().items():
            items.append(
                BreakdownItem(
                    name=snapshot.project_name(str(project_id)),
                    amount=float(amount),
                    project_id=str(project_id),
                )
            )
        if not unassigned.empty:
            items.append(
                BreakdownItem(
                    name=UNASSIGNED_LABEL,
                    amount=float(unassigned["amount"].sum()),
                    project_id=None,
                )
            )

        items.sort(key=lambda it: (-it.amount, it.name, it.project_id or ""))
        return Breakdown(items=tuple(items), total=float(subset["amount"].sum()))

    def get_project_ranking(
        self,
        snapshot: Snapshot,
        reporting_period: ReportingPeriod,
        currency: str,
    ) -> tuple[RankedProject, ...]:
        """
        Rank projects by profit (income - expense) over the period.

        ``margin`` is ``profit / income * 100`` when the project has income,
        and ``MARGIN_NO_REVENUE`` (-100.0) otherwise. Movements without a
        project are not ranked.
        """
        _, frame = self._period_frame(snapshot, reporting_period, currency)
        subset = frame.loc[frame["project_id"].notna()]
        if subset.empty:
            return ()

        table = subset.pivot_table(
            index="project_id",
            columns="group",
            values="amount",
            aggfunc="sum",
            fill_value=0.0,
        ).reindex(columns=[KindGroup.INCOME.value, KindGroup.EXPENSE.value], fill_value=0.0)

        ranking: list[RankedProject] = []
        for project_id, row in table.iterrows():
            income = float(row[KindGroup.INCOME.value])
            expense = float(row[KindGroup.EXPENSE.value])
            profit = income - expense
            margin = profit / income * 100.0 if income > 0 else MARGIN_NO_REVENUE
            ranking.append(
                RankedProject(
                    project_id=str(project_id),
                    name=snapshot.project_name(str(project_id)),
                    income=income,
                    expense=expense,
                    profit=profit,
                    margin=margin,
                )
            )

        ranking.sort(key=lambda p: (-p.profit, p.name, p.project_id))
        return tuple(ranking)

    def get_top_providers(
        self,
        snapshot: Snapshot,
        reporting_period: ReportingPeriod,
        currency: str,
        n: int = DEFAULT_TOP_N,
    ) -> tuple[RankedProvider, ...]:
        """Top ``n`` providers by EXPENSE amount over the period."""
        n = _validate_top_n(n)
        _, frame = self._period_frame(snapshot, reporting_period, currency)
        subset = frame.loc[
            (frame["kind"] == MovementKind.EXPENSE.value) & frame["provider_id"].notna()
        ]
        if subset.empty:
            return ()

        grouped = subset.groupby("provider_id")["amount"].agg(["sum", "size"])
        providers = [
            RankedProvider(
                provider_id=str(provider_id),
                name=snapshot.provider_name(str(provider_id)),
                amount=float(row["sum"]),
                count=int(row["size"]),
            )
            for provider_id, row in grouped.iterrows()
        ]
        providers.sort(key=lambda p: (-p.amount, p.name, p.provider_id))
        return tuple(providers[:n])

    def get_top_clients(
        self,
        snapshot: Snapshot,
        reporting_period: ReportingPeriod,
        currency: str,
        n: int = DEFAULT_TOP_N,
    ) -> tuple[RankedClient, ...]:
        """
        Top ``n`` clients by gross INCOME of their projects over the period.

        Each movement is attributed through project -> client. Movements
        whose project is missing, unknown, or has no client are discarded.
        The amount is gross income: project expenses are not subtracted.
        """
        n = _validate_top_n(n)
        _, frame = self._period_frame(snapshot, reporting_period, currency)
        subset = frame.loc[frame["kind"] == MovementKind.INCOME.value].copy()
        if subset.empty:
            return ()

        subset["client_id"] = subset["project_id"].map(snapshot.client_id_for_project)
        subset = subset.loc[subset["client_id"].notna()]
        if subset.empty:
            return ()

        grouped = subset.groupby("client_id").agg(
            amount=("amount", "sum"),
            project_count=("project_id", "nunique"),
        )
        clients = [
            RankedClient(
                client_id=str(client_id),
                name=snapshot.client_name(str(client_id)),
                amount=float(row["amount"]),
                project_count=int(row["project_count"]),
            )
            for client_id, row in grouped.iterrows()
        ]
        clients.sort(key=lambda c: (-c.amount, c.name, c.client_id))
        return tuple(clients[:n])

    # -- Time series ---------------------------------------------------------

    def get_time_series(
        self,
        snapshot: Snapshot,
        reporting_period: ReportingPeriod,
        currency: str,
        include_empty: bool = False,
    ) -> tuple[TimeSeriesBucket, ...]:
        """
        Income and expense per day (MONTH mode) or per month (YEAR mode).

        Buckets are returned in chronological order whatever the order of
        the input movements. Only buckets containing movements are returned
        unless ``include_empty`` is True, in which case every day of the
        month (or every month of the year) is present.
        """
        period, frame = self._period_frame(snapshot, reporting_period, currency)
        by_day = reporting_period.mode is PeriodMode.MONTH

        if by_day:
            all_buckets = list(range(1, period.end.day + 1))
        else:
            all_buckets = list(range(1, 13))

        if frame.empty:
            table = pd.DataFrame(
                columns=[KindGroup.INCOME.value, KindGroup.EXPENSE.value], dtype=float
            )
        else:
            frame = frame.assign(
                bucket=frame["date"].dt.day if by_day else frame["date"].dt.month
            )
            table = frame.pivot_table(
                index="bucket",
                columns="group",
                values="amount",
                aggfunc="sum",
                fill_value=0.0,
            )
            table = table.reindex(
                columns=[KindGroup.INCOME.value, KindGroup.EXPENSE.value],
                fill_value=0.0,
            )

        if include_empty:
            table = table.reindex(all_buckets, fill_value=0.0)
        table = table.sort_index()

        buckets: list[TimeSeriesBucket] = []
        for key, row in table.iterrows():
            order = int(key)
            if by_day:
                bucket_date = date(period.start.year, period.start.month, order)
                label = f"{order}/{period.start.month}"
            else:
                bucket_date = date(period.start.year, order, 1)
                label = month_abbr[order]
            buckets.append(
                TimeSeriesBucket(
                    order=order,
                    label=label,
                    date=bucket_date,
                    income=float(row[KindGroup.INCOME.value]),
                    expense=float(row[KindGroup.EXPENSE.value]),
                )
            )
        return tuple(buckets)

    # -- Project KPIs --------------------------------------------------------

    def get_project_kpis(
        self,
        snapshot: Snapshot,
        project_id: str,
        currency: str,
        reporting_period: Optional[ReportingPeriod] = None,
    ) -> ProjectKPIs:
        """
        Confirmed income, expense and result of a single project.

        Without ``reporting_period`` the figures cover the whole history of
        the project; otherwise they are restricted to the period.
        """
        period: Optional[Period] = None
        if reporting_period is not None:
            period = resolve_period(reporting_period)
        own = [m for m in snapshot.movements if m.project_id == project_id]
        subset = self._confirmed_frame(own, currency, period)
        income = _group_sum(subset, KindGroup.INCOME)
        expense = _group_sum(subset, KindGroup.EXPENSE)

        return ProjectKPIs(
            project_id=project_id,
            name=snapshot.project_name(project_id),
            income=income,
            expense=expense,
            result=income - expense,
            period_label=period.label if period is not None else None,
        )
