# Treasury FinSight - Treasury analytics & liquidity projection for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Liquidity projection engine for Treasury FinSight.

The engine simulates the balance of every active account day by day over a
horizon, starting from each account's realized ``current_balance`` and
adding the signed amounts of the movements (confirmed or pending) scheduled
after today.

Projection rule
---------------
For each account ``a`` and each day ``d`` in ``(today, today + horizon]``:

    projected(a, d) = a.current_balance + sum(signed(m) for m on a if m.date <= d)

Only movements dated strictly after ``today`` and no later than the end of
the horizon are projected: past movements are already folded into
``current_balance``. Movements without an account, or whose account is not
an active account of the snapshot, are ignored here (they still count in
period aggregations, which are an unrelated computation).

Risk
----
An account is *at risk* when its minimum projected balance over the horizon
is below the risk threshold (0.0 by default). The worst balance is recorded
with its date; on ties the earliest date wins.

Because a longer horizon only adds days, an account flagged at risk for a
horizon stays flagged for any longer horizon on the same snapshot.

``risk_only`` only filters which accounts (and pivot columns) are returned;
it never changes the projection itself.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Optional

import pandas as pd

from .currency import CurrencyNormalizer
from .exceptions import ValidationError
from .frames import movements_to_frame
from .logging import get_logger
from .models import Account, Movement, MovementStatus

logger = get_logger(__name__)

DEFAULT_RISK_THRESHOLD = 0.0

PROJECTED_STATUSES = (MovementStatus.CONFIRMED, MovementStatus.PENDING)


def validate_horizon(horizon_days: int) -> int:
    """Return ``horizon_days`` if it is a strictly positive integer."""
    if isinstance(horizon_days, bool) or not isinstance(horizon_days, int):
        raise ValidationError(
            f"horizon_days must be an integer, got {horizon_days!r}."
        )
    if horizon_days <= 0:
        raise ValidationError(
            f"horizon_days must be strictly positive, got {horizon_days}."
        )
    return horizon_days


@dataclass(frozen=True)
class AccountProjection:
    """
    Projected balances of one account.

    Attributes
    ----------
    account_id, name, account_type:
        Identity of the account.
    display_name:
        Column label used in the pivot (the name, disambiguated with the id
        when two accounts share a name).
    current_balance:
        Realized balance as of today.
    balances:
        Projected balance per day, indexed by ``datetime.date``.
    worst_balance, worst_date:
        Minimum projected balance and the earliest day it is reached.
    at_risk:
        True when ``worst_balance`` is below the risk threshold.
    """

    account_id: str
    name: str
    account_type: str
    display_name: str
    current_balance: float
    balances: pd.Series = field(compare=False, repr=False)
    worst_balance: float
    worst_date: date
    at_risk: bool


@dataclass(frozen=True, eq=False)
class LiquidityProjection:
    """
    Result of a liquidity projection.

    Attributes
    ----------
    today:
        Reference date; the first projected day is ``today + 1``.
    horizon_days:
        Number of projected days.
    currency:
        Reporting currency of every balance.
    risk_threshold:
        Threshold used for the at-risk predicate.
    risk_only:
        Whether ``accounts`` and ``series`` were restricted to at-risk
        accounts.
    dates:
        Projected days in chronological order.
    series:
        Pivot DataFrame with a ``date`` column and one column per returned
        account (labelled with its display name).
    totals:
        Sum of the returned accounts' balances per day.
    accounts:
        Returned account projections.
    all_accounts:
        Every account projection, regardless of ``risk_only``.
    """

    today: date
    horizon_days: int
    currency: str
    risk_threshold: float
    risk_only: bool
    dates: tuple[date, ...]
    series: pd.DataFrame
    totals: pd.Series
    accounts: tuple[AccountProjection, ...]
    all_accounts: tuple[AccountProjection, ...]

    @property
    def at_risk_ids(self) -> tuple[str, ...]:
        return tuple(a.account_id for a in self.all_accounts if a.at_risk)

    def to_records(self) -> list[dict[str, Any]]:
        """
        Return the pivot as a list of dicts, one per day.

        Each record has a ``date`` (ISO string), one key per returned account
        display name and a ``total`` key.
        """
        columns = [c for c in self.series.columns if c != "date"]
        records: list[dict[str, Any]] = []
        for _, row in self.series.iterrows():
            day = row["date"]
            record: dict[str, Any] = {"date": day.isoformat()}
            for column in columns:
                record[column] = float(row[column])
            record["total"] = float(self.totals.loc[day])
            records.append(record)
        return records


def _display_names(accounts: list[Account]) -> dict[str, str]:
    counts: dict[str, int] = {}
    for account in accounts:
        counts[account.name] = counts.get(account.name, 0) + 1
    return {
        a.id: a.name if counts[a.name] == 1 else f"{a.name} ({a.id})" for a in accounts
    }


class LiquidityProjectionEngine:
    """
    Simulate forward daily balances per account and detect at-risk accounts.

    Parameters
    ----------
    normalizer:
        CurrencyNormalizer used to read amounts in the reporting currency.
    risk_threshold:
        An account is at risk when its minimum projected balance is strictly
        below this value.
    treat_missing_as_zero:
        Forwarded to the normalizer for movements without a secondary amount.
    """

    def __init__(
        self,
        normalizer: Optional[CurrencyNormalizer] = None,
        risk_threshold: float = DEFAULT_RISK_THRESHOLD,
        treat_missing_as_zero: bool = True,
    ) -> None:
        self.normalizer = normalizer or CurrencyNormalizer()
        self.risk_threshold = float(risk_threshold)
        self.treat_missing_as_zero = treat_missing_as_zero

    def project(
        self,
        accounts: Iterable[Account],
        movements: Iterable[Movement],
        today: date,
        horizon_days: int,
        risk_only: bool = False,
        currency: Optional[str] = None,
    ) -> LiquidityProjection:
        """
        Project daily balances over ``(today, today + horizon_days]``.

        Args:
            accounts: Accounts of the snapshot; inactive ones are skipped.
            movements: Movements of the snapshot (all statuses accepted,
                only CONFIRMED and PENDING are projected).
            today: Reference date of the snapshot.
            horizon_days: Strictly positive number of days to project.
            risk_only: Restrict the returned accounts to at-risk ones.
            currency: Reporting currency (primary currency by default).

        Raises:
            ValidationError: if the horizon or the currency is invalid.
        """
        horizon = validate_horizon(horizon_days)
        code = self.normalizer.validate(currency or self.normalizer.primary)

        unique: dict[str, Account] = {}
        for account in accounts:
            if account.is_active and account.id not in unique:
                unique[account.id] = account
        active = sorted(unique.values(), key=lambda a: (a.name, a.id))
        ids = [a.id for a in active]

        dates = tuple(today + timedelta(days=i) for i in range(1, horizon + 1))
        end = dates[-1]
        index = pd.DatetimeIndex([pd.Timestamp(d) for d in dates])

        # Only movements of projected accounts inside the window are normalized.
        qualifying = movements_to_frame(
            (m for m in movements if m.account_id in unique),
            code,
            self.normalizer,
            treat_missing_as_zero=self.treat_missing_as_zero,
            statuses=PROJECTED_STATUSES,
            start=dates[0],
            end=end,
        )

        if qualifying.empty or not ids:
            daily = pd.DataFrame(0.0, index=index, columns=ids)
        else:
            daily = qualifying.pivot_table(
                index="date",
                columns="account_id",
                values="signed_amount",
                aggfunc="sum",
                fill_value=0.0,
            ).reindex(index=index, columns=ids, fill_value=0.0)

        opening = pd.Series(
            {a.id: float(a.current_balance) for a in active}, index=ids, dtype=float
        )
        balances = daily.cumsum().add(opening, axis="columns")
        balances.index = pd.Index(dates, name="date")

        names = _display_names(active)
        projections: list[AccountProjection] = []
        for account in active:
            column = balances[account.id].astype(float)
            worst_date = column.idxmin()
            worst_balance = float(column.loc[worst_date])
            projections.append(
                AccountProjection(
                    account_id=account.id,
                    name=account.name,
                    account_type=account.type,
                    display_name=names[account.id],
                    current_balance=float(account.current_balance),
                    balances=column.rename(names[account.id]),
                    worst_balance=worst_balance,
                    worst_date=worst_date,
                    at_risk=worst_balance < self.risk_threshold,
                )
            )

        visible = [p for p in projections if p.at_risk] if risk_only else projections
        visible_ids = [p.account_id for p in visible]

        series = balances[visible_ids].rename(columns=names).reset_index()
        totals = balances[visible_ids].sum(axis=1).rename("total")

        logger.debug(
            "Projected %d accounts over %d days from %s: %d movements, %d at risk",
            len(projections),
            horizon,
            today.isoformat(),
            len(qualifying),
            sum(1 for p in projections if p.at_risk),
        )

        return LiquidityProjection(
            today=today,
            horizon_days=horizon,
            currency=code,
            risk_threshold=self.risk_threshold,
            risk_only=bool(risk_only),
            dates=dates,
            series=series,
            totals=totals,
            accounts=tuple(visible),
            all_accounts=tuple(projections),
        )
