# Treasury FinSight - Treasury analytics & liquidity projection for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Tabular views for Treasury FinSight.

The engines return small immutable view models (dataclasses). This module
converts them into pandas DataFrames with a stable column order and rounded
amounts, ready to be printed as console tables or exported as CSV files by
the CLI.

The row order chosen by the engines (ranking order, chronological order)
is always preserved; views never re-sort.
"""

from collections.abc import Sequence

import pandas as pd

from .analytics import (
    KPIs,
    Breakdown,
    ProjectKPIs,
    RankedClient,
    RankedProject,
    RankedProvider,
    TimeSeriesBucket,
)
from .liquidity import LiquidityProjection
from .risk import RiskSummary

KPI_COLUMNS = ["key", "label", "value"]
BREAKDOWN_COLUMNS = ["project_id", "name", "amount", "share_pct"]
TIME_SERIES_COLUMNS = ["order", "label", "date", "income", "expense", "net"]
RANKING_COLUMNS = ["project_id", "name", "income", "expense", "profit", "margin"]
PROVIDER_COLUMNS = ["provider_id", "name", "amount", "count"]
CLIENT_COLUMNS = ["client_id", "name", "amount", "project_count"]
RISK_COLUMNS = ["account_id", "name", "worst_balance", "worst_date"]


def _round(value: float, decimals: int) -> float:
    return round(float(value), decimals)


def kpis_to_dataframe(kpis: KPIs, decimals: int = 2) -> pd.DataFrame:
    """
    Convert KPIs into a key/label/value DataFrame (one row per figure).
    """
    rows = [
        {"key": "income", "label": "Income", "value": _round(kpis.income, decimals)},
        {"key": "expense", "label": "Expense", "value": _round(kpis.expense, decimals)},
        {"key": "profit", "label": "Profit", "value": _round(kpis.profit, decimals)},
        {
            "key": "total_balance",
            "label": "Total balance",
            "value": _round(kpis.total_balance, decimals),
        },
    ]
    return pd.DataFrame(rows, columns=KPI_COLUMNS)


def project_kpis_to_dataframe(kpis: ProjectKPIs, decimals: int = 2) -> pd.DataFrame:
    rows = [
        {"key": "income", "label": "Income", "value": _round(kpis.income, decimals)},
        {"key": "expense", "label": "Expense", "value": _round(kpis.expense, decimals)},
        {"key": "result", "label": "Result", "value": _round(kpis.result, decimals)},
    ]
    return pd.DataFrame(rows, columns=KPI_COLUMNS)


def breakdown_to_dataframe(breakdown: Breakdown, decimals: int = 2) -> pd.DataFrame:
    """
    Convert a Breakdown into a DataFrame.

    Columns:
        - project_id: Project identifier (empty for "Unassigned").
        - name:       Project name.
        - amount:     Rounded amount.
        - share_pct:  Share of the breakdown total, in percent (0.0 when the
                      total is zero).
    """
    rows: list[dict[str, object]] = []
    for item in breakdown.items:
        share = item.amount / breakdown.total * 100.0 if breakdown.total else 0.0
        rows.append(
            {
                "project_id": item.project_id or "",
                "name": item.name,
                "amount": _round(item.amount, decimals),
                "share_pct": _round(share, decimals),
            }
        )
    return pd.DataFrame(rows, columns=BREAKDOWN_COLUMNS)


def time_series_to_dataframe(
    buckets: Sequence[TimeSeriesBucket], decimals: int = 2
) -> pd.DataFrame:
    rows = [
        {
            "order": b.order,
            "label": b.label,
            "date": b.date.isoformat(),
            "income": _round(b.income, decimals),
            "expense": _round(b.expense, decimals),
            "net": _round(b.income - b.expense, decimals),
        }
        for b in buckets
    ]
    return pd.DataFrame(rows, columns=TIME_SERIES_COLUMNS)


def project_ranking_to_dataframe(
    ranking: Sequence[RankedProject], decimals: int = 2
) -> pd.DataFrame:
    rows = [
        {
            "project_id": p.project_id,
            "name": p.name,
            "income": _round(p.income, decimals),
            "expense": _round(p.expense, decimals),
            "profit": _round(p.profit, decimals),
            "margin": _round(p.margin, decimals),
        }
        for p in ranking
    ]
    return pd.DataFrame(rows, columns=RANKING_COLUMNS)


def providers_to_dataframe(
    providers: Sequence[RankedProvider], decimals: int = 2
) -> pd.DataFrame:
    rows = [
        {
            "provider_id": p.provider_id,
            "name": p.name,
            "amount": _round(p.amount, decimals),
            "count": p.count,
        }
        for p in providers
    ]
    return pd.DataFrame(rows, columns=PROVIDER_COLUMNS)


def clients_to_dataframe(
    clients: Sequence[RankedClient], decimals: int = 2
) -> pd.DataFrame:
    rows = [
        {
            "client_id": c.client_id,
            "name": c.name,
            "amount": _round(c.amount, decimals),
            "project_count": c.project_count,
        }
        for c in clients
    ]
    return pd.DataFrame(rows, columns=CLIENT_COLUMNS)


def liquidity_to_dataframe(
    projection: LiquidityProjection, decimals: int = 2
) -> pd.DataFrame:
    """
    Convert a LiquidityProjection into its pivot DataFrame.

    One row per projected day with a ``date`` column (ISO string), one
    column per returned account (display name) and a ``total`` column.
    """
    df = pd.DataFrame(projection.to_records())
    if df.empty:
        return pd.DataFrame(columns=["date", "total"])
    numeric = [c for c in df.columns if c != "date"]
    df[numeric] = df[numeric].round(decimals)
    return df


def risk_summary_to_dataframe(summary: RiskSummary, decimals: int = 2) -> pd.DataFrame:
    """
    Convert the at-risk accounts of a RiskSummary into a DataFrame.

    Rows keep the summary order: worst balance first.
    """
    rows = [
        {
            "account_id": a.account_id,
            "name": a.name,
            "worst_balance": _round(a.worst_balance, decimals),
            "worst_date": a.worst_date.isoformat(),
        }
        for a in summary.at_risk
    ]
    return pd.DataFrame(rows, columns=RISK_COLUMNS)
