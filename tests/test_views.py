from datetime import date

import pytest

from treasury_finsight.analytics import PeriodAggregationEngine
from treasury_finsight.liquidity import LiquidityProjectionEngine
from treasury_finsight.models import KindGroup
from treasury_finsight.periods import ReportingPeriod
from treasury_finsight.risk import RiskRankingService
from treasury_finsight.views import (
    breakdown_to_dataframe,
    clients_to_dataframe,
    kpis_to_dataframe,
    liquidity_to_dataframe,
    project_ranking_to_dataframe,
    providers_to_dataframe,
    risk_summary_to_dataframe,
    time_series_to_dataframe,
)

MARCH = ReportingPeriod.for_month(2025, 3)


@pytest.fixture
def engine() -> PeriodAggregationEngine:
    return PeriodAggregationEngine()


def test_kpis_to_dataframe(engine, snapshot) -> None:
    df = kpis_to_dataframe(engine.get_kpis(snapshot, MARCH, "ARS"))

    assert list(df["key"]) == ["income", "expense", "profit", "total_balance"]
    assert list(df["value"]) == [2050.0, 750.0, 1300.0, 1600.0]


def test_breakdown_to_dataframe_keeps_order_and_shares(engine, snapshot) -> None:
    breakdown = engine.get_breakdown_by_project(snapshot, MARCH, "ARS", KindGroup.INCOME)
    df = breakdown_to_dataframe(breakdown, decimals=1)

    assert list(df.columns) == ["project_id", "name", "amount", "share_pct"]
    assert list(df["name"]) == ["Alpha", "Beta", "Gamma", "Unassigned"]
    assert df["project_id"].iloc[-1] == ""
    assert df["share_pct"].iloc[0] == pytest.approx(48.8)


def test_ranking_and_top_lists_to_dataframe(engine, snapshot) -> None:
    ranking = project_ranking_to_dataframe(engine.get_project_ranking(snapshot, MARCH, "ARS"))
    providers = providers_to_dataframe(engine.get_top_providers(snapshot, MARCH, "ARS"))
    clients = clients_to_dataframe(engine.get_top_clients(snapshot, MARCH, "ARS"))

    assert list(ranking["margin"]) == [80.0, 90.0, -33.33]
    assert list(providers["count"]) == [1, 2]
    assert list(clients["project_count"]) == [2, 1]


def test_time_series_to_dataframe(engine, snapshot) -> None:
    df = time_series_to_dataframe(engine.get_time_series(snapshot, MARCH, "ARS"))

    assert df["date"].iloc[0] == "2025-03-05"
    assert list(df["net"])[:2] == [1000.0, 500.0]


def test_empty_views_keep_columns() -> None:
    assert list(providers_to_dataframe(()).columns) == [
        "provider_id",
        "name",
        "amount",
        "count",
    ]
    assert time_series_to_dataframe(()).empty


def test_liquidity_and_risk_views(accounts) -> None:
    projection = LiquidityProjectionEngine().project(accounts, [], date(2025, 1, 1), 2)
    summary = RiskRankingService().summarize(projection)

    df = liquidity_to_dataframe(projection)
    assert list(df.columns) == ["date", "Bank", "Cash", "total"]
    assert list(df["total"]) == [1050.0, 1050.0]
    assert risk_summary_to_dataframe(summary).empty
