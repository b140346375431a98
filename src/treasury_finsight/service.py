# Treasury FinSight - Treasury analytics & liquidity projection for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Service layer for Treasury FinSight.

``TreasuryService`` is the entry point used by presentation layers (CLI,
dashboards). For each call it:

1. validates the parameters (period, currency, horizon) before any I/O,
2. fetches a snapshot from the repository (accounts, movements, projects,
   providers and clients are fetched concurrently),
3. runs the pure engines over the snapshot and returns their view models.

Every call fetches a fresh snapshot; nothing is cached between calls.
Repository errors propagate unchanged to the caller, which owns any retry
policy.

Entry points
------------
Period analytics (``analytics.PeriodAggregationEngine``):

- get_kpis(period, currency)
- get_kpis_multi_period(periods, currency)
- get_breakdown_by_project(period, currency, kind_group)
- get_time_series(period, currency)
- get_project_ranking(period, currency)
- get_top_providers(period, currency, n)
- get_top_clients(period, currency, n)
- get_project_kpis(project_id, currency, period)

Liquidity (``liquidity.LiquidityProjectionEngine`` and ``risk``):

- get_liquidity_projection(today, horizon_days, risk_only)
- get_risk_summary(today, horizon_days, risk_only)

``today`` is always passed explicitly so that results are reproducible.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
from typing import Optional

import pandas as pd

from .analytics import (
    KPIs,
    Breakdown,
    PeriodAggregationEngine,
    ProjectKPIs,
    RankedClient,
    RankedProject,
    RankedProvider,
    TimeSeriesBucket,
)
from .config import AppConfig, default_settings
from .liquidity import (
    PROJECTED_STATUSES,
    LiquidityProjection,
    LiquidityProjectionEngine,
    validate_horizon,
)
from .logging import get_logger
from .models import KindGroup, Snapshot
from .periods import ReportingPeriod, resolve_period
from .repository import AccountFilter, MovementFilter, MovementRepository
from .risk import RiskRankingService, RiskSummary

logger = get_logger(__name__)


class TreasuryService:
    """
    Fetch snapshots from a repository and run the treasury engines.

    Parameters
    ----------
    repository:
        Read-only data source.
    config:
        Application configuration; built-in defaults when omitted.
    """

    def __init__(
        self,
        repository: MovementRepository,
        config: Optional[AppConfig] = None,
    ) -> None:
        self.repository = repository
        self.config = config or default_settings()

        normalizer = self.config.currency.normalizer()
        self.normalizer = normalizer
        self.aggregation = PeriodAggregationEngine(
            normalizer=normalizer,
            treat_missing_as_zero=self.config.analytics.treat_missing_secondary_as_zero,
        )
        self.liquidity = LiquidityProjectionEngine(
            normalizer=normalizer,
            risk_threshold=self.config.liquidity.risk_threshold,
            treat_missing_as_zero=self.config.analytics.treat_missing_secondary_as_zero,
        )
        self.risk = RiskRankingService()

    # -- snapshot ------------------------------------------------------------

    def load_snapshot(
        self,
        movement_filter: Optional[MovementFilter] = None,
        account_filter: Optional[AccountFilter] = None,
    ) -> Snapshot:
        """
        Fetch every collection of the snapshot concurrently.

        The five repository queries run in a thread pool; the snapshot is
        assembled once all of them have returned. The first exception raised
        by a query propagates to the caller.
        """
        with ThreadPoolExecutor(max_workers=5) as pool:
            movements = pool.submit(self.repository.list_movements, movement_filter)
            accounts = pool.submit(self.repository.list_accounts, account_filter)
            projects = pool.submit(self.repository.list_projects)
            providers = pool.submit(self.repository.list_providers)
            clients = pool.submit(self.repository.list_clients)

            snapshot = Snapshot(
                movements=movements.result(),
                accounts=accounts.result(),
                projects=projects.result(),
                providers=providers.result(),
                clients=clients.result(),
            )

        logger.debug(
            "Snapshot loaded: %d movements, %d accounts, %d projects, "
            "%d providers, %d clients",
            len(snapshot.movements),
            len(snapshot.accounts),
            len(snapshot.projects),
            len(snapshot.providers),
            len(snapshot.clients),
        )
        return snapshot

    def _currency(self, currency: Optional[str]) -> str:
        return self.normalizer.validate(currency or self.config.currency.default)

    def _period_snapshot(
        self, period: ReportingPeriod, currency: Optional[str]
    ) -> tuple[Snapshot, str]:
        # Validate before fetching anything.
        code = self._currency(currency)
        resolved = resolve_period(period)
        logger.info(
            "Computing analytics for %s (%s -> %s) in %s",
            resolved.label,
            resolved.start.isoformat(),
            resolved.end.isoformat(),
            code,
        )
        return self.load_snapshot(), code

    # -- period analytics ----------------------------------------------------

    def get_kpis(self, period: ReportingPeriod, currency: Optional[str] = None) -> KPIs:
        snapshot, code = self._period_snapshot(period, currency)
        return self.aggregation.get_kpis(snapshot, period, code)

    def get_kpis_multi_period(
        self,
        periods: list[ReportingPeriod],
        currency: Optional[str] = None,
    ) -> pd.DataFrame:
        code = self._currency(currency)
        for period in periods:
            resolve_period(period)
        return self.aggregation.get_kpis_multi_period(self.load_snapshot(), periods, code)

    def get_breakdown_by_project(
        self,
        period: ReportingPeriod,
        currency: Optional[str] = None,
        kind_group: KindGroup = KindGroup.INCOME,
    ) -> Breakdown:
        snapshot, code = self._period_snapshot(period, currency)
        return self.aggregation.get_breakdown_by_project(snapshot, period, code, kind_group)

    def get_time_series(
        self,
        period: ReportingPeriod,
        currency: Optional[str] = None,
        include_empty: bool = False,
    ) -> tuple[TimeSeriesBucket, ...]:
        snapshot, code = self._period_snapshot(period, currency)
        return self.aggregation.get_time_series(
            snapshot, period, code, include_empty=include_empty
        )

    def get_project_ranking(
        self,
        period: ReportingPeriod,
        currency: Optional[str] = None,
    ) -> tuple[RankedProject, ...]:
        snapshot, code = self._period_snapshot(period, currency)
        return self.aggregation.get_project_ranking(snapshot, period, code)

    def get_top_providers(
        self,
        period: ReportingPeriod,
        currency: Optional[str] = None,
        n: Optional[int] = None,
    ) -> tuple[RankedProvider, ...]:
        snapshot, code = self._period_snapshot(period, currency)
        return self.aggregation.get_top_providers(
            snapshot, period, code, n=self.config.analytics.top_n if n is None else n
        )

    def get_top_clients(
        self,
        period: ReportingPeriod,
        currency: Optional[str] = None,
        n: Optional[int] = None,
    ) -> tuple[RankedClient, ...]:
        snapshot, code = self._period_snapshot(period, currency)
        return self.aggregation.get_top_clients(
            snapshot, period, code, n=self.config.analytics.top_n if n is None else n
        )

    def get_project_kpis(
        self,
        project_id: str,
        currency: Optional[str] = None,
        period: Optional[ReportingPeriod] = None,
    ) -> ProjectKPIs:
        code = self._currency(currency)
        snapshot = self.load_snapshot(MovementFilter(project_id=project_id))
        return self.aggregation.get_project_kpis(
            snapshot, project_id, code, reporting_period=period
        )

    # -- liquidity -----------------------------------------------------------

    def get_liquidity_projection(
        self,
        today: date,
        horizon_days: Optional[int] = None,
        risk_only: bool = False,
        currency: Optional[str] = None,
    ) -> LiquidityProjection:
        horizon = validate_horizon(
            self.config.liquidity.horizon_days if horizon_days is None else horizon_days
        )
        code = self._currency(currency)
        logger.info(
            "Projecting liquidity from %s over %d days in %s (risk only: %s)",
            today.isoformat(),
            horizon,
            code,
            risk_only,
        )

        snapshot = self.load_snapshot(
            movement_filter=MovementFilter(
                start=today + timedelta(days=1),
                end=today + timedelta(days=horizon),
                statuses=frozenset(PROJECTED_STATUSES),
            ),
            account_filter=AccountFilter(active_only=True),
        )
        return self.liquidity.project(
            snapshot.accounts,
            snapshot.movements,
            today=today,
            horizon_days=horizon,
            risk_only=risk_only,
            currency=code,
        )

    def get_risk_summary(
        self,
        today: date,
        horizon_days: Optional[int] = None,
        risk_only: bool = False,
        currency: Optional[str] = None,
    ) -> RiskSummary:
        projection = self.get_liquidity_projection(
            today, horizon_days=horizon_days, risk_only=risk_only, currency=currency
        )
        return self.risk.summarize(projection)
