# Treasury FinSight - Treasury analytics & liquidity projection for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Risk summary of a liquidity projection.

``RiskRankingService.summarize()`` reduces per-account projections into:

- the number of projected accounts,
- the number of accounts at risk,
- the worst projected balance across all accounts and days,
- the list of at-risk accounts, worst first.

Summaries are always computed over every projected account, so the
``risk_only`` flag of the projection does not change them.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from .liquidity import AccountProjection, LiquidityProjection
from .logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class WorstBalance:
    amount: float
    date: date
    account: str
    account_id: str


@dataclass(frozen=True)
class AtRiskAccount:
    account_id: str
    name: str
    worst_balance: float
    worst_date: date


@dataclass(frozen=True)
class RiskSummary:
    total_accounts: int
    at_risk_count: int
    worst_balance: Optional[WorstBalance]
    at_risk: tuple[AtRiskAccount, ...] = ()


def _rank_key(p: AccountProjection) -> tuple[float, date, str]:
    # Lowest balance first, then earliest date, then lowest account id.
    return (p.worst_balance, p.worst_date, p.account_id)


class RiskRankingService:
    """Reduce a LiquidityProjection into a RiskSummary."""

    def summarize(self, projection: LiquidityProjection) -> RiskSummary:
        """
        Summarize the risk of a projection.

        Returns a zeroed summary (``worst_balance`` None) when the projection
        holds no account.
        """
        projections = projection.all_accounts
        if not projections:
            return RiskSummary(total_accounts=0, at_risk_count=0, worst_balance=None)

        ranked = sorted(projections, key=_rank_key)
        worst = ranked[0]
        at_risk = tuple(
            AtRiskAccount(
                account_id=p.account_id,
                name=p.name,
                worst_balance=p.worst_balance,
                worst_date=p.worst_date,
            )
            for p in ranked
            if p.at_risk
        )

        logger.debug(
            "Risk summary: %d accounts, %d at risk, worst %.2f on %s (%s)",
            len(projections),
            len(at_risk),
            worst.worst_balance,
            worst.worst_date.isoformat(),
            worst.name,
        )

        return RiskSummary(
            total_accounts=len(projections),
            at_risk_count=len(at_risk),
            worst_balance=WorstBalance(
                amount=worst.worst_balance,
                date=worst.worst_date,
                account=worst.name,
                account_id=worst.account_id,
            ),
            at_risk=at_risk,
        )
