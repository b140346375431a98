# Treasury FinSight - Treasury analytics & liquidity projection for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Treasury FinSight
-----------------

A Python library and command-line tool computing treasury analytics for
Small and Medium-sized Businesses (SMBs) from a ledger of financial
movements (income, expenses, investment contributions and returns).

Main capabilities:
- period KPIs (income, expense, profit) and a period-independent balance,
- breakdowns and rankings per project, provider and client,
- chronological income/expense time series (by day or by month),
- dual-currency reporting from pre-converted amounts,
- forward liquidity projection per account over a horizon of days,
- risk detection and ranking of accounts projected to run negative.

Treasury FinSight separates data access (repositories), computation
(pure engines over an immutable snapshot) and presentation (CLI views).

Version: 0.1.0

Usage:
    python -m treasury_finsight.cli --help
"""

__all__ = ["analytics", "liquidity", "risk", "service", "views"]

__version__ = "0.1.0"
