# Treasury FinSight - Treasury analytics & liquidity projection for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for Treasury FinSight.

This module wires together the main building blocks of Treasury FinSight:

- global configuration (currencies, data source, display and logging),
- the repository selected by the configuration (CSV directory or SQLite),
- the treasury service (period analytics, liquidity projection, risk),
- view helpers (tabular rendering).

The CLI is intentionally thin: it does not implement any treasury logic
itself. It builds a reporting period and a reference date from the
command-line arguments, calls ``TreasuryService`` and renders the result.


Commands
--------

    kpis            Income, expense, profit and total balance for a period
                    (``--by-month`` prints one row per month of the year).
    breakdown       Income or expense per project (``--group``).
    timeseries      Income and expense per day (month) or per month (year).
    ranking         Projects ranked by profit, with margin.
    top-providers   Providers ranked by expense amount.
    top-clients     Clients ranked by gross income of their projects.
    project         Income, expense and result of a single project.
    liquidity       Projected daily balance per active account.
    risk            Accounts projected to go below the risk threshold.


Reporting period and reference date
-----------------------------------

``--mode`` selects a calendar month (default) or a calendar year. The
period is given by ``--year`` and ``--month``; when omitted, the month or
year containing the reference date is used. The reference date is
``--today`` (YYYY-MM-DD) or the current date. The current date is only read
here: the service and the engines always receive it explicitly.


Display modes
-------------

- ``table`` (default): print pandas tables to stdout,
- ``csv``:  write timestamped CSV files under ``--output`` (default
  ``data/output``),
- ``both``: do both.

Logs are written to stderr and never mix with table output.


Examples
--------

    python -m treasury_finsight.cli kpis --mode year --year 2025
    python -m treasury_finsight.cli breakdown --group expense --month 3
    python -m treasury_finsight.cli liquidity --horizon 60 --risk-only
    treasury-finsight risk --today 2025-06-30 --display-mode both
"""

import argparse
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from . import __version__
from .config import (
    DEFAULT_CONFIG_FILE,
    DISPLAY_MODES,
    AppConfig,
    build_repository,
    default_settings,
    load_app_config,
)
from .exceptions import TreasuryError
from .logging import get_logger, setup_logging
from .models import KindGroup
from .periods import PeriodMode, ReportingPeriod, months_of_year
from .service import TreasuryService
from .views import (
    breakdown_to_dataframe,
    clients_to_dataframe,
    kpis_to_dataframe,
    liquidity_to_dataframe,
    project_kpis_to_dataframe,
    project_ranking_to_dataframe,
    providers_to_dataframe,
    risk_summary_to_dataframe,
    time_series_to_dataframe,
)

logger = get_logger(__name__)

COMMANDS = (
    "kpis",
    "breakdown",
    "timeseries",
    "ranking",
    "top-providers",
    "top-clients",
    "project",
    "liquidity",
    "risk",
)


def _add_period_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--mode",
        choices=["month", "year"],
        default="month",
        help="Reporting period granularity (default: month).",
    )
    parser.add_argument(
        "--year",
        type=int,
        help="Calendar year. Defaults to the year of the reference date.",
    )
    parser.add_argument(
        "--month",
        type=int,
        help="Month number (1-12) in month mode. Defaults to the month of "
        "the reference date.",
    )


def _add_horizon_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--horizon",
        dest="horizon_days",
        type=int,
        help="Projection horizon in days. Defaults to liquidity.horizon_days "
        "from the configuration.",
    )
    parser.add_argument(
        "--risk-only",
        action="store_true",
        help="Only show accounts projected to go below the risk threshold.",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="python -m treasury_finsight.cli",
        description=(
            "Treasury FinSight - Treasury analytics & liquidity projection for "
            "SMBs. Reads financial movements and accounts, computes period "
            "KPIs, rankings and time series, and projects account balances "
            "to detect liquidity risk."
        ),
    )

    # Generic options
    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of treasury_finsight and exit.",
    )
    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the main TOML configuration file. If omitted, "
            f"'{DEFAULT_CONFIG_FILE}' in the current directory is used when "
            "present, otherwise built-in defaults apply."
        ),
    )
    ap.add_argument(
        "--currency",
        help="Reporting currency code. Defaults to currency.default.",
    )
    ap.add_argument(
        "--today",
        help="Reference date (YYYY-MM-DD). Defaults to the current date.",
    )
    ap.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=list(DISPLAY_MODES),
        help=(
            "Override display.mode from the configuration: 'table' prints "
            "to the console, 'csv' writes files, 'both' does both."
        ),
    )
    ap.add_argument(
        "--output",
        dest="output_dir",
        help="Directory where CSV files are written (default: data/output).",
    )
    ap.add_argument(
        "--log-level",
        dest="log_level",
        help="Override logging.level from the configuration.",
    )

    subparsers = ap.add_subparsers(
        dest="command",
        metavar="command",
        help="One of: " + ", ".join(COMMANDS) + ".",
    )

    # kpis
    kpis = subparsers.add_parser(
        "kpis", help="Income, expense, profit and total balance for a period."
    )
    _add_period_arguments(kpis)
    kpis.add_argument(
        "--by-month",
        action="store_true",
        help="Print one row per month of the selected year.",
    )

    # breakdown
    breakdown = subparsers.add_parser(
        "breakdown", help="Income or expense per project for a period."
    )
    _add_period_arguments(breakdown)
    breakdown.add_argument(
        "--group",
        choices=["income", "expense"],
        default="income",
        help="Side of the ledger to break down (default: income).",
    )

    # timeseries
    timeseries = subparsers.add_parser(
        "timeseries",
        help="Income and expense per day (month mode) or per month (year mode).",
    )
    _add_period_arguments(timeseries)
    timeseries.add_argument(
        "--include-empty",
        action="store_true",
        help="Also print days or months without any movement.",
    )

    # ranking
    ranking = subparsers.add_parser("ranking", help="Projects ranked by profit.")
    _add_period_arguments(ranking)

    # top-providers / top-clients
    for name, helptext in (
        ("top-providers", "Providers ranked by expense amount."),
        ("top-clients", "Clients ranked by gross income of their projects."),
    ):
        top = subparsers.add_parser(name, help=helptext)
        _add_period_arguments(top)
        top.add_argument(
            "-n",
            dest="top_n",
            type=int,
            help="Number of entries to show. Defaults to analytics.top_n.",
        )

    # project
    project = subparsers.add_parser(
        "project", help="Income, expense and result of a single project."
    )
    project.add_argument("project_id", help="Identifier of the project.")
    _add_period_arguments(project)
    project.add_argument(
        "--all-time",
        action="store_true",
        help="Ignore the period and cover the whole history of the project.",
    )

    # liquidity / risk
    liquidity = subparsers.add_parser(
        "liquidity", help="Projected daily balance per active account."
    )
    _add_horizon_arguments(liquidity)

    risk = subparsers.add_parser(
        "risk", help="Accounts projected to go below the risk threshold."
    )
    _add_horizon_arguments(risk)

    return ap


def _parse_optional_date(value: Optional[str]) -> Optional[date]:
    """
    Parse an optional CLI date argument (YYYY-MM-DD).

    Raises
    ------
    SystemExit
        If the date format is invalid.
    """
    if value is None:
        return None

    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        msg = f"Invalid date format: {value!r}. Expected YYYY-MM-DD."
        raise SystemExit(msg) from exc


def _load_config(config_path: Optional[str]) -> AppConfig:
    if config_path:
        return load_app_config(config_path)
    if Path(DEFAULT_CONFIG_FILE).is_file():
        return load_app_config()
    return default_settings()


def _reporting_period(args: argparse.Namespace, today: date) -> ReportingPeriod:
    """Build the ReportingPeriod from --mode/--year/--month and the reference date."""
    mode = PeriodMode(args.mode.upper())
    year = args.year if args.year is not None else today.year
    if mode is PeriodMode.YEAR:
        return ReportingPeriod.for_year(year)
    month = args.month if args.month is not None else today.month
    return ReportingPeriod.for_month(year, month)


def _render(
    name: str,
    title: str,
    df: pd.DataFrame,
    display_mode: str,
    output_dir: Path,
) -> None:
    """Print ``df`` and/or write it to a timestamped CSV file."""
    if display_mode in {"table", "both"}:
        print()
        print(f"=== {title} ===")
        if df.empty:
            print("No data for the given criteria.")
        else:
            print(df.to_string(index=False))

    if display_mode in {"csv", "both"}:
        output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
        path = output_dir / f"{name}_{timestamp}.csv"
        df.to_csv(path, index=False)
        print(f"Wrote {path} ({len(df)} rows)")


def _run_command(
    args: argparse.Namespace,
    service: TreasuryService,
    config: AppConfig,
    today: date,
) -> tuple[str, str, pd.DataFrame]:
    """Run the selected command and return the (name, title, table) to render."""
    decimals = config.display.decimals
    currency = args.currency
    code = currency.upper() if currency else config.currency.default
    command = args.command

    if command == "liquidity":
        projection = service.get_liquidity_projection(
            today,
            horizon_days=args.horizon_days,
            risk_only=args.risk_only,
            currency=currency,
        )
        first, last = projection.dates[0], projection.dates[-1]
        title = (
            f"Liquidity projection ({projection.currency}) "
            f"{first.isoformat()} -> {last.isoformat()}"
        )
        return "liquidity", title, liquidity_to_dataframe(projection, decimals)

    if command == "risk":
        summary = service.get_risk_summary(
            today,
            horizon_days=args.horizon_days,
            risk_only=args.risk_only,
            currency=currency,
        )
        if summary.worst_balance is None:
            headline = "no active account"
        else:
            wb = summary.worst_balance
            headline = (
                f"{summary.at_risk_count}/{summary.total_accounts} accounts at risk, "
                f"worst {wb.amount:.{decimals}f} on {wb.date.isoformat()} ({wb.account})"
            )
        return (
            "risk",
            f"Liquidity risk: {headline}",
            risk_summary_to_dataframe(summary, decimals),
        )

    period = _reporting_period(args, today)
    if period.month is None:
        label = f"{period.year} ({code})"
    else:
        label = f"{period.year}-{period.month:02d} ({code})"

    if command == "kpis":
        if args.by_month:
            df = service.get_kpis_multi_period(months_of_year(period.year), currency)
            numeric = ["income", "expense", "profit", "total_balance"]
            df[numeric] = df[numeric].round(decimals)
            return "kpis_by_month", f"KPIs by month {period.year} ({code})", df
        kpis = service.get_kpis(period, currency)
        return "kpis", f"KPIs {label}", kpis_to_dataframe(kpis, decimals)

    if command == "breakdown":
        group = KindGroup(args.group.upper())
        breakdown = service.get_breakdown_by_project(period, currency, group)
        return (
            f"breakdown_{args.group}",
            f"{args.group.capitalize()} by project {label}",
            breakdown_to_dataframe(breakdown, decimals),
        )

    if command == "timeseries":
        buckets = service.get_time_series(
            period, currency, include_empty=args.include_empty
        )
        return (
            "timeseries",
            f"Time series {label}",
            time_series_to_dataframe(buckets, decimals),
        )

    if command == "ranking":
        ranking = service.get_project_ranking(period, currency)
        return (
            "ranking",
            f"Project ranking {label}",
            project_ranking_to_dataframe(ranking, decimals),
        )

    if command == "top-providers":
        providers = service.get_top_providers(period, currency, n=args.top_n)
        return (
            "top_providers",
            f"Top providers {label}",
            providers_to_dataframe(providers, decimals),
        )

    if command == "top-clients":
        clients = service.get_top_clients(period, currency, n=args.top_n)
        return (
            "top_clients",
            f"Top clients {label}",
            clients_to_dataframe(clients, decimals),
        )

    if command == "project":
        kpis = service.get_project_kpis(
            args.project_id, currency, period=None if args.all_time else period
        )
        scope = "all time" if kpis.period_label is None else kpis.period_label
        return (
            f"project_{kpis.project_id}",
            f"Project {kpis.name} - {scope} ({code})",
            project_kpis_to_dataframe(kpis, decimals),
        )

    raise TreasuryError(f"Unknown command: {command!r}")


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the Treasury FinSight CLI.

    This function parses command-line arguments, loads the configuration,
    configures logging, builds the repository and the treasury service,
    runs the selected command and renders its result as console tables
    and/or CSV files.

    Errors raised by Treasury FinSight (invalid period, unknown currency,
    invalid configuration, unreadable data) are reported on stderr and
    terminate the program with exit status 2.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # --version: short-circuit and exit early.
    if args.version:
        print(f"treasury_finsight version {__version__}")
        return

    if not args.command:
        parser.print_help(sys.stderr)
        parser.exit(2)

    today = _parse_optional_date(args.today) or date.today()

    try:
        config = _load_config(args.config_path)
    except (FileNotFoundError, TreasuryError) as exc:
        parser.exit(2, f"error: {exc}\n")

    setup_logging(
        level=args.log_level or config.logging.level,
        format_type=config.logging.format,
    )

    display_mode = args.display_mode or config.display.mode
    output_dir = Path(args.output_dir) if args.output_dir else Path("data/output")

    try:
        service = TreasuryService(build_repository(config), config)
        name, title, df = _run_command(args, service, config, today)
    except TreasuryError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        parser.exit(2, f"error: {exc}\n")

    _render(name, title, df, display_mode, output_dir)


if __name__ == "__main__":
    main()
