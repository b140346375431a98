# Treasury FinSight - Treasury analytics & liquidity projection for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for Treasury FinSight.

This module is responsible for:
- loading the application configuration from a TOML file,
- validating it and exposing typed dataclasses used by the rest of the
  application,
- building the repository described by the [data] section.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover - fallback for older Python
    import tomli as tomllib  # type: ignore[import]

from .currency import (
    DEFAULT_PRIMARY_CURRENCY,
    DEFAULT_SECONDARY_CURRENCY,
    CurrencyNormalizer,
)
from .db import DatabaseConfig, SqliteMovementRepository
from .exceptions import ConfigurationError, ValidationError
from .io import CsvMovementRepository
from .repository import MovementRepository

DEFAULT_CONFIG_FILE = "treasury_finsight_config.toml"

DATA_SOURCES = ("csv", "sqlite")
DISPLAY_MODES = ("table", "csv", "both")
LOG_FORMATS = ("standard", "json")


@dataclass(frozen=True)
class CurrencySettings:
    """Primary/secondary currency codes and the default reporting currency."""

    primary: str = DEFAULT_PRIMARY_CURRENCY
    secondary: str = DEFAULT_SECONDARY_CURRENCY
    default: str = DEFAULT_PRIMARY_CURRENCY

    def normalizer(self) -> CurrencyNormalizer:
        return CurrencyNormalizer(primary=self.primary, secondary=self.secondary)


@dataclass(frozen=True)
class DataSettings:
    """
    Where the snapshot is read from.

    ``source`` selects the repository: "csv" reads ``csv_dir``, "sqlite"
    reads ``database``.
    """

    source: str = "csv"
    csv_dir: Path = field(default_factory=lambda: Path("data/csv"))
    database: DatabaseConfig = field(
        default_factory=lambda: DatabaseConfig(
            engine="sqlite", path=Path("data/db/treasury.sqlite")
        )
    )


@dataclass(frozen=True)
class AnalyticsSettings:
    top_n: int = 5
    treat_missing_secondary_as_zero: bool = True


@dataclass(frozen=True)
class LiquiditySettings:
    horizon_days: int = 30
    risk_threshold: float = 0.0


@dataclass(frozen=True)
class DisplaySettings:
    mode: str = "table"
    decimals: int = 2


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"
    format: str = "standard"


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for Treasury FinSight.

    This aggregates:
    - the currency pair and default reporting currency,
    - the data source (CSV directory or SQLite database),
    - analytics options (top-N size, missing secondary amounts),
    - liquidity options (default horizon, risk threshold),
    - display and logging options.
    """

    currency: CurrencySettings = field(default_factory=CurrencySettings)
    data: DataSettings = field(default_factory=DataSettings)
    analytics: AnalyticsSettings = field(default_factory=AnalyticsSettings)
    liquidity: LiquiditySettings = field(default_factory=LiquiditySettings)
    display: DisplaySettings = field(default_factory=DisplaySettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


def default_settings() -> AppConfig:
    """Return the built-in configuration (used when no TOML file is given)."""
    return AppConfig()


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ConfigurationError: if the TOML content cannot be parsed.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Failed to parse TOML config file: {path}") from exc

    return data


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = raw.get(name) or {}
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"[{name}] must be a table.")
    return section


def _parse_currency(raw: Mapping[str, Any]) -> CurrencySettings:
    section = _section(raw, "currency")
    primary = str(section.get("primary") or DEFAULT_PRIMARY_CURRENCY)
    secondary = str(section.get("secondary") or DEFAULT_SECONDARY_CURRENCY)
    default = str(section.get("default") or primary)

    try:
        normalizer = CurrencyNormalizer(primary=primary, secondary=secondary)
        default_code = normalizer.validate(default)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid [currency] section: {exc}") from exc

    return CurrencySettings(
        primary=normalizer.primary,
        secondary=normalizer.secondary,
        default=default_code,
    )


def _parse_data(raw: Mapping[str, Any], base_dir: Path) -> DataSettings:
    section = _section(raw, "data")

    source = str(section.get("source") or "csv").lower()
    if source not in DATA_SOURCES:
        raise ConfigurationError(
            f"Invalid data.source {source!r}; expected one of {', '.join(DATA_SOURCES)}."
        )

    csv_dir = (base_dir / str(section.get("csv_dir") or "data/csv")).resolve()
    db_path = (
        base_dir / str(section.get("database") or "data/db/treasury.sqlite")
    ).resolve()

    return DataSettings(
        source=source,
        csv_dir=csv_dir,
        database=DatabaseConfig(engine="sqlite", path=db_path),
    )


def _parse_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid value for '{name}': expected an integer.")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(
            f"Invalid value for '{name}': expected an integer."
        ) from exc


def _parse_bool(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigurationError(
            f"Invalid value for '{name}': expected true or false."
        )
    return value


def _parse_analytics(raw: Mapping[str, Any]) -> AnalyticsSettings:
    section = _section(raw, "analytics")
    top_n = _parse_int(section.get("top_n", 5), "analytics.top_n")
    if top_n < 1:
        raise ConfigurationError("analytics.top_n must be at least 1.")
    return AnalyticsSettings(
        top_n=top_n,
        treat_missing_secondary_as_zero=_parse_bool(
            section.get("treat_missing_secondary_as_zero", True),
            "analytics.treat_missing_secondary_as_zero",
        ),
    )


def _parse_liquidity(raw: Mapping[str, Any]) -> LiquiditySettings:
    section = _section(raw, "liquidity")
    horizon = _parse_int(section.get("horizon_days", 30), "liquidity.horizon_days")
    if horizon <= 0:
        raise ConfigurationError("liquidity.horizon_days must be strictly positive.")
    try:
        threshold = float(section.get("risk_threshold", 0.0))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(
            "Invalid value for 'liquidity.risk_threshold': expected a number."
        ) from exc
    return LiquiditySettings(horizon_days=horizon, risk_threshold=threshold)


def _parse_display(raw: Mapping[str, Any]) -> DisplaySettings:
    section = _section(raw, "display")
    mode = str(section.get("mode", "table"))
    if mode not in DISPLAY_MODES:
        raise ConfigurationError(
            f"Invalid display.mode {mode!r}; expected one of {', '.join(DISPLAY_MODES)}."
        )
    decimals = _parse_int(section.get("decimals", 2), "display.decimals")
    if decimals < 0:
        raise ConfigurationError("display.decimals must not be negative.")
    return DisplaySettings(mode=mode, decimals=decimals)


def _parse_logging(raw: Mapping[str, Any]) -> LoggingSettings:
    section = _section(raw, "logging")
    fmt = str(section.get("format", "standard"))
    if fmt not in LOG_FORMATS:
        raise ConfigurationError(
            f"Invalid logging.format {fmt!r}; expected one of {', '.join(LOG_FORMATS)}."
        )
    return LoggingSettings(level=str(section.get("level", "INFO")).upper(), format=fmt)


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the Treasury FinSight configuration from a TOML file.

    Expected top-level sections in the TOML file (all optional)
    ------------------------------------------------------------
    [currency]
        primary, secondary and default reporting currency codes.

    [data]
        source ("csv" or "sqlite"), csv_dir, database.

    [analytics]
        top_n, treat_missing_secondary_as_zero.

    [liquidity]
        horizon_days, risk_threshold.

    [display]
        mode ("table", "csv" or "both"), decimals.

    [logging]
        level, format ("standard" or "json").

    All file paths in the TOML are resolved relative to the directory of
    the TOML file itself.

    Parameters
    ----------
    config_path : str, optional
        Path to the TOML configuration file. Defaults to
        ``treasury_finsight_config.toml`` in the current directory.

    Returns
    -------
    AppConfig
        Parsed and validated application configuration.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    ConfigurationError
        If the file cannot be parsed or holds invalid values.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILE).resolve()
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    base_dir = config_file.parent

    return AppConfig(
        currency=_parse_currency(raw),
        data=_parse_data(raw, base_dir),
        analytics=_parse_analytics(raw),
        liquidity=_parse_liquidity(raw),
        display=_parse_display(raw),
        logging=_parse_logging(raw),
    )


def build_repository(config: AppConfig) -> MovementRepository:
    """Instantiate the repository selected by the [data] section."""
    if config.data.source == "sqlite":
        return SqliteMovementRepository(config.data.database)
    return CsvMovementRepository(config.data.csv_dir)
