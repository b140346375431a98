# Treasury FinSight - Treasury analytics & liquidity projection for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""Exception hierarchy for Treasury FinSight."""


class TreasuryError(Exception):
    """Base exception for all Treasury FinSight errors."""


class ValidationError(TreasuryError, ValueError):
    """Raised when a parameter or an input record is invalid.

    Examples: a month outside 1-12, a non-positive horizon, an unknown
    currency code or a movement record with an unknown kind.
    """


class IncompleteCurrencyData(TreasuryError):
    """Raised when a movement has no amount in the requested currency."""


class ConfigurationError(TreasuryError):
    """Raised when configuration is invalid or missing."""


class RepositoryError(TreasuryError):
    """Raised when the underlying data store cannot be read."""
