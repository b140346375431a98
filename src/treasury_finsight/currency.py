# Treasury FinSight - Treasury analytics & liquidity projection for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Currency normalization for Treasury FinSight.

Every movement is recorded with its amount in the primary reporting
currency and, optionally, in a secondary currency. Both amounts are
computed when the movement is recorded; this module never converts
amounts, it only selects the stored figure matching the requested
reporting currency.

Missing secondary amounts
-------------------------
Some legacy records have no secondary amount. By default ``normalize``
raises ``IncompleteCurrencyData`` for them; aggregation callers pass
``treat_missing_as_zero=True`` so that a handful of incomplete records do
not abort a whole report.
"""

from dataclasses import dataclass

from .exceptions import IncompleteCurrencyData, ValidationError
from .models import Movement

DEFAULT_PRIMARY_CURRENCY = "ARS"
DEFAULT_SECONDARY_CURRENCY = "USD"


def normalize_currency_code(code: str) -> str:
    """Return the upper-case, stripped form of a currency code."""
    if not isinstance(code, str) or not code.strip():
        raise ValidationError(f"Invalid currency code: {code!r}")
    return code.strip().upper()


@dataclass(frozen=True)
class CurrencyNormalizer:
    """
    Resolve a movement's amount in a reporting currency.

    Attributes
    ----------
    primary:
        Code of the currency stored in ``Movement.amount_primary``.
    secondary:
        Code of the currency stored in ``Movement.amount_secondary``.
    """

    primary: str = DEFAULT_PRIMARY_CURRENCY
    secondary: str = DEFAULT_SECONDARY_CURRENCY

    def __post_init__(self) -> None:
        primary = normalize_currency_code(self.primary)
        secondary = normalize_currency_code(self.secondary)
        if primary == secondary:
            raise ValidationError(
                f"Primary and secondary currencies must differ (got {primary})."
            )
        object.__setattr__(self, "primary", primary)
        object.__setattr__(self, "secondary", secondary)

    @property
    def currencies(self) -> tuple[str, str]:
        return (self.primary, self.secondary)

    def validate(self, reporting_currency: str) -> str:
        """
        Return the normalized code of ``reporting_currency``.

        Raises:
            ValidationError: if the code is neither the primary nor the
                secondary currency.
        """
        code = normalize_currency_code(reporting_currency)
        if code not in self.currencies:
            raise ValidationError(
                f"Unknown currency {reporting_currency!r}; expected one of "
                f"{', '.join(self.currencies)}."
            )
        return code

    def normalize(
        self,
        movement: Movement,
        reporting_currency: str,
        treat_missing_as_zero: bool = False,
    ) -> float:
        """
        Return the movement's magnitude in ``reporting_currency``.

        Args:
            movement: Movement to read the amount from.
            reporting_currency: Requested currency code (case-insensitive).
            treat_missing_as_zero: Return 0.0 instead of raising when the
                secondary amount is requested but absent.

        Raises:
            ValidationError: if the currency is unknown.
            IncompleteCurrencyData: if the secondary amount is absent and no
                fallback was requested.
        """
        code = self.validate(reporting_currency)

        if code == self.primary:
            return float(movement.amount_primary)

        if movement.amount_secondary is not None:
            return float(movement.amount_secondary)

        if treat_missing_as_zero:
            return 0.0

        raise IncompleteCurrencyData(
            f"Movement {movement.id!r} has no amount in {code}."
        )
