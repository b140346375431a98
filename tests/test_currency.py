from datetime import date

import pytest

from treasury_finsight.currency import CurrencyNormalizer, normalize_currency_code
from treasury_finsight.exceptions import IncompleteCurrencyData, ValidationError
from treasury_finsight.models import Movement, MovementKind, MovementStatus


def _movement(secondary=None) -> Movement:
    return Movement(
        id="m1",
        date=date(2025, 1, 1),
        kind=MovementKind.INCOME,
        status=MovementStatus.CONFIRMED,
        amount_primary=1000.0,
        amount_secondary=secondary,
    )


def test_primary_currency_returns_primary_amount() -> None:
    assert CurrencyNormalizer().normalize(_movement(2.0), "ARS") == 1000.0


def test_secondary_currency_returns_secondary_amount() -> None:
    assert CurrencyNormalizer().normalize(_movement(2.0), "usd") == 2.0


def test_missing_secondary_raises_without_fallback() -> None:
    with pytest.raises(IncompleteCurrencyData):
        CurrencyNormalizer().normalize(_movement(), "USD")


def test_missing_secondary_is_zero_with_fallback() -> None:
    normalizer = CurrencyNormalizer()

    assert normalizer.normalize(_movement(), "USD", treat_missing_as_zero=True) == 0.0


def test_unknown_currency_is_rejected() -> None:
    with pytest.raises(ValidationError):
        CurrencyNormalizer().normalize(_movement(2.0), "EUR")


@pytest.mark.parametrize("code", ["", "   ", None])
def test_empty_currency_code_is_rejected(code) -> None:
    with pytest.raises(ValidationError):
        normalize_currency_code(code)


def test_codes_are_normalized() -> None:
    normalizer = CurrencyNormalizer(primary=" eur ", secondary="usd")

    assert normalizer.currencies == ("EUR", "USD")
    assert normalizer.validate("Eur") == "EUR"


def test_primary_and_secondary_must_differ() -> None:
    with pytest.raises(ValidationError):
        CurrencyNormalizer(primary="USD", secondary="usd")
