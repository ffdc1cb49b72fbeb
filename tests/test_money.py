"""Money value type behaviour."""

from __future__ import annotations

from decimal import Decimal

import pytest

from pocketledger.errors import CurrencyMismatch, InvalidCurrency, ValidationError
from pocketledger.money import Money


def test_of_parses_strings_decimals_and_ints():
    assert Money.of("12.50", "EUR").minor == 1250
    assert Money.of(Decimal("0.01"), "EUR").minor == 1
    assert Money.of(7, "USD").minor == 700
    assert Money.of(" -3.1 ", "EUR").minor == -310


def test_amount_is_quantized_to_cents():
    assert Money.from_minor(123450, "EUR").amount == Decimal("1234.50")
    assert str(Money.from_minor(5, "EUR").amount) == "0.05"


@pytest.mark.parametrize("value", ["1.001", "NaN", "Infinity", "abc", ""])
def test_of_rejects_invalid_amounts(value):
    with pytest.raises(ValidationError) as exc_info:
        Money.of(value, "EUR")
    assert exc_info.value.field == "amount"


def test_floats_are_refused():
    with pytest.raises(ValidationError):
        Money.of(0.1, "EUR")  # type: ignore[arg-type]


@pytest.mark.parametrize("currency", ["eur", "EU", "EURO", "12A", None])
def test_invalid_currency_codes(currency):
    with pytest.raises(InvalidCurrency):
        Money.of("1.00", currency)  # type: ignore[arg-type]


def test_arithmetic_same_currency():
    a = Money.of("10.00", "EUR")
    b = Money.of("2.50", "EUR")

    assert a.add(b) == Money.of("12.50", "EUR")
    assert a - b == Money.of("7.50", "EUR")
    assert -a == Money.of("-10.00", "EUR")
    assert a.negate().negate() == a
    assert a.compare(b) == 1
    assert b < a
    assert Money.zero("EUR").is_zero


@pytest.mark.parametrize("operation", ["add", "subtract", "compare"])
def test_cross_currency_operations_raise(operation):
    eur = Money.of("1.00", "EUR")
    usd = Money.of("1.00", "USD")

    with pytest.raises(CurrencyMismatch):
        getattr(eur, operation)(usd)


def test_ordering_across_currencies_raises():
    with pytest.raises(CurrencyMismatch):
        _ = Money.of("1.00", "EUR") < Money.of("2.00", "USD")


def test_total_sums_values():
    values = [Money.of("1.10", "EUR"), Money.of("2.20", "EUR"), Money.of("-0.30", "EUR")]
    assert Money.total(values, "EUR") == Money.of("3.00", "EUR")


def test_format():
    assert Money.of("1234.5", "EUR").format() == "1,234.50 EUR"
    assert str(Money.of("-3", "USD")) == "-3.00 USD"
