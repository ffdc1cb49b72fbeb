"""Fixed-precision money value type.

Amounts are held as integer minor units (cents) with a fixed scale of two
decimal digits, tagged with an ISO-4217 currency code.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from functools import total_ordering
from typing import Iterable, Union

from .errors import CurrencyMismatch, InvalidCurrency, ValidationError

SCALE = 2
CENT = Decimal("0.01")
_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")

AmountInput = Union[str, int, Decimal]


def normalize_currency(value: object, *, field: str = "currency") -> str:
    """Return the currency code or raise InvalidCurrency."""

    if not isinstance(value, str):
        raise InvalidCurrency(value, field=field)
    code = value.strip()
    if not _CURRENCY_RE.match(code):
        raise InvalidCurrency(value, field=field)
    return code


def parse_decimal(value: object, *, field: str = "amount") -> Decimal:
    """Parse a major-unit amount into a Decimal with at most two fractional digits.

    Floats are refused: they cannot represent cents exactly.
    """

    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError("Amount must be a decimal string or an integer", field=field)
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, int):
        number = Decimal(value)
    elif isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValidationError(f"Invalid amount {value!r}", field=field) from exc
    else:
        raise ValidationError(f"Unsupported amount type {type(value).__name__}", field=field)

    if not number.is_finite():
        raise ValidationError("Amount must be finite", field=field)
    try:
        quantized = number.quantize(CENT)
    except InvalidOperation as exc:
        raise ValidationError("Amount is out of range", field=field) from exc
    if quantized != number:
        raise ValidationError("Amount cannot have more than 2 decimal places", field=field)
    return quantized


@total_ordering
@dataclass(frozen=True)
class Money:
    """Immutable amount in minor units plus currency code."""

    minor: int
    currency: str

    def __post_init__(self) -> None:
        if isinstance(self.minor, bool) or not isinstance(self.minor, int):
            raise ValidationError("Minor units must be an integer", field="amount")
        object.__setattr__(self, "currency", normalize_currency(self.currency))

    @classmethod
    def of(cls, value: AmountInput, currency: str) -> "Money":
        """Build from a major-unit amount such as ``"12.50"`` or ``12``."""
        number = parse_decimal(value)
        return cls(int(number * 100), currency)

    @classmethod
    def from_minor(cls, minor: int, currency: str) -> "Money":
        return cls(minor, currency)

    @classmethod
    def zero(cls, currency: str) -> "Money":
        return cls(0, currency)

    @classmethod
    def total(cls, values: Iterable["Money"], currency: str) -> "Money":
        """Sum ``values``; every value must be in ``currency``."""
        result = cls.zero(currency)
        for value in values:
            result = result.add(value)
        return result

    @property
    def amount(self) -> Decimal:
        return Decimal(self.minor).scaleb(-SCALE)

    @property
    def is_zero(self) -> bool:
        return self.minor == 0

    @property
    def is_positive(self) -> bool:
        return self.minor > 0

    @property
    def is_negative(self) -> bool:
        return self.minor < 0

    def _check(self, other: "Money") -> None:
        if self.currency != other.currency:
            raise CurrencyMismatch(self.currency, other.currency)

    def add(self, other: "Money") -> "Money":
        self._check(other)
        return Money(self.minor + other.minor, self.currency)

    def subtract(self, other: "Money") -> "Money":
        self._check(other)
        return Money(self.minor - other.minor, self.currency)

    def negate(self) -> "Money":
        return Money(-self.minor, self.currency)

    def compare(self, other: "Money") -> int:
        """Return -1, 0 or 1."""
        self._check(other)
        return (self.minor > other.minor) - (self.minor < other.minor)

    def __add__(self, other: object) -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other: object) -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return self.subtract(other)

    def __neg__(self) -> "Money":
        return self.negate()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.compare(other) < 0

    def format(self) -> str:
        """Plain display string, e.g. ``1,234.50 EUR``."""
        return f"{self.amount:,.2f} {self.currency}"

    def __str__(self) -> str:
        return self.format()
