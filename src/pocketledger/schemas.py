"""Input schemas validated on every write.

Client-side checks are a convenience only; these models are the boundary
that enforces field constraints. Pydantic failures are translated into
``pocketledger.errors`` so callers deal with a single error taxonomy.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Optional, Type, TypeVar

from pydantic import ValidationError as PydanticValidationError
from pydantic import field_validator
from sqlmodel import Field, SQLModel

from .constants.categories import CATEGORY_COLORS, CATEGORY_ICONS
from .errors import LedgerError, ValidationError
from .models.account import AccountType
from .models.transaction import TransactionType
from .money import Money, normalize_currency, parse_decimal

MAX_AMOUNT = Decimal("999999999.99")
MAX_NAME_LENGTH = 100
MAX_ACCOUNT_NOTES_LENGTH = 500
MAX_TRANSACTION_NOTES_LENGTH = 1000
MIN_DESCRIPTION_LENGTH = 3
MAX_DESCRIPTION_LENGTH = 200
MAX_TAGS = 10

SchemaT = TypeVar("SchemaT", bound=SQLModel)


def _clean_text(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def _check_name(value: str, field: str = "name") -> str:
    if not value:
        raise ValidationError("Name is required", field=field)
    if len(value) > MAX_NAME_LENGTH:
        raise ValidationError(f"Name cannot exceed {MAX_NAME_LENGTH} characters", field=field)
    return value


def _check_notes(value: Optional[str], limit: int) -> Optional[str]:
    if value is None or value == "":
        return None
    if len(value) > limit:
        raise ValidationError(f"Notes cannot exceed {limit} characters", field="notes")
    return value


def _check_not_future(value: Optional[date], field: str) -> Optional[date]:
    if value is not None and value > date.today():
        raise ValidationError("Date cannot be in the future", field=field)
    return value


def _check_icon(value: Optional[str]) -> Optional[str]:
    if value in (None, ""):
        return None
    if value not in CATEGORY_ICONS:
        raise ValidationError(f"Unknown icon {value!r}", field="icon")
    return value


def _check_color(value: Optional[str]) -> Optional[str]:
    if value in (None, ""):
        return None
    color = value.lower() if isinstance(value, str) else value
    if color not in CATEGORY_COLORS:
        raise ValidationError(f"Unknown color {value!r}", field="color")
    return color


class TransactionCreate(SQLModel):
    """Fields accepted when creating or editing a transaction."""

    amount: Decimal
    currency: str
    description: str
    occurred_on: date
    txn_type: TransactionType
    source_account_id: Optional[int] = None
    destination_account_id: Optional[int] = None
    category_id: Optional[int] = None
    tags: list[str] = Field(default_factory=list)
    notes: Optional[str] = None
    reconciled: bool = False

    @field_validator("amount", mode="before")
    @classmethod
    def _validate_amount(cls, value: Any) -> Decimal:
        number = parse_decimal(value)
        if number <= 0:
            raise ValidationError("Amount must be greater than 0", field="amount")
        if number > MAX_AMOUNT:
            raise ValidationError("Amount is too large", field="amount")
        return number

    @field_validator("currency", mode="before")
    @classmethod
    def _validate_currency(cls, value: Any) -> str:
        return normalize_currency(value)

    @field_validator("description", mode="before")
    @classmethod
    def _validate_description(cls, value: Any) -> Any:
        value = _clean_text(value)
        if isinstance(value, str):
            if len(value) < MIN_DESCRIPTION_LENGTH:
                raise ValidationError(
                    f"Description must be at least {MIN_DESCRIPTION_LENGTH} characters",
                    field="description",
                )
            if len(value) > MAX_DESCRIPTION_LENGTH:
                raise ValidationError(
                    f"Description cannot exceed {MAX_DESCRIPTION_LENGTH} characters",
                    field="description",
                )
        return value

    @field_validator("occurred_on")
    @classmethod
    def _validate_occurred_on(cls, value: date) -> date:
        return _check_not_future(value, "occurred_on")

    @field_validator("tags", mode="before")
    @classmethod
    def _validate_tags(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            return value
        tags: list[str] = []
        for raw in value:
            tag = _clean_text(raw)
            if not isinstance(tag, str) or not tag:
                raise ValidationError("Tags cannot be empty", field="tags")
            if tag not in tags:
                tags.append(tag)
        if len(tags) > MAX_TAGS:
            raise ValidationError(f"At most {MAX_TAGS} tags are allowed", field="tags")
        return tags

    @field_validator("notes", mode="before")
    @classmethod
    def _validate_notes(cls, value: Any) -> Any:
        return _check_notes(_clean_text(value), MAX_TRANSACTION_NOTES_LENGTH)

    def money(self) -> Money:
        return Money.of(self.amount, self.currency)


class AccountCreate(SQLModel):
    name: str
    account_type: AccountType
    currency: str
    opening_balance: Decimal = Decimal("0")
    opening_balance_date: Optional[date] = None
    notes: Optional[str] = None
    include_net_worth: bool = True
    sort_order: int = 1

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, value: Any) -> Any:
        value = _clean_text(value)
        return _check_name(value) if isinstance(value, str) else value

    @field_validator("currency", mode="before")
    @classmethod
    def _validate_currency(cls, value: Any) -> str:
        return normalize_currency(value)

    @field_validator("opening_balance", mode="before")
    @classmethod
    def _validate_opening_balance(cls, value: Any) -> Decimal:
        number = parse_decimal(value, field="opening_balance")
        if abs(number) > MAX_AMOUNT:
            raise ValidationError("Opening balance is out of range", field="opening_balance")
        return number

    @field_validator("opening_balance_date")
    @classmethod
    def _validate_opening_balance_date(cls, value: Optional[date]) -> Optional[date]:
        return _check_not_future(value, "opening_balance_date")

    @field_validator("notes", mode="before")
    @classmethod
    def _validate_notes(cls, value: Any) -> Any:
        return _check_notes(_clean_text(value), MAX_ACCOUNT_NOTES_LENGTH)

    def opening_money(self) -> Money:
        return Money.of(self.opening_balance, self.currency)


class AccountUpdate(SQLModel):
    name: Optional[str] = None
    notes: Optional[str] = None
    include_net_worth: Optional[bool] = None
    sort_order: Optional[int] = None

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, value: Any) -> Any:
        value = _clean_text(value)
        return _check_name(value) if isinstance(value, str) else value

    @field_validator("notes", mode="before")
    @classmethod
    def _validate_notes(cls, value: Any) -> Any:
        return _check_notes(_clean_text(value), MAX_ACCOUNT_NOTES_LENGTH)


class CategoryCreate(SQLModel):
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None
    parent_id: Optional[int] = None
    sort_order: int = Field(default=0, ge=0)

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, value: Any) -> Any:
        value = _clean_text(value)
        return _check_name(value) if isinstance(value, str) else value

    @field_validator("icon", mode="before")
    @classmethod
    def _validate_icon(cls, value: Any) -> Optional[str]:
        return _check_icon(value)

    @field_validator("color", mode="before")
    @classmethod
    def _validate_color(cls, value: Any) -> Optional[str]:
        return _check_color(value)


class CategoryUpdate(SQLModel):
    name: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    sort_order: Optional[int] = Field(default=None, ge=0)

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, value: Any) -> Any:
        value = _clean_text(value)
        return _check_name(value) if isinstance(value, str) else value

    @field_validator("icon", mode="before")
    @classmethod
    def _validate_icon(cls, value: Any) -> Optional[str]:
        return _check_icon(value)

    @field_validator("color", mode="before")
    @classmethod
    def _validate_color(cls, value: Any) -> Optional[str]:
        return _check_color(value)


def _translate(exc: PydanticValidationError) -> LedgerError:
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ())) or None
    original = (error.get("ctx") or {}).get("error")
    if isinstance(original, LedgerError):
        if original.field is None:
            original.field = field
        return original
    return ValidationError(error.get("msg", "Invalid value"), field=field)


def validate_input(schema: Type[SchemaT], data: Mapping[str, Any]) -> SchemaT:
    """Validate ``data`` against ``schema``; unknown keys are rejected."""

    unknown = sorted(set(data) - set(schema.model_fields))
    if unknown:
        raise ValidationError(f"Unknown field {unknown[0]!r}", field=unknown[0])
    try:
        return schema.model_validate(dict(data))
    except PydanticValidationError as exc:
        raise _translate(exc) from exc
