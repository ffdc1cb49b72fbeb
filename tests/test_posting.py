"""Account-reference rules per transaction type and signed posting effects."""

from __future__ import annotations

import pytest

from pocketledger.domain.posting import Posting, compute_balance, validate_accounts_for_type
from pocketledger.errors import InvalidAccountConfiguration, ValidationError
from pocketledger.models.transaction import TransactionType
from pocketledger.money import Money


@pytest.mark.parametrize(
    "txn_type, source, destination",
    [
        ("withdrawal", 1, None),
        ("deposit", None, 2),
        ("transfer", 1, 2),
    ],
)
def test_valid_configurations(txn_type, source, destination):
    assert validate_accounts_for_type(txn_type, source, destination) is TransactionType(txn_type)


@pytest.mark.parametrize(
    "txn_type, source, destination, field, reason",
    [
        ("withdrawal", None, 2, "source_account_id", "missing"),
        ("withdrawal", 1, 2, "destination_account_id", "unexpected"),
        ("deposit", 1, None, "destination_account_id", "missing"),
        ("deposit", 1, 2, "source_account_id", "unexpected"),
        ("transfer", 1, 1, "destination_account_id", "duplicated"),
        ("transfer", None, 2, "source_account_id", "missing"),
        ("transfer", 1, None, "destination_account_id", "missing"),
    ],
)
def test_invalid_configurations(txn_type, source, destination, field, reason):
    with pytest.raises(InvalidAccountConfiguration) as exc_info:
        validate_accounts_for_type(txn_type, source, destination)

    error = exc_info.value
    assert error.field == field
    assert error.reason == reason
    assert error.to_dict()["reason"] == reason


def test_unknown_type_is_a_validation_error():
    with pytest.raises(ValidationError) as exc_info:
        validate_accounts_for_type("refund", 1, None)
    assert exc_info.value.field == "txn_type"


def test_transfer_effects_are_signed():
    posting = Posting(Money.of("100.00", "EUR"), TransactionType.TRANSFER, 1, 2)

    assert posting.effects() == {1: Money.of("-100.00", "EUR"), 2: Money.of("100.00", "EUR")}
    assert posting.effect_on(3) == Money.zero("EUR")


def test_compute_balance_follows_postings():
    opening = Money.of("1000.00", "EUR")
    postings = [
        Posting(Money.of("200.00", "EUR"), TransactionType.DEPOSIT, None, 1),
        Posting(Money.of("150.00", "EUR"), TransactionType.WITHDRAWAL, 1, None),
        Posting(Money.of("50.00", "EUR"), TransactionType.TRANSFER, 2, 1),
        Posting(Money.of("999.00", "EUR"), TransactionType.WITHDRAWAL, 2, None),
    ]

    assert compute_balance(opening, 1, postings) == Money.of("1100.00", "EUR")
