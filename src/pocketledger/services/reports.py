"""Read-only summaries over accounts, transactions and categories.

Totals are kept per currency: amounts in different currencies are never
added together. The module-level functions aggregate whatever rows they are
given; ``ReportService`` loads the complete, unpaginated row set for an owner
and date range before aggregating.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_EVEN, Decimal
from enum import Enum
from typing import Any, Iterable, Optional

from ..domain.category_index import CategoryIndex
from ..domain.repositories import AccountRepository, CategoryRepository, TransactionRepository
from ..errors import ValidationError
from ..infra.database import SessionFactory
from ..infra.repositories.account import SQLModelAccountRepository
from ..infra.repositories.category import SQLModelCategoryRepository
from ..infra.repositories.transaction import SQLModelTransactionRepository
from ..models.account import Account, AccountType
from ..models.transaction import PostingStatus, Transaction, TransactionType
from ..money import Money

CENT = Decimal("0.01")


def _accumulate(totals: dict[str, Money], amount: Money) -> None:
    current = totals.get(amount.currency, Money.zero(amount.currency))
    totals[amount.currency] = current.add(amount)


def _as_strings(totals: dict[str, Money]) -> dict[str, str]:
    return {currency: str(amount.amount) for currency, amount in sorted(totals.items())}


def _posted(transactions: Iterable[Transaction]) -> Iterable[Transaction]:
    return (t for t in transactions if t.status == PostingStatus.POSTED.value)


@dataclass
class AccountSummary:
    total_accounts: int = 0
    active_accounts: int = 0
    total_assets: dict[str, Money] = field(default_factory=dict)
    total_liabilities: dict[str, Money] = field(default_factory=dict)

    @property
    def net_worth(self) -> dict[str, Money]:
        currencies = set(self.total_assets) | set(self.total_liabilities)
        return {
            currency: self.total_assets.get(currency, Money.zero(currency)).subtract(
                self.total_liabilities.get(currency, Money.zero(currency))
            )
            for currency in sorted(currencies)
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_accounts": self.total_accounts,
            "active_accounts": self.active_accounts,
            "total_assets": _as_strings(self.total_assets),
            "total_liabilities": _as_strings(self.total_liabilities),
            "net_worth": _as_strings(self.net_worth),
        }


def account_summary(accounts: Iterable[Account]) -> AccountSummary:
    """Assets and liabilities of active accounts flagged for net worth.

    Liabilities count by magnitude whatever the sign of their balance.
    """

    summary = AccountSummary()
    for account in accounts:
        summary.total_accounts += 1
        if not account.active:
            continue
        summary.active_accounts += 1
        if not account.include_net_worth:
            continue
        if account.type is AccountType.ASSET:
            _accumulate(summary.total_assets, account.balance)
        elif account.type is AccountType.LIABILITY:
            balance = account.balance
            _accumulate(summary.total_liabilities, -balance if balance.is_negative else balance)
    return summary


@dataclass
class TransactionSummary:
    total_transactions: int = 0
    total_income: dict[str, Money] = field(default_factory=dict)
    total_expenses: dict[str, Money] = field(default_factory=dict)
    counts: dict[str, int] = field(default_factory=dict)
    volume: dict[str, Money] = field(default_factory=dict)

    @property
    def net_flow(self) -> dict[str, Money]:
        currencies = set(self.total_income) | set(self.total_expenses)
        return {
            currency: self.total_income.get(currency, Money.zero(currency)).subtract(
                self.total_expenses.get(currency, Money.zero(currency))
            )
            for currency in sorted(currencies)
        }

    @property
    def average_transaction(self) -> dict[str, Money]:
        """Mean amount per currency, rounded half-even to the cent."""
        averages: dict[str, Money] = {}
        for currency, total in sorted(self.volume.items()):
            count = self.counts[currency]
            minor = (Decimal(total.minor) / count).to_integral_value(rounding=ROUND_HALF_EVEN)
            averages[currency] = Money.from_minor(int(minor), currency)
        return averages

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_transactions": self.total_transactions,
            "total_income": _as_strings(self.total_income),
            "total_expenses": _as_strings(self.total_expenses),
            "net_flow": _as_strings(self.net_flow),
            "average_transaction": _as_strings(self.average_transaction),
        }


def transaction_summary(transactions: Iterable[Transaction]) -> TransactionSummary:
    """Income, expenses and net flow of posted transactions.

    Transfers are counted but move money between the owner's own accounts,
    so they add to neither income nor expenses.
    """

    summary = TransactionSummary()
    for transaction in _posted(transactions):
        amount = transaction.amount
        summary.total_transactions += 1
        summary.counts[amount.currency] = summary.counts.get(amount.currency, 0) + 1
        _accumulate(summary.volume, amount)
        if transaction.type is TransactionType.DEPOSIT:
            _accumulate(summary.total_income, amount)
        elif transaction.type is TransactionType.WITHDRAWAL:
            _accumulate(summary.total_expenses, amount)
    return summary


def category_stats(
    index: CategoryIndex, category_id: int, transactions: Iterable[Transaction]
) -> dict[str, Any]:
    """Transaction count, per-currency total and direct subcategory count."""

    category = index.get(category_id)
    totals: dict[str, Money] = {}
    count = 0
    for transaction in transactions:
        if transaction.category_id != category_id:
            continue
        if transaction.status == PostingStatus.POSTED.value:
            _accumulate(totals, transaction.amount)
        count += 1
    return {
        "category_id": category.id,
        "full_name": index.full_name(category_id),
        "transaction_count": count,
        "total_amount": _as_strings(totals),
        "subcategory_count": len(index.children_of(category_id)),
    }


def category_spending(
    index: CategoryIndex, transactions: Iterable[Transaction]
) -> list[dict[str, Any]]:
    """Roll up posted withdrawals by category, largest first within each currency.

    ``percentage`` is the category's share of that currency's categorized
    spending. Uncategorized withdrawals are left out.
    """

    totals: dict[tuple[int, str], Money] = {}
    counts: dict[tuple[int, str], int] = {}
    spent: dict[str, Money] = {}
    for transaction in _posted(transactions):
        if transaction.type is not TransactionType.WITHDRAWAL or transaction.category_id is None:
            continue
        key = (transaction.category_id, transaction.currency)
        totals[key] = totals.get(key, Money.zero(transaction.currency)).add(transaction.amount)
        counts[key] = counts.get(key, 0) + 1
        _accumulate(spent, transaction.amount)

    names = {category_id: index.full_name(category_id) for category_id, _ in totals}
    ordered = sorted(
        totals.items(), key=lambda item: (item[0][1], -item[1].minor, names[item[0][0]])
    )

    breakdown: list[dict[str, Any]] = []
    for (category_id, currency), total in ordered:
        share = Decimal(total.minor) * 100 / spent[currency].minor
        breakdown.append(
            {
                "category_id": category_id,
                "category_name": names[category_id],
                "currency": currency,
                "total_amount": str(total.amount),
                "transaction_count": counts[(category_id, currency)],
                "percentage": str(share.quantize(CENT, rounding=ROUND_HALF_EVEN)),
            }
        )
    return breakdown


def monthly_trends(transactions: Iterable[Transaction]) -> list[dict[str, Any]]:
    """Income, expenses and net per calendar month and currency, oldest first.

    Only months with posted deposits or withdrawals appear.
    """

    income: dict[tuple[int, int, str], Money] = {}
    expenses: dict[tuple[int, int, str], Money] = {}
    for transaction in _posted(transactions):
        if transaction.type is TransactionType.DEPOSIT:
            bucket = income
        elif transaction.type is TransactionType.WITHDRAWAL:
            bucket = expenses
        else:
            continue
        key = (transaction.occurred_on.year, transaction.occurred_on.month, transaction.currency)
        bucket[key] = bucket.get(key, Money.zero(transaction.currency)).add(transaction.amount)

    trends: list[dict[str, Any]] = []
    for year, month, currency in sorted(set(income) | set(expenses)):
        key = (year, month, currency)
        month_income = income.get(key, Money.zero(currency))
        month_expenses = expenses.get(key, Money.zero(currency))
        trends.append(
            {
                "year": year,
                "month": f"{month:02d}",
                "currency": currency,
                "income": str(month_income.amount),
                "expenses": str(month_expenses.amount),
                "net": str(month_income.subtract(month_expenses).amount),
            }
        )
    return trends


def transactions_by_type(transactions: Iterable[Transaction]) -> dict[str, int]:
    """Count posted transactions per type; every type is present."""

    counts = {txn_type.value: 0 for txn_type in TransactionType}
    for transaction in _posted(transactions):
        counts[transaction.txn_type] += 1
    return counts


class DateRange(str, Enum):
    LAST_7_DAYS = "last_7_days"
    LAST_30_DAYS = "last_30_days"
    LAST_90_DAYS = "last_90_days"
    CURRENT_MONTH = "current_month"
    LAST_MONTH = "last_month"
    CURRENT_YEAR = "current_year"
    LAST_YEAR = "last_year"
    CUSTOM = "custom"


def _month_bounds(year: int, month: int) -> tuple[date, date]:
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])


def _check_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and start_date > end_date:
        raise ValidationError("Start date must be on or before end date", field="end_date")


def resolve_date_range(
    preset: Optional[str] = None,
    *,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    today: Optional[date] = None,
) -> tuple[Optional[date], Optional[date]]:
    """Turn a named range into inclusive ``(start, end)`` dates.

    Without a preset, or with ``custom``, the explicit dates are returned as
    given; ``None`` on either side leaves that side open.
    """

    if preset is None or preset == DateRange.CUSTOM.value:
        _check_range(start_date, end_date)
        return start_date, end_date
    try:
        chosen = DateRange(preset)
    except ValueError as exc:
        raise ValidationError(f"Unknown date range {preset!r}", field="date_range") from exc

    today = today or date.today()
    if chosen is DateRange.LAST_7_DAYS:
        return today - timedelta(days=7), today
    if chosen is DateRange.LAST_30_DAYS:
        return today - timedelta(days=30), today
    if chosen is DateRange.LAST_90_DAYS:
        return today - timedelta(days=90), today
    if chosen is DateRange.CURRENT_MONTH:
        return _month_bounds(today.year, today.month)
    if chosen is DateRange.LAST_MONTH:
        previous = today.replace(day=1) - timedelta(days=1)
        return _month_bounds(previous.year, previous.month)
    if chosen is DateRange.CURRENT_YEAR:
        return date(today.year, 1, 1), date(today.year, 12, 31)
    return date(today.year - 1, 1, 1), date(today.year - 1, 12, 31)


def trend_window(months: int, today: Optional[date] = None) -> tuple[date, date]:
    """First day of the month ``months - 1`` months back, through ``today``."""

    if months < 1 or months > 120:
        raise ValidationError("Months must be between 1 and 120", field="months")
    today = today or date.today()
    index = today.year * 12 + (today.month - 1) - (months - 1)
    return date(index // 12, index % 12 + 1, 1), today


class ReportService:
    """Owner-scoped reports over the complete ledger, never a single page of it."""

    def __init__(
        self,
        session_factory: SessionFactory,
        accounts: Optional[AccountRepository] = None,
        transactions: Optional[TransactionRepository] = None,
        categories: Optional[CategoryRepository] = None,
    ) -> None:
        self.accounts = accounts or SQLModelAccountRepository(session_factory)
        self.transactions = transactions or SQLModelTransactionRepository(session_factory)
        self.categories = categories or SQLModelCategoryRepository(session_factory)

    def _posted_between(
        self, user_id: int, start_date: Optional[date], end_date: Optional[date]
    ) -> list[Transaction]:
        _check_range(start_date, end_date)
        return self.transactions.search(
            user_id=user_id,
            start_date=start_date,
            end_date=end_date,
            status=PostingStatus.POSTED.value,
        )

    def account_summary(self, *, user_id: int) -> AccountSummary:
        return account_summary(self.accounts.list_all(user_id=user_id))

    def transaction_summary(
        self,
        *,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> TransactionSummary:
        return transaction_summary(self._posted_between(user_id, start_date, end_date))

    def category_spending(
        self,
        *,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[dict[str, Any]]:
        transactions = self._posted_between(user_id, start_date, end_date)
        index = CategoryIndex(self.categories.list_all(user_id=user_id))
        return category_spending(index, transactions)

    def monthly_trends(
        self, *, user_id: int, months: int = 12, today: Optional[date] = None
    ) -> list[dict[str, Any]]:
        start_date, end_date = trend_window(months, today)
        return monthly_trends(self._posted_between(user_id, start_date, end_date))

    def transactions_by_type(
        self,
        *,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> dict[str, int]:
        return transactions_by_type(self._posted_between(user_id, start_date, end_date))

    def recent_transactions(self, *, user_id: int, limit: int = 10) -> list[Transaction]:
        """Newest transactions of any status, most recent first."""

        if limit < 1 or limit > 100:
            raise ValidationError("Limit must be between 1 and 100", field="limit")
        return self.transactions.list_all(user_id=user_id, limit=limit)
