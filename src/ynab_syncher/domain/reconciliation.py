import datetime
from abc import ABC
from bisect import bisect_left, bisect_right
from collections.abc import Sequence
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ynab_syncher.logger import get_logger
from ynab_syncher.models import BankTransaction, BudgetTransaction

logger = get_logger(__name__)

RANGE_TOLERANCE_DAYS = 3


class ReconciliationStrategy(str, Enum):
    STRICT = "STRICT"
    RANGE = "RANGE"


class TransactionMatcher(ABC):
    """Decides whether a bank transaction and a budget transaction are the same money movement.

    Amounts must always be equal. Text is never compared since banks and
    budgets label the same payment differently; only the date tolerance
    differs between strategies.
    """

    strategy: ReconciliationStrategy
    max_day_difference: int

    def dates_match(self, bank_date: datetime.date, budget_date: datetime.date) -> bool:
        return abs((bank_date - budget_date).days) <= self.max_day_difference

    def matches(self, bank: BankTransaction, budget: BudgetTransaction) -> bool:
        return bank.amount == budget.amount and self.dates_match(bank.date, budget.date)


class StrictTransactionMatcher(TransactionMatcher):
    strategy = ReconciliationStrategy.STRICT
    max_day_difference = 0


class RangeTransactionMatcher(TransactionMatcher):
    strategy = ReconciliationStrategy.RANGE
    max_day_difference = RANGE_TOLERANCE_DAYS


def create_matcher(strategy: ReconciliationStrategy) -> TransactionMatcher:
    if strategy == ReconciliationStrategy.STRICT:
        return StrictTransactionMatcher()
    if strategy == ReconciliationStrategy.RANGE:
        return RangeTransactionMatcher()
    raise ValueError(f"Unsupported reconciliation strategy: {strategy}")


class DateRange(BaseModel):
    """Inclusive date range."""

    model_config = ConfigDict(frozen=True)

    start: datetime.date
    end: datetime.date

    @model_validator(mode="after")
    def _check_order(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError(f"start date {self.start} is after end date {self.end}")
        return self

    @classmethod
    def around(cls, center: datetime.date, days: int) -> "DateRange":
        delta = datetime.timedelta(days=days)
        return cls(start=center - delta, end=center + delta)

    def contains(self, value: datetime.date) -> bool:
        return self.start <= value <= self.end

    def day_count(self) -> int:
        return (self.end - self.start).days + 1


class TransactionMatch(BaseModel):
    bank_transaction: BankTransaction
    budget_transaction: BudgetTransaction


class ReconciliationSummary(BaseModel):
    account_id: str
    reconciliation_date: datetime.date = Field(default_factory=datetime.date.today)
    date_range: DateRange
    strategy: ReconciliationStrategy
    total_bank_transactions: int
    total_budget_transactions: int
    matched_count: int
    missing_count: int

    def reconciliation_percentage(self) -> float:
        if self.total_bank_transactions == 0:
            return 100.0
        return self.matched_count / self.total_bank_transactions * 100.0

    def is_complete(self) -> bool:
        return self.missing_count == 0


class ReconciliationResult(BaseModel):
    matches: list[TransactionMatch]
    missing: list[BankTransaction]
    summary: ReconciliationSummary

    @property
    def matched(self) -> list[BankTransaction]:
        return [match.bank_transaction for match in self.matches]

    def is_fully_reconciled(self) -> bool:
        return not self.missing


def _find_best_match(
    bank: BankTransaction,
    order: list[int],
    dates: list[datetime.date],
    budget_transactions: Sequence[BudgetTransaction],
    consumed: set[int],
    matcher: TransactionMatcher,
) -> int | None:
    tolerance = datetime.timedelta(days=matcher.max_day_difference)
    lo = bisect_left(dates, bank.date - tolerance)
    hi = bisect_right(dates, bank.date + tolerance)

    best_index: int | None = None
    best_key: tuple[int, int] | None = None
    for position in range(lo, hi):
        index = order[position]
        if index in consumed:
            continue
        candidate = budget_transactions[index]
        if not matcher.matches(bank, candidate):
            continue
        # Closest date first, then earlier date and input order via the sorted position
        key = (abs((bank.date - candidate.date).days), position)
        if best_key is None or key < best_key:
            best_key = key
            best_index = index
    return best_index


def reconcile(
    account_id: str,
    date_range: DateRange,
    bank_transactions: Sequence[BankTransaction],
    budget_transactions: Sequence[BudgetTransaction],
    strategy: ReconciliationStrategy,
) -> ReconciliationResult:
    """Split bank transactions into those already present in the budget and those missing.

    Each budget transaction can satisfy at most one bank transaction. Budget
    transactions without a bank counterpart are not reported.
    """
    matcher = create_matcher(strategy)
    order = sorted(range(len(budget_transactions)), key=lambda i: budget_transactions[i].date)
    dates = [budget_transactions[i].date for i in order]
    consumed: set[int] = set()

    matches: list[TransactionMatch] = []
    missing: list[BankTransaction] = []
    for bank in bank_transactions:
        index = _find_best_match(bank, order, dates, budget_transactions, consumed, matcher)
        if index is None:
            missing.append(bank)
            continue
        consumed.add(index)
        matches.append(
            TransactionMatch(bank_transaction=bank, budget_transaction=budget_transactions[index])
        )

    logger.debug(
        "[RECONCILE] %s: %s matched, %s missing (%s strategy).",
        account_id,
        len(matches),
        len(missing),
        strategy.value,
    )
    summary = ReconciliationSummary(
        account_id=account_id,
        date_range=date_range,
        strategy=strategy,
        total_bank_transactions=len(bank_transactions),
        total_budget_transactions=len(budget_transactions),
        matched_count=len(matches),
        missing_count=len(missing),
    )
    return ReconciliationResult(matches=matches, missing=missing, summary=summary)
