import datetime
from collections.abc import Sequence
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, model_validator

from ynab_syncher.logger import get_logger
from ynab_syncher.models import BankTransaction, BudgetTransaction, ClearedStatus
from ynab_syncher.stores.base import BudgetService

logger = get_logger(__name__)

MAX_TRANSACTIONS_PER_REQUEST = 100


class TransactionCreationResult(BaseModel):
    bank_transaction_id: str
    transaction_id: Optional[str] = None
    description: str
    amount: Decimal
    date: datetime.date
    was_successful: bool
    error_message: Optional[str] = None

    @classmethod
    def success(cls, bank: BankTransaction, transaction_id: str | None) -> "TransactionCreationResult":
        return cls(
            bank_transaction_id=bank.id,
            transaction_id=transaction_id,
            description=bank.description,
            amount=bank.amount,
            date=bank.date,
            was_successful=True,
        )

    @classmethod
    def failure(cls, bank: BankTransaction, error_message: str) -> "TransactionCreationResult":
        return cls(
            bank_transaction_id=bank.id,
            description=bank.description,
            amount=bank.amount,
            date=bank.date,
            was_successful=False,
            error_message=error_message,
        )


class CreateMissingTransactionsResponse(BaseModel):
    results: list[TransactionCreationResult]
    total_processed: int
    successfully_created: int
    failed: int

    @model_validator(mode="after")
    def _check_counts(self) -> "CreateMissingTransactionsResponse":
        if self.total_processed != self.successfully_created + self.failed:
            raise ValueError("total_processed must equal successfully_created + failed")
        if self.total_processed != len(self.results):
            raise ValueError("total_processed must equal the number of results")
        return self

    def successful_results(self) -> list[TransactionCreationResult]:
        return [result for result in self.results if result.was_successful]

    def failed_results(self) -> list[TransactionCreationResult]:
        return [result for result in self.results if not result.was_successful]

    def has_failures(self) -> bool:
        return self.failed > 0

    def all_successful(self) -> bool:
        return self.failed == 0


def to_budget_transaction(bank: BankTransaction, budget_account_id: str) -> BudgetTransaction:
    return BudgetTransaction(
        account_id=budget_account_id,
        date=bank.date,
        amount=bank.amount,
        payee_name=bank.merchant_name,
        memo=bank.memo,
        category=bank.category,
        cleared=ClearedStatus.UNCLEARED,
        approved=True,
        flag_color=None,
    )


class MissingTransactionPublisher:
    """Creates budget transactions for bank transactions the budget does not have yet.

    Items are sent one at a time in input order. A failed item is recorded
    and the rest still go out.
    """

    def __init__(self, budget: BudgetService) -> None:
        self.budget = budget

    async def publish(
        self,
        budget_id: str | None,
        budget_account_id: str,
        transactions: Sequence[BankTransaction],
    ) -> CreateMissingTransactionsResponse:
        if not budget_account_id or not budget_account_id.strip():
            raise ValueError("budget_account_id cannot be blank")
        if not transactions:
            raise ValueError("transactions cannot be empty")
        if len(transactions) > MAX_TRANSACTIONS_PER_REQUEST:
            raise ValueError(
                f"Cannot create more than {MAX_TRANSACTIONS_PER_REQUEST} transactions per request"
            )

        results: list[TransactionCreationResult] = []
        for bank in transactions:
            try:
                created = await self.budget.create_transaction(
                    budget_id, to_budget_transaction(bank, budget_account_id)
                )
            except Exception as exc:
                logger.error("[PUBLISH] Failed to create transaction for %s: %s", bank.id, exc)
                results.append(TransactionCreationResult.failure(bank, f"Failed to create transaction: {exc}"))
                continue
            results.append(TransactionCreationResult.success(bank, created.id))

        succeeded = sum(1 for result in results if result.was_successful)
        logger.info(
            "[PUBLISH] %s processed, %s created, %s failed.",
            len(results),
            succeeded,
            len(results) - succeeded,
        )
        return CreateMissingTransactionsResponse(
            results=results,
            total_processed=len(results),
            successfully_created=succeeded,
            failed=len(results) - succeeded,
        )
