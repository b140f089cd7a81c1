import asyncio
import datetime

from ynab_syncher.domain.reconciliation import (
    DateRange,
    ReconciliationResult,
    ReconciliationStrategy,
    reconcile,
)
from ynab_syncher.logger import get_logger
from ynab_syncher.models import BankTransaction, BudgetCategory
from ynab_syncher.services.inference import InferTransactionCategories
from ynab_syncher.stores.base import BankTransactionStore, BudgetService

logger = get_logger(__name__)


class ReconcileTransactions:
    def __init__(
        self,
        transactions: BankTransactionStore,
        budget: BudgetService,
        inference: InferTransactionCategories | None = None,
        budget_id: str | None = None,
    ) -> None:
        self.transactions = transactions
        self.budget = budget
        self.inference = inference
        self.budget_id = budget_id

    def _enrich(
        self,
        inference: InferTransactionCategories,
        transactions: list[BankTransaction],
        categories: list[BudgetCategory],
    ) -> list[BankTransaction]:
        enriched = []
        for transaction in transactions:
            if transaction.category.has_match():
                enriched.append(transaction)
                continue
            try:
                result = inference.infer_one(transaction, categories)
            except Exception as exc:
                logger.warning("[RECONCILE] Failed to infer category for %s: %s", transaction.id, exc)
                enriched.append(transaction)
                continue
            enriched.append(transaction.with_category(result.category) if result.has_match() else transaction)
        return enriched

    async def _categorize(self, transactions: list[BankTransaction]) -> list[BankTransaction]:
        if self.inference is None or all(tx.category.has_match() for tx in transactions):
            return transactions
        try:
            categories = await self.inference.categories.find_all_available_categories()
        except Exception as exc:
            logger.warning("[RECONCILE] Skipping category inference, categories unavailable: %s", exc)
            return transactions
        return await asyncio.to_thread(self._enrich, self.inference, transactions, categories)

    async def reconcile(
        self,
        account_id: str,
        from_date: datetime.date,
        to_date: datetime.date,
        strategy: ReconciliationStrategy = ReconciliationStrategy.STRICT,
        budget_account_id: str | None = None,
    ) -> ReconciliationResult:
        if not account_id or not account_id.strip():
            raise ValueError("account_id cannot be blank")
        date_range = DateRange(start=from_date, end=to_date)

        bank_transactions = await asyncio.to_thread(
            self.transactions.find_by_account_and_date_range, account_id, from_date, to_date
        )
        budget_transactions = await self.budget.get_transactions_by_account_and_date_range(
            budget_account_id or account_id, from_date, to_date, budget_id=self.budget_id
        )
        bank_transactions = await self._categorize(bank_transactions)

        result = await asyncio.to_thread(
            reconcile, account_id, date_range, bank_transactions, budget_transactions, strategy
        )
        summary = result.summary
        logger.info(
            "[RECONCILE] %s %s..%s (%s): %s bank, %s budget, %s matched, %s missing.",
            account_id,
            from_date,
            to_date,
            strategy.value,
            summary.total_bank_transactions,
            summary.total_budget_transactions,
            summary.matched_count,
            summary.missing_count,
        )
        return result
