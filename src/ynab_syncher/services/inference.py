import asyncio
from collections.abc import Sequence

from pydantic import BaseModel

from ynab_syncher.domain.patterns import extract_pattern
from ynab_syncher.logger import get_logger
from ynab_syncher.manager import CategoryInferenceEngine
from ynab_syncher.models import BankTransaction, BudgetCategory, CategoryInferenceResult
from ynab_syncher.stores.base import BankTransactionStore, CategoryMappingStore, CategoryStore

logger = get_logger(__name__)


class TransactionCategoryResult(BaseModel):
    transaction_id: str
    inference: CategoryInferenceResult
    successful: bool


class CategoryInferenceResponse(BaseModel):
    results: list[TransactionCategoryResult]
    total_processed: int
    successful: int
    failed: int

    def success_rate(self) -> float:
        if self.total_processed == 0:
            return 0.0
        return self.successful / self.total_processed


class InferTransactionCategories:
    """Batch category inference over stored bank transactions.

    Success means a category other than Unknown was found. Confidence is not
    thresholded here; low-confidence guesses are reported for review.
    """

    def __init__(
        self,
        transactions: BankTransactionStore,
        categories: CategoryStore,
        mappings: CategoryMappingStore,
        engine: CategoryInferenceEngine | None = None,
    ) -> None:
        self.transactions = transactions
        self.categories = categories
        self.mappings = mappings
        self.engine = engine or CategoryInferenceEngine()

    def infer_one(
        self, transaction: BankTransaction, categories: Sequence[BudgetCategory]
    ) -> CategoryInferenceResult:
        if transaction.category.has_match():
            return self.engine.infer(transaction, categories)
        mappings = self.mappings.find_mappings_for_pattern(extract_pattern(transaction))
        return self.engine.infer(transaction, categories, mappings)

    def _infer_all(
        self,
        transaction_ids: Sequence[str],
        transactions: list[BankTransaction],
        categories: list[BudgetCategory],
    ) -> list[TransactionCategoryResult]:
        by_id = {tx.id: tx for tx in transactions}
        results = []
        for tx_id in transaction_ids:
            transaction = by_id.get(tx_id)
            if transaction is None:
                continue
            inference = self.infer_one(transaction, categories)
            results.append(
                TransactionCategoryResult(
                    transaction_id=tx_id,
                    inference=inference,
                    successful=inference.has_match(),
                )
            )
        return results

    async def infer(
        self, transaction_ids: Sequence[str], account_id: str | None = None
    ) -> CategoryInferenceResponse:
        if not transaction_ids:
            raise ValueError("transaction_ids cannot be empty")

        # dict.fromkeys drops repeated ids and keeps order
        requested = list(dict.fromkeys(transaction_ids))
        transactions = await asyncio.to_thread(self.transactions.find_by_ids, requested)
        if account_id is not None:
            # Ids owned by another account are skipped like unknown ones
            transactions = [tx for tx in transactions if tx.account_id == account_id]
        categories = await self.categories.find_all_available_categories()

        results = await asyncio.to_thread(self._infer_all, requested, transactions, categories)
        successful = sum(1 for result in results if result.successful)
        response = CategoryInferenceResponse(
            results=results,
            total_processed=len(results),
            successful=successful,
            failed=len(results) - successful,
        )
        logger.info(
            "[INFER] %s requested, %s processed, %s inferred, %s without a category.",
            len(requested),
            response.total_processed,
            response.successful,
            response.failed,
        )
        return response
