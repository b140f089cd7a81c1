from abc import ABC, abstractmethod
from collections.abc import Sequence

from ynab_syncher.models import BankTransaction, BudgetCategory, CategoryInferenceResult, CategoryMapping


class Classifier(ABC):
    @abstractmethod
    def classify(
        self,
        transaction: BankTransaction,
        categories: Sequence[BudgetCategory],
        mappings: Sequence[CategoryMapping],
    ) -> CategoryInferenceResult | None:
        """Attempt to categorize the transaction."""
        pass
