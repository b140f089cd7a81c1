from collections.abc import Sequence

from ynab_syncher.domain.patterns import extract_pattern
from ynab_syncher.models import BankTransaction, BudgetCategory, CategoryInferenceResult, CategoryMapping

from .base import Classifier


class LearnedMappingClassifier(Classifier):
    """Picks the strongest learned mapping sharing a token with the transaction.

    The mapping's own confidence is reported unchanged.
    """

    def classify(
        self,
        transaction: BankTransaction,
        categories: Sequence[BudgetCategory],
        mappings: Sequence[CategoryMapping],
    ) -> CategoryInferenceResult | None:
        if not mappings:
            return None

        pattern = extract_pattern(transaction)
        if not pattern.has_content():
            return None

        candidates = [mapping for mapping in mappings if mapping.has_exact_match(pattern)]
        if not candidates:
            return None

        # max() keeps the first of equal candidates
        best = max(candidates, key=lambda m: (m.confidence, m.occurrence_count))
        return CategoryInferenceResult(
            category=best.category,
            confidence=best.confidence,
            reasoning=(
                "Exact pattern match from learned mapping "
                f"(seen {best.occurrence_count} times, {best.pattern_count()} patterns, "
                f"confidence: {best.confidence:.2f})"
            ),
        )
