from collections.abc import Sequence

from ynab_syncher.classifiers.base import Classifier
from ynab_syncher.classifiers.mapping import LearnedMappingClassifier
from ynab_syncher.classifiers.similarity import SimilarityClassifier
from ynab_syncher.logger import get_logger
from ynab_syncher.models import BankTransaction, BudgetCategory, CategoryInferenceResult, CategoryMapping

logger = get_logger(__name__)

PREVIOUSLY_INFERRED_REASONING = "Previously inferred."


class CategoryInferenceEngine:
    def __init__(self, classifiers: list[Classifier] | None = None):
        if classifiers is None:
            # Learned mappings take priority over the similarity fallback
            classifiers = [LearnedMappingClassifier(), SimilarityClassifier()]
        self.classifiers = classifiers

    def infer(
        self,
        transaction: BankTransaction,
        categories: Sequence[BudgetCategory],
        mappings: Sequence[CategoryMapping] = (),
    ) -> CategoryInferenceResult:
        """
        Return the best category guess for ``transaction``.

        A transaction that already carries a category is returned as is with
        full confidence; callers should filter those out before asking.
        """
        if transaction.category.has_match():
            return CategoryInferenceResult(
                category=transaction.category,
                confidence=1.0,
                reasoning=PREVIOUSLY_INFERRED_REASONING,
            )

        label = transaction.display_name()[:50]
        for classifier in self.classifiers:
            classifier_name = classifier.__class__.__name__
            logger.debug("[INFER] Trying %s for: '%s'", classifier_name, label)

            result = classifier.classify(transaction, categories, mappings)
            if result and result.has_match():
                logger.debug(
                    "[INFER] %s returned: '%s' (confidence: %.2f)",
                    classifier_name,
                    result.category.display_name,
                    result.confidence,
                )
                return result
            logger.debug("[INFER] %s returned: None", classifier_name)

        logger.debug("[INFER] No classifier matched for: '%s'", label)
        return CategoryInferenceResult.no_match()
