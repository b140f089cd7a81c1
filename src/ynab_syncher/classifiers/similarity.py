from collections.abc import Sequence

from rapidfuzz import fuzz

from ynab_syncher.domain.patterns import tokenize
from ynab_syncher.models import BankTransaction, BudgetCategory, CategoryInferenceResult, CategoryMapping

from .base import Classifier

MINIMUM_CONFIDENCE = 0.3
FALLBACK_DISCOUNT = 0.8
DESCRIPTION_WEIGHT = 0.9
KEYWORD_WEIGHT = 0.8
MIN_TEXT_LENGTH = 3

NAME_SCORE = 1.0
GROUP_SCORE = 0.7
WORD_SCORE = 0.5
MIN_WORD_LENGTH = 3

FUZZY_MIN_WORD_LENGTH = 4
FUZZY_THRESHOLD = 85.0
FUZZY_WEIGHT = 0.6


def similarity_score(category: BudgetCategory, text: str) -> float:
    """Score how strongly ``text`` points at ``category`` on a 0..1 scale."""
    lowered = text.lower()
    name = category.name.lower().strip()
    if name and name in lowered:
        return NAME_SCORE

    group = (category.group_name or "").lower().strip()
    if group and group in lowered:
        return GROUP_SCORE

    words = [word for word in tokenize(category.name) if len(word) >= MIN_WORD_LENGTH]
    if any(word in lowered for word in words):
        return WORD_SCORE

    best = 0.0
    for word in words:
        if len(word) < FUZZY_MIN_WORD_LENGTH:
            continue
        ratio = fuzz.partial_ratio(word, lowered)
        if ratio >= FUZZY_THRESHOLD:
            best = max(best, FUZZY_WEIGHT * ratio / 100.0)
    return best


def _keywords(category: BudgetCategory) -> list[str]:
    keywords = [category.name]
    if category.group_name:
        keywords.append(category.group_name)
        keywords.append(f"{category.group_name}: {category.name}")
    return [keyword.lower() for keyword in keywords if keyword.strip()]


def _usable(text: str | None) -> str | None:
    if not text:
        return None
    cleaned = text.lower().strip()
    if len(cleaned) < MIN_TEXT_LENGTH:
        return None
    return cleaned


class SimilarityClassifier(Classifier):
    """Fallback that compares transaction text with budget category names."""

    def _candidates(
        self, transaction: BankTransaction, category: BudgetCategory
    ) -> list[tuple[float, str]]:
        found: list[tuple[float, str]] = []

        merchant = _usable(transaction.merchant_name)
        if merchant:
            found.append((similarity_score(category, merchant), f"Merchant name match: {transaction.merchant_name}"))

        description = _usable(transaction.description)
        if description:
            score = similarity_score(category, description) * DESCRIPTION_WEIGHT
            found.append((score, f"Description match: {transaction.description}"))

        combined = _usable(" ".join(part for part in (merchant, description) if part))
        if combined and any(keyword in combined for keyword in _keywords(category)):
            found.append((similarity_score(category, combined) * KEYWORD_WEIGHT, "Expense pattern match"))

        return found

    def classify(
        self,
        transaction: BankTransaction,
        categories: Sequence[BudgetCategory],
        mappings: Sequence[CategoryMapping],
    ) -> CategoryInferenceResult | None:
        best: tuple[float, str, BudgetCategory] | None = None
        for category in categories:
            if not category.is_available_for_inference():
                continue
            for score, reasoning in self._candidates(transaction, category):
                if score < MINIMUM_CONFIDENCE:
                    continue
                if best is None or score > best[0]:
                    best = (score, reasoning, category)

        if best is None:
            return None

        score, reasoning, category = best
        return CategoryInferenceResult(
            category=category,
            confidence=round(score * FALLBACK_DISCOUNT, 4),
            reasoning=f"Fallback similarity match: {reasoning}",
        )
