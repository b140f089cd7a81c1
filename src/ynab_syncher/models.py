import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from ynab_syncher.domain.patterns import TransactionPattern

MAX_MERCHANT_NAME_LENGTH = 50
HIGH_CONFIDENCE_THRESHOLD = 0.8
HIGH_CONFIDENCE_MIN_OCCURRENCES = 2


class UnknownCategory(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["unknown"] = "unknown"

    @property
    def display_name(self) -> str:
        return "Unknown"

    def has_match(self) -> bool:
        return False


class BudgetCategory(BaseModel):
    """A category that exists in the budget service."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["budget"] = "budget"
    id: str
    name: str
    group_name: Optional[str] = None
    hidden: bool = False
    deleted: bool = False

    @property
    def display_name(self) -> str:
        return self.name

    def has_match(self) -> bool:
        return True

    def is_available_for_inference(self) -> bool:
        return not self.hidden and not self.deleted


class InferredCategory(BaseModel):
    """A category name derived from bank data, not yet tied to a budget category id."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["inferred"] = "inferred"
    name: str

    @property
    def display_name(self) -> str:
        return self.name

    def has_match(self) -> bool:
        return True


Category = Annotated[
    Union[UnknownCategory, BudgetCategory, InferredCategory],
    Field(discriminator="kind"),
]

UNKNOWN = UnknownCategory()


class BankTransaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    account_id: str
    date: datetime.date
    amount: Decimal
    description: str
    merchant_name: str
    memo: Optional[str] = None
    reference: Optional[str] = None
    category: Category = UNKNOWN

    @field_validator("merchant_name")
    @classmethod
    def _truncate_merchant(cls, value: str) -> str:
        return value[:MAX_MERCHANT_NAME_LENGTH]

    def is_debit(self) -> bool:
        return self.amount < 0

    def display_name(self) -> str:
        return self.merchant_name or self.description

    def with_category(self, category: Category) -> "BankTransaction":
        return self.model_copy(update={"category": category})


class ClearedStatus(str, Enum):
    CLEARED = "cleared"
    UNCLEARED = "uncleared"
    RECONCILED = "reconciled"


class BudgetTransaction(BaseModel):
    """A transaction as held by the budget service. ``id`` is unset until created."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    account_id: str
    date: datetime.date
    amount: Decimal
    payee_name: Optional[str] = None
    memo: Optional[str] = None
    category: Category = UNKNOWN
    cleared: ClearedStatus = ClearedStatus.UNCLEARED
    approved: bool = False
    flag_color: Optional[str] = None

    def is_reconciled(self) -> bool:
        return self.cleared == ClearedStatus.RECONCILED


class CategoryInferenceResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: Category
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str

    @classmethod
    def no_match(cls, reasoning: str = "No suitable match found") -> "CategoryInferenceResult":
        return cls(category=UNKNOWN, confidence=0.0, reasoning=reasoning)

    def has_match(self) -> bool:
        return self.category.has_match()

    def is_high_confidence(self) -> bool:
        return self.confidence >= HIGH_CONFIDENCE_THRESHOLD


class CategoryMapping(BaseModel):
    """A learned association between a token set and a category."""

    model_config = ConfigDict(frozen=True)

    id: str
    category: Category
    text_patterns: frozenset[str]
    confidence: float = Field(ge=0.0, le=1.0)
    occurrence_count: int = Field(default=1, ge=1)

    @field_validator("text_patterns")
    @classmethod
    def _require_patterns(cls, value: frozenset[str]) -> frozenset[str]:
        if not value:
            raise ValueError("text_patterns cannot be empty")
        return value

    def is_high_confidence(self) -> bool:
        return (
            self.confidence >= HIGH_CONFIDENCE_THRESHOLD
            and self.occurrence_count >= HIGH_CONFIDENCE_MIN_OCCURRENCES
        )

    def has_exact_match(self, pattern: "TransactionPattern") -> bool:
        return not self.text_patterns.isdisjoint(pattern.tokens)

    def pattern_count(self) -> int:
        return len(self.text_patterns)
