import re

from pydantic import BaseModel, ConfigDict

from ynab_syncher.models import BankTransaction

MIN_CONTENT_TOKEN_LENGTH = 3

_NON_WORD = re.compile(r"[\W_]+")


class TransactionPattern(BaseModel):
    """Lower-cased word tokens taken from a transaction's merchant name and description."""

    model_config = ConfigDict(frozen=True)

    tokens: frozenset[str]

    def has_exact_match(self, other: "TransactionPattern") -> bool:
        return not self.tokens.isdisjoint(other.tokens)

    def has_content(self) -> bool:
        return any(len(token) >= MIN_CONTENT_TOKEN_LENGTH for token in self.tokens)

    def contains(self, token: str) -> bool:
        return token.lower() in self.tokens

    def size(self) -> int:
        return len(self.tokens)


def tokenize(text: str | None) -> set[str]:
    if not text:
        return set()
    tokens = set()
    for word in text.lower().split():
        token = _NON_WORD.sub("", word)
        if token:
            tokens.add(token)
    return tokens


def extract_pattern(transaction: BankTransaction) -> TransactionPattern:
    return TransactionPattern(
        tokens=frozenset(tokenize(transaction.merchant_name) | tokenize(transaction.description))
    )
