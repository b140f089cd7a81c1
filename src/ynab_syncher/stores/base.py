"""Interfaces the use cases depend on.

Concrete stores live beside this module; tests substitute mocks.
"""
import datetime
from collections.abc import Sequence
from typing import Protocol

from ynab_syncher.domain.patterns import TransactionPattern
from ynab_syncher.models import BankTransaction, BudgetCategory, BudgetTransaction, CategoryMapping


class BankTransactionStore(Protocol):
    def save_all(self, transactions: Sequence[BankTransaction]) -> None:
        ...

    def find_by_ids(self, ids: Sequence[str]) -> list[BankTransaction]:
        """Bulk lookup. Unknown ids are left out of the result."""
        ...

    def find_by_account_and_date_range(
        self, account_id: str, from_date: datetime.date, to_date: datetime.date
    ) -> list[BankTransaction]:
        ...


class CategoryStore(Protocol):
    async def find_all_available_categories(self) -> list[BudgetCategory]:
        ...


class CategoryMappingStore(Protocol):
    def find_mappings_for_pattern(self, pattern: TransactionPattern) -> list[CategoryMapping]:
        ...


class BudgetService(Protocol):
    async def create_transaction(
        self, budget_id: str | None, transaction: BudgetTransaction
    ) -> BudgetTransaction:
        ...

    async def get_transactions_by_account_and_date_range(
        self,
        account_id: str,
        from_date: datetime.date,
        to_date: datetime.date,
        budget_id: str | None = None,
    ) -> list[BudgetTransaction]:
        ...
