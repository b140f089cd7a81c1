import datetime
import threading
from collections.abc import Sequence

from ynab_syncher.models import BankTransaction


class InMemoryBankTransactionStore:
    """Keeps imported bank transactions for the lifetime of the process."""

    def __init__(self, transactions: Sequence[BankTransaction] | None = None):
        self._lock = threading.Lock()
        self._transactions: dict[str, BankTransaction] = {}
        if transactions:
            self.save_all(transactions)

    def save_all(self, transactions: Sequence[BankTransaction]) -> None:
        with self._lock:
            for transaction in transactions:
                self._transactions[transaction.id] = transaction

    def find_by_ids(self, ids: Sequence[str]) -> list[BankTransaction]:
        with self._lock:
            return [self._transactions[tx_id] for tx_id in ids if tx_id in self._transactions]

    def find_by_account_and_date_range(
        self, account_id: str, from_date: datetime.date, to_date: datetime.date
    ) -> list[BankTransaction]:
        with self._lock:
            return [
                tx
                for tx in self._transactions.values()
                if tx.account_id == account_id and from_date <= tx.date <= to_date
            ]

    def count(self) -> int:
        return len(self._transactions)
