import asyncio
from collections.abc import Sequence

from ynab_syncher.domain.importing import BankTransactionRow, ImportReport, import_transactions
from ynab_syncher.logger import get_logger
from ynab_syncher.stores.base import BankTransactionStore

logger = get_logger(__name__)


class ImportBankTransactions:
    def __init__(self, store: BankTransactionStore) -> None:
        self.store = store

    def run(self, account_id: str, rows: Sequence[BankTransactionRow]) -> ImportReport:
        report = import_transactions(account_id, rows)
        if report.transactions:
            self.store.save_all(report.transactions)

        logger.info(
            "[IMPORT] %s: %s rows, %s imported, %s duplicates, %s errors (%s).",
            account_id,
            report.total_processed,
            report.successful_imports,
            report.duplicates_skipped,
            report.failed_imports,
            report.status.value,
        )
        for error in report.errors:
            logger.warning("[IMPORT] %s", error)
        return report

    async def import_rows(self, account_id: str, rows: Sequence[BankTransactionRow]) -> ImportReport:
        return await asyncio.to_thread(self.run, account_id, rows)
