import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ynab_syncher.domain.importing import BankTransactionRow
from ynab_syncher.domain.reconciliation import DateRange, ReconciliationResult, ReconciliationStrategy
from ynab_syncher.models import BankTransaction, BudgetTransaction


class ImportRequest(BaseModel):
    transactions: list[BankTransactionRow]


class InferCategoriesRequest(BaseModel):
    transaction_ids: list[str]


class ReconcileRequest(BaseModel):
    from_date: datetime.date
    to_date: datetime.date
    strategy: Optional[ReconciliationStrategy] = None
    budget_account_id: Optional[str] = None


class MatchedTransaction(BaseModel):
    bank_transaction: BankTransaction
    budget_transaction: BudgetTransaction


class ReconcileSummary(BaseModel):
    account_id: str
    reconciliation_date: datetime.date
    date_range: DateRange
    strategy: ReconciliationStrategy
    total_bank_transactions: int
    total_budget_transactions: int
    matched_count: int
    missing_count: int
    reconciliation_percentage: float
    is_complete: bool


class ReconcileResponse(BaseModel):
    matched: list[MatchedTransaction]
    missing: list[BankTransaction]
    summary: ReconcileSummary
    fully_reconciled: bool

    @classmethod
    def from_result(cls, result: ReconciliationResult) -> "ReconcileResponse":
        summary = result.summary
        return cls(
            matched=[
                MatchedTransaction(
                    bank_transaction=match.bank_transaction,
                    budget_transaction=match.budget_transaction,
                )
                for match in result.matches
            ],
            missing=result.missing,
            summary=ReconcileSummary(
                **summary.model_dump(),
                reconciliation_percentage=summary.reconciliation_percentage(),
                is_complete=summary.is_complete(),
            ),
            fully_reconciled=result.is_fully_reconciled(),
        )


class CreateMissingRequest(BaseModel):
    budget_account_id: str
    transaction_ids: list[str] = Field(min_length=1)
    budget_id: Optional[str] = None
