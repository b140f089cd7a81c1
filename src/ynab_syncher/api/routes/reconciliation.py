from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from ynab_syncher.api.dependencies import (
    get_importer,
    get_inference,
    get_publisher,
    get_reconciler,
    get_transaction_store,
)
from ynab_syncher.api.schemas import (
    CreateMissingRequest,
    ImportRequest,
    InferCategoriesRequest,
    ReconcileRequest,
    ReconcileResponse,
)
from ynab_syncher.core import settings
from ynab_syncher.domain.importing import ImportReport
from ynab_syncher.integration.errors import BudgetServiceError
from ynab_syncher.logger import get_logger
from ynab_syncher.services.importing import ImportBankTransactions
from ynab_syncher.services.inference import CategoryInferenceResponse, InferTransactionCategories
from ynab_syncher.services.publishing import CreateMissingTransactionsResponse, MissingTransactionPublisher
from ynab_syncher.services.reconciliation import ReconcileTransactions
from ynab_syncher.stores.base import BankTransactionStore

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/reconciliation")


def _budget_error(exc: BudgetServiceError) -> HTTPException:
    logger.error("[YNAB] %s", exc)
    status_code = 429 if exc.is_rate_limited() else 502
    return HTTPException(status_code=status_code, detail=str(exc))


@router.post("/accounts/{account_id}/transactions/import", response_model=ImportReport)
async def import_transactions(
    account_id: str,
    req: ImportRequest,
    importer: Annotated[ImportBankTransactions, Depends(get_importer)],
) -> ImportReport:
    try:
        return await importer.import_rows(account_id, req.transactions)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.post(
    "/accounts/{account_id}/transactions/infer-categories",
    response_model=CategoryInferenceResponse,
)
async def infer_categories(
    account_id: str,
    req: InferCategoriesRequest,
    inference: Annotated[InferTransactionCategories, Depends(get_inference)],
) -> CategoryInferenceResponse:
    logger.debug("[INFER] %s ids requested for account %s.", len(req.transaction_ids), account_id)
    try:
        return await inference.infer(req.transaction_ids, account_id=account_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except BudgetServiceError as exc:
        raise _budget_error(exc) from exc


@router.post("/accounts/{account_id}/reconcile", response_model=ReconcileResponse)
async def reconcile(
    account_id: str,
    req: ReconcileRequest,
    reconciler: Annotated[ReconcileTransactions, Depends(get_reconciler)],
) -> ReconcileResponse:
    strategy = req.strategy or settings.get_env_strategy()
    try:
        result = await reconciler.reconcile(
            account_id,
            req.from_date,
            req.to_date,
            strategy,
            budget_account_id=req.budget_account_id,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except BudgetServiceError as exc:
        raise _budget_error(exc) from exc
    return ReconcileResponse.from_result(result)


@router.post(
    "/accounts/{account_id}/transactions/create-missing",
    response_model=CreateMissingTransactionsResponse,
)
async def create_missing_transactions(
    account_id: str,
    req: CreateMissingRequest,
    store: Annotated[BankTransactionStore, Depends(get_transaction_store)],
    publisher: Annotated[MissingTransactionPublisher, Depends(get_publisher)],
) -> CreateMissingTransactionsResponse:
    requested = list(dict.fromkeys(req.transaction_ids))
    transactions = store.find_by_ids(requested)
    found = {tx.id for tx in transactions}
    unknown = [tx_id for tx_id in requested if tx_id not in found]
    foreign = [tx.id for tx in transactions if tx.account_id != account_id]
    if unknown or foreign:
        raise HTTPException(
            status_code=404,
            detail=f"Transactions not found for account {account_id}: {', '.join(unknown + foreign)}",
        )
    try:
        return await publisher.publish(req.budget_id, req.budget_account_id, transactions)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
