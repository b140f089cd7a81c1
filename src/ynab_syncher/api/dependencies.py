from fastapi import HTTPException, Request

from ynab_syncher.integration.ynab import YnabClient
from ynab_syncher.services.importing import ImportBankTransactions
from ynab_syncher.services.inference import InferTransactionCategories
from ynab_syncher.services.publishing import MissingTransactionPublisher
from ynab_syncher.services.reconciliation import ReconcileTransactions
from ynab_syncher.stores.base import BankTransactionStore


def _require(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if not value:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return value


def get_ynab_optional(request: Request) -> YnabClient | None:
    return getattr(request.app.state, "ynab", None)


def get_transaction_store(request: Request) -> BankTransactionStore:
    return _require(request, "transaction_store")


def get_importer(request: Request) -> ImportBankTransactions:
    return _require(request, "importer")


def get_inference(request: Request) -> InferTransactionCategories:
    return _require(request, "inference")


def get_reconciler(request: Request) -> ReconcileTransactions:
    return _require(request, "reconciler")


def get_publisher(request: Request) -> MissingTransactionPublisher:
    return _require(request, "publisher")
