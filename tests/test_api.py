import datetime
from collections.abc import Generator
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from ynab_syncher.app import app
from ynab_syncher.integration.errors import BudgetServiceError
from ynab_syncher.models import BankTransaction, BudgetCategory, BudgetTransaction
from ynab_syncher.services.importing import ImportBankTransactions
from ynab_syncher.services.inference import InferTransactionCategories
from ynab_syncher.services.publishing import MissingTransactionPublisher
from ynab_syncher.services.reconciliation import ReconcileTransactions
from ynab_syncher.stores.transactions import InMemoryBankTransactionStore

client = TestClient(app)

BASE = "/api/v1/reconciliation/accounts/acct-1"
_STATE_NAMES = ("ynab", "transaction_store", "importer", "inference", "reconciler", "publisher")


def _bank(tx_id: str, day: int = 16) -> BankTransaction:
    return BankTransaction(
        id=tx_id,
        account_id="acct-1",
        date=datetime.date(2024, 1, day),
        amount=Decimal("-4.50"),
        description="COFFEE SHOP",
        merchant_name="Daily Grind",
    )


@pytest.fixture
def state() -> Generator[dict[str, Any], None, None]:
    saved = {name: getattr(app.state, name) for name in _STATE_NAMES if hasattr(app.state, name)}

    store = InMemoryBankTransactionStore()
    budget = AsyncMock()
    categories = MagicMock()
    categories.find_all_available_categories = AsyncMock(
        return_value=[BudgetCategory(id="c1", name="Coffee", group_name="Dining")]
    )
    mappings = MagicMock()
    mappings.find_mappings_for_pattern.return_value = []
    inference = InferTransactionCategories(store, categories, mappings)

    app.state.ynab = None
    app.state.transaction_store = store
    app.state.importer = ImportBankTransactions(store)
    app.state.inference = inference
    app.state.reconciler = ReconcileTransactions(store, budget, inference=inference)
    app.state.publisher = MissingTransactionPublisher(budget)

    yield {"store": store, "budget": budget, "categories": categories}

    for name in _STATE_NAMES:
        if name in saved:
            setattr(app.state, name, saved[name])
        elif hasattr(app.state, name):
            delattr(app.state, name)


def test_import_skips_duplicates(state: dict[str, Any]) -> None:
    row = {"date": "2024-01-10", "description": "COFFEE SHOP", "amount": "-4.50", "merchant_name": "Daily Grind"}

    response = client.post(f"{BASE}/transactions/import", json={"transactions": [row, row]})

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "SUCCESS"
    assert data["successful_imports"] == 1
    assert data["duplicates_skipped"] == 1
    assert state["store"].count() == 1


def test_import_reports_line_errors(state: dict[str, Any]) -> None:
    rows = [{"date": "2023-02-29", "description": "COFFEE SHOP", "amount": "-4.50"}]

    response = client.post(f"{BASE}/transactions/import", json={"transactions": rows})

    assert response.status_code == 200
    assert response.json()["status"] == "FAILED"
    assert response.json()["errors"] == ["Line 1: Invalid date format: 2023-02-29"]


def test_import_rejects_empty_batch(state: dict[str, Any]) -> None:
    response = client.post(f"{BASE}/transactions/import", json={"transactions": []})

    assert response.status_code == 400


def test_import_rejects_blank_description(state: dict[str, Any]) -> None:
    rows = [{"date": "2024-01-10", "description": "  ", "amount": "-4.50"}]

    response = client.post(f"{BASE}/transactions/import", json={"transactions": rows})

    assert response.status_code == 422


def test_infer_categories(state: dict[str, Any]) -> None:
    state["store"].save_all([_bank("t1")])

    response = client.post(
        f"{BASE}/transactions/infer-categories",
        json={"transaction_ids": ["t1", "unknown"]},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total_processed"] == 1
    assert data["successful"] == 1
    result = data["results"][0]
    assert result["transaction_id"] == "t1"
    assert result["inference"]["category"]["name"] == "Coffee"
    assert result["inference"]["reasoning"].startswith("Fallback similarity match")


def test_infer_categories_skips_other_account(state: dict[str, Any]) -> None:
    other = _bank("t2").model_copy(update={"account_id": "acct-2"})
    state["store"].save_all([_bank("t1"), other])

    response = client.post(
        f"{BASE}/transactions/infer-categories",
        json={"transaction_ids": ["t1", "t2"]},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total_processed"] == 1
    assert [result["transaction_id"] for result in data["results"]] == ["t1"]


def test_infer_categories_budget_error(state: dict[str, Any]) -> None:
    state["categories"].find_all_available_categories.side_effect = BudgetServiceError(
        "YNAB API error 503", status_code=503
    )

    response = client.post(f"{BASE}/transactions/infer-categories", json={"transaction_ids": ["t1"]})

    assert response.status_code == 502


@pytest.mark.parametrize(("strategy", "matched"), [("STRICT", 0), ("RANGE", 1)])
def test_reconcile_strategies(state: dict[str, Any], strategy: str, matched: int) -> None:
    state["store"].save_all([_bank("t1", day=16)])
    state["budget"].get_transactions_by_account_and_date_range.return_value = [
        BudgetTransaction(id="y1", account_id="acct-1", date=datetime.date(2024, 1, 15), amount=Decimal("-4.50"))
    ]

    response = client.post(
        f"{BASE}/reconcile",
        json={"from_date": "2024-01-01", "to_date": "2024-01-31", "strategy": strategy},
    )

    assert response.status_code == 200
    data = response.json()
    assert len(data["matched"]) == matched
    assert len(data["missing"]) == 1 - matched
    assert data["summary"]["strategy"] == strategy
    assert data["summary"]["matched_count"] == matched
    assert data["summary"]["total_budget_transactions"] == 1
    assert data["fully_reconciled"] is bool(matched)


def test_reconcile_rejects_inverted_range(state: dict[str, Any]) -> None:
    response = client.post(
        f"{BASE}/reconcile",
        json={"from_date": "2024-02-01", "to_date": "2024-01-01"},
    )

    assert response.status_code == 400


def test_reconcile_budget_error(state: dict[str, Any]) -> None:
    state["budget"].get_transactions_by_account_and_date_range.side_effect = BudgetServiceError(
        "YNAB API error 500", status_code=500
    )

    response = client.post(
        f"{BASE}/reconcile",
        json={"from_date": "2024-01-01", "to_date": "2024-01-31"},
    )

    assert response.status_code == 502


def test_create_missing(state: dict[str, Any]) -> None:
    state["store"].save_all([_bank("t1"), _bank("t2", day=17)])
    state["budget"].create_transaction.side_effect = [
        BudgetTransaction(id="y1", account_id="ynab-acct", date=datetime.date(2024, 1, 16), amount=Decimal("-4.50")),
        BudgetServiceError("YNAB API error 400: invalid", status_code=400),
    ]

    response = client.post(
        f"{BASE}/transactions/create-missing",
        json={"budget_account_id": "ynab-acct", "transaction_ids": ["t1", "t2"]},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total_processed"] == 2
    assert data["successfully_created"] == 1
    assert data["failed"] == 1
    assert data["results"][0]["transaction_id"] == "y1"
    assert data["results"][1]["error_message"] == "Failed to create transaction: YNAB API error 400: invalid"


def test_create_missing_unknown_transaction(state: dict[str, Any]) -> None:
    response = client.post(
        f"{BASE}/transactions/create-missing",
        json={"budget_account_id": "ynab-acct", "transaction_ids": ["nope"]},
    )

    assert response.status_code == 404
    state["budget"].create_transaction.assert_not_called()


def test_health_without_ynab(state: dict[str, Any]) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "ynab": "disabled"}
