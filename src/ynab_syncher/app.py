from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ynab_syncher.api.routes import health, reconciliation
from ynab_syncher.core import settings
from ynab_syncher.integration.ynab import YnabClient
from ynab_syncher.logger import get_logger, setup_logging
from ynab_syncher.manager import CategoryInferenceEngine
from ynab_syncher.services.importing import ImportBankTransactions
from ynab_syncher.services.inference import InferTransactionCategories
from ynab_syncher.services.publishing import MissingTransactionPublisher
from ynab_syncher.services.reconciliation import ReconcileTransactions
from ynab_syncher.stores.categories import BudgetCategoryStore
from ynab_syncher.stores.mappings import JsonCategoryMappingStore
from ynab_syncher.stores.transactions import InMemoryBankTransactionStore

logger = get_logger(__name__)


def create_app() -> FastAPI:
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing services...")
        settings.log_environment()

        ynab = YnabClient()
        if not ynab.is_configured:
            logger.warning("YNAB_TOKEN not set. Budget calls will fail until it is configured.")

        transaction_store = InMemoryBankTransactionStore()
        mapping_store = JsonCategoryMappingStore(data_path=settings.get_mappings_path())
        category_store = BudgetCategoryStore(ynab, budget_id=ynab.budget_id)
        inference = InferTransactionCategories(
            transactions=transaction_store,
            categories=category_store,
            mappings=mapping_store,
            engine=CategoryInferenceEngine(),
        )

        app.state.ynab = ynab
        app.state.transaction_store = transaction_store
        app.state.importer = ImportBankTransactions(transaction_store)
        app.state.inference = inference
        app.state.reconciler = ReconcileTransactions(
            transactions=transaction_store,
            budget=ynab,
            inference=inference,
            budget_id=ynab.budget_id,
        )
        app.state.publisher = MissingTransactionPublisher(ynab)

        logger.info("Services initialized.")
        yield
        await ynab.aclose()
        logger.info("Service shutting down.")

    app = FastAPI(title="YNAB Syncher", lifespan=lifespan)
    app.include_router(reconciliation.router)
    app.include_router(health.router)
    return app


app = create_app()
