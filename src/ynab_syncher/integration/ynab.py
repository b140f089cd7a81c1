import asyncio
import datetime
import os
from time import monotonic
from typing import Any

import httpx

from ynab_syncher.core import settings
from ynab_syncher.domain.budget import parse_budget_transaction, parse_category_groups, transaction_payload
from ynab_syncher.integration.errors import BudgetServiceError
from ynab_syncher.logger import get_logger
from ynab_syncher.models import BudgetCategory, BudgetTransaction

logger = get_logger(__name__)

DEFAULT_API_URL = "https://api.ynab.com/v1"
DEFAULT_BUDGET_ID = "last-used"
DEFAULT_CATEGORIES_CACHE_TTL_SECONDS = 60.0
DEFAULT_TIMEOUT_SECONDS = 30.0


class YnabClient:
    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        budget_id: str | None = None,
        client: httpx.AsyncClient | None = None,
        categories_cache_ttl: float | None = None,
    ):
        self._client = client
        self._client_lock = asyncio.Lock()
        self._cache_lock = asyncio.Lock()
        self._configure(base_url, token, budget_id, categories_cache_ttl)

    def _configure(
        self,
        base_url: str | None,
        token: str | None,
        budget_id: str | None,
        categories_cache_ttl: float | None,
    ) -> None:
        base_value = base_url or os.getenv("YNAB_API_URL") or DEFAULT_API_URL
        self.base_url = base_value.rstrip("/")
        self.token = token or os.getenv("YNAB_TOKEN") or None
        self.budget_id = budget_id or os.getenv("YNAB_BUDGET_ID") or DEFAULT_BUDGET_ID
        self.headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        self._categories_cache: dict[str, list[BudgetCategory]] = {}
        self._categories_cache_expires_at: dict[str, float] = {}
        cache_ttl = categories_cache_ttl
        if cache_ttl is None:
            cache_ttl = settings.get_env_float("YNAB_CATEGORIES_TTL", DEFAULT_CATEGORIES_CACHE_TTL_SECONDS)
        self._categories_cache_ttl = max(0.0, cache_ttl)

    def refresh(
        self,
        base_url: str | None = None,
        token: str | None = None,
        budget_id: str | None = None,
    ) -> None:
        """Re-read credentials and drop cached categories."""
        self._configure(base_url, token, budget_id, None)

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.token)

    async def aclose(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _get_client(self) -> httpx.AsyncClient:
        client = self._client
        if client is not None and not client.is_closed:
            return client

        async with self._client_lock:
            # Another task may have created it while we waited
            client = self._client
            if client is None or client.is_closed:
                client = httpx.AsyncClient(timeout=DEFAULT_TIMEOUT_SECONDS)
                self._client = client
            return client

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        if not self.is_configured:
            raise BudgetServiceError("YNAB credentials missing.")

        client = await self._get_client()
        try:
            response = await client.request(
                method,
                f"{self.base_url}{path}",
                headers=self.headers,
                **kwargs,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise BudgetServiceError.from_response(exc.response) from exc
        except httpx.HTTPError as exc:
            raise BudgetServiceError(f"YNAB request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise BudgetServiceError(
                "YNAB returned a non-JSON response", status_code=response.status_code
            ) from exc
        return body.get("data", {}) if isinstance(body, dict) else {}

    def _get_cached_categories(
        self, budget_id: str, *, allow_stale: bool = False
    ) -> list[BudgetCategory] | None:
        cached = self._categories_cache.get(budget_id)
        if cached is None or self._categories_cache_ttl <= 0:
            return None
        if allow_stale:
            return cached
        if monotonic() >= self._categories_cache_expires_at.get(budget_id, 0.0):
            return None
        return cached

    def _cache_categories(self, budget_id: str, categories: list[BudgetCategory]) -> None:
        """Must be called while holding _cache_lock."""
        if self._categories_cache_ttl <= 0:
            return
        self._categories_cache[budget_id] = categories
        self._categories_cache_expires_at[budget_id] = monotonic() + self._categories_cache_ttl

    async def _fetch_categories(self, budget_id: str) -> list[BudgetCategory]:
        data = await self._request("GET", f"/budgets/{budget_id}/categories")
        return parse_category_groups(data.get("category_groups", []))

    async def get_categories(
        self, budget_id: str | None = None, *, use_cache: bool = True
    ) -> list[BudgetCategory]:
        budget = budget_id or self.budget_id
        if not use_cache:
            return await self._fetch_categories(budget)

        async with self._cache_lock:
            cached = self._get_cached_categories(budget)
            if cached is not None:
                return cached

            try:
                categories = await self._fetch_categories(budget)
            except BudgetServiceError as exc:
                stale = self._get_cached_categories(budget, allow_stale=True)
                if stale is None:
                    raise
                logger.warning("[YNAB] Error fetching categories, serving cached copy: %s", exc)
                return stale
            self._cache_categories(budget, categories)
            return categories

    async def get_transactions_by_account_and_date_range(
        self,
        account_id: str,
        from_date: datetime.date,
        to_date: datetime.date,
        budget_id: str | None = None,
    ) -> list[BudgetTransaction]:
        budget = budget_id or self.budget_id
        # YNAB only filters by lower bound
        data = await self._request(
            "GET",
            f"/budgets/{budget}/accounts/{account_id}/transactions",
            params={"since_date": from_date.isoformat()},
        )
        transactions = []
        for raw in data.get("transactions", []):
            if raw.get("deleted"):
                continue
            transaction = parse_budget_transaction(raw)
            if from_date <= transaction.date <= to_date:
                transactions.append(transaction)
        logger.debug(
            "[YNAB] Fetched %s transactions for account %s (%s to %s).",
            len(transactions),
            account_id,
            from_date,
            to_date,
        )
        return transactions

    async def create_transaction(
        self, budget_id: str | None, transaction: BudgetTransaction
    ) -> BudgetTransaction:
        budget = budget_id or self.budget_id
        data = await self._request(
            "POST",
            f"/budgets/{budget}/transactions",
            json={"transaction": transaction_payload(transaction)},
        )
        created = data.get("transaction")
        if not created:
            raise BudgetServiceError("YNAB response did not include the created transaction.")
        return parse_budget_transaction(created)

    async def is_healthy(self) -> bool:
        try:
            await self._request("GET", "/user")
        except BudgetServiceError as exc:
            logger.error("[YNAB] Health check failed: %s", exc)
            return False
        return True
