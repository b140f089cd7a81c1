from ynab_syncher.domain.budget import available_categories
from ynab_syncher.integration.ynab import YnabClient
from ynab_syncher.models import BudgetCategory


class BudgetCategoryStore:
    """Categories a transaction may be assigned to, read from YNAB."""

    def __init__(self, client: YnabClient, budget_id: str | None = None):
        self.client = client
        self.budget_id = budget_id

    async def find_all_available_categories(self) -> list[BudgetCategory]:
        categories = await self.client.get_categories(self.budget_id)
        return available_categories(categories)
