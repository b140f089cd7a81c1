"""Translation between YNAB API payloads and domain models."""
import datetime
from typing import Any

from ynab_syncher.domain.money import from_milliunits, to_milliunits
from ynab_syncher.models import (
    UNKNOWN,
    BudgetCategory,
    BudgetTransaction,
    Category,
    ClearedStatus,
)

# YNAB puts these in an internal group that users cannot pick from
INTERNAL_GROUP_NAMES = {"Internal Master Category", "Credit Card Payments", "Hidden Categories"}


def parse_category_groups(groups: list[dict[str, Any]]) -> list[BudgetCategory]:
    categories: list[BudgetCategory] = []
    for group in groups:
        group_name = group.get("name")
        group_hidden = bool(group.get("hidden"))
        group_deleted = bool(group.get("deleted"))
        for raw in group.get("categories") or []:
            categories.append(
                BudgetCategory(
                    id=str(raw["id"]),
                    name=raw.get("name") or "",
                    group_name=group_name,
                    hidden=group_hidden or bool(raw.get("hidden")),
                    deleted=group_deleted or bool(raw.get("deleted")),
                )
            )
    return categories


def available_categories(categories: list[BudgetCategory]) -> list[BudgetCategory]:
    return [
        category
        for category in categories
        if category.is_available_for_inference()
        and category.name
        and category.group_name not in INTERNAL_GROUP_NAMES
    ]


def _parse_category(raw: dict[str, Any]) -> Category:
    category_id = raw.get("category_id")
    category_name = raw.get("category_name")
    if not category_id or not category_name or category_name == "Uncategorized":
        return UNKNOWN
    return BudgetCategory(id=str(category_id), name=category_name)


def _parse_cleared(raw: str | None) -> ClearedStatus:
    try:
        return ClearedStatus(raw or ClearedStatus.UNCLEARED.value)
    except ValueError:
        return ClearedStatus.UNCLEARED


def parse_budget_transaction(raw: dict[str, Any]) -> BudgetTransaction:
    return BudgetTransaction(
        id=raw.get("id"),
        account_id=str(raw["account_id"]),
        date=datetime.date.fromisoformat(raw["date"]),
        amount=from_milliunits(int(raw["amount"])),
        payee_name=raw.get("payee_name"),
        memo=raw.get("memo"),
        category=_parse_category(raw),
        cleared=_parse_cleared(raw.get("cleared")),
        approved=bool(raw.get("approved")),
        flag_color=raw.get("flag_color"),
    )


def transaction_payload(transaction: BudgetTransaction) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "account_id": transaction.account_id,
        "date": transaction.date.isoformat(),
        "amount": to_milliunits(transaction.amount),
        "payee_name": transaction.payee_name,
        "memo": transaction.memo,
        "cleared": transaction.cleared.value,
        "approved": transaction.approved,
        "flag_color": transaction.flag_color,
    }
    if isinstance(transaction.category, BudgetCategory):
        payload["category_id"] = transaction.category.id
    return payload
