from typing import Annotated

from fastapi import APIRouter, Depends

from ynab_syncher.api.dependencies import get_ynab_optional
from ynab_syncher.integration.ynab import YnabClient

router = APIRouter()


@router.get("/health")
async def health(
    ynab: Annotated[YnabClient | None, Depends(get_ynab_optional)],
) -> dict[str, str]:
    if not ynab or not ynab.is_configured:
        return {"status": "ok", "ynab": "disabled"}
    ynab_status = "ok" if await ynab.is_healthy() else "unreachable"
    return {"status": "ok", "ynab": ynab_status}
