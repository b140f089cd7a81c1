import datetime
import re
import uuid
from collections.abc import Callable, Sequence
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ynab_syncher.domain.money import fingerprint_amount, parse_amount
from ynab_syncher.logger import get_logger
from ynab_syncher.models import MAX_MERCHANT_NAME_LENGTH, BankTransaction

logger = get_logger(__name__)

_DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


class BankTransactionRow(BaseModel):
    """One raw row as received from a bank export. Fields stay strings until parsed."""

    model_config = ConfigDict(frozen=True)

    date: str
    description: str
    amount: str
    merchant_name: Optional[str] = None
    memo: Optional[str] = None
    reference: Optional[str] = None

    @field_validator("description", "amount")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("cannot be blank")
        return value


class ImportStatus(str, Enum):
    SUCCESS = "SUCCESS"
    PARTIAL_SUCCESS = "PARTIAL_SUCCESS"
    FAILED = "FAILED"


class ImportReport(BaseModel):
    account_id: str
    status: ImportStatus
    total_processed: int
    successful_imports: int
    duplicates_skipped: int
    failed_imports: int
    errors: list[str]
    transactions: list[BankTransaction]

    def has_errors(self) -> bool:
        return bool(self.errors)


def _parse_date(raw: str) -> datetime.date:
    cleaned = raw.strip()
    if not _DATE_PATTERN.fullmatch(cleaned):
        raise ValueError(f"Invalid date format: {raw}")
    try:
        return datetime.date.fromisoformat(cleaned)
    except ValueError:
        raise ValueError(f"Invalid date format: {raw}") from None


def _resolve_merchant_name(row: BankTransactionRow) -> str:
    name = row.merchant_name if row.merchant_name and row.merchant_name.strip() else row.description
    return name[:MAX_MERCHANT_NAME_LENGTH]


def duplicate_fingerprint(
    account_id: str, date: datetime.date, amount: Decimal, description: str
) -> str:
    # Description is used verbatim: case and whitespace changes make a new transaction.
    return f"{account_id}|{date.isoformat()}|{fingerprint_amount(amount)}|{description}"


def _status_for(imported: int, failed: int) -> ImportStatus:
    if failed == 0:
        return ImportStatus.SUCCESS
    if imported == 0:
        return ImportStatus.FAILED
    return ImportStatus.PARTIAL_SUCCESS


def import_transactions(
    account_id: str,
    rows: Sequence[BankTransactionRow],
    id_factory: Callable[[], str] | None = None,
) -> ImportReport:
    if not account_id or not account_id.strip():
        raise ValueError("account_id cannot be blank")
    if not rows:
        raise ValueError("rows cannot be empty")

    new_id = id_factory or (lambda: str(uuid.uuid4()))
    seen: set[str] = set()
    transactions: list[BankTransaction] = []
    errors: list[str] = []
    duplicates = 0

    for line, row in enumerate(rows, start=1):
        try:
            date = _parse_date(row.date)
            amount = parse_amount(row.amount)
        except ValueError as exc:
            errors.append(f"Line {line}: {exc}")
            continue

        fingerprint = duplicate_fingerprint(account_id, date, amount, row.description)
        if fingerprint in seen:
            duplicates += 1
            logger.debug("[IMPORT] Line %s is a duplicate, skipping.", line)
            continue
        seen.add(fingerprint)

        transactions.append(
            BankTransaction(
                id=new_id(),
                account_id=account_id,
                date=date,
                amount=amount,
                description=row.description,
                merchant_name=_resolve_merchant_name(row),
                memo=row.memo,
                reference=row.reference,
            )
        )

    failed = len(errors)
    return ImportReport(
        account_id=account_id,
        status=_status_for(len(transactions), failed),
        total_processed=len(rows),
        successful_imports=len(transactions),
        duplicates_skipped=duplicates,
        failed_imports=failed,
        errors=errors,
        transactions=transactions,
    )
