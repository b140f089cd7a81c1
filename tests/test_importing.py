import datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from ynab_syncher.domain.importing import (
    BankTransactionRow,
    ImportStatus,
    duplicate_fingerprint,
    import_transactions,
)


def _row(**overrides) -> BankTransactionRow:
    values = {
        "date": "2024-01-10",
        "description": "COFFEE SHOP",
        "amount": "-4.50",
        "merchant_name": "Daily Grind",
    }
    values.update(overrides)
    return BankTransactionRow(**values)


def test_repeated_row_is_skipped_as_duplicate():
    report = import_transactions("acct-1", [_row(), _row()])

    assert report.status == ImportStatus.SUCCESS
    assert report.total_processed == 2
    assert report.successful_imports == 1
    assert report.duplicates_skipped == 1
    assert report.failed_imports == 0
    assert report.errors == []
    assert len(report.transactions) == 1


def test_case_and_whitespace_variants_are_not_duplicates():
    rows = [
        _row(description="COFFEE SHOP"),
        _row(description="coffee shop"),
        _row(description="COFFEE SHOP "),
        _row(description=" COFFEE SHOP"),
    ]

    report = import_transactions("acct-1", rows)

    assert report.successful_imports == 4
    assert report.duplicates_skipped == 0


def test_fingerprint_is_exact_and_case_sensitive():
    day = datetime.date(2024, 1, 10)
    first = duplicate_fingerprint("acct-1", day, Decimal("-4.50"), "COFFEE SHOP")

    assert first == duplicate_fingerprint("acct-1", day, Decimal("-4.50"), "COFFEE SHOP")
    assert first == duplicate_fingerprint("acct-1", day, Decimal("-4.5"), "COFFEE SHOP")
    assert first != duplicate_fingerprint("acct-1", day, Decimal("-4.50"), "Coffee Shop")
    assert first != duplicate_fingerprint("acct-1", day, Decimal("-4.50"), "COFFEE  SHOP")
    assert first != duplicate_fingerprint("acct-2", day, Decimal("-4.50"), "COFFEE SHOP")


def test_invalid_leap_day_is_a_line_error():
    report = import_transactions("acct-1", [_row(date="2023-02-29")])

    assert report.status == ImportStatus.FAILED
    assert report.failed_imports == 1
    assert report.successful_imports == 0
    assert report.errors == ["Line 1: Invalid date format: 2023-02-29"]


def test_valid_leap_day_is_accepted():
    report = import_transactions("acct-1", [_row(date="2024-02-29")])

    assert report.status == ImportStatus.SUCCESS
    assert report.transactions[0].date == datetime.date(2024, 2, 29)


def test_bad_amount_gives_partial_success():
    report = import_transactions("acct-1", [_row(), _row(amount="abc", description="OTHER")])

    assert report.status == ImportStatus.PARTIAL_SUCCESS
    assert report.successful_imports == 1
    assert report.failed_imports == 1
    assert report.errors == ["Line 2: Invalid amount format: abc"]


@pytest.mark.parametrize("raw_date", ["20240110", "2024-W02-3", "2024-1-10", "2024-01-10T00:00"])
def test_non_calendar_date_forms_are_line_errors(raw_date):
    report = import_transactions("acct-1", [_row(date=raw_date)])

    assert report.status == ImportStatus.FAILED
    assert report.errors == [f"Line 1: Invalid date format: {raw_date}"]


@pytest.mark.parametrize("raw_amount", ["1_000", "1e3", "NaN", "Infinity", "1,000.00", "--5"])
def test_non_plain_amounts_are_line_errors(raw_amount):
    report = import_transactions("acct-1", [_row(amount=raw_amount)])

    assert report.status == ImportStatus.FAILED
    assert report.errors == [f"Line 1: Invalid amount format: {raw_amount}"]


@pytest.mark.parametrize("raw_amount, expected", [("+12.30", Decimal("12.30")), (" -7 ", Decimal("-7")), (".5", Decimal("0.5"))])
def test_plain_amount_forms_are_accepted(raw_amount, expected):
    report = import_transactions("acct-1", [_row(amount=raw_amount)])

    assert report.transactions[0].amount == expected


def test_merchant_name_is_kept_verbatim():
    report = import_transactions("acct-1", [_row(merchant_name="  Daily Grind  ")])

    assert report.transactions[0].merchant_name == "  Daily Grind  "


def test_amount_precision_is_kept():
    report = import_transactions("acct-1", [_row(amount="-4.5678")])

    assert report.transactions[0].amount == Decimal("-4.5678")
    assert str(report.transactions[0].amount) == "-4.5678"


def test_merchant_name_defaults_to_truncated_description():
    description = "A" * 80
    report = import_transactions("acct-1", [_row(description=description, merchant_name=None)])

    transaction = report.transactions[0]
    assert transaction.merchant_name == "A" * 50
    assert transaction.description == description


def test_long_merchant_name_is_truncated():
    report = import_transactions("acct-1", [_row(merchant_name="M" * 60)])

    assert report.transactions[0].merchant_name == "M" * 50


@pytest.mark.parametrize(
    ("amount", "is_debit"),
    [("-0.01", True), ("0", False), ("0.00", False), ("12.30", False)],
)
def test_debit_credit_follows_sign(amount, is_debit):
    report = import_transactions("acct-1", [_row(amount=amount)])

    assert report.transactions[0].is_debit() is is_debit


def test_blank_description_is_rejected_before_import():
    with pytest.raises(ValidationError):
        BankTransactionRow(date="2024-01-10", description="   ", amount="1.00")


def test_blank_amount_is_rejected_before_import():
    with pytest.raises(ValidationError):
        BankTransactionRow(date="2024-01-10", description="Shop", amount="")


def test_empty_batch_is_rejected():
    with pytest.raises(ValueError):
        import_transactions("acct-1", [])


def test_blank_account_is_rejected():
    with pytest.raises(ValueError):
        import_transactions("  ", [_row()])


def test_output_keeps_input_order():
    rows = [
        _row(description="first"),
        _row(date="not-a-date", description="broken"),
        _row(description="first"),
        _row(description="second"),
        _row(description="third", amount="1"),
    ]
    ids = iter(["id-1", "id-2", "id-3"])

    report = import_transactions("acct-1", rows, id_factory=lambda: next(ids))

    assert [tx.description for tx in report.transactions] == ["first", "second", "third"]
    assert [tx.id for tx in report.transactions] == ["id-1", "id-2", "id-3"]
    assert report.duplicates_skipped == 1
    assert report.errors == ["Line 2: Invalid date format: not-a-date"]
    assert all(tx.account_id == "acct-1" for tx in report.transactions)
    assert all(not tx.category.has_match() for tx in report.transactions)
