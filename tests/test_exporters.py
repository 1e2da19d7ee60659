"""
Unit tests for CSV export.
"""
from datetime import date

import pytest

from core.categories import CategoryRegistry
from core.exceptions import NothingToExportError, ValidationError
from core.exporters import create_output_filename, export_to_csv, format_amount
from core.parsing import parse_csv
from core.schema import Category


@pytest.fixture
def categories():
    return CategoryRegistry([Category(value="eating-out", label="Eating Out")])


def test_export_header_and_rows(make_transaction, categories):
    txn = make_transaction(
        id="t1",
        date="01/01/24",
        narration='Cafe "Blue", Bandra',
        amount=150.0,
        type="withdrawal",
        category="eating-out",
        notes='said "thanks"',
        status="approved",
    )

    csv_text = export_to_csv([txn], "all", categories)

    header, row = csv_text.split("\n")
    assert header == "ID,Date,Narration,Amount,Type,Category,Notes,Status"
    assert row == 't1,01/01/24,"Cafe ""Blue"", Bandra",150,withdrawal,Eating Out,"said ""thanks""",approved'


def test_unknown_category_falls_back_to_raw_value(make_transaction, categories):
    txn = make_transaction(id="t1", narration="Petrol", category="fuel")

    row = export_to_csv([txn], "all", categories).split("\n")[1]

    assert row.split(",")[5] == "fuel"


def test_status_filter_is_exact(make_transaction):
    transactions = [
        make_transaction(id="u", status="unprocessed"),
        make_transaction(id="p", status="pending"),
        make_transaction(id="a", status="approved"),
    ]

    rows = export_to_csv(transactions, "pending").split("\n")[1:]

    assert [r.split(",")[0] for r in rows] == ["p"]
    assert len(export_to_csv(transactions, "all").split("\n")) == 4


def test_nothing_to_export(make_transaction):
    transactions = [make_transaction(status="pending")]

    with pytest.raises(NothingToExportError) as exc_info:
        export_to_csv(transactions, "approved")

    assert exc_info.value.message == "No approved transactions to export."

    with pytest.raises(NothingToExportError):
        export_to_csv([], "all")


def test_invalid_status_filter(make_transaction):
    with pytest.raises(ValidationError):
        export_to_csv([make_transaction()], "rejected")


def test_export_then_reparse_round_trip(make_transaction, categories):
    originals = [
        make_transaction(id="t1", narration='Cafe "Blue", Bandra', amount=150.0,
                         type="withdrawal", status="approved", category="eating-out"),
        make_transaction(id="t2", narration="Salary", amount=85000.0, type="deposit",
                         status="pending", notes="January"),
        make_transaction(id="t3", narration="ATM, Main St", amount=99.5, type="withdrawal",
                         status="unprocessed"),
    ]

    reparsed = parse_csv(export_to_csv(originals, "all", categories).encode("utf-8"))

    def key(t):
        return (t.id, t.narration, t.amount, t.type, t.status)

    assert [key(t) for t in reparsed] == [key(t) for t in originals]


def test_format_amount():
    assert format_amount(150.0) == "150"
    assert format_amount(99.5) == "99.5"
    assert format_amount(0) == "0"


def test_create_output_filename():
    assert create_output_filename("approved", on=date(2024, 1, 31)) == "transactions_approved_2024-01-31.csv"
    assert create_output_filename("all").startswith("transactions_all_")
