"""
Unit tests for statement parsing.
"""
import io

import pandas as pd
import pytest

from core.exceptions import ParsingError, UnsupportedFormatError
from core.exporters import export_to_csv
from core.parsing import detect_format, parse_csv, parse_spreadsheet, parse_transactions


def to_xlsx(df: pd.DataFrame) -> bytes:
    buffer = io.BytesIO()
    df.to_excel(buffer, index=False, engine="openpyxl")
    return buffer.getvalue()


def test_coffee_shop_row():
    """A single withdrawal row parses to one unprocessed record."""
    content = (
        b"date,narration,withdrawal_amount,closing_balance\n"
        b"01/01/24,Coffee Shop,150,5000\n"
    )

    transactions = parse_transactions(content, "csv")

    assert len(transactions) == 1
    txn = transactions[0]
    assert txn.amount == 150
    assert txn.type == "withdrawal"
    assert txn.status == "unprocessed"
    assert txn.date == "01/01/24"
    assert txn.narration == "Coffee Shop"
    assert txn.closing_balance == 5000
    assert txn.category == ""
    assert txn.notes == ""
    assert txn.suggested_category is None


def test_csv_statement_rows(statement_csv):
    transactions = parse_csv(statement_csv)

    assert [t.narration for t in transactions] == ["Coffee Shop", "Salary January", "Uber Trip"]
    assert [t.type for t in transactions] == ["withdrawal", "deposit", "withdrawal"]
    assert [t.amount for t in transactions] == [150.0, 85000.0, 320.5]
    assert all(t.status == "unprocessed" for t in transactions)
    assert len({t.id for t in transactions}) == 3


def test_csv_rows_missing_date_or_narration_are_dropped():
    content = (
        b"date,narration,withdrawal_amount,deposit_amount,closing_balance\n"
        b"01/01/24,Coffee Shop,150,,5000\n"
        b",No Date,10,,4990\n"
        b"03/01/24,,10,,4980\n"
        b"04/01/24,Book Store,,,4980\n"
    )

    transactions = parse_csv(content)

    assert [t.narration for t in transactions] == ["Coffee Shop", "Book Store"]


def test_csv_zero_withdrawal_falls_back_to_deposit():
    content = (
        b"date,narration,withdrawal_amount,deposit_amount,closing_balance\n"
        b"01/01/24,Refund,0,200,5200\n"
        b"02/01/24,Nothing,,,5200\n"
    )

    refund, nothing = parse_csv(content)

    assert (refund.amount, refund.type) == (200.0, "deposit")
    assert (nothing.amount, nothing.type) == (0.0, "deposit")


def test_csv_amount_with_thousands_separator():
    content = (
        b"date,narration,withdrawal_amount,deposit_amount,closing_balance\n"
        b'01/01/24,Laptop,"1,250.50",,"-3,000"\n'
    )

    txn = parse_csv(content)[0]

    assert txn.amount == 1250.5
    assert txn.closing_balance == -3000.0


def test_csv_headers_are_matched_loosely():
    content = (
        b"Date, Narration ,Withdrawal Amount,Deposit Amount,Closing Balance\n"
        b"01/01/24,Coffee Shop,150,,5000\n"
    )

    txn = parse_csv(content)[0]

    assert txn.narration == "Coffee Shop"
    assert txn.amount == 150.0


def test_csv_id_column_and_duplicates():
    content = (
        b"id,date,narration,withdrawal_amount,deposit_amount,closing_balance\n"
        b"A1,01/01/24,First,10,,100\n"
        b"A1,02/01/24,Second,10,,90\n"
        b",03/01/24,Third,10,,80\n"
    )

    first, second, third = parse_csv(content)

    assert first.id == "A1"
    assert second.id != "A1"
    assert third.id
    assert len({first.id, second.id, third.id}) == 3


def test_csv_missing_required_header():
    content = b"date,description,withdrawal_amount\n01/01/24,Coffee,150\n"

    with pytest.raises(ParsingError) as exc_info:
        parse_csv(content)

    assert "narration" in exc_info.value.message


def test_csv_empty_file():
    with pytest.raises(ParsingError):
        parse_csv(b"")


def test_csv_header_only():
    assert parse_csv(b"date,narration,withdrawal_amount,deposit_amount,closing_balance\n") == []


def test_csv_exported_layout_keeps_review_state():
    content = (
        b"ID,Date,Narration,Amount,Type,Category,Notes,Status\n"
        b'x1,01/01/24,"Coffee ""Blue"" Shop",150,withdrawal,Food,"morning, latte",approved\n'
        b'x2,02/01/24,"Salary",85000,deposit,,"",bogus\n'
    )

    coffee, salary = parse_csv(content)

    assert coffee.id == "x1"
    assert coffee.narration == 'Coffee "Blue" Shop'
    assert (coffee.amount, coffee.type, coffee.status) == (150.0, "withdrawal", "approved")
    assert coffee.category == "Food"
    assert coffee.notes == "morning, latte"
    assert salary.status == "unprocessed"


def test_csv_exported_layout_keeps_rows_without_date():
    content = (
        b"ID,Date,Narration,Amount,Type,Category,Notes,Status\n"
        b'x1,,"Opening adjustment",10,deposit,,"",pending\n'
        b'x2,01/01/24,"",5,deposit,,"",pending\n'
    )

    transactions = parse_csv(content)

    assert [(t.id, t.date, t.status) for t in transactions] == [("x1", "", "pending")]


def test_spreadsheet_parsing():
    df = pd.DataFrame({
        "Date": [45292, 45293, 45294],
        "Narration": ["Coffee Shop", None, "Salary"],
        "Withdrawal": [150, 20, None],
        "Deposit": [None, None, 85000],
        "Closing Balance": [5000, 4980, 89980],
    })

    transactions = parse_transactions(to_xlsx(df), "xlsx")

    assert len(transactions) == 2
    coffee, salary = transactions
    assert coffee.date == "2024-01-01"
    assert (coffee.amount, coffee.type) == (150.0, "withdrawal")
    assert salary.date == "2024-01-03"
    assert (salary.amount, salary.type) == (85000.0, "deposit")
    assert salary.closing_balance == 89980.0
    assert all(t.status == "unprocessed" for t in transactions)


def test_spreadsheet_headers_case_insensitive_and_optional_amounts():
    df = pd.DataFrame({
        "DATE": [pd.Timestamp("2024-02-15")],
        "narration": ["Bank Charges"],
        "closing balance": [100],
    })

    txn = parse_spreadsheet(to_xlsx(df))[0]

    assert txn.date == "2024-02-15"
    assert (txn.amount, txn.type) == (0.0, "deposit")


def test_spreadsheet_missing_required_column():
    df = pd.DataFrame({"Date": [45292], "Narration": ["Coffee"], "Withdrawal": [150]})

    with pytest.raises(ParsingError) as exc_info:
        parse_transactions(to_xlsx(df), "xlsx")

    assert exc_info.value.details["missing_columns"] == ["closing_balance"]


def test_spreadsheet_serial_dates_end_to_end():
    df = pd.DataFrame({
        "Date": [45322.75, 45351],
        "Narration": ["Evening Cab", "Rent February"],
        "Withdrawal": [320.5, 20000],
        "Closing Balance": [9679.5, -10320.5],
    })

    cab, rent = parse_transactions(to_xlsx(df), "xlsx")

    assert cab.date == "2024-01-31"
    assert rent.date == "2024-02-29"
    assert rent.closing_balance == -10320.5


def test_spreadsheet_export_reparse_round_trip():
    df = pd.DataFrame({
        "ID": ["s1", "s2", "s3"],
        "Date": [45292, None, 45294],
        "Narration": ["Coffee Shop", "Interest credit", "Salary"],
        "Withdrawal": [150, None, None],
        "Deposit": [None, 12.5, 85000],
        "Closing Balance": [5000, 5012.5, 90012.5],
    })
    originals = parse_transactions(to_xlsx(df), "xlsx")
    assert originals[1].date == ""

    reparsed = parse_csv(export_to_csv(originals, "all").encode("utf-8"))

    def key(t):
        return (t.id, t.date, t.narration, t.amount, t.type, t.status)

    assert [key(t) for t in reparsed] == [key(t) for t in originals]


def test_spreadsheet_invalid_bytes():
    with pytest.raises(ParsingError):
        parse_transactions(b"not a workbook", "xlsx")


def test_pdf_is_not_yet_supported():
    with pytest.raises(UnsupportedFormatError) as exc_info:
        parse_transactions(b"%PDF-1.4", "pdf")

    assert "not yet supported" in exc_info.value.message


def test_unknown_format_is_rejected():
    with pytest.raises(UnsupportedFormatError) as exc_info:
        parse_transactions(b"whatever", "docx")

    assert "Unsupported file format" in exc_info.value.message


def test_detect_format():
    assert detect_format("statement.CSV") == "csv"
    assert detect_format("march.xlsx") == "xlsx"
    assert detect_format("old.xls") == "xls"

    with pytest.raises(UnsupportedFormatError):
        detect_format("statement")
