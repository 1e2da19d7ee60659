"""
Bank statement parsing for CSV and spreadsheet uploads.
Produces normalized Transaction records ready for review.
"""
import io
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Set

import pandas as pd

from core.exceptions import ParsingError, UnsupportedFormatError
from core.logger import setup_logger
from core.normalize import (
    build_column_map,
    clean_amount,
    normalize_date,
    resolve_amount_and_type,
    safe_get_string,
    safe_get_value,
)
from core.schema import TRANSACTION_STATUSES, Transaction

logger = setup_logger(__name__)

# Statement CSV layout (normalized header names)
CSV_REQUIRED_COLUMNS: Set[str] = {"date", "narration"}

# Columns that mark a CSV produced by our own exporter
REVIEWED_CSV_COLUMNS: Set[str] = {"amount", "type"}

# Spreadsheet layout (normalized header names)
SPREADSHEET_REQUIRED_COLUMNS: Set[str] = {"date", "narration", "closing_balance"}
SPREADSHEET_WITHDRAWAL_COLUMNS = ("withdrawal", "withdrawal_amount")
SPREADSHEET_DEPOSIT_COLUMNS = ("deposit", "deposit_amount")

# Declared format -> pandas Excel engine (None lets pandas sniff the bytes)
SPREADSHEET_ENGINES: Dict[str, Optional[str]] = {
    "xlsx": "openpyxl",
    "xls": "xlrd",
    "spreadsheet": None,
    "excel": None,
}
NOT_YET_SUPPORTED_FORMATS: Set[str] = {"pdf"}
SUPPORTED_FORMATS: Set[str] = {"csv"} | set(SPREADSHEET_ENGINES)
ACCEPTED_EXTENSIONS = (".csv", ".xlsx", ".xls", ".pdf")


class IdAllocator:
    """Hands out transaction ids that are unique within one parsed file."""

    def __init__(self):
        self.seen: Set[str] = set()

    def allocate(self, candidate: str = "") -> str:
        if candidate and candidate not in self.seen:
            self.seen.add(candidate)
            return candidate
        if candidate:
            logger.warning(f"Duplicate transaction id '{candidate}' in file, assigning a new id")
        new_id = uuid.uuid4().hex
        self.seen.add(new_id)
        return new_id


def detect_format(filename: str) -> str:
    """
    Derive the declared format from an upload's file name.

    Args:
        filename: Original file name

    Returns:
        Lowercase extension without the dot ("csv", "xlsx", ...)

    Raises:
        UnsupportedFormatError: If the file has no extension
    """
    suffix = Path(filename or "").suffix.lower().lstrip(".")
    if not suffix:
        raise UnsupportedFormatError(
            f"Unsupported file format: '{filename}' has no extension",
            details={"filename": filename}
        )
    return suffix


def parse_transactions(content: bytes, file_format: str) -> List[Transaction]:
    """
    Parse raw statement bytes into transactions.

    Args:
        content: Raw file bytes
        file_format: Declared format ("csv", "xlsx", "xls", "spreadsheet", "pdf")

    Returns:
        List of transactions, each starting unprocessed

    Raises:
        UnsupportedFormatError: If the format cannot be parsed
        ParsingError: If required columns are missing or the file is unreadable
    """
    fmt = (file_format or "").lower().lstrip(".")

    if fmt in NOT_YET_SUPPORTED_FORMATS:
        raise UnsupportedFormatError(
            f"{fmt.upper()} statements are not yet supported",
            details={"file_format": fmt}
        )
    if fmt not in SUPPORTED_FORMATS:
        raise UnsupportedFormatError(
            f"Unsupported file format: {file_format}",
            details={"file_format": file_format, "supported": sorted(SUPPORTED_FORMATS)}
        )

    if fmt == "csv":
        return parse_csv(content)
    return parse_spreadsheet(content, engine=SPREADSHEET_ENGINES[fmt])


def _balance(row: pd.Series, column: Optional[str]) -> float:
    return clean_amount(safe_get_value(row, column), absolute=False) or 0.0


def _read_csv(content: bytes) -> pd.DataFrame:
    try:
        return pd.read_csv(
            io.BytesIO(content),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            encoding="utf-8-sig",
        )
    except pd.errors.EmptyDataError:
        raise ParsingError("CSV file is empty", details={"file_format": "csv"})
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read CSV: {e}")
        raise ParsingError("Invalid CSV file", details={"error": str(e)})


def parse_csv(content: bytes) -> List[Transaction]:
    """
    Parse a CSV statement.

    Statement layout: date, narration, withdrawal_amount, deposit_amount,
    closing_balance and an optional id. A CSV written by the exporter
    (ID, Date, Narration, Amount, Type, Category, Notes, Status) is read back
    with its review state intact.
    """
    df = _read_csv(content)
    column_map = build_column_map(df.columns)

    missing_cols = CSV_REQUIRED_COLUMNS - set(column_map)
    if missing_cols:
        logger.debug(f"Available columns: {list(df.columns)}")
        raise ParsingError(
            f"CSV is missing required columns: {', '.join(sorted(missing_cols))}",
            details={"missing_columns": sorted(missing_cols), "columns": list(df.columns)}
        )

    reviewed = REVIEWED_CSV_COLUMNS <= set(column_map)
    ids = IdAllocator()
    transactions: List[Transaction] = []
    skipped = 0

    for position, (_, row) in enumerate(df.iterrows(), start=1):
        date_value = safe_get_string(row, column_map.get("date"))
        narration = safe_get_string(row, column_map.get("narration"))
        # Exported rows may carry a blank date from a spreadsheet; narration is still required
        if not narration or (not date_value and not reviewed):
            logger.warning(f"Skipping CSV row {position}: missing date or narration")
            skipped += 1
            continue

        txn_id = ids.allocate(safe_get_string(row, column_map.get("id")))
        if reviewed:
            transactions.append(_reviewed_row(row, column_map, txn_id, date_value, narration))
            continue

        withdrawal = clean_amount(safe_get_value(row, column_map.get("withdrawal_amount")))
        deposit = clean_amount(safe_get_value(row, column_map.get("deposit_amount")))
        amount, txn_type = resolve_amount_and_type(withdrawal, deposit)

        transactions.append(Transaction(
            id=txn_id,
            date=date_value,
            narration=narration,
            amount=amount,
            type=txn_type,
            closing_balance=_balance(row, column_map.get("closing_balance")),
        ))

    logger.info(
        f"Parsed {len(transactions)} transactions from CSV "
        f"({skipped} rows skipped{', reviewed export layout' if reviewed else ''})"
    )
    return transactions


def _reviewed_row(
    row: pd.Series,
    column_map: Dict[str, str],
    txn_id: str,
    date_value: str,
    narration: str
) -> Transaction:
    txn_type = safe_get_string(row, column_map.get("type")).lower()
    if txn_type not in ("withdrawal", "deposit"):
        txn_type = "deposit"

    status = safe_get_string(row, column_map.get("status")).lower()
    if status not in TRANSACTION_STATUSES:
        status = "unprocessed"

    return Transaction(
        id=txn_id,
        date=date_value,
        narration=narration,
        amount=clean_amount(safe_get_value(row, column_map.get("amount"))) or 0.0,
        type=txn_type,
        closing_balance=_balance(row, column_map.get("closing_balance")),
        category=safe_get_string(row, column_map.get("category")),
        notes=safe_get_string(row, column_map.get("notes")),
        status=status,
    )


def _first_column(column_map: Dict[str, str], names) -> Optional[str]:
    for name in names:
        if name in column_map:
            return column_map[name]
    return None


def parse_spreadsheet(content: bytes, engine: Optional[str] = None) -> List[Transaction]:
    """
    Parse an Excel statement whose first row is the header.

    Required columns: Date, Narration, Closing Balance (case-insensitive).
    Optional: Withdrawal, Deposit, ID.

    Args:
        content: Raw workbook bytes
        engine: pandas Excel engine ("openpyxl", "xlrd" or None to sniff)

    Raises:
        ParsingError: If the workbook is unreadable or required columns are missing
    """
    logger.info(f"Parsing spreadsheet statement (engine={engine or 'auto'})")

    try:
        df = pd.read_excel(io.BytesIO(content), header=0, engine=engine)
    except Exception as e:
        logger.error(f"Failed to read spreadsheet: {e}")
        raise ParsingError(
            "Invalid spreadsheet file",
            details={"engine": engine, "error": str(e)}
        )

    # Remove completely empty rows
    df = df.dropna(how="all")
    column_map = build_column_map(df.columns)

    missing_cols = SPREADSHEET_REQUIRED_COLUMNS - set(column_map)
    if missing_cols:
        logger.debug(f"Available columns: {list(df.columns)}")
        raise ParsingError(
            "Spreadsheet is missing required columns: "
            + ", ".join(sorted(missing_cols)),
            details={"missing_columns": sorted(missing_cols), "columns": [str(c) for c in df.columns]}
        )

    withdrawal_col = _first_column(column_map, SPREADSHEET_WITHDRAWAL_COLUMNS)
    deposit_col = _first_column(column_map, SPREADSHEET_DEPOSIT_COLUMNS)

    ids = IdAllocator()
    transactions: List[Transaction] = []

    for _, row in df.iterrows():
        narration = safe_get_string(row, column_map["narration"])
        if not narration:
            continue

        withdrawal = clean_amount(safe_get_value(row, withdrawal_col))
        deposit = clean_amount(safe_get_value(row, deposit_col))
        amount, txn_type = resolve_amount_and_type(withdrawal, deposit)

        transactions.append(Transaction(
            id=ids.allocate(safe_get_string(row, column_map.get("id"))),
            date=normalize_date(safe_get_value(row, column_map["date"])),
            narration=narration,
            amount=amount,
            type=txn_type,
            closing_balance=_balance(row, column_map["closing_balance"]),
        ))

    dropped = len(df) - len(transactions)
    logger.info(f"Parsed {len(transactions)} transactions from spreadsheet ({dropped} rows without narration)")
    return transactions
