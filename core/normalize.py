"""
Data normalization helpers for statement rows.
Handles amount cleaning, header matching, date conversion and
withdrawal/deposit resolution.
"""
import numbers
import re
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, Optional, Tuple

import pandas as pd

from core.logger import setup_logger

logger = setup_logger(__name__)

# Spreadsheet serial dates count days from this epoch
EXCEL_EPOCH = datetime(1899, 12, 30)
SECONDS_PER_DAY = 86400

# A leading-dot number only counts when the dot is not closing a word ("Rs.")
AMOUNT_PATTERN = re.compile(r"-?(?:\d+(?:\.\d+)?|(?<![A-Za-z.])\.\d+)")


def clean_amount(value: Any, absolute: bool = True) -> Optional[float]:
    """
    Clean and normalize an amount cell.
    Removes spaces, thousands separators and currency text, converts to float.

    Args:
        value: Raw amount value (string or number)
        absolute: Drop the sign (amounts); keep it for running balances

    Returns:
        Float value or None if empty/invalid
    """
    if value is None:
        return None
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        if pd.isna(value):
            return None
        return abs(float(value)) if absolute else float(value)

    amount_str = str(value).strip()
    if not amount_str:
        return None

    # Remove spaces and common thousands separators
    amount_str = amount_str.replace(" ", "").replace(",", "").replace("\xa0", "")

    # First numeric token wins ("150.00INR" -> "150.00", "Rs.150" -> "150")
    match = AMOUNT_PATTERN.search(amount_str)
    if not match:
        logger.warning(f"Failed to parse amount: '{value}' - no numeric content")
        return None

    try:
        result = float(match.group())
    except (ValueError, TypeError) as e:
        logger.warning(f"Failed to parse amount: '{value}' -> {e}")
        return None

    if result < 0 and absolute:
        logger.debug(f"Negative amount {result}, using absolute value")
        return abs(result)
    return result


def normalize_header(name: Any) -> str:
    """
    Normalize a column header for matching.

    "Closing Balance" -> "closing_balance", " Withdrawal_Amount " -> "withdrawal_amount"
    """
    return re.sub(r"\s+", "_", str(name).strip().lower())


def build_column_map(columns: Iterable[Any]) -> Dict[str, Any]:
    """
    Map normalized header names to the original column labels.
    The first occurrence wins when two headers normalize the same way.
    """
    column_map: Dict[str, Any] = {}
    for column in columns:
        column_map.setdefault(normalize_header(column), column)
    return column_map


def safe_get_value(row: pd.Series, key: Optional[Any], default: Any = None) -> Any:
    """
    Safely get value from pandas Series, handling NaN and None.

    Args:
        row: pandas Series
        key: Column key (None means the column does not exist)
        default: Default value if missing or NaN

    Returns:
        Value or default
    """
    if key is None:
        return default
    value = row.get(key, default)
    if value is None:
        return default
    try:
        if pd.isna(value):
            return default
    except (TypeError, ValueError):
        # Array-like cells are never NaN
        pass
    return value


def safe_get_string(row: pd.Series, key: Optional[Any], default: str = "") -> str:
    """
    Safely convert value to a stripped string, returning default if empty or None.
    Whole floats lose their ".0" so numeric ids read back as "12", not "12.0".
    """
    value = safe_get_value(row, key, default)
    if value is None:
        return default
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    if not text:
        return default
    return text


def excel_serial_to_date(serial: float) -> str:
    """
    Convert a spreadsheet date serial to an ISO calendar date.

    Serials count days since 1899-12-30; the fractional part is a time of day
    and does not affect the calendar date.

    Args:
        serial: Day count as stored in the spreadsheet

    Returns:
        Date string in YYYY-MM-DD format
    """
    converted = EXCEL_EPOCH + timedelta(seconds=round(serial * SECONDS_PER_DAY))
    return converted.date().isoformat()


def normalize_date(value: Any) -> str:
    """
    Normalize a spreadsheet date cell to a string.

    Numeric serials and native date cells become YYYY-MM-DD; text is kept as written.
    """
    if value is None:
        return ""
    if isinstance(value, (datetime, date, pd.Timestamp)):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        if pd.isna(value):
            return ""
        return excel_serial_to_date(float(value))
    return str(value).strip()


def resolve_amount_and_type(
    withdrawal: Optional[float],
    deposit: Optional[float]
) -> Tuple[float, str]:
    """
    Collapse separate withdrawal/deposit cells into an amount and a type.

    A non-zero withdrawal wins; otherwise the row is a deposit (0 if absent).

    Returns:
        Tuple of (amount, type)
    """
    if withdrawal:
        return withdrawal, "withdrawal"
    return deposit or 0.0, "deposit"
