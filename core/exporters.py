"""
CSV export of reviewed transactions.
Category values are resolved to display labels at export time.
"""
from datetime import date
from typing import Iterable, List, Optional

from core.categories import CategoryRegistry
from core.exceptions import NothingToExportError, ValidationError
from core.logger import setup_logger
from core.schema import EXPORT_STATUS_FILTERS, Transaction

logger = setup_logger(__name__)

EXPORT_HEADERS = ["ID", "Date", "Narration", "Amount", "Type", "Category", "Notes", "Status"]


def quote_field(value: str) -> str:
    """Wrap a field in quotes, doubling any embedded quote characters."""
    return '"' + value.replace('"', '""') + '"'


def escape_field(value: str) -> str:
    """Quote a field only when it would otherwise break the row."""
    if any(char in value for char in (",", '"', "\n", "\r")):
        return quote_field(value)
    return value


def format_amount(amount: float) -> str:
    """150.0 -> "150", 99.5 -> "99.5"."""
    if float(amount).is_integer():
        return str(int(amount))
    return repr(float(amount))


def select_transactions(
    transactions: Iterable[Transaction],
    status_filter: str = "all"
) -> List[Transaction]:
    """
    Select transactions for export by exact status.

    Raises:
        ValidationError: If the filter is not "all" or a known status
    """
    if status_filter not in EXPORT_STATUS_FILTERS:
        raise ValidationError(
            f"Invalid export filter: {status_filter}",
            details={"status_filter": status_filter, "allowed": list(EXPORT_STATUS_FILTERS)}
        )
    return [t for t in transactions if status_filter == "all" or t.status == status_filter]


def format_row(txn: Transaction, categories: Optional[CategoryRegistry] = None) -> str:
    category = categories.label_for(txn.category) if categories is not None else txn.category
    return ",".join([
        escape_field(txn.id),
        escape_field(txn.date),
        quote_field(txn.narration),
        format_amount(txn.amount),
        txn.type,
        escape_field(category),
        quote_field(txn.notes),
        txn.status,
    ])


def export_to_csv(
    transactions: Iterable[Transaction],
    status_filter: str = "all",
    categories: Optional[CategoryRegistry] = None
) -> str:
    """
    Serialize transactions to CSV text.

    Args:
        transactions: Transactions in display order
        status_filter: "all" or one of unprocessed/pending/approved
        categories: Registry used to resolve category labels

    Returns:
        CSV text with a header row

    Raises:
        NothingToExportError: If no transaction matches the filter
        ValidationError: If the filter is unknown
    """
    selected = select_transactions(transactions, status_filter)

    if not selected:
        raise NothingToExportError(
            f"No {status_filter} transactions to export.",
            details={"status_filter": status_filter}
        )

    logger.info(f"Exporting {len(selected)} {status_filter} transactions to CSV")

    lines = [",".join(EXPORT_HEADERS)]
    lines.extend(format_row(txn, categories) for txn in selected)
    return "\n".join(lines)


def create_output_filename(status_filter: str, on: Optional[date] = None) -> str:
    """
    Build the download file name.

    Args:
        status_filter: Active export filter
        on: Export date (defaults to today)

    Returns:
        File name like "transactions_approved_2024-01-31.csv"
    """
    export_date = on or date.today()
    return f"transactions_{status_filter}_{export_date.strftime('%Y-%m-%d')}.csv"
