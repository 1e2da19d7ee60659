"""
Filter engine for the transaction review table.
"""
import math
from typing import List, Optional, Sequence

from core.schema import FilterState, Transaction


def parse_bound(raw: Optional[str]) -> Optional[float]:
    """
    Parse an amount bound typed by the user.

    Returns:
        The bound, or None when blank or not a finite number
    """
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None
    try:
        bound = float(text)
    except ValueError:
        return None
    if not math.isfinite(bound):
        return None
    return bound


def matches(txn: Transaction, filters: FilterState) -> bool:
    """Whether a single transaction passes every active filter."""
    query = filters.query.lower()
    if query and query not in txn.narration.lower():
        return False

    min_amount = parse_bound(filters.min_amount)
    if min_amount is not None and txn.amount < min_amount:
        return False

    max_amount = parse_bound(filters.max_amount)
    if max_amount is not None and txn.amount > max_amount:
        return False

    if filters.type != "all" and txn.type != filters.type:
        return False

    return True


def filter_transactions(
    transactions: Sequence[Transaction],
    filters: Optional[FilterState] = None
) -> List[Transaction]:
    """
    Narrow transactions for display.

    Pure: the input is never mutated and surviving records keep their order.

    Args:
        transactions: Transactions in display order
        filters: View parameters (None means no filtering)

    Returns:
        New list with the matching transactions
    """
    if filters is None:
        return list(transactions)
    return [txn for txn in transactions if matches(txn, filters)]
