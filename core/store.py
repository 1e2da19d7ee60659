"""
In-memory transaction store and review state machine.

Status only moves forward: unprocessed -> pending -> approved. A manual
category edit keeps a pending record pending; approved records are locked.
The collection is only ever replaced wholesale by loading a new file.
"""
from typing import Dict, Iterable, List, Optional

from core.logger import setup_logger
from core.schema import TRANSACTION_STATUSES, SuggestionResult, Transaction

logger = setup_logger(__name__)


class TransactionStore:
    """Holds the transactions of the current session, keyed by id in load order."""

    def __init__(self, transactions: Optional[Iterable[Transaction]] = None):
        self._transactions: Dict[str, Transaction] = {}
        # Bumped on every reload so in-flight batches can detect a stale store
        self.generation = 0
        if transactions is not None:
            self.load_transactions(transactions)

    def __len__(self) -> int:
        return len(self._transactions)

    def __contains__(self, txn_id: str) -> bool:
        return txn_id in self._transactions

    def load_transactions(self, transactions: Iterable[Transaction]) -> None:
        """
        Replace the entire collection.

        Later records with an id already seen in the same list overwrite the
        earlier one; parsers guarantee unique ids so this does not arise in practice.
        """
        self._transactions = {txn.id: txn for txn in transactions}
        self.generation += 1
        logger.info(f"Loaded {len(self._transactions)} transactions (generation {self.generation})")

    def get(self, txn_id: str) -> Optional[Transaction]:
        return self._transactions.get(txn_id)

    def all(self) -> List[Transaction]:
        return list(self._transactions.values())

    def unprocessed(self) -> List[Transaction]:
        return [txn for txn in self._transactions.values() if txn.status == "unprocessed"]

    def has_pending(self) -> bool:
        return any(txn.status == "pending" for txn in self._transactions.values())

    def has_unprocessed(self) -> bool:
        return any(txn.status == "unprocessed" for txn in self._transactions.values())

    def status_counts(self) -> Dict[str, int]:
        counts = {status: 0 for status in TRANSACTION_STATUSES}
        for txn in self._transactions.values():
            counts[txn.status] += 1
        return counts

    def set_category(self, txn_id: str, value: str) -> bool:
        """
        Set a transaction's category and move it to pending.

        Returns:
            True if applied; False if the id is absent or the record is approved
        """
        txn = self._transactions.get(txn_id)
        if txn is None:
            return False
        if txn.status == "approved":
            logger.debug(f"Ignoring category edit on approved transaction {txn_id}")
            return False
        txn.category = value
        txn.status = "pending"
        return True

    def set_notes(self, txn_id: str, text: str) -> bool:
        """Set notes without touching status. Returns False if the id is absent."""
        txn = self._transactions.get(txn_id)
        if txn is None:
            return False
        txn.notes = text
        return True

    def approve(self, txn_id: str) -> bool:
        """
        Approve a pending transaction.

        Returns:
            True if the record is now approved (including already approved);
            False if absent or still unprocessed
        """
        txn = self._transactions.get(txn_id)
        if txn is None or txn.status == "unprocessed":
            return False
        txn.status = "approved"
        return True

    def approve_all(self) -> int:
        """Approve every pending transaction. Returns how many were approved."""
        approved = 0
        for txn in self._transactions.values():
            if txn.status == "pending":
                txn.status = "approved"
                approved += 1
        logger.info(f"Approved {approved} pending transactions")
        return approved

    def apply_suggestions(self, results: Iterable[SuggestionResult]) -> int:
        """
        Merge suggested categories into the store in one pass.

        Each matching record takes the suggestion as its category and becomes
        pending. Ids no longer present are skipped.

        Returns:
            Number of records updated
        """
        applied = 0
        skipped = 0
        for result in results:
            txn = self._transactions.get(result.id)
            if txn is None:
                skipped += 1
                continue
            txn.suggested_category = result.suggested_category
            txn.category = result.suggested_category
            txn.status = "pending"
            applied += 1

        if skipped:
            logger.info(f"Skipped {skipped} suggestions for transactions no longer loaded")
        return applied
