"""
Transaction review service.
Orchestrates parsing, bulk categorization, filtering and export over one
in-memory session.
"""
import asyncio
from typing import Dict, List, Optional, Tuple

from core.categories import CategoryRegistry
from core.exceptions import DataNotFoundError, InvalidTransitionError, ValidationError
from core.exporters import create_output_filename, export_to_csv
from core.filters import filter_transactions
from core.logger import setup_logger
from core.parsing import detect_format, parse_transactions
from core.schema import Category, FilterState, SuggestionResult, Transaction
from core.store import TransactionStore
from llm.classify import CategorySuggester
from llm.prompts import build_transaction_details

logger = setup_logger(__name__)


class TransactionService:
    """Service for one review session: a store, its categories and a suggester."""

    def __init__(
        self,
        store: Optional[TransactionStore] = None,
        categories: Optional[CategoryRegistry] = None,
        suggester: Optional[CategorySuggester] = None
    ):
        """Initialize transaction service."""
        self.store = store if store is not None else TransactionStore()
        self.categories = categories if categories is not None else CategoryRegistry()
        self.suggester = suggester or CategorySuggester()

    def load_file(
        self,
        content: bytes,
        filename: Optional[str] = None,
        file_format: Optional[str] = None
    ) -> int:
        """
        Parse a statement and replace the current transactions with it.

        The store is only replaced after a successful parse, so a parse
        error leaves the previous transactions untouched.

        Args:
            content: Raw file bytes
            filename: Upload name, used to detect the format when file_format is omitted
            file_format: Declared format ("csv", "xlsx", "xls", "pdf", ...)

        Returns:
            Number of transactions loaded

        Raises:
            ParsingError: If the file is structurally invalid
            UnsupportedFormatError: If the format cannot be parsed
        """
        fmt = file_format or detect_format(filename or "")
        logger.info(f"Loading statement {filename or '<bytes>'} as {fmt}")

        transactions = parse_transactions(content, fmt)
        self._resolve_category_labels(transactions)
        self.store.load_transactions(transactions)
        return len(transactions)

    def _resolve_category_labels(self, transactions: List[Transaction]) -> None:
        # Exported files carry display labels; map them back to registry values
        for txn in transactions:
            if txn.category and txn.category not in self.categories:
                value = self.categories.value_for_label(txn.category)
                if value is not None:
                    txn.category = value

    async def categorize_unprocessed(self) -> int:
        """
        Suggest a category for every unprocessed transaction.

        One suggestion runs per record, all concurrently; the results are
        merged into the store in a single step. If a new file was loaded
        while the batch was in flight, its results are discarded. Records
        categorized or approved by hand in the meantime are left alone.

        Returns:
            Number of transactions updated

        Raises:
            ValidationError: If there are no categories to choose from
        """
        pending_work = self.store.unprocessed()
        if not pending_work:
            logger.info("No unprocessed transactions to categorize")
            return 0

        candidate_labels = self.categories.values()
        if not candidate_labels:
            raise ValidationError("Add at least one category before categorizing")

        generation = self.store.generation
        total = len(pending_work)
        completed = [0]

        logger.info(f"Starting category suggestions for {total} transactions")

        loop = asyncio.get_running_loop()

        async def suggest_one(txn: Transaction) -> SuggestionResult:
            label = await loop.run_in_executor(
                None,
                self.suggester.suggest,
                build_transaction_details(txn),
                candidate_labels,
            )
            completed[0] += 1
            if completed[0] % 10 == 0 or completed[0] == total:
                logger.info(f"Progress: {completed[0]}/{total} suggestions received")
            return SuggestionResult(id=txn.id, suggested_category=label)

        results = await asyncio.gather(*(suggest_one(txn) for txn in pending_work))

        if self.store.generation != generation:
            logger.warning("Transactions were reloaded during categorization, discarding suggestions")
            return 0

        # Records edited or approved while the batch was in flight keep the user's choice
        still_unprocessed = []
        for result in results:
            current = self.store.get(result.id)
            if current is not None and current.status == "unprocessed":
                still_unprocessed.append(result)
        if len(still_unprocessed) < len(results):
            logger.info(
                f"Skipping {len(results) - len(still_unprocessed)} suggestions for transactions "
                f"reviewed during categorization"
            )

        applied = self.store.apply_suggestions(still_unprocessed)
        logger.info(f"Applied {applied} category suggestions")
        return applied

    def view(self, filters: Optional[FilterState] = None) -> List[Transaction]:
        """Filtered view of the current transactions."""
        return filter_transactions(self.store.all(), filters)

    def get_transaction(self, txn_id: str) -> Transaction:
        txn = self.store.get(txn_id)
        if txn is None:
            raise DataNotFoundError(f"Transaction not found: {txn_id}", details={"id": txn_id})
        return txn

    def update_category(self, txn_id: str, value: str) -> Transaction:
        """
        Manually set a category.

        Raises:
            DataNotFoundError: If the transaction does not exist
            InvalidTransitionError: If the transaction is already approved
        """
        txn = self.get_transaction(txn_id)
        if not self.store.set_category(txn_id, value):
            raise InvalidTransitionError(
                "Approved transactions cannot be recategorized",
                details={"id": txn_id, "status": txn.status}
            )
        return txn

    def update_notes(self, txn_id: str, notes: str) -> Transaction:
        txn = self.get_transaction(txn_id)
        self.store.set_notes(txn_id, notes)
        return txn

    def approve(self, txn_id: str) -> Transaction:
        """
        Approve a pending transaction.

        Raises:
            DataNotFoundError: If the transaction does not exist
            InvalidTransitionError: If it has not been categorized yet
        """
        txn = self.get_transaction(txn_id)
        if not self.store.approve(txn_id):
            raise InvalidTransitionError(
                "Only categorized transactions can be approved",
                details={"id": txn_id, "status": txn.status}
            )
        return txn

    def approve_all(self) -> int:
        return self.store.approve_all()

    def add_category(self, label: str) -> Category:
        return self.categories.add(label)

    def remove_category(self, value: str) -> None:
        if not self.categories.remove(value):
            raise DataNotFoundError(f"Category not found: {value}", details={"value": value})

    def export(self, status_filter: str = "all") -> Tuple[str, str]:
        """
        Export transactions matching a status filter.

        Returns:
            Tuple of (download filename, CSV text)

        Raises:
            NothingToExportError: If nothing matches the filter
        """
        csv_text = export_to_csv(self.store.all(), status_filter, self.categories)
        return create_output_filename(status_filter), csv_text

    def build_status_statistics(self) -> Dict[str, int]:
        """Count transactions per review status, plus the total."""
        counts = self.store.status_counts()
        counts["total"] = len(self.store)
        return counts
