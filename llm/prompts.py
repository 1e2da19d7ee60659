"""
System and user prompts for transaction category suggestion.
"""
from typing import List

from core.schema import Transaction


def build_system_prompt() -> str:
    """
    Build the system prompt for category suggestion.

    Returns:
        System prompt string
    """
    return (
        "You categorize personal bank statement transactions.\n"
        "Given the transaction details and the available categories, suggest the "
        "most appropriate category for the transaction.\n"
        "Ensure that the suggested category is exactly one of the available categories "
        "provided. Respond with JSON of the form {\"label\": \"<category>\"}."
    )


def build_user_message(description: str, candidate_labels: List[str]) -> str:
    """
    Build the user message for one transaction.

    Args:
        description: Transaction details text
        candidate_labels: Labels the model may choose from

    Returns:
        Formatted user message
    """
    lines = [f"Transaction Details: {description}", "", "Available Categories:"]
    lines.extend(f"- {label}" for label in candidate_labels)
    return "\n".join(lines)


def build_transaction_details(txn: Transaction) -> str:
    """
    Describe a transaction for the model.

    "Date: 01/01/24, Narration: Coffee Shop, Amount: 150.0, Type: withdrawal"
    """
    return f"Date: {txn.date}, Narration: {txn.narration}, Amount: {txn.amount}, Type: {txn.type}"
