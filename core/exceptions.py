"""
Custom exceptions for transaction tagging.
"""
from typing import Any, Dict, Optional


class TaggerException(Exception):
    """Base exception for all transaction tagger errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize exception.

        Args:
            message: Error message
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ParsingError(TaggerException):
    """Raised when a statement file is structurally invalid."""
    pass


class UnsupportedFormatError(ParsingError):
    """Raised when a statement file format cannot be parsed."""
    pass


class ValidationError(TaggerException):
    """Raised when data validation fails."""
    pass


class LLMError(TaggerException):
    """Raised when the category suggestion call fails."""
    pass


class ExportError(TaggerException):
    """Raised when CSV export fails."""
    pass


class NothingToExportError(ExportError):
    """Raised when the export selection contains no transactions."""
    pass


class ConfigurationError(TaggerException):
    """Raised when configuration is invalid."""
    pass


class DataNotFoundError(TaggerException):
    """Raised when a transaction or category is not found."""
    pass


class InvalidTransitionError(TaggerException):
    """Raised when a status transition is not allowed."""
    pass
