"""
Pydantic schemas for transactions, categories and suggestion payloads.
JSON field names are camelCase; Python attributes stay snake_case.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

TransactionType = Literal["withdrawal", "deposit"]
TransactionStatus = Literal["unprocessed", "pending", "approved"]
FilterType = Literal["all", "withdrawal", "deposit"]
ExportStatusFilter = Literal["all", "unprocessed", "pending", "approved"]

TRANSACTION_STATUSES = ("unprocessed", "pending", "approved")
EXPORT_STATUS_FILTERS = ("all",) + TRANSACTION_STATUSES


class CamelModel(BaseModel):
    """Base model serializing to camelCase and accepting either naming."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Transaction(CamelModel):
    """A single bank statement line under review."""
    id: str
    date: str = ""
    narration: str
    amount: float = Field(default=0.0, ge=0.0)
    type: TransactionType = "deposit"
    closing_balance: float = 0.0
    category: str = ""
    notes: str = ""
    suggested_category: Optional[str] = None
    status: TransactionStatus = "unprocessed"


class Category(CamelModel):
    """A spending category; value is the stable key, label is displayed."""
    value: str
    label: str


class FilterState(CamelModel):
    """
    View parameters for the transaction table.

    Amount bounds stay raw strings as typed by the user; unparseable
    bounds are ignored by the filter engine.
    """
    query: str = ""
    min_amount: str = ""
    max_amount: str = ""
    type: FilterType = "all"

    @field_validator("min_amount", "max_amount", mode="before")
    @classmethod
    def coerce_bound(cls, v):
        """Accept numbers and None for amount bounds."""
        if v is None:
            return ""
        return str(v)


class SuggestionRequest(CamelModel):
    """Payload sent to the category suggestion service."""
    description: str
    candidate_labels: List[str]


class SuggestionResponse(BaseModel):
    """Structured output the suggestion service must return."""
    label: str

    @field_validator("label", mode="before")
    @classmethod
    def strip_label(cls, v):
        """Models sometimes pad the label with whitespace."""
        if isinstance(v, str):
            return v.strip()
        return v


class SuggestionResult(CamelModel):
    """A suggested category for one transaction, ready to merge into the store."""
    id: str
    suggested_category: str


class CategoryUpdate(BaseModel):
    """Request body for a manual category edit."""
    category: str


class NotesUpdate(BaseModel):
    """Request body for a notes edit."""
    notes: str = ""


class CategoryCreate(BaseModel):
    """Request body for adding a category."""
    label: str
