"""
Category registry edited directly by the user.

Removing a category never touches transactions already tagged with it;
their stored value simply no longer resolves to a label.
"""
import re
from typing import Dict, Iterable, List, Optional

from core.exceptions import ValidationError
from core.logger import setup_logger
from core.schema import Category

logger = setup_logger(__name__)

DEFAULT_CATEGORIES: List[Category] = [
    Category(value="food", label="Food"),
    Category(value="groceries", label="Groceries"),
    Category(value="transport", label="Transport"),
    Category(value="shopping", label="Shopping"),
    Category(value="utilities", label="Utilities"),
    Category(value="entertainment", label="Entertainment"),
    Category(value="health", label="Health"),
    Category(value="rent", label="Rent"),
    Category(value="salary", label="Salary"),
    Category(value="transfers", label="Transfers"),
    Category(value="investments", label="Investments"),
    Category(value="other", label="Other"),
]


def slugify_label(label: str) -> str:
    """Turn a label into a value: "Eating Out" -> "eating-out"."""
    return re.sub(r"\s+", "-", label.strip().lower())


class CategoryRegistry:
    """Ordered, mutable set of categories keyed by value."""

    def __init__(self, categories: Optional[Iterable[Category]] = None):
        source = DEFAULT_CATEGORIES if categories is None else categories
        self._categories: Dict[str, Category] = {
            category.value: category.model_copy() for category in source
        }

    def __len__(self) -> int:
        return len(self._categories)

    def __contains__(self, value: str) -> bool:
        return value in self._categories

    def all(self) -> List[Category]:
        return list(self._categories.values())

    def values(self) -> List[str]:
        return list(self._categories)

    def labels(self) -> List[str]:
        return [category.label for category in self._categories.values()]

    def add(self, label: str) -> Category:
        """
        Add a category from its display label.

        Args:
            label: Display name typed by the user

        Returns:
            The new category

        Raises:
            ValidationError: If the label is blank or already exists (case-insensitive)
        """
        clean_label = (label or "").strip()
        if not clean_label:
            raise ValidationError("Category label cannot be empty")

        if any(c.label.lower() == clean_label.lower() for c in self._categories.values()):
            raise ValidationError(
                f"Category '{clean_label}' already exists",
                details={"label": clean_label}
            )

        value = slugify_label(clean_label)
        if value in self._categories:
            raise ValidationError(
                f"Category value '{value}' already exists",
                details={"label": clean_label, "value": value}
            )

        category = Category(value=value, label=clean_label)
        self._categories[value] = category
        logger.info(f"Added category '{clean_label}' ({value})")
        return category

    def remove(self, value: str) -> bool:
        """Remove a category. Returns False if it did not exist."""
        removed = self._categories.pop(value, None)
        if removed is not None:
            logger.info(f"Removed category '{removed.label}' ({value})")
        return removed is not None

    def label_for(self, value: str) -> str:
        """Display label for a value, falling back to the raw value."""
        category = self._categories.get(value)
        return category.label if category else value

    def value_for_label(self, label: str) -> Optional[str]:
        """Value of the category with this label (case-insensitive), if any."""
        wanted = (label or "").strip().lower()
        for category in self._categories.values():
            if category.label.lower() == wanted:
                return category.value
        return None
