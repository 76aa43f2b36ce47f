"""Category model for budget categories."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

CATEGORY_TYPES = ("income", "expense")


@dataclass
class Category:
    """A budget category, owned by exactly one monthly budget.

    Attributes:
        id: Identifier, unique within its budget. Categories cloned into a new
            budget always get a fresh id.
        name: Display name. Together with type, used to match categories
            across months.
        color: Hex color used by the UI.
        icon: Icon name used by the UI.
        budget_amount: Amount planned for this category in the month.
        type: 'income' or 'expense'.
        description: Optional description.
    """

    id: str
    name: str
    color: str
    icon: str
    budget_amount: Decimal
    type: str
    description: Optional[str] = None

    def matches(self, other: "Category") -> bool:
        """Check whether another category is the same category in a different month."""
        return self.name == other.name and self.type == other.type
