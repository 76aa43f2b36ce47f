"""Monthly budget and budget summary models."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

from models.category import Category
from models.transaction import Transaction


@dataclass
class MonthlyBudget:
    """A user's budget for one calendar month.

    A budget owns its categories and transactions. There is at most one
    budget per (user_id, month, year).

    Attributes:
        id: Unique identifier.
        user_id: Owner of the budget.
        name: Display name, e.g. "Budget 3/2024".
        month: Month number (1-12).
        year: Four digit year.
        total_income: Planned income for the month.
        categories: Categories in display order.
        transactions: Transactions ordered by date.
        is_template: Whether the user marked this budget as a template.
    """

    id: str
    user_id: int
    name: str
    month: int
    year: int
    total_income: Decimal
    categories: List[Category] = field(default_factory=list)
    transactions: List[Transaction] = field(default_factory=list)
    is_template: bool = False

    def find_category(self, category_id: str) -> Optional[Category]:
        return next((c for c in self.categories if c.id == category_id), None)

    def find_matching_category(self, category: Category) -> Optional[Category]:
        """Find the category with the same name and type as the given one."""
        return next((c for c in self.categories if c.matches(category)), None)

    def find_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return next((t for t in self.transactions if t.id == transaction_id), None)

    @property
    def period(self) -> str:
        """Month and year formatted as M/YYYY."""
        return f"{self.month}/{self.year}"


@dataclass
class CategoryBreakdown:
    """Planned versus actual spending for one category."""

    category_name: str
    color: str
    budgeted: Decimal
    spent: Decimal
    remaining: Decimal


@dataclass
class BudgetSummary:
    """Aggregates derived from a single monthly budget. Never persisted.

    Attributes:
        total_income: Planned income of the budget.
        actual_income: Sum of income transactions.
        total_budgeted: Sum of all category budget amounts.
        total_expenses: Sum of expense transactions.
        balance: actual_income - total_expenses.
        remaining: total_income - total_budgeted.
        category_breakdown: Breakdown keyed by category id.
    """

    total_income: Decimal
    actual_income: Decimal
    total_budgeted: Decimal
    total_expenses: Decimal
    balance: Decimal
    remaining: Decimal
    category_breakdown: Dict[str, CategoryBreakdown] = field(default_factory=dict)
