"""Budget service for database operations.

Monthly budgets own their categories and transactions, so this service
handles all three. Every method is scoped to a user id; a budget that
belongs to another user is treated as not found.
"""

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from models.budget import BudgetSummary, MonthlyBudget
from models.category import CATEGORY_TYPES, Category
from models.ids import generate_id
from models.transaction import Transaction
from tools.budgets import summarize_budget

# SQL Query Constants
_BUDGET_SELECT_FIELDS = "id, user_id, name, month, year, total_income, is_template"

_CATEGORY_SELECT_FIELDS = (
    "id, name, description, color, icon, budget_amount, category_type"
)

_TRANSACTION_SELECT_FIELDS = """id, budget_id, transaction_type, amount, description,
       category_id, transaction_date, is_recurrent, recurrence_id"""

_TRANSACTION_INSERT_FIELDS = """id, budget_id, transaction_type, amount, description,
    category_id, transaction_date, is_recurrent, recurrence_id"""

# Automatically generate placeholders from field count
_TRANSACTION_INSERT_PLACEHOLDERS = (
    f"({', '.join(['?'] * len(_TRANSACTION_INSERT_FIELDS.split(',')))})"
)


def _as_date(value) -> date:
    # Transaction dates are stored as YYYY-MM-DD, never with a time part
    if isinstance(value, datetime):
        return value.date()
    return value


class BudgetService:
    """Service for managing monthly budgets, their categories and transactions."""

    def __init__(self, db_manager):
        """Initialize the budget service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def find_all(self, user_id: int) -> List[MonthlyBudget]:
        """Get all budgets of a user.

        Args:
            user_id: Owner of the budgets.

        Returns:
            List of MonthlyBudget objects ordered by year and month.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_BUDGET_SELECT_FIELDS}
                FROM monthly_budgets
                WHERE user_id = ?
                ORDER BY year, month
                """,
                (user_id,),
            )
            return [self._load_budget(conn, row) for row in cursor.fetchall()]

    def find(self, user_id: int, budget_id: str) -> Optional[MonthlyBudget]:
        """Get a single budget by ID.

        Returns:
            MonthlyBudget if it exists and belongs to the user, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_BUDGET_SELECT_FIELDS} FROM monthly_budgets WHERE id = ? AND user_id = ?",
                (budget_id, user_id),
            )
            row = cursor.fetchone()

            if row:
                return self._load_budget(conn, row)
            return None

    def find_by_month(
        self, user_id: int, month: int, year: int
    ) -> Optional[MonthlyBudget]:
        """Get the budget of a user for a specific month.

        Args:
            user_id: Owner of the budget.
            month: Month (1-12).
            year: Year (e.g., 2025).

        Returns:
            MonthlyBudget if one exists for that month, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_BUDGET_SELECT_FIELDS}
                FROM monthly_budgets
                WHERE user_id = ? AND month = ? AND year = ?
                """,
                (user_id, month, year),
            )
            row = cursor.fetchone()

            if row:
                return self._load_budget(conn, row)
            return None

    def find_current(
        self, user_id: int, today: Optional[date] = None
    ) -> Optional[MonthlyBudget]:
        """Get the budget for the current month."""
        today = today or date.today()
        return self.find_by_month(user_id, today.month, today.year)

    def create(
        self,
        user_id: int,
        name: str,
        month: int,
        year: int,
        total_income: Decimal,
        categories: List[Category],
        is_template: bool = False,
    ) -> MonthlyBudget:
        """Create a new monthly budget with its categories.

        Categories keep the ids they carry; categories with an empty id get
        a generated one.

        Args:
            user_id: Owner of the budget.
            name: Display name.
            month: Month (1-12).
            year: Year.
            total_income: Planned income for the month.
            categories: Categories of the new budget.
            is_template: Whether the budget is marked as a template.

        Returns:
            The created MonthlyBudget with no transactions.

        Raises:
            ValueError: If the month is out of range or category ids repeat.
            sqlite3.IntegrityError: If the user already has a budget for that month.
        """
        if not 1 <= month <= 12:
            raise ValueError(f"Month must be between 1 and 12, got {month}")

        categories = [self._with_id(c) for c in categories]
        self._validate_categories(categories)

        budget = MonthlyBudget(
            id=generate_id(),
            user_id=user_id,
            name=name,
            month=month,
            year=year,
            total_income=Decimal(str(total_income)),
            categories=categories,
            transactions=[],
            is_template=is_template,
        )

        with self.db_manager.connect() as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO monthly_budgets
                        (id, user_id, name, month, year, total_income, is_template)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        budget.id,
                        user_id,
                        name,
                        month,
                        year,
                        float(budget.total_income),
                        int(is_template),
                    ),
                )
                self._insert_categories(conn, budget.id, categories)
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        return budget

    def update(
        self,
        user_id: int,
        budget_id: str,
        *,
        name: Optional[str] = None,
        total_income: Optional[Decimal] = None,
        is_template: Optional[bool] = None,
        categories: Optional[List[Category]] = None,
    ) -> Optional[MonthlyBudget]:
        """Update fields of a budget. Fields left as None are unchanged.

        Passing categories replaces the whole category list.

        Returns:
            The updated MonthlyBudget, or None if the budget was not found.

        Raises:
            ValueError: If category ids repeat.
        """
        if not self._owns_budget(user_id, budget_id):
            return None

        assignments = []
        params = []
        if name is not None:
            assignments.append("name = ?")
            params.append(name)
        if total_income is not None:
            assignments.append("total_income = ?")
            params.append(float(total_income))
        if is_template is not None:
            assignments.append("is_template = ?")
            params.append(int(is_template))

        if categories is not None:
            categories = [self._with_id(c) for c in categories]
            self._validate_categories(categories)

        with self.db_manager.connect() as conn:
            try:
                assignments.append("updated_at = CURRENT_TIMESTAMP")
                conn.execute(
                    f"UPDATE monthly_budgets SET {', '.join(assignments)} WHERE id = ?",
                    (*params, budget_id),
                )
                if categories is not None:
                    conn.execute(
                        "DELETE FROM categories WHERE budget_id = ?", (budget_id,)
                    )
                    self._insert_categories(conn, budget_id, categories)
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        return self.find(user_id, budget_id)

    def delete(self, user_id: int, budget_id: str) -> bool:
        """Delete a budget together with its categories and transactions.

        Returns:
            True if the budget was deleted, False if not found.
        """
        if not self._owns_budget(user_id, budget_id):
            return False

        with self.db_manager.connect() as conn:
            conn.execute("DELETE FROM transactions WHERE budget_id = ?", (budget_id,))
            conn.execute("DELETE FROM categories WHERE budget_id = ?", (budget_id,))
            cursor = conn.execute(
                "DELETE FROM monthly_budgets WHERE id = ? AND user_id = ?",
                (budget_id, user_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def add_transaction(
        self, user_id: int, budget_id: str, transaction: Transaction
    ) -> Optional[Transaction]:
        """Add a transaction to a budget.

        Args:
            user_id: Owner of the budget.
            budget_id: Budget to add the transaction to.
            transaction: Transaction to insert. Its budget_id is overwritten.

        Returns:
            The inserted Transaction, or None if the budget was not found.

        Raises:
            ValueError: If the amount is not positive or the type is unknown.
            sqlite3.IntegrityError: If the budget already holds an occurrence
                of the same recurring transaction.
        """
        if transaction.amount <= 0:
            raise ValueError("Amount must be greater than zero")
        if transaction.type not in CATEGORY_TYPES:
            raise ValueError(f"Unknown transaction type '{transaction.type}'")

        if not self._owns_budget(user_id, budget_id):
            return None

        transaction.budget_id = budget_id
        transaction.transaction_date = _as_date(transaction.transaction_date)

        with self.db_manager.connect() as conn:
            conn.execute(
                f"""
                INSERT INTO transactions ({_TRANSACTION_INSERT_FIELDS})
                VALUES {_TRANSACTION_INSERT_PLACEHOLDERS}
                """,
                (
                    transaction.id,
                    budget_id,
                    transaction.type,
                    float(transaction.amount),
                    transaction.description,
                    transaction.category_id,
                    transaction.transaction_date.isoformat(),
                    int(transaction.is_recurrent),
                    transaction.recurrence_id,
                ),
            )
            conn.commit()

        return transaction

    def update_transaction(
        self,
        user_id: int,
        budget_id: str,
        transaction_id: str,
        *,
        amount: Optional[Decimal] = None,
        description: Optional[str] = None,
        transaction_date: Optional[date] = None,
        category_id: Optional[str] = None,
    ) -> Optional[Transaction]:
        """Update fields of a transaction. Fields left as None are unchanged.

        Returns:
            The updated Transaction, or None if it was not found.

        Raises:
            ValueError: If the amount is not positive or the description is empty.
        """
        if amount is not None and amount <= 0:
            raise ValueError("Amount must be greater than zero")
        if description is not None and not description.strip():
            raise ValueError("Description cannot be empty")

        budget = self.find(user_id, budget_id)
        if budget is None:
            return None
        transaction = budget.find_transaction(transaction_id)
        if transaction is None:
            return None

        if amount is not None:
            transaction.amount = Decimal(str(amount))
        if description is not None:
            transaction.description = description.strip()
        if transaction_date is not None:
            transaction.transaction_date = _as_date(transaction_date)
        if category_id is not None:
            transaction.category_id = category_id

        with self.db_manager.connect() as conn:
            conn.execute(
                """
                UPDATE transactions
                SET amount = ?, description = ?, transaction_date = ?, category_id = ?
                WHERE id = ? AND budget_id = ?
                """,
                (
                    float(transaction.amount),
                    transaction.description,
                    transaction.transaction_date.isoformat(),
                    transaction.category_id,
                    transaction_id,
                    budget_id,
                ),
            )
            conn.commit()

        return transaction

    def delete_transaction(
        self, user_id: int, budget_id: str, transaction_id: str
    ) -> bool:
        """Delete a transaction from a budget.

        Returns:
            True if the transaction was deleted, False if not found.
        """
        if not self._owns_budget(user_id, budget_id):
            return False

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM transactions WHERE id = ? AND budget_id = ?",
                (transaction_id, budget_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def get_summary(self, user_id: int, budget_id: str) -> Optional[BudgetSummary]:
        """Compute the summary of a budget from its current state.

        Returns:
            BudgetSummary, or None if the budget was not found.
        """
        budget = self.find(user_id, budget_id)
        if budget is None:
            return None
        return summarize_budget(budget)

    def _owns_budget(self, user_id: int, budget_id: str) -> bool:
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "SELECT 1 FROM monthly_budgets WHERE id = ? AND user_id = ?",
                (budget_id, user_id),
            )
            return cursor.fetchone() is not None

    def _with_id(self, category: Category) -> Category:
        if category.id:
            return category
        return replace(category, id=generate_id())

    def _validate_categories(self, categories: List[Category]) -> None:
        ids = [c.id for c in categories]
        if len(ids) != len(set(ids)):
            raise ValueError("Category ids must be unique within a budget")
        for category in categories:
            if category.type not in CATEGORY_TYPES:
                raise ValueError(
                    f"Category '{category.name}' has unknown type '{category.type}'"
                )

    def _insert_categories(self, conn, budget_id: str, categories: List[Category]):
        conn.executemany(
            """
            INSERT INTO categories
                (id, budget_id, position, name, description, color, icon,
                 budget_amount, category_type)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    c.id,
                    budget_id,
                    position,
                    c.name,
                    c.description,
                    c.color,
                    c.icon,
                    float(c.budget_amount),
                    c.type,
                )
                for position, c in enumerate(categories)
            ],
        )

    def _load_budget(self, conn, row: tuple) -> MonthlyBudget:
        """Convert a budget row to a MonthlyBudget with categories and transactions."""
        budget_id = row[0]

        category_rows = conn.execute(
            f"""
            SELECT {_CATEGORY_SELECT_FIELDS}
            FROM categories
            WHERE budget_id = ?
            ORDER BY position
            """,
            (budget_id,),
        ).fetchall()

        transaction_rows = conn.execute(
            f"""
            SELECT {_TRANSACTION_SELECT_FIELDS}
            FROM transactions
            WHERE budget_id = ?
            ORDER BY transaction_date, rowid
            """,
            (budget_id,),
        ).fetchall()

        return MonthlyBudget(
            id=budget_id,
            user_id=row[1],
            name=row[2],
            month=row[3],
            year=row[4],
            total_income=Decimal(str(row[5])),
            categories=[self._row_to_category(r) for r in category_rows],
            transactions=[self._row_to_transaction(r) for r in transaction_rows],
            is_template=bool(row[6]),
        )

    def _row_to_category(self, row: tuple) -> Category:
        return Category(
            id=row[0],
            name=row[1],
            description=row[2],
            color=row[3],
            icon=row[4],
            budget_amount=Decimal(str(row[5])),
            type=row[6],
        )

    def _row_to_transaction(self, row: tuple) -> Transaction:
        """Convert a database row to a Transaction object."""
        return Transaction(
            id=row[0],
            budget_id=row[1],
            type=row[2],
            amount=Decimal(str(row[3])),
            description=row[4],
            category_id=row[5],
            transaction_date=date.fromisoformat(row[6]),
            is_recurrent=bool(row[7]),
            recurrence_id=row[8],
        )
