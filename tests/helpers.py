"""Helper utilities for tests."""

from datetime import date
from decimal import Decimal
from pathlib import Path
import sqlite3

from models.category import Category
from models.recurrence import MONTHLY


def run_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> None:
    """Run all SQL migrations in order.

    Args:
        conn: SQLite connection to run migrations against.
        migrations_dir: Path to directory containing .sql migration files.
    """
    for migration_file in sorted(migrations_dir.glob("*.sql")):
        with open(migration_file, "r") as f:
            conn.executescript(f.read())

    conn.commit()


def make_category(category_id, name, type="expense", budget_amount="0"):
    """Build a Category with placeholder color and icon."""
    return Category(
        id=category_id,
        name=name,
        color="#6B7280",
        icon="Tag",
        budget_amount=Decimal(budget_amount),
        type=type,
    )


def default_categories():
    """Categories used by most budget tests: salary, rent and food."""
    return [
        make_category("salary", "Salary", "income", "3000"),
        make_category("rent", "Rent", "expense", "1200"),
        make_category("food", "Food", "expense", "400"),
    ]


def create_budget(services, user_id, month, year, categories=None, total_income="3000"):
    """Create a budget for a month with the default categories."""
    return services.budgets.create(
        user_id,
        f"Budget {month}/{year}",
        month,
        year,
        Decimal(total_income),
        categories if categories is not None else default_categories(),
    )


def create_template(
    services,
    user_id,
    category_id="rent",
    start_date=date(2024, 1, 1),
    interval=MONTHLY,
    amount="500",
    description="Rent",
    type="expense",
    end_date=None,
):
    """Insert a recurring transaction straight through the service."""
    return services.recurrent_transactions.create(
        user_id,
        type,
        Decimal(amount),
        description,
        category_id,
        start_date,
        interval,
        start_date,
        end_date=end_date,
    )
