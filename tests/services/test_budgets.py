import pytest
import sqlite3
from datetime import date, datetime
from decimal import Decimal

from models.transaction import Transaction
from tests.helpers import create_budget, default_categories, make_category


def _expense(budget, amount, category_id="food", day=5, description="Groceries"):
    return Transaction.new(
        budget_id=budget.id,
        type="expense",
        amount=Decimal(amount),
        description=description,
        category_id=category_id,
        transaction_date=date(budget.year, budget.month, day),
    )


class TestBudgetService:
    """Tests for BudgetService."""

    def test_create_budget(self, services, user):
        """Test creating a budget with categories."""
        budget = create_budget(services, user.id, 3, 2024)

        assert budget.id
        assert budget.user_id == user.id
        assert budget.name == "Budget 3/2024"
        assert (budget.month, budget.year) == (3, 2024)
        assert budget.total_income == Decimal("3000")
        assert [c.id for c in budget.categories] == ["salary", "rent", "food"]
        assert budget.transactions == []

    def test_create_budget_generates_missing_category_ids(self, services, user):
        """Test that categories without an id get a generated one."""
        budget = create_budget(
            services, user.id, 3, 2024, categories=[make_category("", "Misc")]
        )

        assert budget.categories[0].id
        assert services.budgets.find(user.id, budget.id).categories[0].id == budget.categories[0].id

    def test_create_budget_invalid_month(self, services, user):
        with pytest.raises(ValueError, match="Month must be between 1 and 12"):
            create_budget(services, user.id, 13, 2024)

    def test_create_budget_duplicate_category_ids(self, services, user):
        """Test that category ids must be unique within a budget."""
        categories = [make_category("rent", "Rent"), make_category("rent", "Other")]

        with pytest.raises(ValueError):
            create_budget(services, user.id, 3, 2024, categories=categories)

    def test_create_budget_duplicate_month(self, services, user):
        """Test that a user cannot have two budgets for the same month."""
        create_budget(services, user.id, 3, 2024)

        with pytest.raises(sqlite3.IntegrityError):
            create_budget(services, user.id, 3, 2024)

        assert len(services.budgets.find_all(user.id)) == 1

    def test_same_month_for_different_users(self, services, user, other_user):
        create_budget(services, user.id, 3, 2024)
        create_budget(services, other_user.id, 3, 2024)

        assert services.budgets.find_by_month(other_user.id, 3, 2024) is not None

    def test_find_round_trips_categories(self, services, user):
        """Test that stored categories keep their order and fields."""
        created = create_budget(services, user.id, 3, 2024)

        found = services.budgets.find(user.id, created.id)

        assert found.categories == default_categories()
        assert found.total_income == Decimal("3000")

    def test_find_other_users_budget(self, services, user, other_user):
        """Test that budgets are not visible to other users."""
        budget = create_budget(services, user.id, 3, 2024)

        assert services.budgets.find(other_user.id, budget.id) is None
        assert services.budgets.find_by_month(other_user.id, 3, 2024) is None
        assert services.budgets.find_all(other_user.id) == []

    def test_find_all_ordered_by_month(self, services, user):
        create_budget(services, user.id, 2, 2025)
        create_budget(services, user.id, 11, 2024)
        create_budget(services, user.id, 1, 2025)

        periods = [b.period for b in services.budgets.find_all(user.id)]

        assert periods == ["11/2024", "1/2025", "2/2025"]

    def test_find_current(self, services, user):
        budget = create_budget(services, user.id, 3, 2024)

        assert services.budgets.find_current(user.id, today=date(2024, 3, 20)).id == budget.id
        assert services.budgets.find_current(user.id, today=date(2024, 4, 1)) is None

    def test_update_budget(self, services, user):
        """Test updating name and income of a budget."""
        budget = create_budget(services, user.id, 3, 2024)

        updated = services.budgets.update(
            user.id, budget.id, name="March", total_income=Decimal("3500")
        )

        assert updated.name == "March"
        assert updated.total_income == Decimal("3500")
        assert len(updated.categories) == 3

    def test_update_budget_replaces_categories(self, services, user):
        budget = create_budget(services, user.id, 3, 2024)

        updated = services.budgets.update(
            user.id, budget.id, categories=[make_category("fun", "Fun", "expense", "50")]
        )

        assert [c.id for c in updated.categories] == ["fun"]

    def test_update_budget_not_found(self, services, user):
        assert services.budgets.update(user.id, "missing", name="x") is None

    def test_delete_budget_removes_transactions(self, services, user):
        """Test that deleting a budget removes its transactions too."""
        budget = create_budget(services, user.id, 3, 2024)
        services.budgets.add_transaction(user.id, budget.id, _expense(budget, "20"))

        assert services.budgets.delete(user.id, budget.id) is True

        assert services.budgets.find(user.id, budget.id) is None
        with services.db_manager.connect() as conn:
            count = conn.execute("SELECT COUNT(*) FROM transactions").fetchone()[0]
        assert count == 0

    def test_delete_other_users_budget(self, services, user, other_user):
        budget = create_budget(services, user.id, 3, 2024)

        assert services.budgets.delete(other_user.id, budget.id) is False
        assert services.budgets.find(user.id, budget.id) is not None


class TestBudgetTransactions:
    """Tests for transaction operations of BudgetService."""

    def test_add_transaction(self, services, user):
        budget = create_budget(services, user.id, 3, 2024)
        transaction = _expense(budget, "42.50")

        added = services.budgets.add_transaction(user.id, budget.id, transaction)

        assert added.id == transaction.id
        found = services.budgets.find(user.id, budget.id)
        assert len(found.transactions) == 1
        stored = found.transactions[0]
        assert stored.amount == Decimal("42.5")
        assert stored.transaction_date == date(2024, 3, 5)
        assert stored.is_recurrent is False
        assert stored.recurrence_id is None

    def test_transactions_ordered_by_date(self, services, user):
        budget = create_budget(services, user.id, 3, 2024)
        services.budgets.add_transaction(user.id, budget.id, _expense(budget, "1", day=20))
        services.budgets.add_transaction(user.id, budget.id, _expense(budget, "2", day=3))

        found = services.budgets.find(user.id, budget.id)

        assert [t.transaction_date.day for t in found.transactions] == [3, 20]

    @pytest.mark.parametrize("amount", ["0", "-10"])
    def test_add_transaction_requires_positive_amount(self, services, user, amount):
        budget = create_budget(services, user.id, 3, 2024)

        with pytest.raises(ValueError, match="greater than zero"):
            services.budgets.add_transaction(user.id, budget.id, _expense(budget, amount))

    def test_add_transaction_to_other_users_budget(self, services, user, other_user):
        budget = create_budget(services, user.id, 3, 2024)

        result = services.budgets.add_transaction(other_user.id, budget.id, _expense(budget, "10"))

        assert result is None
        assert services.budgets.find(user.id, budget.id).transactions == []

    def test_duplicate_recurring_occurrence_rejected(self, services, user):
        """Test that the database refuses a second occurrence of a template in a budget."""
        budget = create_budget(services, user.id, 3, 2024)
        first, second = (_expense(budget, "500", category_id="rent") for _ in range(2))
        for transaction in (first, second):
            transaction.is_recurrent = True
            transaction.recurrence_id = "template-1"
        services.budgets.add_transaction(user.id, budget.id, first)

        with pytest.raises(sqlite3.IntegrityError):
            services.budgets.add_transaction(user.id, budget.id, second)

    def test_update_transaction(self, services, user):
        budget = create_budget(services, user.id, 3, 2024)
        transaction = services.budgets.add_transaction(user.id, budget.id, _expense(budget, "10"))

        updated = services.budgets.update_transaction(
            user.id,
            budget.id,
            transaction.id,
            amount=Decimal("15"),
            description="  Market ",
            category_id="rent",
        )

        assert updated.amount == Decimal("15")
        assert updated.description == "Market"
        stored = services.budgets.find(user.id, budget.id).transactions[0]
        assert stored.amount == Decimal("15")
        assert stored.category_id == "rent"

    def test_transaction_dates_drop_time_of_day(self, services, user):
        budget = create_budget(services, user.id, 3, 2024)
        transaction = _expense(budget, "10")
        transaction.transaction_date = datetime(2024, 3, 5, 18, 45)

        services.budgets.add_transaction(user.id, budget.id, transaction)
        services.budgets.update_transaction(
            user.id, budget.id, transaction.id, transaction_date=datetime(2024, 3, 9, 8, 0)
        )

        stored = services.budgets.find(user.id, budget.id).transactions[0]
        assert stored.transaction_date == date(2024, 3, 9)

    def test_update_transaction_not_found(self, services, user):
        budget = create_budget(services, user.id, 3, 2024)

        assert services.budgets.update_transaction(user.id, budget.id, "missing", description="x") is None

    def test_update_transaction_empty_description(self, services, user):
        budget = create_budget(services, user.id, 3, 2024)
        transaction = services.budgets.add_transaction(user.id, budget.id, _expense(budget, "10"))

        with pytest.raises(ValueError, match="Description cannot be empty"):
            services.budgets.update_transaction(user.id, budget.id, transaction.id, description=" ")

    def test_delete_transaction(self, services, user):
        budget = create_budget(services, user.id, 3, 2024)
        transaction = services.budgets.add_transaction(user.id, budget.id, _expense(budget, "10"))

        assert services.budgets.delete_transaction(user.id, budget.id, transaction.id) is True
        assert services.budgets.delete_transaction(user.id, budget.id, transaction.id) is False
        assert services.budgets.find(user.id, budget.id).transactions == []

    def test_get_summary(self, services, user):
        budget = create_budget(services, user.id, 3, 2024)
        services.budgets.add_transaction(user.id, budget.id, _expense(budget, "150"))

        summary = services.budgets.get_summary(user.id, budget.id)

        assert summary.total_expenses == Decimal("150")
        assert summary.category_breakdown["food"].remaining == Decimal("250")

    def test_get_summary_not_found(self, services, user):
        assert services.budgets.get_summary(user.id, "missing") is None
