import pytest
from datetime import date
from decimal import Decimal

from models.recurrence import MONTHLY, QUARTERLY, IntervalKind, RecurrenceInterval
from tests.helpers import create_template


class TestRecurrentTransactionService:
    """Tests for RecurrentTransactionService."""

    def test_create_and_find(self, services, user):
        """Test that a stored template reads back with all its fields."""
        created = create_template(
            services,
            user.id,
            start_date=date(2024, 1, 15),
            interval=QUARTERLY,
            end_date=date(2024, 12, 31),
        )

        found = services.recurrent_transactions.find(user.id, created.id)

        assert found == created
        assert found.amount == Decimal("500")
        assert found.interval == QUARTERLY
        assert found.interval_value == 3
        assert found.next_execution_date == date(2024, 1, 15)
        assert found.last_execution_date is None
        assert found.is_active is True

    def test_custom_interval_round_trip(self, services, user):
        created = create_template(services, user.id, interval=RecurrenceInterval.custom(4))

        found = services.recurrent_transactions.find(user.id, created.id)

        assert found.interval.kind == IntervalKind.CUSTOM
        assert found.interval.months == 4
        assert found.interval.label == "Every 4 months"

    def test_find_other_users_template(self, services, user, other_user):
        created = create_template(services, user.id)

        assert services.recurrent_transactions.find(other_user.id, created.id) is None
        assert services.recurrent_transactions.find_all(other_user.id) == []

    def test_find_all_and_active(self, services, user):
        """Test that find_active leaves out paused templates."""
        rent = create_template(services, user.id, description="Rent")
        gym = create_template(services, user.id, description="Gym")
        services.recurrent_transactions.update(user.id, gym.id, is_active=False)

        assert [t.id for t in services.recurrent_transactions.find_all(user.id)] == [rent.id, gym.id]
        assert [t.id for t in services.recurrent_transactions.find_active(user.id)] == [rent.id]

    def test_update_fields(self, services, user):
        created = create_template(services, user.id)

        updated = services.recurrent_transactions.update(
            user.id,
            created.id,
            amount=Decimal("650"),
            next_execution_date=date(2024, 2, 1),
            last_execution_date=date(2024, 1, 1),
            interval=MONTHLY,
        )

        assert updated.amount == Decimal("650")
        assert updated.next_execution_date == date(2024, 2, 1)
        assert updated.last_execution_date == date(2024, 1, 1)

    def test_update_clears_end_date(self, services, user):
        created = create_template(services, user.id, end_date=date(2024, 6, 30))

        updated = services.recurrent_transactions.update(user.id, created.id, end_date=None)

        assert updated.end_date is None

    def test_update_unsupported_field(self, services, user):
        created = create_template(services, user.id)

        with pytest.raises(ValueError, match="Unsupported field names"):
            services.recurrent_transactions.update(user.id, created.id, start_date=date(2025, 1, 1))

    def test_update_not_found(self, services, user):
        assert services.recurrent_transactions.update(user.id, "missing", is_active=False) is None

    def test_delete(self, services, user):
        created = create_template(services, user.id)

        assert services.recurrent_transactions.delete(user.id, created.id) is True
        assert services.recurrent_transactions.delete(user.id, created.id) is False
        assert services.recurrent_transactions.find(user.id, created.id) is None
