import pytest
from datetime import date
from decimal import Decimal

from models.recurrence import QUARTERLY, RecurrenceInterval, RecurrentTransaction
from recurrence.rules import (
    compute_next_execution_date,
    count_executions_between_dates,
    filter_due_for_month,
    generate_recurrence_dates,
    initial_next_execution_date,
    months_between,
    recurrence_status,
    shift_month,
    should_execute_in_month,
    validate_recurrence_config,
)


def _template(start_date, interval=QUARTERLY, end_date=None, is_active=True, next_date=None):
    return RecurrentTransaction(
        id="t1",
        user_id=1,
        type="expense",
        amount=Decimal("100"),
        description="Insurance",
        category_id="rent",
        start_date=start_date,
        interval=interval,
        next_execution_date=next_date or start_date,
        end_date=end_date,
        is_active=is_active,
    )


class TestMonthArithmetic:
    """Tests for months_between and shift_month."""

    def test_months_between(self):
        assert months_between(1, 2024, 1, 2024) == 0
        assert months_between(11, 2023, 2, 2024) == 3
        assert months_between(3, 2024, 1, 2024) == -2

    @pytest.mark.parametrize(
        "month,year,delta,expected",
        [
            (1, 2024, -1, (12, 2023)),
            (12, 2024, 1, (1, 2025)),
            (3, 2024, -14, (1, 2023)),
            (6, 2024, 0, (6, 2024)),
        ],
    )
    def test_shift_month(self, month, year, delta, expected):
        assert shift_month(month, year, delta) == expected


class TestShouldExecuteInMonth:
    """Tests for due-month detection."""

    @pytest.mark.parametrize(
        "month,year", [(1, 2024), (4, 2024), (7, 2024), (10, 2024), (1, 2025)]
    )
    def test_due_every_interval_from_start(self, month, year):
        """Test that a quarterly template is due every third month from its start."""
        template = _template(date(2024, 1, 15))

        assert should_execute_in_month(template, month, year) is True

    @pytest.mark.parametrize("month,year", [(2, 2024), (3, 2024), (5, 2024)])
    def test_not_due_between_intervals(self, month, year):
        template = _template(date(2024, 1, 15))

        assert should_execute_in_month(template, month, year) is False

    def test_not_due_before_start(self):
        template = _template(date(2024, 1, 15))

        assert should_execute_in_month(template, 10, 2023) is False

    def test_day_of_month_is_ignored(self):
        """Test that a start on the 31st is still due in short months."""
        template = _template(date(2024, 1, 31), interval=RecurrenceInterval.custom(1))

        assert should_execute_in_month(template, 2, 2024) is True


class TestFilterDueForMonth:
    """Tests for selecting the templates due in a month."""

    def test_end_date_cutoff(self):
        """Test that a template past its end date is excluded even when the interval matches."""
        template = _template(date(2024, 1, 15), end_date=date(2024, 7, 1))

        assert filter_due_for_month([template], 10, 2024, date(2024, 10, 1)) == []
        assert filter_due_for_month([template], 7, 2024, date(2024, 7, 1)) == [template]

    def test_keeps_order_and_drops_not_due(self):
        quarterly = _template(date(2024, 1, 1))
        monthly = _template(date(2024, 1, 1), interval=RecurrenceInterval.custom(1))

        due = filter_due_for_month([monthly, quarterly], 2, 2024, date(2024, 2, 1))

        assert due == [monthly]


class TestExecutionDates:
    """Tests for next date computation and schedule generation."""

    def test_next_execution_date(self):
        assert compute_next_execution_date(date(2024, 1, 15), 3) == date(2024, 4, 15)
        assert compute_next_execution_date(date(2024, 11, 1), 2) == date(2025, 1, 1)

    def test_next_execution_date_clamps_to_month_end(self):
        """Test that day overflow is clamped instead of spilling into the next month."""
        assert compute_next_execution_date(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert compute_next_execution_date(date(2023, 1, 31), 1) == date(2023, 2, 28)

    def test_initial_next_date_future_start(self):
        assert initial_next_execution_date(
            date(2024, 6, 1), 1, today=date(2024, 5, 10)
        ) == date(2024, 6, 1)

    def test_initial_next_date_start_today(self):
        assert initial_next_execution_date(
            date(2024, 5, 10), 1, today=date(2024, 5, 10)
        ) == date(2024, 5, 10)

    def test_initial_next_date_past_start(self):
        """Test that a past start seeds the first occurrence on or after today."""
        assert initial_next_execution_date(
            date(2024, 1, 1), 3, today=date(2024, 5, 10)
        ) == date(2024, 7, 1)

    def test_initial_next_date_does_not_drift(self):
        """Test that occurrences are counted from the start date, not chained."""
        assert initial_next_execution_date(
            date(2024, 1, 31), 1, today=date(2024, 3, 15)
        ) == date(2024, 3, 31)

    def test_generate_recurrence_dates(self):
        dates = generate_recurrence_dates(date(2024, 1, 15), 3, 4)

        assert dates == [
            date(2024, 4, 15),
            date(2024, 7, 15),
            date(2024, 10, 15),
            date(2025, 1, 15),
        ]

    def test_generate_recurrence_dates_stops_at_end_date(self):
        dates = generate_recurrence_dates(date(2024, 1, 15), 3, 4, end_date=date(2024, 8, 1))

        assert dates == [date(2024, 4, 15), date(2024, 7, 15)]

    def test_generate_recurrence_dates_zero_count(self):
        assert generate_recurrence_dates(date(2024, 1, 15), 1, 0) == []

    def test_count_executions_between_dates(self):
        assert count_executions_between_dates(date(2024, 1, 1), date(2024, 12, 31), 3) == 3
        assert count_executions_between_dates(date(2024, 1, 1), date(2024, 4, 1), 3) == 1

    def test_count_executions_end_before_start(self):
        assert count_executions_between_dates(date(2024, 5, 1), date(2024, 1, 1), 1) == 0


class TestValidateRecurrenceConfig:
    """Tests for scheduling validation."""

    TODAY = date(2024, 1, 1)

    def test_valid_config(self):
        assert validate_recurrence_config(date(2024, 1, 1), None, 1, self.TODAY) is None
        assert validate_recurrence_config(
            date(2024, 1, 1), date(2025, 1, 1), 12, self.TODAY
        ) is None

    @pytest.mark.parametrize(
        "start,end,months,message",
        [
            (date(2024, 1, 1), None, 0, "Interval must be greater than zero"),
            (date(2024, 1, 1), None, 121, "Interval cannot exceed 120 months"),
            (date(2024, 1, 1), date(2024, 1, 1), 1, "End date must be after the start date"),
            (date(2024, 3, 1), date(2024, 2, 1), 1, "End date must be after the start date"),
            (
                date(2024, 1, 1),
                date(2034, 1, 2),
                1,
                "End date cannot be more than 10 years in the future",
            ),
        ],
    )
    def test_invalid_config(self, start, end, months, message):
        assert validate_recurrence_config(start, end, months, self.TODAY) == message


class TestRecurrenceStatus:
    """Tests for the lifecycle status of a template."""

    TODAY = date(2024, 5, 10)

    def test_paused(self):
        template = _template(date(2024, 1, 1), is_active=False)

        assert recurrence_status(template, self.TODAY).status == "paused"

    def test_completed_after_end_date(self):
        template = _template(date(2024, 1, 1), end_date=date(2024, 4, 30), is_active=False)

        assert recurrence_status(template, self.TODAY).status == "completed"

    def test_active_template_past_end_date_is_completed(self):
        template = _template(date(2024, 1, 1), end_date=date(2024, 4, 30))

        assert recurrence_status(template, self.TODAY).status == "completed"

    def test_scheduled(self):
        template = _template(date(2024, 1, 1), next_date=date(2024, 7, 1))

        status = recurrence_status(template, self.TODAY)

        assert status.status == "scheduled"
        assert status.description == "Next execution: 2024-07-01"

    def test_active(self):
        template = _template(date(2024, 1, 1), next_date=date(2024, 5, 1))

        assert recurrence_status(template, self.TODAY).status == "active"
