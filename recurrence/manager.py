"""Creating, editing, pausing and deleting recurring transaction templates.

Validation problems and storage errors are returned as a failed
OperationResult rather than raised, so callers can show the message as is.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Union

from logger import get_logger
from models.category import CATEGORY_TYPES
from models.recurrence import OperationResult, RecurrenceInterval, RecurrentTransaction
from recurrence.rules import (
    generate_recurrence_dates,
    initial_next_execution_date,
    validate_recurrence_config,
)

logger = get_logger()

MAX_FUTURE_MONTHS = 60


class RecurrenceManager:
    """Use cases around the lifecycle of recurring transaction templates.

    Args:
        budgets: BudgetService, used when deleting materialized transactions.
        recurrent_transactions: RecurrentTransactionService for templates.
        engine: MaterializationEngine, used to pre-create future occurrences.
    """

    def __init__(self, budgets, recurrent_transactions, engine):
        self.budgets = budgets
        self.recurrent_transactions = recurrent_transactions
        self.engine = engine

    def create(
        self,
        user_id: int,
        type: str,
        amount: Union[Decimal, int, str],
        description: str,
        category_id: str,
        start_date: date,
        interval: Union[RecurrenceInterval, int],
        end_date: Optional[date] = None,
        create_future_months: int = 0,
        today: Optional[date] = None,
    ) -> OperationResult:
        """Create a template and optionally materialize its next occurrences.

        The execution cursor starts at start_date, or at the first occurrence
        on or after today when start_date is in the past.

        Args:
            user_id: Owner of the template.
            type: 'income' or 'expense'.
            amount: Positive amount of every occurrence.
            description: Non-empty description.
            category_id: Category id in the budget the template is based on.
            start_date: First occurrence.
            interval: A RecurrenceInterval, or a month count.
            end_date: Optional last date of the schedule, after start_date.
            create_future_months: Number of occurrences after start_date to
                materialize right away (0-60).
            today: Reference date, defaults to date.today().

        Returns:
            OperationResult with the RecurrentTransaction as value. Problems
            with pre-materialized occurrences are reported as warnings.
        """
        if not user_id:
            return OperationResult.fail("User id is required")
        if type not in CATEGORY_TYPES:
            return OperationResult.fail(f"Type must be one of {', '.join(CATEGORY_TYPES)}")

        amount_error, amount = self._parse_amount(amount)
        if amount_error:
            return OperationResult.fail(amount_error)
        if not isinstance(description, str) or not description.strip():
            return OperationResult.fail("Description is required")
        if not category_id:
            return OperationResult.fail("Category is required")

        interval_error, interval = self._parse_interval(interval)
        if interval_error:
            return OperationResult.fail(interval_error)

        if (
            not isinstance(create_future_months, int)
            or not 0 <= create_future_months <= MAX_FUTURE_MONTHS
        ):
            return OperationResult.fail(
                f"Future months must be between 0 and {MAX_FUTURE_MONTHS}"
            )

        date_error, start_date, end_date = self._parse_dates(start_date, end_date)
        if date_error:
            return OperationResult.fail(date_error)

        error = validate_recurrence_config(start_date, end_date, interval.months, today)
        if error:
            return OperationResult.fail(error)

        try:
            template = self.recurrent_transactions.create(
                user_id,
                type,
                amount,
                description.strip(),
                category_id,
                start_date,
                interval,
                initial_next_execution_date(start_date, interval.months, today),
                end_date=end_date,
            )
        except Exception as e:
            logger.error(f"Could not create recurring transaction: {e}")
            return OperationResult.fail(str(e))

        logger.info(
            f"Created recurring transaction '{template.description}' "
            f"({interval.label}, starting {start_date.isoformat()})"
        )

        warnings = []
        if create_future_months:
            warnings = self._materialize_future(user_id, template, create_future_months)

        return OperationResult.ok(template, warnings=warnings)

    def update(
        self,
        user_id: int,
        recurrent_id: str,
        *,
        amount: Optional[Union[Decimal, int, str]] = None,
        description: Optional[str] = None,
        category_id: Optional[str] = None,
        end_date: Optional[date] = None,
        clear_end_date: bool = False,
        is_active: Optional[bool] = None,
        interval: Optional[Union[RecurrenceInterval, int]] = None,
        today: Optional[date] = None,
    ) -> OperationResult:
        """Update a template. Fields left as None are unchanged.

        Changing the interval re-seeds next_execution_date from the start
        date. Already materialized transactions are not modified.

        Returns:
            OperationResult with the updated RecurrentTransaction as value.
        """
        if not user_id:
            return OperationResult.fail("User id is required")

        updates = {}
        if amount is not None:
            amount_error, parsed = self._parse_amount(amount)
            if amount_error:
                return OperationResult.fail(amount_error)
            updates["amount"] = parsed
        if description is not None:
            if not isinstance(description, str) or not description.strip():
                return OperationResult.fail("Description cannot be empty")
            updates["description"] = description.strip()
        if category_id is not None:
            updates["category_id"] = category_id
        if is_active is not None:
            updates["is_active"] = is_active

        try:
            template = self.recurrent_transactions.find(user_id, recurrent_id)
            if template is None:
                return OperationResult.fail("Recurring transaction not found")

            months = template.interval_value
            if interval is not None:
                interval_error, parsed_interval = self._parse_interval(interval)
                if interval_error:
                    return OperationResult.fail(interval_error)
                updates["interval"] = parsed_interval
                months = parsed_interval.months
                updates["next_execution_date"] = initial_next_execution_date(
                    template.start_date, months, today
                )

            if clear_end_date:
                updates["end_date"] = None
            elif end_date is not None:
                date_error, _, end_date = self._parse_dates(template.start_date, end_date)
                if date_error:
                    return OperationResult.fail(date_error)
                updates["end_date"] = end_date

            error = validate_recurrence_config(
                template.start_date, updates.get("end_date", template.end_date), months, today
            )
            if error:
                return OperationResult.fail(error)

            if not updates:
                return OperationResult.fail("At least one field is required to update")

            updated = self.recurrent_transactions.update(user_id, recurrent_id, **updates)
        except Exception as e:
            logger.error(f"Could not update recurring transaction {recurrent_id}: {e}")
            return OperationResult.fail(str(e))

        if updated is None:
            return OperationResult.fail("Recurring transaction not found")
        return OperationResult.ok(updated)

    def pause(self, user_id: int, recurrent_id: str) -> OperationResult:
        """Stop a template from being processed, keeping its transactions."""
        return self.update(user_id, recurrent_id, is_active=False)

    def resume(self, user_id: int, recurrent_id: str) -> OperationResult:
        return self.update(user_id, recurrent_id, is_active=True)

    def delete(
        self,
        user_id: int,
        recurrent_id: str,
        delete_future_transactions: bool = False,
        today: Optional[date] = None,
    ) -> OperationResult:
        """Delete a template.

        Args:
            user_id: Owner of the template.
            recurrent_id: Template to delete.
            delete_future_transactions: Also delete the template's materialized
                transactions dated today or later.
            today: Reference date, defaults to date.today().

        Returns:
            OperationResult with the number of deleted transactions as value.
        """
        if not user_id:
            return OperationResult.fail("User id is required")

        today = today or date.today()
        try:
            if self.recurrent_transactions.find(user_id, recurrent_id) is None:
                return OperationResult.fail("Recurring transaction not found")

            deleted_count = 0
            if delete_future_transactions:
                deleted_count = self._delete_future_transactions(
                    user_id, recurrent_id, today
                )

            if not self.recurrent_transactions.delete(user_id, recurrent_id):
                return OperationResult.fail("Could not delete the recurring transaction")
        except Exception as e:
            logger.error(f"Could not delete recurring transaction {recurrent_id}: {e}")
            return OperationResult.fail(str(e))

        logger.info(
            f"Deleted recurring transaction {recurrent_id} "
            f"and {deleted_count} future transaction(s)"
        )
        return OperationResult.ok(deleted_count)

    def _delete_future_transactions(
        self, user_id: int, recurrent_id: str, today: date
    ) -> int:
        deleted = 0
        for budget in self.budgets.find_all(user_id):
            for transaction in budget.transactions:
                if (
                    transaction.recurrence_id == recurrent_id
                    and transaction.transaction_date >= today
                    and self.budgets.delete_transaction(user_id, budget.id, transaction.id)
                ):
                    deleted += 1
        return deleted

    def _materialize_future(
        self, user_id: int, template: RecurrentTransaction, count: int
    ) -> List[str]:
        warnings = []
        for occurrence in generate_recurrence_dates(
            template.start_date, template.interval_value, count, template.end_date
        ):
            warnings.extend(
                self.engine.materialize(user_id, template, occurrence).warnings
            )
        return warnings

    def _parse_amount(self, amount):
        try:
            parsed = Decimal(str(amount))
        except InvalidOperation:
            return f"Invalid amount '{amount}'", None
        if not parsed.is_finite() or parsed <= 0:
            return "Amount must be greater than zero", None
        return None, parsed

    def _parse_interval(self, interval):
        if isinstance(interval, RecurrenceInterval):
            return None, interval
        if isinstance(interval, bool):
            return f"Invalid interval '{interval}'", None
        try:
            months = int(interval)
        except (TypeError, ValueError):
            return f"Invalid interval '{interval}'", None
        return None, RecurrenceInterval.from_months(months)

    def _parse_dates(self, start_date, end_date):
        """Check the template dates, dropping any time of day."""
        if isinstance(start_date, datetime):
            start_date = start_date.date()
        if isinstance(end_date, datetime):
            end_date = end_date.date()
        if not isinstance(start_date, date):
            return "Start date is required", None, None
        if end_date is not None and not isinstance(end_date, date):
            return f"Invalid end date '{end_date}'", None, None
        return None, start_date, end_date
