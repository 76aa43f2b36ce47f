"""Batch processing of recurring transactions for a target month."""

from datetime import date, datetime
from typing import Optional

from logger import get_logger
from models.recurrence import (
    ExecutionStatus,
    OperationResult,
    ProcessResult,
    RecurrentTransaction,
)
from recurrence.rules import (
    compute_next_execution_date,
    filter_due_for_month,
    should_execute_in_month,
)

logger = get_logger()


class RecurrenceProcessor:
    """Runs the materialization engine over all due templates of a user.

    Templates are processed one after another: a budget created for the
    target month while processing one template is reused by the next. A
    failing template only adds a warning; the batch carries on.

    Args:
        budgets: BudgetService for budget lookups and deletes.
        recurrent_transactions: RecurrentTransactionService for templates.
        engine: MaterializationEngine that creates the transactions.
    """

    def __init__(self, budgets, recurrent_transactions, engine):
        self.budgets = budgets
        self.recurrent_transactions = recurrent_transactions
        self.engine = engine

    def process(
        self,
        user_id: int,
        target_date: Optional[date] = None,
        target_month: Optional[int] = None,
        target_year: Optional[int] = None,
    ) -> ProcessResult:
        """Materialize every active template that is due in the target month.

        The target is target_month/target_year when both are given (the
        first of that month), else target_date, else today. After each
        template is processed its next_execution_date is advanced by one
        interval from the target date; a template whose next date falls
        after its end date is deactivated.

        Args:
            user_id: Owner of the templates.
            target_date: Date to process.
            target_month: Month to process (1-12), takes priority over target_date.
            target_year: Year to process, required with target_month.

        Returns:
            ProcessResult. success is False only when the batch could not be
            set up (missing user, bad target, templates could not be loaded).
        """
        if not user_id:
            return ProcessResult(success=False, error="User id is required")

        try:
            process_date = self._resolve_target(target_date, target_month, target_year)
            templates = self.recurrent_transactions.find_active(user_id)
        except Exception as e:
            logger.error(f"Could not start recurring transaction processing: {e}")
            return ProcessResult(success=False, error=str(e))

        month, year = process_date.month, process_date.year
        due = filter_due_for_month(templates, month, year, process_date)

        result = ProcessResult()
        if not due:
            logger.info(f"No recurring transactions due for {month}/{year}")
            result.warnings.append(
                f"No recurring transactions to process for {month}/{year}"
            )
            return result

        logger.info(
            f"Processing {len(due)} of {len(templates)} active recurring "
            f"transaction(s) for {month}/{year}"
        )

        for template in due:
            try:
                result.add(self.engine.materialize(user_id, template, process_date))
                self._advance(user_id, template, process_date)
            except Exception as e:
                logger.error(
                    f"Error processing recurring transaction '{template.description}': {e}"
                )
                result.warnings.append(
                    f"Error processing recurring transaction '{template.description}': {e}"
                )

        logger.info(
            f"Recurring transactions for {month}/{year}: "
            f"{result.transactions_created} transaction(s) created, "
            f"{result.budgets_created} budget(s) created, "
            f"{result.budgets_updated} budget(s) updated, "
            f"{len(result.warnings)} warning(s)"
        )
        return result

    def regenerate_deleted_transaction(
        self, user_id: int, recurrence_id: str, target_month: int, target_year: int
    ) -> OperationResult:
        """Materialize one template again for one month.

        Used after the user deleted an occurrence by hand. The template's
        execution cursor is not touched.

        Returns:
            OperationResult with the new Transaction as value on success.
        """
        try:
            template = self.recurrent_transactions.find(user_id, recurrence_id)
            if template is None:
                return OperationResult.fail("Recurring transaction not found")

            if not should_execute_in_month(template, target_month, target_year):
                return OperationResult.fail(
                    f"This recurring transaction is not due in {target_month}/{target_year}"
                )

            outcome = self.engine.materialize(
                user_id, template, date(target_year, target_month, 1)
            )
            if outcome.transactions_created == 0:
                return OperationResult.fail(
                    "; ".join(outcome.warnings) or "No transaction was created",
                    warnings=outcome.warnings,
                )
            return OperationResult.ok(outcome.transaction, warnings=outcome.warnings)
        except Exception as e:
            logger.error(f"Error regenerating recurring transaction {recurrence_id}: {e}")
            return OperationResult.fail(str(e))

    def is_executed_in_month(
        self, user_id: int, recurrence_id: str, target_month: int, target_year: int
    ) -> ExecutionStatus:
        """Look up the occurrence of a template in a month's budget."""
        try:
            budget = self.budgets.find_by_month(user_id, target_month, target_year)
        except Exception as e:
            logger.error(f"Error checking recurring transaction {recurrence_id}: {e}")
            return ExecutionStatus(executed=False)

        if budget is None:
            return ExecutionStatus(executed=False)

        for transaction in budget.transactions:
            if (
                transaction.recurrence_id == recurrence_id
                and transaction.transaction_date.month == target_month
                and transaction.transaction_date.year == target_year
            ):
                return ExecutionStatus(
                    executed=True, transaction_id=transaction.id, budget_id=budget.id
                )
        return ExecutionStatus(executed=False)

    def unexecute(
        self, user_id: int, recurrence_id: str, target_month: int, target_year: int
    ) -> OperationResult:
        """Delete the occurrence of a template in a month."""
        try:
            status = self.is_executed_in_month(
                user_id, recurrence_id, target_month, target_year
            )
            if not status.executed:
                return OperationResult.fail(
                    f"No executed transaction found for {target_month}/{target_year}"
                )

            if not self.budgets.delete_transaction(
                user_id, status.budget_id, status.transaction_id
            ):
                return OperationResult.fail("Could not delete the transaction")

            logger.info(
                f"Removed occurrence of recurring transaction {recurrence_id} "
                f"from {target_month}/{target_year}"
            )
            return OperationResult.ok(status.transaction_id)
        except Exception as e:
            logger.error(f"Error unexecuting recurring transaction {recurrence_id}: {e}")
            return OperationResult.fail(str(e))

    def _resolve_target(
        self,
        target_date: Optional[date],
        target_month: Optional[int],
        target_year: Optional[int],
    ) -> date:
        if target_month is not None or target_year is not None:
            if target_month is None or target_year is None:
                raise ValueError("target_month and target_year must be given together")
            if not 1 <= target_month <= 12:
                raise ValueError(f"Month must be between 1 and 12, got {target_month}")
            return date(target_year, target_month, 1)

        if target_date is None:
            return date.today()
        if isinstance(target_date, datetime):
            return target_date.date()
        return target_date

    def _advance(
        self, user_id: int, template: RecurrentTransaction, process_date: date
    ) -> None:
        next_date = compute_next_execution_date(process_date, template.interval_value)
        updates = {
            "next_execution_date": next_date,
            "last_execution_date": process_date,
        }
        if template.end_date is not None and next_date > template.end_date:
            updates["is_active"] = False
            logger.info(
                f"Recurring transaction '{template.description}' ended on "
                f"{template.end_date.isoformat()}, deactivating"
            )

        self.recurrent_transactions.update(user_id, template.id, **updates)
