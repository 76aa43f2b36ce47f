"""Turning a recurring template into a concrete transaction for one month."""

from datetime import date, datetime
from typing import Optional

from config import DEFAULT_TEMPLATE_SEARCH_MONTHS
from logger import get_logger
from models.budget import MonthlyBudget
from models.category import Category
from models.recurrence import MaterializationResult, RecurrentTransaction
from models.transaction import Transaction
from recurrence.rules import months_between, shift_month
from recurrence.templates import create_budget_from_template, resolve_template_budget

logger = get_logger()


class MaterializationEngine:
    """Creates the transaction of one template in one month's budget.

    Materializing is idempotent per (template, month): a budget never gets a
    second transaction tagged with the same recurrence id. The engine never
    modifies the template and never raises; every failure is reported as a
    warning on the returned result.

    Args:
        budgets: BudgetService used to read and create budgets and transactions.
        search_months: How far back to look for a budget to copy when the
            target month has none.
    """

    def __init__(self, budgets, search_months: int = DEFAULT_TEMPLATE_SEARCH_MONTHS):
        self.budgets = budgets
        self.search_months = search_months

    def materialize(
        self, user_id: int, template: RecurrentTransaction, target_date: date
    ) -> MaterializationResult:
        """Create the transaction of a template in the budget of target_date's month.

        Steps:
            1. Find the month's budget, or create it (and any missing months
               before it) from the closest earlier budget.
            2. Find the template's category in that budget, by id or else by
               name and type of the original category.
            3. Skip if the budget already holds an occurrence of the template.
            4. Add the transaction, dated target_date.

        Args:
            user_id: Owner of the template and budgets.
            template: Template to materialize.
            target_date: Date of the new transaction.

        Returns:
            MaterializationResult with counts and warnings.
        """
        result = MaterializationResult()
        if isinstance(target_date, datetime):
            target_date = target_date.date()
        try:
            self._materialize(user_id, template, target_date, result)
        except Exception as e:
            logger.error(
                f"Unexpected error materializing '{template.description}' "
                f"for {target_date.month}/{target_date.year}: {e}"
            )
            result.warnings.append(
                f"Error processing recurring transaction '{template.description}' "
                f"in {target_date.month}/{target_date.year}: {e}"
            )
        return result

    def _materialize(
        self,
        user_id: int,
        template: RecurrentTransaction,
        target_date: date,
        result: MaterializationResult,
    ) -> None:
        month, year = target_date.month, target_date.year
        period = f"{month}/{year}"

        budget = self.budgets.find_by_month(user_id, month, year)
        if budget is not None:
            result.budgets_updated += 1
        else:
            source = resolve_template_budget(
                self.budgets, user_id, month, year, self.search_months
            )
            if source is None:
                result.warnings.append(
                    f"No template budget found to create the budget for {period}"
                )
                return

            try:
                budget = self._create_missing_budgets(user_id, source, month, year, result)
            except Exception as e:
                logger.error(f"Could not create budget for {period}: {e}")
                result.warnings.append(f"Could not create budget for {period}: {e}")
                return

        category = self._resolve_category(user_id, budget, template)
        if category is None:
            result.warnings.append(
                f"Could not find the category for '{template.description}' in {period}"
            )
            return

        if self._already_materialized(budget, template):
            logger.info(f"'{template.description}' already materialized in {period}")
            result.warnings.append(
                f"A recurring transaction for '{template.description}' already exists in {period}"
            )
            return

        transaction = Transaction.new(
            budget_id=budget.id,
            type=template.type,
            amount=template.amount,
            description=template.description,
            category_id=category.id,
            transaction_date=target_date,
            is_recurrent=True,
            recurrence_id=template.id,
        )

        try:
            created = self.budgets.add_transaction(user_id, budget.id, transaction)
        except Exception as e:
            logger.error(
                f"Could not create transaction for '{template.description}' in {period}: {e}"
            )
            result.warnings.append(
                f"Could not create the transaction for '{template.description}' in {period}: {e}"
            )
            return

        if created is None:
            result.warnings.append(
                f"Could not create the transaction for '{template.description}' in {period}: budget not found"
            )
            return

        result.transactions_created += 1
        result.transaction = created
        logger.info(
            f"Created recurring transaction '{template.description}' "
            f"({template.type} {template.amount}) in {period}"
        )

    def _create_missing_budgets(
        self,
        user_id: int,
        source: MonthlyBudget,
        month: int,
        year: int,
        result: MaterializationResult,
    ) -> MonthlyBudget:
        """Create every budget after source up to and including (month, year).

        Each new month is cloned from the one before it.
        """
        gap = months_between(source.month, source.year, month, year)
        budget = source
        for offset in range(gap - 1, -1, -1):
            budget_month, budget_year = shift_month(month, year, -offset)
            budget = create_budget_from_template(
                self.budgets, user_id, budget, budget_month, budget_year
            )
            result.budgets_created += 1
        return budget

    def _resolve_category(
        self, user_id: int, budget: MonthlyBudget, template: RecurrentTransaction
    ) -> Optional[Category]:
        category = budget.find_category(template.category_id)
        if category is not None:
            return category

        # Budgets cloned from a template get new category ids, so match on the
        # name and type of the category the template was created with.
        original = self._find_original_category(user_id, template.category_id)
        if original is None:
            return None
        return budget.find_matching_category(original)

    def _find_original_category(
        self, user_id: int, category_id: str
    ) -> Optional[Category]:
        for budget in self.budgets.find_all(user_id):
            category = budget.find_category(category_id)
            if category is not None:
                return category
        return None

    def _already_materialized(
        self, budget: MonthlyBudget, template: RecurrentTransaction
    ) -> bool:
        return any(
            t.is_recurrent and t.recurrence_id == template.id
            for t in budget.transactions
        )
