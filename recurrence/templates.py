"""Finding and cloning budgets to start a new month from."""

from dataclasses import replace
from typing import Optional

from config import DEFAULT_TEMPLATE_SEARCH_MONTHS
from logger import get_logger
from models.budget import MonthlyBudget
from models.ids import generate_id
from recurrence.rules import shift_month

logger = get_logger()


def default_budget_name(month: int, year: int) -> str:
    return f"Budget {month}/{year}"


def resolve_template_budget(
    budgets,
    user_id: int,
    target_month: int,
    target_year: int,
    search_months: int = DEFAULT_TEMPLATE_SEARCH_MONTHS,
) -> Optional[MonthlyBudget]:
    """Find the closest earlier budget to use as a template for a month.

    Checks the previous month first, then walks back one month at a time
    until search_months months before the target. Budgets older than that
    are never used.

    Args:
        budgets: BudgetService used for lookups.
        user_id: Owner of the budgets.
        target_month: Month (1-12) that needs a budget.
        target_year: Year that needs a budget.
        search_months: How many months back to look.

    Returns:
        The most recent budget within the window, or None.
    """
    for offset in range(1, search_months + 1):
        month, year = shift_month(target_month, target_year, -offset)
        budget = budgets.find_by_month(user_id, month, year)
        if budget is not None:
            return budget
    return None


def create_budget_from_template(
    budgets,
    user_id: int,
    template: MonthlyBudget,
    month: int,
    year: int,
    name: Optional[str] = None,
) -> MonthlyBudget:
    """Create a budget for a month by copying another budget's structure.

    Every category is cloned with a freshly generated id; names, types,
    colors, icons and budget amounts are kept. total_income is copied.
    Transactions are not copied.

    Raises:
        sqlite3.IntegrityError: If the month already has a budget.
    """
    categories = [replace(category, id=generate_id()) for category in template.categories]
    budget = budgets.create(
        user_id,
        name or default_budget_name(month, year),
        month,
        year,
        template.total_income,
        categories,
    )
    logger.info(
        f"Created budget {budget.period} from template {template.period} "
        f"({len(categories)} categories)"
    )
    return budget


def create_from_previous_month(
    budgets, user_id: int, month: int, year: int
) -> Optional[MonthlyBudget]:
    """Create a month's budget from the budget of the month right before it.

    Returns:
        The new budget, or None if the previous month has no budget.

    Raises:
        ValueError: If the month already has a budget.
    """
    if budgets.find_by_month(user_id, month, year) is not None:
        raise ValueError(f"A budget for {month}/{year} already exists")

    previous_month, previous_year = shift_month(month, year, -1)
    previous = budgets.find_by_month(user_id, previous_month, previous_year)
    if previous is None:
        return None

    return create_budget_from_template(budgets, user_id, previous, month, year)
