"""Budget analysis tools."""

from decimal import Decimal
from typing import Dict, List

from models.budget import BudgetSummary, CategoryBreakdown, MonthlyBudget
from models.transaction import Transaction


def summarize_budget(budget: MonthlyBudget) -> BudgetSummary:
    """Compute planned versus actual figures for a budget.

    Args:
        budget: Budget with its categories and transactions loaded.

    Returns:
        BudgetSummary with totals and a breakdown per category id. Spending
        per category only counts expense transactions.

    Example:
        A budget with total_income 3000, a "Housing" category budgeted at 1200
        and one 500 expense in it gives balance -500 (no income recorded yet),
        remaining 1800 and breakdown {"housing": budgeted 1200, spent 500,
        remaining 700}.
    """
    actual_income = Decimal("0")
    total_expenses = Decimal("0")
    spent_by_category: Dict[str, Decimal] = {}

    for transaction in budget.transactions:
        if transaction.type == "income":
            actual_income += transaction.amount
        elif transaction.type == "expense":
            total_expenses += transaction.amount
            spent_by_category[transaction.category_id] = (
                spent_by_category.get(transaction.category_id, Decimal("0"))
                + transaction.amount
            )

    total_budgeted = sum((c.budget_amount for c in budget.categories), Decimal("0"))

    breakdown = {}
    for category in budget.categories:
        spent = spent_by_category.get(category.id, Decimal("0"))
        breakdown[category.id] = CategoryBreakdown(
            category_name=category.name,
            color=category.color,
            budgeted=category.budget_amount,
            spent=spent,
            remaining=category.budget_amount - spent,
        )

    return BudgetSummary(
        total_income=budget.total_income,
        actual_income=actual_income,
        total_budgeted=total_budgeted,
        total_expenses=total_expenses,
        balance=actual_income - total_expenses,
        remaining=budget.total_income - total_budgeted,
        category_breakdown=breakdown,
    )


def spending_warnings(budget: MonthlyBudget, transaction: Transaction) -> List[str]:
    """Warn when a new expense would overspend its category or the month.

    Args:
        budget: Budget the transaction is about to be added to.
        transaction: The new transaction (not yet part of budget.transactions).

    Returns:
        List of warning messages, empty for income or when nothing is exceeded.
    """
    if transaction.type != "expense":
        return []

    warnings = []
    category = budget.find_category(transaction.category_id)
    if category is not None:
        spent = sum(
            (
                t.amount
                for t in budget.transactions
                if t.type == "expense" and t.category_id == category.id
            ),
            Decimal("0"),
        )
        new_total = spent + transaction.amount
        if new_total > category.budget_amount:
            excess = new_total - category.budget_amount
            warnings.append(
                f"This transaction exceeds the '{category.name}' budget by {excess:.2f}"
            )

    summary = summarize_budget(budget)
    total_expenses = summary.total_expenses + transaction.amount
    if summary.actual_income > 0 and total_expenses > summary.actual_income:
        warnings.append("This transaction makes expenses exceed actual income")

    return warnings
