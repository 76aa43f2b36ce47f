#!/usr/bin/env python3

import sys
import json
from datetime import date
from decimal import Decimal, InvalidOperation
from cli.arguments import amount_arg, date_arg, month_arg, resolve_user
from models.category import CATEGORY_TYPES, Category
from models.transaction import Transaction
from recurrence.templates import create_from_previous_month, default_budget_name
from tools.budgets import spending_warnings
from logger import get_logger

logger = get_logger()


def _find_budget_or_exit(services, user, month, year):
    budget = services.budgets.find_by_month(user.id, month, year)
    if not budget:
        logger.error(f"No budget found for {month}/{year}.")
        sys.exit(1)
    return budget


def _load_seed_categories(db_manager):
    """Load the default categories from db/seed/categories.json."""
    seed_file = db_manager.get_seed_dir() / "categories.json"
    with open(seed_file, "r") as f:
        categories_data = json.load(f)

    return [
        Category(
            id="",
            name=data["name"],
            description=data.get("description"),
            color=data.get("color", "#6B7280"),
            icon=data.get("icon", "Tag"),
            budget_amount=Decimal("0"),
            type=data["type"],
        )
        for data in categories_data
    ]


def _parse_category_spec(spec):
    """Parse NAME:TYPE:AMOUNT into a Category."""
    try:
        name, category_type, amount = spec.rsplit(":", 2)
        category = Category(
            id="",
            name=name.strip(),
            color="#6B7280",
            icon="Tag",
            budget_amount=Decimal(amount),
            type=category_type.strip().lower(),
        )
    except (ValueError, InvalidOperation):
        raise ValueError(f"Invalid category '{spec}', use NAME:TYPE:AMOUNT")
    if category.type not in CATEGORY_TYPES:
        raise ValueError(f"Invalid category type in '{spec}', use income or expense")
    return category


def cmd_list(args, services):
    """List all budgets of the user."""
    user = resolve_user(args, services)
    budgets = services.budgets.find_all(user.id)

    if not budgets:
        logger.info("No budgets found.")
        return

    logger.info("\nBudgets:")
    logger.info("=" * 80)
    for budget in budgets:
        template_marker = " [template]" if budget.is_template else ""
        logger.info(
            f"{budget.year}/{budget.month:02d}  {budget.name}{template_marker}  "
            f"income: {budget.total_income}  "
            f"categories: {len(budget.categories)}  "
            f"transactions: {len(budget.transactions)}"
        )

    logger.info(f"\nTotal budgets: {len(budgets)}")


def cmd_show(args, services):
    """Show the categories and transactions of a budget."""
    user = resolve_user(args, services)
    month, year = args.month
    budget = _find_budget_or_exit(services, user, month, year)

    if args.json:
        print(
            json.dumps(
                {
                    "id": budget.id,
                    "name": budget.name,
                    "month": budget.month,
                    "year": budget.year,
                    "total_income": str(budget.total_income),
                    "transactions": [t.to_dict() for t in budget.transactions],
                },
                indent=2,
            )
        )
        return

    logger.info(f"\n{budget.name} ({budget.period})")
    logger.info("=" * 80)
    logger.info(f"Total income: {budget.total_income}")

    logger.info("\nCategories:")
    for category in budget.categories:
        logger.info(
            f"  [{category.type}] {category.name}: {category.budget_amount}  (ID: {category.id})"
        )

    logger.info("\nTransactions:")
    if not budget.transactions:
        logger.info("  (none)")
    category_names = {c.id: c.name for c in budget.categories}
    for transaction in budget.transactions:
        recurrent_marker = " (recurring)" if transaction.is_recurrent else ""
        logger.info(
            f"  {transaction.transaction_date.isoformat()}  {transaction.type:<7}  "
            f"{transaction.amount:>10}  {transaction.description}  "
            f"[{category_names.get(transaction.category_id, 'Unknown')}]{recurrent_marker}"
        )


def cmd_create(args, services):
    """Create a budget for a month."""
    user = resolve_user(args, services)
    month, year = args.month

    if args.income <= 0:
        logger.error("Total income must be greater than zero.")
        sys.exit(1)

    try:
        if args.category:
            categories = [_parse_category_spec(spec) for spec in args.category]
        else:
            categories = _load_seed_categories(services.db_manager)
    except (ValueError, OSError) as e:
        logger.error(str(e))
        sys.exit(1)

    budgeted_expenses = sum(
        (c.budget_amount for c in categories if c.type == "expense"), Decimal("0")
    )
    if budgeted_expenses > args.income:
        logger.error("Budgeted expenses cannot exceed the total income.")
        sys.exit(1)

    if services.budgets.find_by_month(user.id, month, year):
        logger.error(f"A budget for {month}/{year} already exists.")
        sys.exit(1)

    try:
        budget = services.budgets.create(
            user.id,
            args.name or default_budget_name(month, year),
            month,
            year,
            args.income,
            categories,
            is_template=args.template,
        )
    except Exception as e:
        logger.error(f"Error creating budget: {e}")
        sys.exit(1)

    logger.info(f"✓ Budget created successfully with ID: {budget.id}")
    logger.info(f"  Categories: {len(budget.categories)}")


def cmd_create_from_previous(args, services):
    """Create a month's budget by copying the previous month."""
    user = resolve_user(args, services)
    month, year = args.month

    try:
        budget = create_from_previous_month(services.budgets, user.id, month, year)
    except Exception as e:
        logger.error(f"Error creating budget: {e}")
        sys.exit(1)

    if not budget:
        logger.error("The previous month has no budget to copy.")
        sys.exit(1)

    logger.info(f"✓ Budget {budget.period} created from the previous month (ID: {budget.id})")


def cmd_summary(args, services):
    """Show planned versus actual figures of a budget."""
    user = resolve_user(args, services)
    month, year = args.month
    budget = _find_budget_or_exit(services, user, month, year)
    summary = services.budgets.get_summary(user.id, budget.id)

    logger.info(f"\nSummary for {budget.name} ({budget.period})")
    logger.info("=" * 80)
    logger.info(f"Planned income:  {summary.total_income}")
    logger.info(f"Actual income:   {summary.actual_income}")
    logger.info(f"Budgeted:        {summary.total_budgeted}")
    logger.info(f"Expenses:        {summary.total_expenses}")
    logger.info(f"Balance:         {summary.balance}")
    logger.info(f"Unallocated:     {summary.remaining}")

    logger.info("\nBy category:")
    for breakdown in summary.category_breakdown.values():
        logger.info(
            f"  {breakdown.category_name:<20} budgeted {breakdown.budgeted:>10}  "
            f"spent {breakdown.spent:>10}  remaining {breakdown.remaining:>10}"
        )


def cmd_delete(args, services):
    """Delete a budget with its categories and transactions."""
    user = resolve_user(args, services)
    month, year = args.month
    budget = _find_budget_or_exit(services, user, month, year)

    if not args.yes:
        confirm = (
            input(
                f"\nDelete {budget.name} and its {len(budget.transactions)} transaction(s)? (yes/no): "
            )
            .strip()
            .lower()
        )
        if confirm != "yes":
            logger.info("Deletion cancelled.")
            return

    if services.budgets.delete(user.id, budget.id):
        logger.info(f"✓ Budget {budget.period} deleted successfully.")
    else:
        logger.error("Failed to delete budget.")
        sys.exit(1)


def cmd_add_transaction(args, services):
    """Add a transaction to a month's budget."""
    user = resolve_user(args, services)
    month, year = args.month
    budget = _find_budget_or_exit(services, user, month, year)

    category = budget.find_category(args.category) or next(
        (c for c in budget.categories if c.name.lower() == args.category.lower()),
        None,
    )
    if not category:
        logger.error(f"Category '{args.category}' not found in {budget.period}.")
        sys.exit(1)

    if not args.description.strip():
        logger.error("Description cannot be empty.")
        sys.exit(1)

    transaction = Transaction.new(
        budget_id=budget.id,
        type=args.type,
        amount=args.amount,
        description=args.description.strip(),
        category_id=category.id,
        transaction_date=args.date or date(year, month, 1),
    )

    for warning in spending_warnings(budget, transaction):
        logger.warning(warning)

    try:
        services.budgets.add_transaction(user.id, budget.id, transaction)
    except Exception as e:
        logger.error(f"Error adding transaction: {e}")
        sys.exit(1)

    logger.info(f"✓ Transaction added with ID: {transaction.id}")


def cmd_delete_transaction(args, services):
    """Delete a transaction from a month's budget."""
    user = resolve_user(args, services)
    month, year = args.month
    budget = _find_budget_or_exit(services, user, month, year)

    if services.budgets.delete_transaction(user.id, budget.id, args.transaction_id):
        logger.info("✓ Transaction deleted successfully.")
    else:
        logger.error(f"Transaction {args.transaction_id} not found in {budget.period}.")
        sys.exit(1)


def setup_parser(subparsers):
    """Setup budgets subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "budgets",
        help="Manage monthly budgets",
        description="Create, inspect and delete monthly budgets and their transactions",
    )

    budgets_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available budget commands",
        dest="subcommand",
        required=True,
    )

    # budgets list
    list_parser = budgets_subparsers.add_parser("list", help="List all budgets")
    list_parser.set_defaults(func=cmd_list)

    # budgets show
    show_parser = budgets_subparsers.add_parser(
        "show", help="Show categories and transactions of a month"
    )
    show_parser.add_argument("month", type=month_arg, help="Month in YYYY/MM format")
    show_parser.add_argument(
        "--json", action="store_true", help="Print the budget as JSON"
    )
    show_parser.set_defaults(func=cmd_show)

    # budgets create
    create_parser = budgets_subparsers.add_parser(
        "create",
        help="Create a budget for a month",
        epilog="""
Examples:
  # Budget with the default categories
  python -m cli budgets create 2025/10 --income 3000

  # Budget with explicit categories
  python -m cli budgets create 2025/10 --income 3000 \\
      --category Salary:income:3000 --category Rent:expense:1200
        """,
    )
    create_parser.add_argument("month", type=month_arg, help="Month in YYYY/MM format")
    create_parser.add_argument(
        "--income", type=amount_arg, required=True, help="Planned total income"
    )
    create_parser.add_argument("--name", help="Budget name")
    create_parser.add_argument(
        "--category",
        action="append",
        help="Category as NAME:TYPE:AMOUNT (repeatable). Defaults to the seed categories",
    )
    create_parser.add_argument(
        "--template", action="store_true", help="Mark the budget as a template"
    )
    create_parser.set_defaults(func=cmd_create)

    # budgets create-from-previous
    previous_parser = budgets_subparsers.add_parser(
        "create-from-previous",
        help="Create a month's budget by copying the previous month",
    )
    previous_parser.add_argument("month", type=month_arg, help="Month in YYYY/MM format")
    previous_parser.set_defaults(func=cmd_create_from_previous)

    # budgets summary
    summary_parser = budgets_subparsers.add_parser(
        "summary", help="Show planned versus actual figures"
    )
    summary_parser.add_argument("month", type=month_arg, help="Month in YYYY/MM format")
    summary_parser.set_defaults(func=cmd_summary)

    # budgets delete
    delete_parser = budgets_subparsers.add_parser("delete", help="Delete a budget")
    delete_parser.add_argument("month", type=month_arg, help="Month in YYYY/MM format")
    delete_parser.add_argument(
        "--yes", action="store_true", help="Do not ask for confirmation"
    )
    delete_parser.set_defaults(func=cmd_delete)

    # budgets add-transaction
    add_parser = budgets_subparsers.add_parser(
        "add-transaction", help="Add a transaction to a month's budget"
    )
    add_parser.add_argument("month", type=month_arg, help="Month in YYYY/MM format")
    add_parser.add_argument("--type", choices=CATEGORY_TYPES, required=True)
    add_parser.add_argument("--amount", type=amount_arg, required=True)
    add_parser.add_argument("--description", required=True)
    add_parser.add_argument(
        "--category", required=True, help="Category ID or name in that budget"
    )
    add_parser.add_argument(
        "--date", type=date_arg, help="Date in YYYY/MM/DD format (default: first of the month)"
    )
    add_parser.set_defaults(func=cmd_add_transaction)

    # budgets delete-transaction
    delete_txn_parser = budgets_subparsers.add_parser(
        "delete-transaction", help="Delete a transaction from a month's budget"
    )
    delete_txn_parser.add_argument("month", type=month_arg, help="Month in YYYY/MM format")
    delete_txn_parser.add_argument("transaction_id", help="Transaction ID")
    delete_txn_parser.set_defaults(func=cmd_delete_transaction)
