#!/usr/bin/env python3

import sys
import json
from datetime import date
from cli.arguments import amount_arg, date_arg, month_arg, resolve_user
from models.category import CATEGORY_TYPES
from models.recurrence import IntervalKind, RecurrenceInterval
from recurrence.manager import MAX_FUTURE_MONTHS
from recurrence.rules import recurrence_status
from logger import get_logger

logger = get_logger()


def _report(result, success_message):
    """Log the outcome of a recurrence operation, exiting on failure."""
    for warning in result.warnings:
        logger.warning(f"  ⚠ {warning}")
    if not result.success:
        logger.error(f"Error: {result.error}")
        sys.exit(1)
    logger.info(success_message)


def _resolve_category_id(services, user, category, start_date):
    """Find the category a new template is booked on.

    Accepts a category ID, or a category name looked up in the budget of the
    start month (or the most recent budget when that month has none).
    """
    budgets = services.budgets.find_all(user.id)
    for budget in budgets:
        if budget.find_category(category):
            return category

    budget = services.budgets.find_by_month(user.id, start_date.month, start_date.year)
    if budget is None and budgets:
        budget = budgets[-1]
    if budget is None:
        return None

    for candidate in budget.categories:
        if candidate.name.lower() == category.lower():
            return candidate.id
    return None


def _interval_from_args(args):
    if args.every is not None:
        return args.every
    return RecurrenceInterval.from_key(args.interval)


def cmd_list(args, services):
    """List recurring transactions."""
    user = resolve_user(args, services)

    if args.active:
        templates = services.recurrent_transactions.find_active(user.id)
    else:
        templates = services.recurrent_transactions.find_all(user.id)

    if not templates:
        logger.info("No recurring transactions found.")
        return

    logger.info("\nRecurring transactions:")
    logger.info("=" * 80)
    for template in templates:
        status = recurrence_status(template)
        end = template.end_date.isoformat() if template.end_date else "no end"
        logger.info(f"\n{template.description}  (ID: {template.id})")
        logger.info(
            f"  {template.type} {template.amount}, {template.interval.label.lower()}, "
            f"from {template.start_date.isoformat()} to {end}"
        )
        logger.info(f"  Status: {status.description}")
        if template.last_execution_date:
            logger.info(f"  Last run: {template.last_execution_date.isoformat()}")

    logger.info(f"\nTotal recurring transactions: {len(templates)}")


def cmd_create(args, services):
    """Create a recurring transaction."""
    user = resolve_user(args, services)
    start_date = args.start or date.today()

    category_id = _resolve_category_id(services, user, args.category, start_date)
    if not category_id:
        logger.error(f"Category '{args.category}' not found.")
        sys.exit(1)

    result = services.recurrence_manager.create(
        user.id,
        args.type,
        args.amount,
        args.description,
        category_id,
        start_date,
        _interval_from_args(args),
        end_date=args.end,
        create_future_months=args.future_months,
    )
    if result.success:
        template = result.value
        _report(
            result,
            f"✓ Recurring transaction created with ID: {template.id} "
            f"(next run {template.next_execution_date.isoformat()})",
        )
    else:
        _report(result, "")


def cmd_pause(args, services):
    user = resolve_user(args, services)
    result = services.recurrence_manager.pause(user.id, args.recurrence_id)
    _report(result, "✓ Recurring transaction paused.")


def cmd_resume(args, services):
    user = resolve_user(args, services)
    result = services.recurrence_manager.resume(user.id, args.recurrence_id)
    _report(result, "✓ Recurring transaction resumed.")


def cmd_delete(args, services):
    """Delete a recurring transaction."""
    user = resolve_user(args, services)
    result = services.recurrence_manager.delete(
        user.id, args.recurrence_id, delete_future_transactions=args.delete_future
    )
    _report(
        result,
        f"✓ Recurring transaction deleted ({result.value or 0} future transaction(s) removed).",
    )


def cmd_process(args, services):
    """Materialize the recurring transactions due in a month."""
    user = resolve_user(args, services)

    if args.month:
        month, year = args.month
        result = services.recurrence.process(
            user.id, target_month=month, target_year=year
        )
    else:
        result = services.recurrence.process(user.id, target_date=args.date)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        if not result.success:
            sys.exit(1)
        return

    if not result.success:
        logger.error(f"Error: {result.error}")
        sys.exit(1)

    logger.info("\nProcessing complete:")
    logger.info(f"  Transactions created: {result.transactions_created}")
    logger.info(f"  Budgets created:      {result.budgets_created}")
    logger.info(f"  Budgets updated:      {result.budgets_updated}")
    if result.warnings:
        logger.info(f"\nWarnings ({len(result.warnings)}):")
        for warning in result.warnings:
            logger.warning(f"  ⚠ {warning}")


def cmd_regenerate(args, services):
    """Create a deleted occurrence again."""
    user = resolve_user(args, services)
    month, year = args.month
    result = services.recurrence.regenerate_deleted_transaction(
        user.id, args.recurrence_id, month, year
    )
    if result.success:
        _report(result, f"✓ Transaction regenerated with ID: {result.value.id}")
    else:
        _report(result, "")


def cmd_status(args, services):
    """Show whether a recurring transaction ran in a month."""
    user = resolve_user(args, services)
    month, year = args.month
    status = services.recurrence.is_executed_in_month(
        user.id, args.recurrence_id, month, year
    )
    if status.executed:
        logger.info(
            f"Executed in {month}/{year}: transaction {status.transaction_id} "
            f"in budget {status.budget_id}"
        )
    else:
        logger.info(f"Not executed in {month}/{year}.")


def cmd_unexecute(args, services):
    """Remove the occurrence of a recurring transaction from a month."""
    user = resolve_user(args, services)
    month, year = args.month
    result = services.recurrence.unexecute(user.id, args.recurrence_id, month, year)
    _report(result, f"✓ Removed transaction {result.value} from {month}/{year}.")


def setup_parser(subparsers):
    """Setup recurring subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "recurring",
        help="Manage recurring transactions",
        description="Create recurring transactions and materialize them into monthly budgets",
    )

    recurring_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available recurring transaction commands",
        dest="subcommand",
        required=True,
    )

    # recurring list
    list_parser = recurring_subparsers.add_parser(
        "list", help="List recurring transactions"
    )
    list_parser.add_argument(
        "--active", action="store_true", help="Only show active recurring transactions"
    )
    list_parser.set_defaults(func=cmd_list)

    # recurring create
    create_parser = recurring_subparsers.add_parser(
        "create",
        help="Create a recurring transaction",
        epilog="""
Examples:
  # Monthly rent
  python -m cli recurring create expense 1200 "Rent" --category Housing --start 2025/10/01

  # Insurance every 4 months until the end of 2026
  python -m cli recurring create expense 300 "Insurance" --category Housing \\
      --every 4 --end 2026/12/31
        """,
    )
    create_parser.add_argument("type", choices=CATEGORY_TYPES)
    create_parser.add_argument("amount", type=amount_arg)
    create_parser.add_argument("description")
    create_parser.add_argument(
        "--category", required=True, help="Category ID or name"
    )
    create_parser.add_argument(
        "--start", type=date_arg, help="Start date in YYYY/MM/DD format (default: today)"
    )
    create_parser.add_argument(
        "--end", type=date_arg, help="End date in YYYY/MM/DD format"
    )
    interval_group = create_parser.add_mutually_exclusive_group()
    interval_group.add_argument(
        "--interval",
        choices=[k.value for k in IntervalKind if k != IntervalKind.CUSTOM],
        default=IntervalKind.MONTHLY.value,
        help="Preset interval (default: monthly)",
    )
    interval_group.add_argument(
        "--every", type=int, metavar="MONTHS", help="Custom interval in months"
    )
    create_parser.add_argument(
        "--future-months",
        type=int,
        default=0,
        help=f"Materialize the next N occurrences right away (0-{MAX_FUTURE_MONTHS})",
    )
    create_parser.set_defaults(func=cmd_create)

    # recurring pause / resume
    pause_parser = recurring_subparsers.add_parser(
        "pause", help="Stop processing a recurring transaction"
    )
    pause_parser.add_argument("recurrence_id", help="Recurring transaction ID")
    pause_parser.set_defaults(func=cmd_pause)

    resume_parser = recurring_subparsers.add_parser(
        "resume", help="Resume a paused recurring transaction"
    )
    resume_parser.add_argument("recurrence_id", help="Recurring transaction ID")
    resume_parser.set_defaults(func=cmd_resume)

    # recurring delete
    delete_parser = recurring_subparsers.add_parser(
        "delete", help="Delete a recurring transaction"
    )
    delete_parser.add_argument("recurrence_id", help="Recurring transaction ID")
    delete_parser.add_argument(
        "--delete-future",
        action="store_true",
        help="Also delete its transactions dated today or later",
    )
    delete_parser.set_defaults(func=cmd_delete)

    # recurring process
    process_parser = recurring_subparsers.add_parser(
        "process", help="Materialize the recurring transactions due in a month"
    )
    target_group = process_parser.add_mutually_exclusive_group()
    target_group.add_argument("--month", type=month_arg, help="Month in YYYY/MM format")
    target_group.add_argument(
        "--date", type=date_arg, help="Date in YYYY/MM/DD format (default: today)"
    )
    process_parser.add_argument(
        "--json", action="store_true", help="Print the result as JSON"
    )
    process_parser.set_defaults(func=cmd_process)

    # recurring regenerate / status / unexecute
    for name, help_text, func in (
        ("regenerate", "Create a deleted occurrence again", cmd_regenerate),
        ("status", "Show whether it ran in a month", cmd_status),
        ("unexecute", "Remove its occurrence from a month", cmd_unexecute),
    ):
        month_parser = recurring_subparsers.add_parser(name, help=help_text)
        month_parser.add_argument("recurrence_id", help="Recurring transaction ID")
        month_parser.add_argument("month", type=month_arg, help="Month in YYYY/MM format")
        month_parser.set_defaults(func=func)
