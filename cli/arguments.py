"""Argument types and user lookup shared by the CLI commands."""

import argparse
import sys
from datetime import date
from decimal import Decimal, InvalidOperation
from logger import get_logger

logger = get_logger()


def month_arg(value):
    """Parse a month in YYYY/MM format into a (month, year) tuple."""
    try:
        year, month = value.split("/")
        year, month = int(year), int(month)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"invalid month '{value}', use YYYY/MM (e.g., 2025/10)"
        )
    if not 1 <= month <= 12:
        raise argparse.ArgumentTypeError("month must be between 1 and 12")
    return month, year


def date_arg(value):
    """Parse a date in YYYY/MM/DD format."""
    try:
        year, month, day = value.split("/")
        return date(int(year), int(month), int(day))
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"invalid date '{value}', use YYYY/MM/DD (e.g., 2025/10/01)"
        )


def amount_arg(value):
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid amount '{value}'")


def resolve_user(args, services):
    """Find the user the command runs as.

    Uses --user, falling back to [user] default_email in the config file.
    Exits if no user can be found.
    """
    email = getattr(args, "user", None) or services.config.default_user_email
    if not email:
        logger.error(
            "No user given. Pass --user EMAIL or set [user] default_email "
            "in ~/.config/budgetly.toml"
        )
        sys.exit(1)

    user = services.users.find_by_email(email)
    if not user:
        logger.error(f"User '{email}' not found.")
        logger.info("Use 'python -m cli users create' to register it.")
        sys.exit(1)
    return user
