#!/usr/bin/env python3
"""
Budgetly CLI - Command-line interface for monthly budgets and recurring transactions.

Usage:
    python -m cli [--user EMAIL] <command> <subcommand> [options]

Commands:
    users        Manage users
    budgets      Manage monthly budgets and their transactions
    recurring    Manage and process recurring transactions
    migrate      Database migrations

Examples:
    python -m cli users create me@example.com --name "Me"
    python -m cli --user me@example.com budgets create 2025/10 --income 3000
    python -m cli --user me@example.com recurring process --month 2025/11
    python -m cli migrate apply
"""

import sys
import argparse
from cli import budgets, migrate, recurring, users
from config import load_config
from services.base import Services
from db.manager import DatabaseManager
from logger import setup_logging


def main():
    """Main CLI entry point with subcommands."""
    parser = argparse.ArgumentParser(
        prog="cli",
        description="Budgetly - Personal monthly budgeting",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--user",
        metavar="EMAIL",
        help="Email of the user to act as (default: [user] default_email in config)",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
    )

    users.setup_parser(subparsers)
    budgets.setup_parser(subparsers)
    recurring.setup_parser(subparsers)
    migrate.setup_parser(subparsers)

    args = parser.parse_args()

    if hasattr(args, "func"):
        try:
            config = load_config()
            setup_logging(config)

            # migrate works on the raw database, everything else on services
            if args.command == "migrate":
                args.func(args, DatabaseManager(config))
            else:
                args.func(args, Services(config))
        except Exception as e:
            print(f"Error: {e}")
            sys.exit(1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
