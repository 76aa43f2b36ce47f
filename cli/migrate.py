#!/usr/bin/env python3
"""Schema migrations for the Budgetly database.

Each file in db/migrations is applied once, in file name order, and recorded
in the schema_migrations table. The first comment line of a file describes
what it adds to the schema and is shown by `migrate status`.
"""

from logger import get_logger

logger = get_logger()

_MIGRATIONS_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS schema_migrations (
        migration_file TEXT PRIMARY KEY,
        applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""


def ensure_migrations_table(conn):
    conn.execute(_MIGRATIONS_TABLE_SQL)
    conn.commit()


def get_applied_migrations(conn):
    """Map each applied migration file to the time it was applied."""
    cursor = conn.execute(
        "SELECT migration_file, applied_at FROM schema_migrations ORDER BY migration_file"
    )
    return {row[0]: row[1] for row in cursor.fetchall()}


def get_available_migrations(db_manager):
    """Migration file names shipped with Budgetly, in apply order."""
    migrations_dir = db_manager.get_migrations_dir()
    if not migrations_dir.exists():
        return []
    return sorted(path.name for path in migrations_dir.glob("*.sql"))


def get_pending_migrations(conn, db_manager):
    applied = get_applied_migrations(conn)
    return [m for m in get_available_migrations(db_manager) if m not in applied]


def describe_migration(db_manager, migration_file):
    """First comment line of a migration file, or '' when it has none."""
    path = db_manager.get_migrations_dir() / migration_file
    with open(path, "r") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            if line.startswith("--"):
                return line.lstrip("-").strip()
            return ""
    return ""


def apply_migration(conn, db_manager, migration_file):
    """Run one migration script and record it. Rolls back and re-raises on error."""
    path = db_manager.get_migrations_dir() / migration_file
    with open(path, "r") as f:
        script = f.read()

    try:
        conn.executescript(script)
        conn.execute(
            "INSERT INTO schema_migrations (migration_file) VALUES (?)",
            (migration_file,),
        )
        conn.commit()
    except Exception as e:
        conn.rollback()
        logger.error(f"Migration {migration_file} failed: {e}")
        raise

    logger.info(f"✓ {migration_file}")


def apply_pending(db_manager):
    """Bring the budget database up to date.

    Returns:
        List of the migration files applied by this call.
    """
    with db_manager.connect() as conn:
        ensure_migrations_table(conn)
        pending = get_pending_migrations(conn, db_manager)

        if pending:
            logger.info(f"Updating the budget database ({len(pending)} migration(s))...")
        for migration_file in pending:
            apply_migration(conn, db_manager, migration_file)

    return pending


def cmd_status(args, db_manager):
    """Show which schema migrations the budget database has."""
    db_path = db_manager.get_db_path()
    if not db_path.exists():
        logger.info(f"No budget database at {db_path}.")
        logger.info("Run 'python -m cli migrate apply' to create it.")
        return

    available = get_available_migrations(db_manager)
    if not available:
        logger.info("No migrations found.")
        return

    with db_manager.connect() as conn:
        ensure_migrations_table(conn)
        applied = get_applied_migrations(conn)

    logger.info(f"\nBudget database: {db_path}")
    logger.info("=" * 80)
    for migration_file in available:
        state = f"applied {applied[migration_file]}" if migration_file in applied else "pending"
        logger.info(f"{migration_file:<36} {state}")
        description = describe_migration(db_manager, migration_file)
        if description:
            logger.info(f"  {description}")

    pending = [m for m in available if m not in applied]
    logger.info(f"\nApplied: {len(available) - len(pending)}/{len(available)}")
    if pending:
        logger.info("Run 'python -m cli migrate apply' to apply the pending migrations.")


def cmd_apply(args, db_manager):
    """Apply pending migrations, or list them with --dry-run."""
    if args.dry_run:
        with db_manager.connect() as conn:
            ensure_migrations_table(conn)
            pending = get_pending_migrations(conn, db_manager)
        if not pending:
            logger.info("The budget database is up to date.")
        for migration_file in pending:
            logger.info(f"Would apply {migration_file}")
        return

    applied = apply_pending(db_manager)
    if not applied:
        logger.info("The budget database is up to date.")
        return
    logger.info(f"✓ Applied {len(applied)} migration(s).")


def setup_parser(subparsers):
    """Setup migrate subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "migrate",
        help="Create or update the budget database",
        description="Apply the Budgetly schema migrations to the budget database",
    )

    migrate_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available migration commands",
        dest="subcommand",
        required=True,
    )

    status_parser = migrate_subparsers.add_parser(
        "status", help="Show applied and pending migrations"
    )
    status_parser.set_defaults(func=cmd_status)

    apply_parser = migrate_subparsers.add_parser(
        "apply", help="Apply pending migrations"
    )
    apply_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List the pending migrations without applying them",
    )
    apply_parser.set_defaults(func=cmd_apply)
