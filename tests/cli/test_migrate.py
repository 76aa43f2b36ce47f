import argparse
import logging

from cli.migrate import (
    apply_pending,
    cmd_apply,
    cmd_status,
    describe_migration,
    get_applied_migrations,
    get_available_migrations,
    get_pending_migrations,
)
from db.manager import DatabaseManager
from logger import LOGGER_NAME


class TestMigrations:
    """Tests for applying migrations to a database file."""

    def test_apply_pending_creates_schema(self, test_config):
        db_manager = DatabaseManager(test_config)

        applied = apply_pending(db_manager)

        assert applied == get_available_migrations(db_manager)
        assert test_config.db_path.exists()
        with db_manager.connect() as conn:
            tables = {
                row[0]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
            }
            assert set(get_applied_migrations(conn)) == set(applied)
            assert get_pending_migrations(conn, db_manager) == []
        assert {"users", "monthly_budgets", "categories", "transactions", "recurrent_transactions"} <= tables

    def test_apply_pending_twice(self, test_config):
        db_manager = DatabaseManager(test_config)
        apply_pending(db_manager)

        assert apply_pending(db_manager) == []

    def test_foreign_keys_enabled(self, test_config):
        db_manager = DatabaseManager(test_config)

        with db_manager.connect() as conn:
            assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1

    def test_describe_migration(self, test_config):
        db_manager = DatabaseManager(test_config)

        description = describe_migration(db_manager, "001_initial_schema.sql")

        assert description == "Users, monthly budgets with their categories and transactions."

    def test_describe_migration_without_comment(self, test_config, tmp_path):
        migrations_dir = tmp_path / "migrations"
        migrations_dir.mkdir()
        (migrations_dir / "001_plain.sql").write_text("CREATE TABLE t (id INTEGER);\n")
        db_manager = DatabaseManager(test_config)
        db_manager.get_migrations_dir = lambda: migrations_dir

        assert describe_migration(db_manager, "001_plain.sql") == ""


class TestMigrateCommands:
    """Tests for the migrate CLI commands."""

    def test_apply_dry_run_leaves_database_empty(self, test_config, caplog):
        db_manager = DatabaseManager(test_config)

        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            cmd_apply(argparse.Namespace(dry_run=True), db_manager)

        assert "Would apply 001_initial_schema.sql" in caplog.text
        with db_manager.connect() as conn:
            assert get_applied_migrations(conn) == {}

    def test_apply(self, test_config, caplog):
        db_manager = DatabaseManager(test_config)

        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            cmd_apply(argparse.Namespace(dry_run=False), db_manager)
            cmd_apply(argparse.Namespace(dry_run=False), db_manager)

        assert f"Applied {len(get_available_migrations(db_manager))} migration(s)" in caplog.text
        assert "The budget database is up to date." in caplog.text

    def test_status_without_database(self, test_config, caplog):
        db_manager = DatabaseManager(test_config)

        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            cmd_status(argparse.Namespace(), db_manager)

        assert "No budget database" in caplog.text
        assert not test_config.db_path.exists()

    def test_status_lists_pending(self, test_config, caplog):
        db_manager = DatabaseManager(test_config)
        with db_manager.connect():
            pass

        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            cmd_status(argparse.Namespace(), db_manager)

        assert "pending" in caplog.text
        assert "Applied: 0/" in caplog.text
