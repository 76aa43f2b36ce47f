"""SQLite connection handling for Budgetly."""

import sqlite3
from contextlib import contextmanager
from config import Config, get_migrations_dir, get_seed_dir


class DatabaseManager:
    """Opens connections to the budget database and locates schema files.

    Services receive a DatabaseManager (or a test stand-in with the same
    connect() contract) and open one short-lived connection per operation.

    Args:
        config: Application configuration object.
    """

    def __init__(self, config: Config):
        self.config = config

    @contextmanager
    def connect(self):
        """Open a connection to the database file, creating its directory.

        Foreign keys are switched on for every connection; SQLite leaves
        them off by default.

        Yields:
            sqlite3.Connection: Database connection, closed on exit.
        """
        db_path = self.get_db_path()
        db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
        finally:
            conn.close()

    def get_db_path(self):
        return self.config.db_path

    def get_migrations_dir(self):
        return get_migrations_dir()

    def get_seed_dir(self):
        """Directory with the JSON seed data (default categories)."""
        return get_seed_dir()
