"""Base services container for dependency injection."""

from config import Config
from db.manager import DatabaseManager


class Services:
    """Container for all application services.

    This class provides a centralized way to access all services and makes
    it easy to inject mock services for testing. The recurrence components
    are built on top of the data services and share them.

    Args:
        config: Application configuration object.
        db_manager: Optional database manager for testing. If provided, config is ignored.
    """

    def __init__(self, config: Config, db_manager=None):
        """Initialize services with configuration.

        Args:
            config: Config object containing application configuration.
            db_manager: Optional database manager for dependency injection (testing).
                       If None, creates DatabaseManager from config.
        """
        self.config = config
        self.db_manager = db_manager or DatabaseManager(config)

        # Lazy import to avoid circular dependencies
        from services.users import UserService
        from services.budgets import BudgetService
        from services.recurrent_transactions import RecurrentTransactionService
        from recurrence import (
            MaterializationEngine,
            RecurrenceManager,
            RecurrenceProcessor,
        )

        self.users = UserService(self.db_manager)
        self.budgets = BudgetService(self.db_manager)
        self.recurrent_transactions = RecurrentTransactionService(self.db_manager)

        self.materializer = MaterializationEngine(
            self.budgets, search_months=config.template_search_months
        )
        self.recurrence = RecurrenceProcessor(
            self.budgets, self.recurrent_transactions, self.materializer
        )
        self.recurrence_manager = RecurrenceManager(
            self.budgets, self.recurrent_transactions, self.materializer
        )
