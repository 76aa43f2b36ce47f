"""Recurring transaction scheduling and materialization."""

from recurrence.manager import RecurrenceManager
from recurrence.materialize import MaterializationEngine
from recurrence.processor import RecurrenceProcessor

__all__ = ["MaterializationEngine", "RecurrenceManager", "RecurrenceProcessor"]
