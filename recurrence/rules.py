"""Scheduling rules for recurring transactions.

Pure functions with no I/O. All month arithmetic used by the recurrence
package lives here. Scheduling only looks at the month and year of a
template's start date; the day of month is ignored.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from models.recurrence import RecurrentTransaction

MAX_INTERVAL_MONTHS = 120
MAX_END_DATE_YEARS = 10


def months_between(
    from_month: int, from_year: int, to_month: int, to_year: int
) -> int:
    """Number of calendar months from one month to another (negative if earlier)."""
    return 12 * (to_year - from_year) + (to_month - from_month)


def shift_month(month: int, year: int, delta: int) -> Tuple[int, int]:
    """Move a (month, year) pair by delta months, rolling the year over.

    Example:
        shift_month(1, 2024, -1) == (12, 2023)
    """
    index = year * 12 + (month - 1) + delta
    return index % 12 + 1, index // 12


def should_execute_in_month(
    template: RecurrentTransaction, target_month: int, target_year: int
) -> bool:
    """Check whether a template has an occurrence in the given month.

    The start month is always an occurrence and later ones fall exactly every
    interval months after it.

    Args:
        template: Template to check.
        target_month: Month (1-12).
        target_year: Year.

    Returns:
        True if the month is on or after the start month and a whole number
        of intervals away from it.
    """
    months_diff = months_between(
        template.start_date.month,
        template.start_date.year,
        target_month,
        target_year,
    )
    return months_diff >= 0 and months_diff % template.interval_value == 0


def filter_due_for_month(
    templates: Iterable[RecurrentTransaction],
    target_month: int,
    target_year: int,
    as_of: date,
) -> List[RecurrentTransaction]:
    """Select the templates that should produce a transaction in a month.

    Templates whose end date lies before as_of are dropped, the rest are
    checked with should_execute_in_month().
    """
    due = []
    for template in templates:
        if template.end_date is not None and as_of > template.end_date:
            continue
        if should_execute_in_month(template, target_month, target_year):
            due.append(template)
    return due


def compute_next_execution_date(from_date: date, interval_months: int) -> date:
    """Advance a date by a number of calendar months.

    Days past the end of the resulting month are clamped to its last day
    (Jan 31 + 1 month is Feb 28 or 29).
    """
    return from_date + relativedelta(months=interval_months)


def initial_next_execution_date(
    start_date: date, interval_months: int, today: Optional[date] = None
) -> date:
    """Seed the execution cursor of a new template.

    Returns:
        start_date if it is today or later, otherwise the first occurrence
        on or after today. Occurrences are counted from start_date so the
        day of month does not drift after a short month.
    """
    today = today or date.today()
    if start_date >= today:
        return start_date

    step = 1
    candidate = compute_next_execution_date(start_date, interval_months)
    while candidate < today:
        step += 1
        candidate = compute_next_execution_date(start_date, interval_months * step)
    return candidate


def generate_recurrence_dates(
    start_date: date,
    interval_months: int,
    count: int,
    end_date: Optional[date] = None,
) -> List[date]:
    """List up to count occurrences after start_date, stopping past end_date.

    start_date itself is not included.
    """
    dates = []
    for step in range(1, count + 1):
        occurrence = compute_next_execution_date(start_date, interval_months * step)
        if end_date is not None and occurrence > end_date:
            break
        dates.append(occurrence)
    return dates


def count_executions_between_dates(
    start_date: date, end_date: date, interval_months: int
) -> int:
    """Count the occurrences after start_date up to and including end_date."""
    if end_date <= start_date:
        return 0

    count = 0
    occurrence = compute_next_execution_date(start_date, interval_months)
    while occurrence <= end_date:
        count += 1
        occurrence = compute_next_execution_date(
            start_date, interval_months * (count + 1)
        )
    return count


def validate_recurrence_config(
    start_date: date,
    end_date: Optional[date],
    interval_months: int,
    today: Optional[date] = None,
) -> Optional[str]:
    """Check the scheduling fields of a template.

    Returns:
        An error message, or None if the configuration is valid.
    """
    if interval_months <= 0:
        return "Interval must be greater than zero"

    if interval_months > MAX_INTERVAL_MONTHS:
        return f"Interval cannot exceed {MAX_INTERVAL_MONTHS} months"

    if end_date is not None:
        if end_date <= start_date:
            return "End date must be after the start date"

        today = today or date.today()
        if end_date > today + relativedelta(years=MAX_END_DATE_YEARS):
            return f"End date cannot be more than {MAX_END_DATE_YEARS} years in the future"

    return None


@dataclass
class RecurrenceStatus:
    status: str  # 'active', 'paused', 'completed' or 'scheduled'
    description: str


def recurrence_status(
    template: RecurrentTransaction, today: Optional[date] = None
) -> RecurrenceStatus:
    """Describe where a template is in its lifecycle."""
    today = today or date.today()

    if not template.is_active:
        if template.end_date is not None and template.end_date < today:
            return RecurrenceStatus("completed", "Completed")
        return RecurrenceStatus("paused", "Paused")

    if template.end_date is not None and today > template.end_date:
        return RecurrenceStatus("completed", "Completed")

    if template.next_execution_date > today:
        return RecurrenceStatus(
            "scheduled",
            f"Next execution: {template.next_execution_date.isoformat()}",
        )

    return RecurrenceStatus("active", "Active - ready to run")
