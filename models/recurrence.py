"""Recurring transaction templates, intervals and processing results."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional

from models.transaction import Transaction


class IntervalKind(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMI_ANNUAL = "semi-annual"
    ANNUAL = "annual"
    CUSTOM = "custom"


_PRESET_MONTHS = {
    IntervalKind.MONTHLY: 1,
    IntervalKind.QUARTERLY: 3,
    IntervalKind.SEMI_ANNUAL: 6,
    IntervalKind.ANNUAL: 12,
}

_PRESET_LABELS = {
    IntervalKind.MONTHLY: "Monthly",
    IntervalKind.QUARTERLY: "Quarterly",
    IntervalKind.SEMI_ANNUAL: "Semi-annual",
    IntervalKind.ANNUAL: "Annual",
}

_CUSTOM_LABELS = {
    1: "Monthly",
    2: "Bimonthly",
    3: "Quarterly",
    4: "Every 4 months",
    6: "Semi-annual",
    12: "Annual",
    24: "Biennial",
}


@dataclass(frozen=True)
class RecurrenceInterval:
    """How often a recurring transaction repeats, in calendar months.

    Either one of the four named presets or a custom month count. Build
    instances through preset(), custom() or from_key(); the constructor
    rejects a preset kind paired with the wrong month count.
    """

    kind: IntervalKind
    months: int
    label: str

    def __post_init__(self):
        if self.months <= 0:
            raise ValueError(f"Interval must be a positive number of months, got {self.months}")
        expected = _PRESET_MONTHS.get(self.kind)
        if expected is not None and self.months != expected:
            raise ValueError(
                f"Interval '{self.kind.value}' is {expected} month(s), got {self.months}"
            )

    @classmethod
    def preset(cls, kind: IntervalKind) -> "RecurrenceInterval":
        if kind == IntervalKind.CUSTOM:
            raise ValueError("Custom intervals need a month count, use custom()")
        return cls(kind=kind, months=_PRESET_MONTHS[kind], label=_PRESET_LABELS[kind])

    @classmethod
    def custom(cls, months: int, label: Optional[str] = None) -> "RecurrenceInterval":
        if label is None:
            label = _CUSTOM_LABELS.get(months, f"Every {months} months")
        return cls(kind=IntervalKind.CUSTOM, months=months, label=label)

    @classmethod
    def from_key(cls, key: str) -> Optional["RecurrenceInterval"]:
        """Look up a preset by name ('monthly', 'SEMI_ANNUAL', 'semi-annual', ...)."""
        normalized = key.strip().lower().replace("_", "-")
        try:
            kind = IntervalKind(normalized)
        except ValueError:
            return None
        if kind == IntervalKind.CUSTOM:
            return None
        return cls.preset(kind)

    @classmethod
    def from_months(cls, months: int) -> "RecurrenceInterval":
        """The preset with this many months, or a custom interval."""
        for kind, preset_months in _PRESET_MONTHS.items():
            if preset_months == months:
                return cls.preset(kind)
        return cls.custom(months)

    @classmethod
    def from_stored(cls, kind: str, months: int) -> "RecurrenceInterval":
        """Rebuild an interval from its database columns."""
        interval_kind = IntervalKind(kind)
        if interval_kind == IntervalKind.CUSTOM:
            return cls.custom(months)
        return cls.preset(interval_kind)


MONTHLY = RecurrenceInterval.preset(IntervalKind.MONTHLY)
QUARTERLY = RecurrenceInterval.preset(IntervalKind.QUARTERLY)
SEMI_ANNUAL = RecurrenceInterval.preset(IntervalKind.SEMI_ANNUAL)
ANNUAL = RecurrenceInterval.preset(IntervalKind.ANNUAL)


@dataclass
class RecurrentTransaction:
    """A plan for a transaction that repeats every interval months.

    Templates never appear in a budget themselves; the recurrence processor
    materializes one Transaction per due month, tagged with recurrence_id.

    Attributes:
        id: Unique identifier.
        user_id: Owner of the template.
        type: 'income' or 'expense'.
        amount: Amount of every occurrence (positive).
        description: Description copied to every occurrence.
        category_id: Category in the budget the template was created from.
        start_date: First occurrence. Only its month and year matter for
            scheduling.
        interval: Repetition interval.
        next_execution_date: Cursor advanced after every processing run.
        end_date: Optional last day on which occurrences are generated.
        is_active: False when paused or retired after end_date.
        last_execution_date: Date of the last processing run.
    """

    id: str
    user_id: int
    type: str
    amount: Decimal
    description: str
    category_id: str
    start_date: date
    interval: RecurrenceInterval
    next_execution_date: date
    end_date: Optional[date] = None
    is_active: bool = True
    last_execution_date: Optional[date] = None

    @property
    def interval_value(self) -> int:
        return self.interval.months


@dataclass
class MaterializationResult:
    """Outcome of materializing one template into one month."""

    transactions_created: int = 0
    budgets_created: int = 0
    budgets_updated: int = 0
    warnings: List[str] = field(default_factory=list)
    transaction: Optional[Transaction] = None


@dataclass
class ProcessResult:
    """Aggregated outcome of a batch run over all due templates."""

    success: bool = True
    transactions_created: int = 0
    budgets_created: int = 0
    budgets_updated: int = 0
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def add(self, result: MaterializationResult) -> None:
        self.transactions_created += result.transactions_created
        self.budgets_created += result.budgets_created
        self.budgets_updated += result.budgets_updated
        self.warnings.extend(result.warnings)

    def to_dict(self) -> dict:
        """Convert to the response shape of the batch trigger."""
        data = {
            "success": self.success,
            "transactions_created": self.transactions_created,
            "budgets_created": self.budgets_created,
            "budgets_updated": self.budgets_updated,
        }
        if self.warnings:
            data["warnings"] = list(self.warnings)
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class ExecutionStatus:
    """Whether a template has a materialized transaction in a given month."""

    executed: bool
    transaction_id: Optional[str] = None
    budget_id: Optional[str] = None


@dataclass
class OperationResult:
    """Structured success/failure for single-template operations."""

    success: bool
    error: Optional[str] = None
    value: Any = None
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def ok(cls, value: Any = None, warnings: Optional[List[str]] = None) -> "OperationResult":
        return cls(success=True, value=value, warnings=list(warnings or []))

    @classmethod
    def fail(cls, error: str, warnings: Optional[List[str]] = None) -> "OperationResult":
        return cls(success=False, error=error, warnings=list(warnings or []))
