"""Recurrent transaction service for database operations."""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from models.ids import generate_id
from models.recurrence import RecurrenceInterval, RecurrentTransaction

_RECURRENT_SELECT_FIELDS = """id, user_id, transaction_type, amount, description, category_id,
       start_date, end_date, is_active, interval_kind, interval_value,
       next_execution_date, last_execution_date"""

# Fields that update() accepts, mapped to their columns
_UPDATABLE_COLUMNS = {
    "amount": "amount",
    "description": "description",
    "category_id": "category_id",
    "end_date": "end_date",
    "is_active": "is_active",
    "next_execution_date": "next_execution_date",
    "last_execution_date": "last_execution_date",
}


class RecurrentTransactionService:
    """Service for managing recurring transaction templates."""

    def __init__(self, db_manager):
        """Initialize the recurrent transaction service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def find_all(self, user_id: int) -> List[RecurrentTransaction]:
        """Get all templates of a user, active or not, oldest first."""
        return self._query(
            f"""
            SELECT {_RECURRENT_SELECT_FIELDS}
            FROM recurrent_transactions
            WHERE user_id = ?
            ORDER BY created_at, rowid
            """,
            (user_id,),
        )

    def find_active(self, user_id: int) -> List[RecurrentTransaction]:
        """Get the templates of a user that are not paused or retired."""
        return self._query(
            f"""
            SELECT {_RECURRENT_SELECT_FIELDS}
            FROM recurrent_transactions
            WHERE user_id = ? AND is_active = 1
            ORDER BY created_at, rowid
            """,
            (user_id,),
        )

    def find(self, user_id: int, recurrent_id: str) -> Optional[RecurrentTransaction]:
        """Get a single template by ID.

        Returns:
            RecurrentTransaction if found for this user, None otherwise.
        """
        results = self._query(
            f"""
            SELECT {_RECURRENT_SELECT_FIELDS}
            FROM recurrent_transactions
            WHERE id = ? AND user_id = ?
            """,
            (recurrent_id, user_id),
        )
        return results[0] if results else None

    def create(
        self,
        user_id: int,
        type: str,
        amount: Decimal,
        description: str,
        category_id: str,
        start_date: date,
        interval: RecurrenceInterval,
        next_execution_date: date,
        end_date: Optional[date] = None,
        is_active: bool = True,
    ) -> RecurrentTransaction:
        """Create a new recurring transaction template.

        Returns:
            The created RecurrentTransaction with a generated id.

        Raises:
            sqlite3.IntegrityError: If a column constraint is violated.
        """
        template = RecurrentTransaction(
            id=generate_id(),
            user_id=user_id,
            type=type,
            amount=Decimal(str(amount)),
            description=description,
            category_id=category_id,
            start_date=start_date,
            interval=interval,
            next_execution_date=next_execution_date,
            end_date=end_date,
            is_active=is_active,
        )

        with self.db_manager.connect() as conn:
            conn.execute(
                f"""
                INSERT INTO recurrent_transactions ({_RECURRENT_SELECT_FIELDS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    template.id,
                    user_id,
                    type,
                    float(template.amount),
                    description,
                    category_id,
                    start_date.isoformat(),
                    end_date.isoformat() if end_date else None,
                    int(is_active),
                    interval.kind.value,
                    interval.months,
                    next_execution_date.isoformat(),
                    None,
                ),
            )
            conn.commit()

        return template

    def update(
        self, user_id: int, recurrent_id: str, **updates
    ) -> Optional[RecurrentTransaction]:
        """Update fields of a template.

        Supported fields: amount, description, category_id, end_date,
        is_active, next_execution_date, last_execution_date and interval
        (a RecurrenceInterval). Passing None for end_date or
        last_execution_date clears it.

        Returns:
            The updated RecurrentTransaction, or None if not found.

        Raises:
            ValueError: If unsupported field names are provided.
        """
        invalid_fields = set(updates) - set(_UPDATABLE_COLUMNS) - {"interval"}
        if invalid_fields:
            raise ValueError(f"Unsupported field names: {invalid_fields}")

        assignments = []
        params = []
        for field_name, value in updates.items():
            if field_name == "interval":
                assignments.extend(["interval_kind = ?", "interval_value = ?"])
                params.extend([value.kind.value, value.months])
                continue
            assignments.append(f"{_UPDATABLE_COLUMNS[field_name]} = ?")
            params.append(self._to_column(value))

        assignments.append("updated_at = CURRENT_TIMESTAMP")

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                UPDATE recurrent_transactions
                SET {', '.join(assignments)}
                WHERE id = ? AND user_id = ?
                """,
                (*params, recurrent_id, user_id),
            )
            conn.commit()

            if cursor.rowcount == 0:
                return None

        return self.find(user_id, recurrent_id)

    def delete(self, user_id: int, recurrent_id: str) -> bool:
        """Delete a template. Materialized transactions are left untouched.

        Returns:
            True if the template was deleted, False if not found.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM recurrent_transactions WHERE id = ? AND user_id = ?",
                (recurrent_id, user_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def _to_column(self, value):
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, Decimal):
            return float(value)
        if isinstance(value, date):
            return value.isoformat()
        return value

    def _query(self, sql: str, params: tuple) -> List[RecurrentTransaction]:
        with self.db_manager.connect() as conn:
            cursor = conn.execute(sql, params)
            return [self._row_to_recurrent(row) for row in cursor.fetchall()]

    def _row_to_recurrent(self, row: tuple) -> RecurrentTransaction:
        """Convert a database row to a RecurrentTransaction object."""
        return RecurrentTransaction(
            id=row[0],
            user_id=row[1],
            type=row[2],
            amount=Decimal(str(row[3])),
            description=row[4],
            category_id=row[5],
            start_date=date.fromisoformat(row[6]),
            end_date=date.fromisoformat(row[7]) if row[7] else None,
            is_active=bool(row[8]),
            interval=RecurrenceInterval.from_stored(row[9], row[10]),
            next_execution_date=date.fromisoformat(row[11]),
            last_execution_date=date.fromisoformat(row[12]) if row[12] else None,
        )
