from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from models.ids import generate_id


@dataclass
class Transaction:
    id: str
    budget_id: str
    type: str  # 'income' or 'expense'
    amount: Decimal  # always positive
    description: str
    category_id: str
    transaction_date: date
    is_recurrent: bool = False
    recurrence_id: Optional[str] = None  # template that produced it, if any

    @classmethod
    def new(
        cls,
        budget_id: str,
        type: str,
        amount: Decimal,
        description: str,
        category_id: str,
        transaction_date: date,
        is_recurrent: bool = False,
        recurrence_id: Optional[str] = None,
    ) -> "Transaction":
        """Create a Transaction with a generated ID."""
        return cls(
            id=generate_id(),
            budget_id=budget_id,
            type=type,
            amount=amount,
            description=description,
            category_id=category_id,
            transaction_date=transaction_date,
            is_recurrent=is_recurrent,
            recurrence_id=recurrence_id,
        )

    def to_dict(self) -> dict:
        """Convert transaction to dictionary for display and export."""
        return {
            "id": self.id,
            "budget_id": self.budget_id,
            "type": self.type,
            "amount": str(self.amount),
            "description": self.description,
            "category_id": self.category_id,
            "date": self.transaction_date.isoformat(),
            "is_recurrent": self.is_recurrent,
            "recurrence_id": self.recurrence_id,
        }
