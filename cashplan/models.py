from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict


class Direction(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class Recurrence(str, Enum):
    NONE = "none"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class ActionType(str, Enum):
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"
    # never pushed on a stack
    RESET = "reset"
    BULK_ADD = "bulk_add"


@dataclass(frozen=True)
class Transaction:
    label: str
    amount: float
    direction: Direction
    recurrence: Recurrence = Recurrence.NONE
    month: Optional[str] = None
    category_id: Optional[str] = None
    id: str = ""

    def __post_init__(self):
        # frozen, so coercion of raw strings goes through object.__setattr__
        object.__setattr__(self, "direction", Direction(self.direction))
        object.__setattr__(self, "recurrence", Recurrence(self.recurrence))


@dataclass
class MonthData:
    month: str
    income: float = 0.0
    expense: float = 0.0
    balance: float = 0.0
    category_totals: Dict[Optional[str], float] = field(default_factory=dict)
    transactions: List[Transaction] = field(default_factory=list)

    @property
    def net(self) -> float:
        return self.income - self.expense


@dataclass(frozen=True)
class HistoryAction:
    type: ActionType
    data: Optional[Transaction]
    inverse_data: Optional[Transaction]
    entity: str = "transaction"
    index: Optional[int] = None


@dataclass(frozen=True)
class Category:
    id: str
    label: str
    direction: Direction


DEFAULT_CATEGORIES: List[Category] = [
    Category("cat-salary", "Salary", Direction.INCOME),
    Category("cat-dividend", "Dividends", Direction.INCOME),
    Category("cat-rent", "Rent", Direction.EXPENSE),
    Category("cat-food", "Food", Direction.EXPENSE),
    Category("cat-transport", "Transport", Direction.EXPENSE),
]
