import re
from datetime import date
from dateutil.relativedelta import relativedelta
from typing import Iterable, Optional

from cashplan.models import Direction, Recurrence, Transaction, MonthData


MONTH_PATTERN = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


class ValidationError(ValueError):
    pass


# ===== MONTH TOKENS =====
def parse_month(token: str) -> date:
    match = MONTH_PATTERN.match(token) if isinstance(token, str) else None
    if match is None:
        raise ValueError(f"Month must be in YYYY-MM format, got {token!r}")
    return date(int(match.group(1)), int(match.group(2)), 1)


def format_month(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def current_month() -> str:
    return format_month(date.today())


def month_range(starting_month: str, count: int) -> list[str]:
    start = parse_month(starting_month)
    return [format_month(start + relativedelta(months=i)) for i in range(count)]


# ===== PROJECTION =====
def applies_in(transaction: Transaction, month: str) -> bool:
    """Whether ``transaction`` contributes to ``month``.

    Monthly entries apply to every projected month, whatever their own
    ``month`` field says. Yearly entries apply whenever the calendar month
    matches their anchor month.
    """
    if transaction.recurrence is Recurrence.MONTHLY:
        return True
    if transaction.recurrence is Recurrence.NONE:
        return transaction.month == month
    if transaction.recurrence is Recurrence.YEARLY:
        return transaction.month is not None and transaction.month[5:] == month[5:]
    raise ValueError(f"Unknown recurrence: {transaction.recurrence!r}")


def project(
        starting_balance: float,
        starting_month: str,
        transactions: Iterable[Transaction],
        horizon_months: int = 12,
) -> list[MonthData]:
    if horizon_months < 0:
        raise ValueError("Horizon must be zero or more months")

    snapshot = list(transactions)
    balance = starting_balance
    projection = []

    for month in month_range(starting_month, horizon_months):
        row = MonthData(month=month)
        for t in snapshot:
            if not applies_in(t, month):
                continue
            if t.direction is Direction.INCOME:
                row.income += t.amount
            else:
                row.expense += t.amount
            row.category_totals[t.category_id] = row.category_totals.get(t.category_id, 0.0) + t.amount
            row.transactions.append(t)

        balance += row.income - row.expense
        row.balance = balance
        projection.append(row)

    return projection


def summarize_projection(projection: list[MonthData]) -> Optional[dict]:
    if not projection:
        return None

    totals = {
        "income": sum(row.income for row in projection),
        "expense": sum(row.expense for row in projection),
    }
    totals["net"] = totals["income"] - totals["expense"]
    lowest = min(projection, key=lambda row: row.balance)

    return {
        "months": len(projection),
        "totals": totals,
        "current_balance": projection[0].balance,
        "ending_balance": projection[-1].balance,
        "lowest_balance": lowest.balance,
        "lowest_month": lowest.month,
        "at_risk": lowest.balance < 0,
    }


# ===== VALIDATION =====
def validate_transaction(transaction: Transaction) -> Transaction:
    """Boundary check for user input; the store itself accepts anything."""
    if not transaction.label or not transaction.label.strip():
        raise ValidationError("Label must not be empty")
    if transaction.amount < 0:
        raise ValidationError("Amount must be zero or positive; use the direction for the sign")
    if transaction.month is not None:
        try:
            parse_month(transaction.month)
        except ValueError as e:
            raise ValidationError(str(e)) from e
    elif transaction.recurrence is not Recurrence.MONTHLY:
        raise ValidationError(f"A month is required for {transaction.recurrence.value} transactions")
    return transaction
