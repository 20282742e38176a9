from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from laundry_ledger.core.config import settings


CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# Numeric(12, 2) holds at most ten integer digits
MAX_AMOUNT = Decimal("1e10")


def to_decimal(value) -> Decimal:
    """Exact conversion; floats go through ``str`` so 0.1 stays 0.1."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        value = repr(value)
    try:
        return Decimal(str(value).strip() or "0")
    except InvalidOperation as exc:
        raise ValueError(f"Not a monetary amount: {value!r}") from exc


def to_money(value) -> Decimal:
    amount = to_decimal(value)
    if not amount.is_finite():
        raise ValueError(f"Not a monetary amount: {value!r}")
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        # More digits than the context precision allows
        raise ValueError(f"Amount out of range: {value!r}") from exc


def money_sum(values) -> Decimal:
    total = Decimal("0")
    for value in values:
        total += to_decimal(value)
    return to_money(total)


def is_settled(paid, amount) -> bool:
    return to_money(paid) >= to_money(amount) - settings.PAID_TOLERANCE


def remaining_due(amount, paid) -> Decimal:
    """Remaining owed on a bill, never negative."""
    due = to_money(amount) - to_money(paid)
    return due if due > ZERO else ZERO
