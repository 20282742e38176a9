"""Derived ledger figures for a client.

Everything here is a pure function over bills and transactions (ORM rows or
any object exposing the same attributes). Nothing reads the cached
``Client.deposit`` / ``Client.balance`` columns: those are rewritten from these
results by ``ledger_store.reconcile_client``.
"""

import enum
from datetime import datetime

from laundry_ledger.services.money import ZERO, money_sum, remaining_due, to_decimal, to_money


class TransactionType(str, enum.Enum):
    BILL = "bill"
    DEPOSIT = "deposit"
    DEPOSIT_USED = "deposit_used"
    PAYMENT = "payment"
    BULK_PAYMENT = "bulk_payment"
    BULK_DEPOSIT_USED = "bulk_deposit_used"


CREDIT_CONSUMING_TYPES = {
    TransactionType.DEPOSIT_USED.value,
    TransactionType.BULK_DEPOSIT_USED.value,
}

CASH_PAYMENT_TYPES = {
    TransactionType.PAYMENT.value,
    TransactionType.BULK_PAYMENT.value,
}


class LedgerView(str, enum.Enum):
    # Credit ledger: how much pre-paid credit is left
    CREDIT = "credit"
    # Bill ledger: deposits and payments against what was billed
    BILL = "bill"


def _type_of(tx) -> str:
    tx_type = tx.type
    return tx_type.value if isinstance(tx_type, enum.Enum) else tx_type


def order_transactions(transactions) -> list:
    """Chronological order, ties broken by id (insertion order)."""
    return sorted(
        transactions,
        key=lambda tx: (tx.date or datetime.min, tx.id or 0),
    )


def unpaid_due(bills):
    return money_sum(
        remaining_due(bill.amount, bill.paid_amount)
        for bill in bills
        if to_decimal(bill.amount) > to_decimal(bill.paid_amount)
    )


def lifetime_billed(bills):
    return money_sum(bill.amount for bill in bills)


def credit_available(transactions):
    deposited = money_sum(
        tx.amount for tx in transactions
        if _type_of(tx) == TransactionType.DEPOSIT.value
    )
    used = money_sum(
        tx.amount for tx in transactions
        if _type_of(tx) in CREDIT_CONSUMING_TYPES
    )

    credit = to_money(deposited - used)
    return credit if credit > ZERO else ZERO


def net_position(bills, transactions):
    """What the client owes after their credit is taken into account.

    Positive means the shop is owed money, negative means the client holds
    unused credit.
    """
    return to_money(unpaid_due(bills) - credit_available(transactions))


def _credit_delta(tx):
    amount = to_decimal(tx.amount)
    if _type_of(tx) == TransactionType.DEPOSIT.value:
        return amount
    return -amount


def _bill_delta(tx):
    tx_type = _type_of(tx)
    amount = to_decimal(tx.amount)

    if tx_type == TransactionType.DEPOSIT.value:
        return amount
    if tx_type == TransactionType.BILL.value:
        return -amount
    if tx_type in CASH_PAYMENT_TYPES:
        return amount
    # Spending credit on a bill moves money between the two sides
    return ZERO


def running_balance_series(transactions, view: LedgerView = LedgerView.CREDIT):
    """Replay ``transactions`` and return ``[(tx, balance_after_tx), ...]``.

    The credit and bill views are separate projections of one stream and
    can disagree whenever a client has unpaid bills and credit at once.
    """
    view = LedgerView(view)
    delta = _credit_delta if view == LedgerView.CREDIT else _bill_delta

    series = []
    running = to_decimal(0)
    for tx in order_transactions(transactions):
        running += delta(tx)
        series.append((tx, to_money(running)))

    return series


def client_figures(bills, transactions) -> dict:
    billed = lifetime_billed(bills)
    credit = credit_available(transactions)

    return {
        "amount": billed,
        "deposit": credit,
        "balance": to_money(billed - credit),
        "unpaid_due": unpaid_due(bills),
        "credit_available": credit,
        "net_position": net_position(bills, transactions),
    }
