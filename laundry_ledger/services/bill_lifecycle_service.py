"""Bills as seen from the order side.

Orders open or join bills, item edits re-price the bill they sit on, and
deleting an order reverses the bill's financial effects before any record of
them is removed.
"""

import logging
from datetime import datetime
from uuid import uuid4

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from laundry_ledger.core.errors import Conflict, InvalidTarget, NotFound
from laundry_ledger.models.bill import Bill
from laundry_ledger.models.order import Order
from laundry_ledger.models.payment import Payment
from laundry_ledger.models.transaction import Transaction
from laundry_ledger.services import ledger_store
from laundry_ledger.services.balance_calculator import TransactionType
from laundry_ledger.services.money import ZERO, is_settled, money_sum, to_money
from laundry_ledger.services.order_pricing import price_items


logger = logging.getLogger(__name__)

CREDIT_PAYMENT_METHODS = {"deposit", "bulk_deposit"}


def get_order_or_404(db: Session, order_id: int) -> Order:
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise NotFound(f"Order {order_id} not found")
    return order


def _bill_orders(db: Session, bill_id: int):
    return db.query(Order).filter(Order.bill_id == bill_id).order_by(Order.id.asc()).all()


def _append_note(bill: Bill, note: str):
    bill.notes = f"{bill.notes}\n{note}" if bill.notes else note


# =========================
# ORDER CREATED
# =========================

def open_bill_for_order(
    db: Session,
    order: Order,
    created_by: str | None = None,
    existing_bill_id: int | None = None,
) -> Bill:
    """Attach ``order`` to a bill and post it to the client's ledger.

    Does not commit; the caller owns the unit of work.
    """
    client = ledger_store.get_client_or_404(db, order.client_id, lock=True)
    amount = to_money(order.final_amount)
    label = f"Order #{order.order_number}"

    if existing_bill_id is not None:
        bill = ledger_store.get_bill_or_404(db, existing_bill_id)

        if bill.client_id != order.client_id:
            raise InvalidTarget(f"Bill {bill.id} belongs to a different client")
        if bill.is_paid:
            raise InvalidTarget(f"Bill {bill.id} is already paid")
        if not _bill_orders(db, bill.id):
            raise InvalidTarget(f"Bill {bill.id} was not raised from orders")

        bill.amount = to_money(bill.amount + amount)
        bill.is_paid = is_settled(bill.paid_amount, bill.amount)
        bill.description = f"{bill.description}; {label}" if bill.description else label
    else:
        bill = Bill(
            client_id=client.id,
            amount=amount,
            paid_amount=ZERO,
            is_paid=is_settled(ZERO, amount),
            description=label,
            reference_number=ledger_store.new_reference_number(),
            created_by=created_by,
            bill_date=datetime.utcnow(),
        )
        db.add(bill)
        db.flush()

    order.bill_id = bill.id

    client.amount = to_money(client.amount + amount)
    client.balance = to_money(client.amount - client.deposit)

    if amount > ZERO:
        ledger_store.append_transaction(
            db,
            client,
            TransactionType.BILL,
            amount,
            description=f"{label} on Bill #{bill.id}",
            bill_id=bill.id,
            processed_by=created_by,
        )
    else:
        ledger_store.reconcile_client(db, client)

    return bill


def create_order(
    db: Session,
    client_id: int,
    items: list[dict],
    urgent: bool = False,
    discount_percent=None,
    order_number: str | None = None,
    created_by: str | None = None,
    existing_bill_id: int | None = None,
) -> Order:
    client = ledger_store.get_client_or_404(db, client_id)

    if discount_percent is None:
        discount_percent = client.discount_percent or 0

    lines, total_amount, final_amount = price_items(db, items, urgent, discount_percent)

    order_number = (order_number or "").strip() or f"ORD-{uuid4().hex[:8].upper()}"
    if db.query(Order).filter(Order.order_number == order_number).first():
        raise Conflict(f"Order number {order_number} already exists")

    try:
        order = Order(
            client_id=client.id,
            order_number=order_number,
            items=lines,
            urgent=bool(urgent),
            discount_percent=to_money(discount_percent),
            total_amount=total_amount,
            final_amount=final_amount,
            created_by=created_by,
        )
        db.add(order)
        db.flush()

        open_bill_for_order(db, order, created_by=created_by, existing_bill_id=existing_bill_id)
        db.commit()

    except HTTPException:
        db.rollback()
        raise
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to create order for client %s", client_id)
        raise HTTPException(status_code=500, detail="Failed to create order")

    db.refresh(order)
    logger.info(
        "Order %s (%s) created for client %s on bill %s",
        order.id, final_amount, client.id, order.bill_id,
    )
    return order


# =========================
# ORDER ITEMS CHANGED
# =========================

def _reprice_bill(db: Session, bill: Bill, editor: str | None) -> tuple:
    """Set the bill amount to the sum of its orders; returns ``(old, new)``."""
    db.flush()

    old_amount = to_money(bill.amount)
    new_amount = money_sum(order.final_amount for order in _bill_orders(db, bill.id))
    delta = to_money(new_amount - old_amount)

    if delta == ZERO:
        return old_amount, new_amount

    client = ledger_store.get_client_or_404(db, bill.client_id, lock=True)

    # paid_amount is never touched here; an overpayment stays on the bill
    bill.amount = new_amount
    bill.is_paid = is_settled(bill.paid_amount, new_amount)
    _append_note(
        bill,
        f"[{datetime.utcnow().isoformat(timespec='seconds')}] "
        f"Amount changed from {old_amount} to {new_amount} by {editor or 'unknown'}",
    )

    client.amount = to_money(client.amount + delta)
    client.balance = to_money(client.amount - client.deposit)

    ledger_store.append_transaction(
        db,
        client,
        TransactionType.BILL,
        delta,
        description=f"Bill #{bill.id} adjusted from {old_amount} to {new_amount}",
        bill_id=bill.id,
        processed_by=editor,
    )

    return old_amount, new_amount


def recalculate_order_items(
    db: Session,
    order_id: int,
    items: list[dict],
    editor: str | None = None,
    urgent: bool | None = None,
    discount_percent=None,
):
    order = get_order_or_404(db, order_id)

    if urgent is None:
        urgent = order.urgent
    if discount_percent is None:
        discount_percent = order.discount_percent

    lines, total_amount, final_amount = price_items(db, items, urgent, discount_percent)

    try:
        order.items = lines
        order.urgent = bool(urgent)
        order.discount_percent = to_money(discount_percent)
        order.total_amount = total_amount
        order.final_amount = final_amount

        old_amount = new_amount = None
        bill = None
        if order.bill_id is not None:
            bill = ledger_store.get_bill_or_404(db, order.bill_id)
            old_amount, new_amount = _reprice_bill(db, bill, editor)

        db.commit()

    except HTTPException:
        db.rollback()
        raise
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to recalculate order %s", order_id)
        raise HTTPException(status_code=500, detail="Failed to recalculate order")

    db.refresh(order)
    if bill is not None:
        db.refresh(bill)
        logger.info(
            "Order %s repriced to %s; bill %s %s -> %s",
            order.id, final_amount, bill.id, old_amount, new_amount,
        )

    return {"order": order, "bill": bill, "old_amount": old_amount, "new_amount": new_amount}


# =========================
# ORDER / BILL DELETED
# =========================

def _reverse_bill(db: Session, bill: Bill):
    """Undo every financial effect of ``bill``, then remove it.

    Credit is restored before the entries that prove it was spent are
    deleted. Does not commit.
    """
    client = ledger_store.get_client_or_404(db, bill.client_id, lock=True)

    # 1. credit that was spent on this bill
    payments = db.query(Payment).filter(Payment.bill_id == bill.id).all()
    credit_spent = money_sum(
        payment.amount for payment in payments
        if payment.payment_method in CREDIT_PAYMENT_METHODS
    )

    linked_entries = db.query(Transaction).filter(Transaction.bill_id == bill.id).all()
    linked_used = money_sum(
        tx.amount for tx in linked_entries
        if tx.type == TransactionType.DEPOSIT_USED.value
    )

    # 2. re-credit; bulk spending sits in a consolidated entry that stays, so
    # its share comes back as an explicit deposit entry
    bulk_share = to_money(credit_spent - linked_used)
    if bulk_share > ZERO:
        client.deposit = to_money(client.deposit + bulk_share)
        client.balance = to_money(client.amount - client.deposit)
        ledger_store.append_transaction(
            db,
            client,
            TransactionType.DEPOSIT,
            bulk_share,
            description=f"Credit restored from reversed Bill #{bill.id}",
            payment_method="deposit",
        )

    # 3. ledger entries for the bill
    for tx in linked_entries:
        db.delete(tx)
    client.deposit = to_money(client.deposit + linked_used)

    # 4. payments
    for payment in payments:
        db.delete(payment)
    db.flush()

    # 5. the bill
    client.amount = to_money(client.amount - bill.amount)
    client.balance = to_money(client.amount - client.deposit)
    db.delete(bill)

    ledger_store.reconcile_client(db, client)

    logger.info(
        "Bill %s reversed for client %s; %s credit restored",
        bill.id, client.id, credit_spent,
    )
    return credit_spent


def reverse_bill_for_order(db: Session, order_id: int, performed_by: str | None = None):
    order = get_order_or_404(db, order_id)
    result = {"order_id": order.id, "bill_id": order.bill_id, "bill_deleted": False, "credit_restored": ZERO}

    try:
        if order.bill_id is not None:
            bill = ledger_store.get_bill_or_404(db, order.bill_id)
            other_orders = [o for o in _bill_orders(db, bill.id) if o.id != order.id]

            if other_orders:
                # The bill still funds other orders; shrink it instead
                order.bill_id = None
                db.delete(order)
                _reprice_bill(db, bill, performed_by)
            else:
                order.bill_id = None
                db.delete(order)
                db.flush()
                result["credit_restored"] = _reverse_bill(db, bill)
                result["bill_deleted"] = True
        else:
            db.delete(order)

        db.commit()

    except HTTPException:
        db.rollback()
        raise
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to delete order %s", order_id)
        raise HTTPException(status_code=500, detail="Failed to delete order")

    logger.info("Order %s deleted", order_id)
    return result


def delete_bill(db: Session, bill_id: int):
    bill = ledger_store.get_bill_or_404(db, bill_id)
    if _bill_orders(db, bill.id):
        raise Conflict(f"Bill {bill.id} is linked to orders; delete the orders instead")

    try:
        credit_restored = _reverse_bill(db, bill)
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to delete bill %s", bill_id)
        raise HTTPException(status_code=500, detail="Failed to delete bill")

    return {"bill_id": bill_id, "credit_restored": credit_restored}
