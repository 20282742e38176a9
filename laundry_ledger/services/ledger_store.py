"""Durable access to clients, bills, payments and the transaction log.

``append_transaction`` is the only writer of ``client_transactions`` and every
ledger mutation ends with ``reconcile_client`` so the cached money columns on
``Client`` always match what the transaction stream says.
"""

import logging
from datetime import datetime
from uuid import uuid4

from fastapi import HTTPException
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from laundry_ledger.core.config import settings
from laundry_ledger.core.errors import Conflict, InvalidInput, NotFound
from laundry_ledger.models.bill import Bill
from laundry_ledger.models.client import Client
from laundry_ledger.models.order import Order
from laundry_ledger.models.payment import Payment
from laundry_ledger.models.transaction import Transaction
from laundry_ledger.services import balance_calculator as calc
from laundry_ledger.services.balance_calculator import TransactionType
from laundry_ledger.services.money import MAX_AMOUNT, ZERO, to_money


logger = logging.getLogger(__name__)

PROFILE_FIELDS = {
    "name",
    "phone",
    "email",
    "address",
    "notes",
    "preferred_payment_method",
    "discount_percent",
}

CORRECTABLE_TYPES = {TransactionType.DEPOSIT.value}


def _normalize_phone(phone: str | None) -> str | None:
    return (phone or "").strip() or None


def new_reference_number() -> str:
    return f"{settings.BILL_REFERENCE_PREFIX}-{uuid4().hex[:10].upper()}"


def require_positive(amount, label: str = "Amount"):
    try:
        value = to_money(amount)
    except ValueError:
        raise InvalidInput(f"{label} is not a valid number")

    if value <= ZERO:
        raise InvalidInput(f"{label} must be greater than zero")
    if value >= MAX_AMOUNT:
        raise InvalidInput(f"{label} must be less than {MAX_AMOUNT:,.0f}")

    return value


# =========================
# CLIENTS
# =========================

def get_client_or_404(db: Session, client_id: int, lock: bool = False) -> Client:
    query = db.query(Client).filter(Client.id == client_id)
    if lock:
        query = query.with_for_update()

    client = query.first()
    if not client:
        raise NotFound(f"Client {client_id} not found")

    return client


def list_clients(db: Session, search: str | None = None):
    query = db.query(Client)

    if search and search.strip():
        term = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(Client.name).like(term),
                Client.phone.like(term),
                func.lower(Client.address).like(term),
            )
        )

    return query.order_by(Client.name.asc(), Client.id.asc()).all()


def find_client_by_phone(db: Session, phone: str | None) -> Client | None:
    phone = _normalize_phone(phone)
    if not phone:
        return None

    return db.query(Client).filter(Client.phone == phone).first()


def create_client(db: Session, data: dict) -> Client:
    fields = {key: value for key, value in data.items() if key in PROFILE_FIELDS}
    fields["phone"] = _normalize_phone(fields.get("phone"))

    if not (fields.get("name") or "").strip():
        raise InvalidInput("Client name is required")

    if fields["phone"] and find_client_by_phone(db, fields["phone"]):
        raise Conflict(f"A client with phone {fields['phone']} already exists")

    client = Client(**fields, amount=ZERO, deposit=ZERO, balance=ZERO)
    db.add(client)
    db.commit()
    db.refresh(client)

    logger.info("Created client %s (%s)", client.id, client.name)
    return client


def update_client(db: Session, client_id: int, data: dict) -> Client:
    client = get_client_or_404(db, client_id)

    if "phone" in data:
        phone = _normalize_phone(data["phone"])
        existing = find_client_by_phone(db, phone)
        if existing and existing.id != client.id:
            raise Conflict(f"A client with phone {phone} already exists")
        data = {**data, "phone": phone}

    for key, value in data.items():
        # Money columns only move through ledger operations
        if key in PROFILE_FIELDS:
            setattr(client, key, value)

    db.commit()
    db.refresh(client)
    return client


def get_or_create_client(db: Session, name: str, phone: str | None, address: str | None = None) -> Client:
    """Client lookup used at order intake; creates the client on first order."""
    client = find_client_by_phone(db, phone)
    if client:
        return client

    if not (name or "").strip():
        raise InvalidInput("Client name is required for a new client")

    client = Client(
        name=name.strip(),
        phone=_normalize_phone(phone),
        address=address,
        amount=ZERO,
        deposit=ZERO,
        balance=ZERO,
    )
    db.add(client)
    db.flush()

    logger.info("Created client %s on first order", client.id)
    return client


def delete_client(db: Session, client_id: int):
    client = get_client_or_404(db, client_id)
    bills = client_bills(db, client_id)
    transactions = client_transactions(db, client_id)

    open_bills = [bill for bill in bills if not bill.is_paid]
    if open_bills:
        raise Conflict(
            f"Client has {len(open_bills)} unpaid bill(s); settle them before deleting"
        )

    position = calc.net_position(bills, transactions)
    if position != ZERO:
        raise Conflict(f"Client balance is {position}; it must be zero before deleting")

    try:
        bill_ids = [bill.id for bill in bills]
        db.query(Transaction).filter(Transaction.client_id == client_id).delete(synchronize_session=False)
        db.query(Payment).filter(Payment.client_id == client_id).delete(synchronize_session=False)
        db.query(Order).filter(Order.client_id == client_id).delete(synchronize_session=False)
        if bill_ids:
            db.query(Bill).filter(Bill.id.in_(bill_ids)).delete(synchronize_session=False)
        db.delete(client)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to delete client %s", client_id)
        raise HTTPException(status_code=500, detail="Failed to delete client")

    logger.info("Deleted client %s", client_id)


def merge_clients(db: Session, source_id: int, target_id: int) -> Client:
    if source_id == target_id:
        raise Conflict("Cannot merge a client into itself")

    source = get_client_or_404(db, source_id, lock=True)
    target = get_client_or_404(db, target_id, lock=True)

    try:
        for model in (Bill, Order, Transaction, Payment):
            db.query(model).filter(model.client_id == source.id).update(
                {model.client_id: target.id}, synchronize_session=False
            )

        db.delete(source)
        db.flush()
        db.expire(target)
        reconcile_client(db, target, log_drift=False)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to merge client %s into %s", source_id, target_id)
        raise HTTPException(status_code=500, detail="Failed to merge clients")

    db.refresh(target)
    logger.info("Merged client %s into %s", source_id, target_id)
    return target


# =========================
# BILLS / PAYMENTS
# =========================

def get_bill_or_404(db: Session, bill_id: int) -> Bill:
    bill = db.query(Bill).filter(Bill.id == bill_id).first()
    if not bill:
        raise NotFound(f"Bill {bill_id} not found")
    return bill


def list_bills(db: Session, unpaid_only: bool = False):
    query = db.query(Bill)
    if unpaid_only:
        query = query.filter(Bill.is_paid == False)
    return query.order_by(Bill.bill_date.desc(), Bill.id.desc()).all()


def client_bills(db: Session, client_id: int):
    return (
        db.query(Bill)
        .filter(Bill.client_id == client_id)
        .order_by(Bill.bill_date.desc(), Bill.id.desc())
        .all()
    )


def unpaid_bills(db: Session, client_id: int):
    """Unpaid bills, oldest first."""
    return (
        db.query(Bill)
        .filter(Bill.client_id == client_id, Bill.is_paid == False)
        .order_by(Bill.bill_date.asc(), Bill.id.asc())
        .all()
    )


def bill_payments(db: Session, bill_id: int):
    return (
        db.query(Payment)
        .filter(Payment.bill_id == bill_id)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .all()
    )


def client_payments(db: Session, client_id: int):
    return (
        db.query(Payment)
        .filter(Payment.client_id == client_id)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .all()
    )


def add_manual_bill(
    db: Session,
    client_id: int,
    amount,
    description: str | None = None,
    created_by: str | None = None,
) -> Bill:
    """Bill raised from the client account rather than from an order."""
    amount = require_positive(amount)
    client = get_client_or_404(db, client_id, lock=True)

    try:
        bill = Bill(
            client_id=client.id,
            amount=amount,
            paid_amount=ZERO,
            is_paid=False,
            description=description or "Bill from client account",
            reference_number=new_reference_number(),
            created_by=created_by,
            bill_date=datetime.utcnow(),
        )
        db.add(bill)
        db.flush()

        client.amount = to_money(client.amount + amount)
        client.balance = to_money(client.amount - client.deposit)

        append_transaction(
            db,
            client,
            TransactionType.BILL,
            amount,
            description=description or f"Bill #{bill.id}",
            bill_id=bill.id,
            processed_by=created_by,
        )
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to add bill for client %s", client_id)
        raise HTTPException(status_code=500, detail="Failed to add bill")

    db.refresh(bill)
    logger.info("Bill %s of %s opened for client %s", bill.id, amount, client.id)
    return bill


# =========================
# TRANSACTIONS
# =========================

def client_transactions(db: Session, client_id: int):
    """Transaction history, chronological."""
    return (
        db.query(Transaction)
        .filter(Transaction.client_id == client_id)
        .order_by(Transaction.date.asc(), Transaction.id.asc())
        .all()
    )


def get_transaction_or_404(db: Session, transaction_id: int) -> Transaction:
    tx = db.query(Transaction).filter(Transaction.id == transaction_id).first()
    if not tx:
        raise NotFound(f"Transaction {transaction_id} not found")
    return tx


def reconcile_client(db: Session, client: Client, log_drift: bool = True) -> dict:
    """Rewrite the cached money columns from bills and the transaction stream."""
    db.flush()

    bills = db.query(Bill).filter(Bill.client_id == client.id).all()
    transactions = db.query(Transaction).filter(Transaction.client_id == client.id).all()
    figures = calc.client_figures(bills, transactions)

    cached = (to_money(client.amount), to_money(client.deposit))
    derived = (figures["amount"], figures["deposit"])
    if log_drift and cached != derived:
        logger.warning(
            "Client %s cached amount/deposit %s drifted from ledger %s; rewriting",
            client.id, cached, derived,
        )

    client.amount = figures["amount"]
    client.deposit = figures["deposit"]
    client.balance = figures["balance"]

    return figures


def append_transaction(
    db: Session,
    client: Client,
    tx_type: TransactionType,
    amount,
    description: str | None = None,
    bill_id: int | None = None,
    payment_method: str | None = None,
    processed_by: str | None = None,
) -> Transaction:
    tx = Transaction(
        client_id=client.id,
        bill_id=bill_id,
        type=TransactionType(tx_type).value,
        amount=to_money(amount),
        description=description,
        date=datetime.utcnow(),
        payment_method=payment_method,
        processed_by=processed_by,
        running_balance=ZERO,
    )
    db.add(tx)

    reconcile_client(db, client)
    tx.running_balance = client.balance

    return tx


def add_deposit(
    db: Session,
    client_id: int,
    amount,
    description: str | None = None,
    payment_method: str = "cash",
    processed_by: str | None = None,
) -> Transaction:
    amount = require_positive(amount)
    client = get_client_or_404(db, client_id, lock=True)

    try:
        client.deposit = to_money(client.deposit + amount)
        client.balance = to_money(client.amount - client.deposit)

        tx = append_transaction(
            db,
            client,
            TransactionType.DEPOSIT,
            amount,
            description=description or "Deposit received",
            payment_method=payment_method,
            processed_by=processed_by,
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to record deposit for client %s", client_id)
        raise HTTPException(status_code=500, detail="Failed to record deposit")

    db.refresh(tx)
    logger.info("Deposit of %s recorded for client %s", amount, client_id)
    return tx


def update_transaction(db: Session, transaction_id: int, amount, description: str | None = None) -> Transaction:
    """Administrative correction of a deposit entry."""
    tx = get_transaction_or_404(db, transaction_id)
    if tx.type not in CORRECTABLE_TYPES:
        raise Conflict(
            f"'{tx.type}' entries are corrected through their bill, not edited directly"
        )

    amount = require_positive(amount)
    client = get_client_or_404(db, tx.client_id, lock=True)
    old_amount = tx.amount

    try:
        tx.amount = amount
        if description is not None:
            tx.description = description

        reconcile_client(db, client, log_drift=False)
        tx.running_balance = client.balance
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to update transaction %s", transaction_id)
        raise HTTPException(status_code=500, detail="Failed to update transaction")

    db.refresh(tx)
    logger.info("Transaction %s amount corrected from %s to %s", tx.id, old_amount, amount)
    return tx


def delete_transaction(db: Session, transaction_id: int):
    tx = get_transaction_or_404(db, transaction_id)
    if tx.type not in CORRECTABLE_TYPES:
        raise Conflict(
            f"'{tx.type}' entries are removed through their bill, not deleted directly"
        )

    client = get_client_or_404(db, tx.client_id, lock=True)

    try:
        db.delete(tx)
        reconcile_client(db, client, log_drift=False)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to delete transaction %s", transaction_id)
        raise HTTPException(status_code=500, detail="Failed to delete transaction")

    logger.info("Transaction %s deleted for client %s", transaction_id, client.id)
