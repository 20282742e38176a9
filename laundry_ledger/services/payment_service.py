import logging

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from laundry_ledger.core.errors import InsufficientCredit, InvalidInput, NothingToPay
from laundry_ledger.models.bill import Bill
from laundry_ledger.models.payment import Payment
from laundry_ledger.models.transaction import Transaction
from laundry_ledger.services import balance_calculator as calc
from laundry_ledger.services import ledger_store
from laundry_ledger.services.balance_calculator import TransactionType
from laundry_ledger.services.money import ZERO, is_settled, remaining_due, to_money


logger = logging.getLogger(__name__)

ALLOWED_METHODS = {"cash", "card", "bank", "deposit"}


def _normalize_method(method: str | None) -> str:
    method = (method or "cash").strip().lower()
    if method not in ALLOWED_METHODS:
        raise InvalidInput("Invalid payment method. Use cash, card, bank, or deposit")
    return method


def _stream_credit(db: Session, client_id: int):
    transactions = db.query(Transaction).filter(Transaction.client_id == client_id).all()
    return calc.credit_available(transactions)


def _apply_to_bill(bill: Bill, amount):
    bill.paid_amount = to_money(bill.paid_amount + amount)
    bill.is_paid = is_settled(bill.paid_amount, bill.amount)


def pay_bill(
    db: Session,
    bill_id: int,
    amount,
    method: str = "cash",
    notes: str | None = None,
    processed_by: str | None = None,
):
    amount = ledger_store.require_positive(amount, "Payment amount")
    method = _normalize_method(method)

    bill = ledger_store.get_bill_or_404(db, bill_id)
    client = ledger_store.get_client_or_404(db, bill.client_id, lock=True)

    if method == "deposit":
        credit = _stream_credit(db, client.id)
        if credit < amount:
            raise InsufficientCredit(
                f"Available credit {credit} is less than payment amount {amount}"
            )

    try:
        if method == "deposit":
            client.deposit = to_money(client.deposit - amount)
            client.balance = to_money(client.amount - client.deposit)

            ledger_store.append_transaction(
                db,
                client,
                TransactionType.DEPOSIT_USED,
                amount,
                description=f"Deposit used for Bill #{bill.id}: {bill.description or 'N/A'}",
                bill_id=bill.id,
                payment_method="deposit",
                processed_by=processed_by,
            )
        else:
            ledger_store.append_transaction(
                db,
                client,
                TransactionType.PAYMENT,
                amount,
                description=f"Payment for Bill #{bill.id}: {bill.description or 'N/A'}",
                bill_id=bill.id,
                payment_method=method,
                processed_by=processed_by,
            )

        _apply_to_bill(bill, amount)

        payment = Payment(
            bill_id=bill.id,
            client_id=client.id,
            amount=amount,
            payment_method=method,
            notes=notes,
            processed_by=processed_by,
        )
        db.add(payment)

        db.commit()

    except HTTPException:
        db.rollback()
        raise
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Payment of %s on bill %s rolled back", amount, bill_id)
        raise HTTPException(status_code=500, detail="Failed to record payment")

    db.refresh(bill)
    db.refresh(payment)

    logger.info(
        "Bill %s paid %s by %s (paid %s of %s)",
        bill.id, amount, method, bill.paid_amount, bill.amount,
    )

    return {
        "message": "Payment recorded successfully",
        "bill": bill,
        "payment": payment,
    }


def pay_all_bills(
    db: Session,
    client_id: int,
    amount,
    method: str = "cash",
    notes: str | None = None,
    processed_by: str | None = None,
):
    """Spread one payment over the client's unpaid bills, oldest first."""
    payment_amount = ledger_store.require_positive(amount, "Payment amount")
    method = _normalize_method(method)

    client = ledger_store.get_client_or_404(db, client_id, lock=True)
    bills = ledger_store.unpaid_bills(db, client.id)

    billable = [bill for bill in bills if remaining_due(bill.amount, bill.paid_amount) > ZERO]
    if not billable:
        raise NothingToPay(f"Client {client.id} has no unpaid bills")

    if method == "deposit":
        credit = _stream_credit(db, client.id)
        if credit < payment_amount:
            raise InsufficientCredit(
                f"Available credit {credit} is less than payment amount {payment_amount}"
            )

    payment_method = "bulk_deposit" if method == "deposit" else method
    remaining_amount = payment_amount
    applied = []

    try:
        for bill in billable:
            if remaining_amount <= ZERO:
                break

            apply_amount = min(remaining_due(bill.amount, bill.paid_amount), remaining_amount)

            _apply_to_bill(bill, apply_amount)
            db.add(
                Payment(
                    bill_id=bill.id,
                    client_id=client.id,
                    amount=apply_amount,
                    payment_method=payment_method,
                    notes=notes,
                    processed_by=processed_by,
                )
            )

            remaining_amount = to_money(remaining_amount - apply_amount)
            applied.append({
                "bill_id": bill.id,
                "applied_amount": apply_amount,
                "paid_amount": to_money(bill.paid_amount),
                "bill_amount": to_money(bill.amount),
                "is_paid": bill.is_paid,
            })

        total_applied = to_money(payment_amount - remaining_amount)
        bill_ids = ", ".join(f"#{row['bill_id']}" for row in applied)

        if method == "deposit":
            # One deduction for the whole distribution
            client.deposit = to_money(client.deposit - total_applied)
            client.balance = to_money(client.amount - client.deposit)

            ledger_store.append_transaction(
                db,
                client,
                TransactionType.BULK_DEPOSIT_USED,
                total_applied,
                description=f"Deposit used for Bills {bill_ids}",
                payment_method="deposit",
                processed_by=processed_by,
            )
        else:
            ledger_store.append_transaction(
                db,
                client,
                TransactionType.BULK_PAYMENT,
                total_applied,
                description=f"Bulk payment for Bills {bill_ids}",
                payment_method=method,
                processed_by=processed_by,
            )

        db.commit()

    except HTTPException:
        db.rollback()
        raise
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Bulk payment of %s for client %s rolled back", payment_amount, client_id)
        raise HTTPException(status_code=500, detail="Bulk payment failed. Please retry.")

    if remaining_amount > ZERO:
        logger.info(
            "Bulk payment for client %s left %s unapplied", client.id, remaining_amount
        )

    logger.info(
        "Bulk payment of %s by %s applied to %d bill(s) for client %s",
        total_applied, method, len(applied), client.id,
    )

    return {
        "message": "Bulk payment recorded successfully",
        "client_id": client.id,
        "total_applied": total_applied,
        "applied_bills": applied,
        "remaining_amount": remaining_amount,
    }
