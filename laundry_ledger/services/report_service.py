from datetime import datetime, time

from sqlalchemy import func
from sqlalchemy.orm import Session

from laundry_ledger.core.errors import InvalidInput
from laundry_ledger.models.bill import Bill
from laundry_ledger.models.client import Client
from laundry_ledger.models.payment import Payment
from laundry_ledger.services import balance_calculator as calc
from laundry_ledger.services import ledger_store
from laundry_ledger.services.balance_calculator import LedgerView
from laundry_ledger.services.money import ZERO, money_sum, remaining_due, to_money


def _parse_date(date_value: str | None, bound: time) -> datetime | None:
    if not date_value:
        return None

    try:
        parsed = datetime.fromisoformat(date_value)
    except ValueError:
        raise InvalidInput(f"Invalid date '{date_value}', expected YYYY-MM-DD")

    if "T" not in date_value:
        return datetime.combine(parsed.date(), bound)
    return parsed


def _ledger_rows(series):
    return [
        {
            "id": tx.id,
            "date": tx.date,
            "type": tx.type,
            "amount": to_money(tx.amount),
            "description": tx.description,
            "bill_id": tx.bill_id,
            "payment_method": tx.payment_method,
            "running_balance": balance,
        }
        for tx, balance in series
    ]


# =====================================================
# PER-CLIENT LEDGER
# =====================================================

def client_ledger_summary(db: Session, client_id: int):
    client = ledger_store.get_client_or_404(db, client_id)
    bills = ledger_store.client_bills(db, client.id)
    transactions = ledger_store.client_transactions(db, client.id)

    return {
        "client": client,
        "unpaid_due": calc.unpaid_due(bills),
        "credit_available": calc.credit_available(transactions),
        "net_position": calc.net_position(bills, transactions),
        "bills": bills,
        "transactions": transactions,
        "credit_ledger": _ledger_rows(
            calc.running_balance_series(transactions, LedgerView.CREDIT)
        ),
        "bill_ledger": _ledger_rows(
            calc.running_balance_series(transactions, LedgerView.BILL)
        ),
    }


# =====================================================
# REVENUE / PAID / PENDING FOR A DATE RANGE
# =====================================================

def revenue_summary(db: Session, from_date: str | None = None, to_date: str | None = None):
    from_dt = _parse_date(from_date, time.min)
    to_dt = _parse_date(to_date, time.max)

    bill_query = db.query(Bill)
    payment_query = db.query(
        Payment.payment_method,
        func.count(Payment.id).label("count"),
        func.sum(Payment.amount).label("total"),
    )

    if from_dt:
        bill_query = bill_query.filter(Bill.bill_date >= from_dt)
        payment_query = payment_query.filter(Payment.created_at >= from_dt)

    if to_dt:
        bill_query = bill_query.filter(Bill.bill_date <= to_dt)
        payment_query = payment_query.filter(Payment.created_at <= to_dt)

    bills = bill_query.all()
    payment_rows = payment_query.group_by(Payment.payment_method).all()

    billed = money_sum(bill.amount for bill in bills)
    paid = money_sum(bill.paid_amount for bill in bills)
    pending = calc.unpaid_due(bills)

    by_method = [
        {
            "payment_method": row.payment_method,
            "count": row.count,
            "total": to_money(row.total or 0),
        }
        for row in payment_rows
    ]

    return {
        "from_date": from_dt,
        "to_date": to_dt,
        "bill_count": len(bills),
        "paid_bill_count": sum(1 for bill in bills if bill.is_paid),
        "total_billed": billed,
        "total_paid": paid,
        "total_pending": pending,
        "payments_received": money_sum(row["total"] for row in by_method),
        "payments_by_method": sorted(by_method, key=lambda row: row["payment_method"]),
    }


# =====================================================
# CLIENTS WITH MONEY DUE
# =====================================================

def due_clients(db: Session, search: str | None = None):
    query = (
        db.query(Bill)
        .join(Client, Client.id == Bill.client_id)
        .filter(Bill.is_paid == False)
        .order_by(Bill.bill_date.asc(), Bill.id.asc())
    )

    if search and search.strip():
        term = f"%{search.strip().lower()}%"
        query = query.filter(func.lower(Client.name).like(term))

    by_client: dict[int, dict] = {}

    for bill in query.all():
        due = remaining_due(bill.amount, bill.paid_amount)
        if due <= ZERO:
            continue

        if bill.client_id not in by_client:
            by_client[bill.client_id] = {
                "client_id": bill.client_id,
                "client_name": bill.client.name,
                "phone": bill.client.phone,
                "unpaid_bill_count": 0,
                "total_due": ZERO,
                "oldest_bill_date": bill.bill_date,
            }

        entry = by_client[bill.client_id]
        entry["unpaid_bill_count"] += 1
        entry["total_due"] = to_money(entry["total_due"] + due)

    return sorted(
        by_client.values(),
        key=lambda row: (-row["total_due"], row["client_name"].lower()),
    )
