from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from laundry_ledger.core.dependencies import STAFF, get_db, require_role
from laundry_ledger.schemas.bill import BillResponse
from laundry_ledger.schemas.payment import PaymentRecordRequest, PaymentResponse
from laundry_ledger.services import ledger_store
from laundry_ledger.services.audit_service import log_action
from laundry_ledger.services.bill_lifecycle_service import delete_bill
from laundry_ledger.services.money import remaining_due
from laundry_ledger.services.payment_service import pay_bill

router = APIRouter(prefix="/bills", tags=["Bills"])


@router.get("", response_model=list[BillResponse])
def get_bills(
    unpaid_only: bool = Query(default=False),
    db: Session = Depends(get_db),
    user=Depends(require_role(STAFF))
):
    return ledger_store.list_bills(db, unpaid_only=unpaid_only)


@router.get("/{bill_id}")
def get_bill(
    bill_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(STAFF))
):
    bill = ledger_store.get_bill_or_404(db, bill_id)
    payments = ledger_store.bill_payments(db, bill.id)

    return {
        "bill": BillResponse.model_validate(bill),
        "remaining": remaining_due(bill.amount, bill.paid_amount),
        "payments": [PaymentResponse.model_validate(p) for p in payments],
    }


# =========================
# PAY ONE BILL
# =========================
@router.post("/{bill_id}/pay")
def add_payment(
    bill_id: int,
    payload: PaymentRecordRequest,
    db: Session = Depends(get_db),
    user=Depends(require_role(STAFF))
):
    result = pay_bill(
        db,
        bill_id,
        payload.amount,
        method=payload.method,
        notes=payload.notes,
        processed_by=user.name,
    )

    log_action(
        db=db,
        user_id=user.id,
        action="ADD_PAYMENT",
        entity=result["bill"],
        details=f"Payment added: {result['payment'].amount} | Method: {payload.method}"
    )

    return {
        "message": result["message"],
        "bill": BillResponse.model_validate(result["bill"]),
        "payment": PaymentResponse.model_validate(result["payment"]),
    }


@router.delete("/{bill_id}")
def remove_bill(
    bill_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(["admin"]))
):
    result = delete_bill(db, bill_id)

    log_action(
        db=db,
        user_id=user.id,
        action="DELETE_BILL",
        entity_type="Bill",
        entity_id=bill_id,
        details=f"Bill reversed | Credit restored: {result['credit_restored']}"
    )

    return result
