from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from laundry_ledger.core.dependencies import get_db, require_role
from laundry_ledger.schemas.transaction import TransactionResponse, TransactionUpdate
from laundry_ledger.services import ledger_store
from laundry_ledger.services.audit_service import log_action

router = APIRouter(prefix="/transactions", tags=["Transactions"])


@router.put("/{transaction_id}", response_model=TransactionResponse)
def correct_transaction(
    transaction_id: int,
    payload: TransactionUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_role(["admin"]))
):
    tx = ledger_store.update_transaction(
        db, transaction_id, payload.amount, description=payload.description
    )

    log_action(
        db=db,
        user_id=user.id,
        action="CORRECT_TRANSACTION",
        entity=tx,
        details=f"Amount set to {tx.amount}"
    )

    return tx


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(["admin"]))
):
    ledger_store.delete_transaction(db, transaction_id)

    log_action(
        db=db,
        user_id=user.id,
        action="DELETE_TRANSACTION",
        entity_type="Transaction",
        entity_id=transaction_id,
        details="Deposit entry removed"
    )
