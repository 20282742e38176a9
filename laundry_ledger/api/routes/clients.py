from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from laundry_ledger.core.dependencies import STAFF, get_db, get_ledger_client, require_role
from laundry_ledger.schemas.bill import BillResponse, ManualBillCreate
from laundry_ledger.schemas.client import ClientCreate, ClientMergeRequest, ClientResponse, ClientUpdate
from laundry_ledger.schemas.payment import PaymentRecordRequest, PaymentResponse
from laundry_ledger.schemas.transaction import DepositCreate, TransactionResponse
from laundry_ledger.services import ledger_store, report_service
from laundry_ledger.services.audit_service import log_action
from laundry_ledger.services.payment_service import pay_all_bills


router = APIRouter(prefix="/clients", tags=["Clients"])


# ---------------- CLIENTS ----------------

@router.get("", response_model=list[ClientResponse])
def get_clients(
    search: str | None = Query(default=None),
    db: Session = Depends(get_db),
    user=Depends(require_role(STAFF))
):
    return ledger_store.list_clients(db, search)


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
def create_client(
    payload: ClientCreate,
    db: Session = Depends(get_db),
    user=Depends(require_role(STAFF))
):
    client = ledger_store.create_client(db, payload.model_dump())

    log_action(
        db=db,
        user_id=user.id,
        action="CREATE_CLIENT",
        entity=client,
        details=f"Client '{client.name}' created"
    )

    return client


@router.get("/due")
def get_due_clients(
    search: str | None = Query(default=None),
    db: Session = Depends(get_db),
    user=Depends(require_role(STAFF))
):
    return report_service.due_clients(db, search)


@router.get("/{client_id}", response_model=ClientResponse)
def get_client(
    user=Depends(require_role(STAFF)),
    client=Depends(get_ledger_client)
):
    return client


@router.put("/{client_id}", response_model=ClientResponse)
def update_client(
    client_id: int,
    payload: ClientUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_role(STAFF))
):
    return ledger_store.update_client(db, client_id, payload.model_dump(exclude_unset=True))


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_client(
    client_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(["admin"]))
):
    ledger_store.delete_client(db, client_id)

    log_action(
        db=db,
        user_id=user.id,
        action="DELETE_CLIENT",
        entity_type="Client",
        entity_id=client_id,
        details=f"Client {client_id} deleted"
    )


@router.post("/{client_id}/merge", response_model=ClientResponse)
def merge_client(
    client_id: int,
    payload: ClientMergeRequest,
    db: Session = Depends(get_db),
    user=Depends(require_role(["admin"]))
):
    client = ledger_store.merge_clients(db, payload.source_client_id, client_id)

    log_action(
        db=db,
        user_id=user.id,
        action="MERGE_CLIENTS",
        entity=client,
        details=f"Client {payload.source_client_id} merged into {client_id}"
    )

    return client


# ---------------- LEDGER ----------------

@router.get("/{client_id}/ledger")
def get_client_ledger(
    client_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(STAFF))
):
    summary = report_service.client_ledger_summary(db, client_id)

    return {
        **summary,
        "client": ClientResponse.model_validate(summary["client"]),
        "bills": [BillResponse.model_validate(bill) for bill in summary["bills"]],
        "transactions": [
            TransactionResponse.model_validate(tx) for tx in summary["transactions"]
        ],
    }


@router.get("/{client_id}/transactions", response_model=list[TransactionResponse])
def get_client_transactions(
    db: Session = Depends(get_db),
    user=Depends(require_role(STAFF)),
    client=Depends(get_ledger_client)
):
    return ledger_store.client_transactions(db, client.id)


@router.get("/{client_id}/bills", response_model=list[BillResponse])
def get_client_bills(
    db: Session = Depends(get_db),
    user=Depends(require_role(STAFF)),
    client=Depends(get_ledger_client)
):
    return ledger_store.client_bills(db, client.id)


@router.get("/{client_id}/payments", response_model=list[PaymentResponse])
def get_client_payments(
    db: Session = Depends(get_db),
    user=Depends(require_role(STAFF)),
    client=Depends(get_ledger_client)
):
    return ledger_store.client_payments(db, client.id)


@router.post(
    "/{client_id}/deposit",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_deposit(
    client_id: int,
    payload: DepositCreate,
    db: Session = Depends(get_db),
    user=Depends(require_role(STAFF))
):
    tx = ledger_store.add_deposit(
        db,
        client_id,
        payload.amount,
        description=payload.description,
        payment_method=payload.payment_method,
        processed_by=user.name,
    )

    log_action(
        db=db,
        user_id=user.id,
        action="ADD_DEPOSIT",
        entity=tx,
        details=f"Deposit added: {tx.amount} | Method: {payload.payment_method}"
    )

    return tx


@router.post(
    "/{client_id}/bill",
    response_model=BillResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_manual_bill(
    client_id: int,
    payload: ManualBillCreate,
    db: Session = Depends(get_db),
    user=Depends(require_role(STAFF))
):
    bill = ledger_store.add_manual_bill(
        db,
        client_id,
        payload.amount,
        description=payload.description,
        created_by=user.name,
    )

    log_action(
        db=db,
        user_id=user.id,
        action="ADD_BILL",
        entity=bill,
        details=f"Manual bill of {bill.amount}"
    )

    return bill


@router.post("/{client_id}/pay-all")
def pay_all(
    client_id: int,
    payload: PaymentRecordRequest,
    db: Session = Depends(get_db),
    user=Depends(require_role(STAFF))
):
    result = pay_all_bills(
        db,
        client_id,
        payload.amount,
        method=payload.method,
        notes=payload.notes,
        processed_by=user.name,
    )

    bill_ids = [row["bill_id"] for row in result["applied_bills"]]
    log_action(
        db=db,
        user_id=user.id,
        action="ADD_BULK_PAYMENT",
        entity_type="Client",
        entity_id=client_id,
        details=(
            f"Bulk payment {result['total_applied']} | Method: {payload.method} | "
            f"Bills: {bill_ids} | Unapplied: {result['remaining_amount']}"
        )
    )

    return result
