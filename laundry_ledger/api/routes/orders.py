from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from laundry_ledger.core.dependencies import MANAGERS, STAFF, get_db, get_staff_verifier, require_role
from laundry_ledger.core.errors import InvalidInput
from laundry_ledger.schemas.bill import BillResponse
from laundry_ledger.schemas.order import OrderCreate, OrderItemsUpdate, OrderResponse
from laundry_ledger.services import bill_lifecycle_service as lifecycle
from laundry_ledger.services import ledger_store
from laundry_ledger.services.audit_service import log_action
from laundry_ledger.services.staff_verifier import StaffVerifier

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    db: Session = Depends(get_db),
    user=Depends(require_role(STAFF))
):
    if payload.client_id is not None:
        client_id = payload.client_id
    else:
        if not payload.client_name and not payload.client_phone:
            raise InvalidInput("Either client_id or client name/phone is required")
        # Flushed only; committed together with the order
        client = ledger_store.get_or_create_client(
            db,
            payload.client_name or "",
            payload.client_phone,
            payload.client_address,
        )
        client_id = client.id

    order = lifecycle.create_order(
        db,
        client_id,
        [item.model_dump() for item in payload.items],
        urgent=payload.urgent,
        discount_percent=payload.discount_percent,
        order_number=payload.order_number,
        created_by=user.name,
        existing_bill_id=payload.bill_id,
    )

    log_action(
        db=db,
        user_id=user.id,
        action="CREATE_ORDER",
        entity=order,
        details=f"Order {order.order_number} | Total: {order.final_amount} | Bill: {order.bill_id}"
    )

    return order


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(STAFF))
):
    return lifecycle.get_order_or_404(db, order_id)


# =========================
# EDIT ITEMS (PIN REQUIRED)
# =========================
@router.put("/{order_id}/items")
def update_order_items(
    order_id: int,
    payload: OrderItemsUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_role(STAFF)),
    verifier: StaffVerifier = Depends(get_staff_verifier),
):
    identity = verifier.verify(payload.pin)

    result = lifecycle.recalculate_order_items(
        db,
        order_id,
        [item.model_dump() for item in payload.items],
        editor=identity.name,
        urgent=payload.urgent,
        discount_percent=payload.discount_percent,
    )

    log_action(
        db=db,
        user_id=identity.user_id,
        action="EDIT_ORDER_ITEMS",
        entity=result["order"],
        details=f"Bill amount {result['old_amount']} -> {result['new_amount']}"
    )

    bill = result["bill"]
    return {
        "order": OrderResponse.model_validate(result["order"]),
        "bill": BillResponse.model_validate(bill) if bill is not None else None,
        "old_amount": result["old_amount"],
        "new_amount": result["new_amount"],
        "edited_by": identity.name,
    }


@router.delete("/{order_id}")
def delete_order(
    order_id: int,
    db: Session = Depends(get_db),
    user=Depends(require_role(MANAGERS))
):
    result = lifecycle.reverse_bill_for_order(db, order_id, performed_by=user.name)

    log_action(
        db=db,
        user_id=user.id,
        action="DELETE_ORDER",
        entity_type="Order",
        entity_id=order_id,
        details=(
            f"Bill {result['bill_id']} deleted: {result['bill_deleted']} | "
            f"Credit restored: {result['credit_restored']}"
        )
    )

    return result
