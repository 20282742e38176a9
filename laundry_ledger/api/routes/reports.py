from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from laundry_ledger.core.dependencies import MANAGERS, get_db, require_role
from laundry_ledger.services.report_service import due_clients, revenue_summary

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/revenue")
def get_revenue(
    from_date: str | None = Query(default=None),
    to_date: str | None = Query(default=None),
    db: Session = Depends(get_db),
    user=Depends(require_role(MANAGERS))
):
    return revenue_summary(db, from_date=from_date, to_date=to_date)


@router.get("/due-clients")
def get_due_clients(
    search: str | None = Query(default=None),
    db: Session = Depends(get_db),
    user=Depends(require_role(MANAGERS))
):
    return due_clients(db, search)
