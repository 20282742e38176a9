from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class ManualBillCreate(BaseModel):
    amount: Decimal
    description: Optional[str] = None


class BillResponse(BaseModel):
    id: int
    client_id: int
    amount: Decimal
    paid_amount: Decimal
    is_paid: bool
    description: Optional[str] = None
    reference_number: Optional[str] = None
    created_by: Optional[str] = None
    bill_date: datetime
    notes: Optional[str] = None

    class Config:
        from_attributes = True
