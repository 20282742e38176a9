from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel


PaymentMethod = Literal["cash", "card", "bank", "deposit"]


class PaymentRecordRequest(BaseModel):
    amount: Decimal
    method: PaymentMethod = "cash"
    notes: Optional[str] = None


class PaymentResponse(BaseModel):
    id: int
    bill_id: int
    client_id: int
    amount: Decimal
    payment_method: str
    notes: Optional[str] = None
    processed_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
