from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel


class DepositCreate(BaseModel):
    amount: Decimal
    description: Optional[str] = None
    payment_method: Literal["cash", "card", "bank"] = "cash"


class TransactionUpdate(BaseModel):
    amount: Decimal
    description: Optional[str] = None


class TransactionResponse(BaseModel):
    id: int
    client_id: int
    bill_id: Optional[int] = None
    type: str
    amount: Decimal
    description: Optional[str] = None
    date: datetime
    payment_method: Optional[str] = None
    processed_by: Optional[str] = None
    running_balance: Decimal

    class Config:
        from_attributes = True
