from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class ClientCreate(BaseModel):
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    preferred_payment_method: str = "cash"
    discount_percent: Decimal = Decimal("0")


class ClientUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    preferred_payment_method: Optional[str] = None
    discount_percent: Optional[Decimal] = None


class ClientResponse(BaseModel):
    id: int
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    preferred_payment_method: str
    discount_percent: Decimal
    amount: Decimal
    deposit: Decimal
    balance: Decimal
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ClientMergeRequest(BaseModel):
    source_client_id: int
