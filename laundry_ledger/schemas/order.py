from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class OrderItem(BaseModel):
    product_id: Optional[int] = None
    name: Optional[str] = None
    quantity: int = Field(..., gt=0)
    service: Literal["normal", "dry_clean"] = "normal"
    # Custom items not on the price list
    unit_price: Optional[Decimal] = None


class OrderCreate(BaseModel):
    client_id: Optional[int] = None
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    client_address: Optional[str] = None
    items: List[OrderItem]
    urgent: bool = False
    discount_percent: Optional[Decimal] = None
    order_number: Optional[str] = None
    bill_id: Optional[int] = None


class OrderItemsUpdate(BaseModel):
    pin: str
    items: List[OrderItem]
    urgent: Optional[bool] = None
    discount_percent: Optional[Decimal] = None


class OrderResponse(BaseModel):
    id: int
    client_id: int
    bill_id: Optional[int] = None
    order_number: str
    items: list
    urgent: bool
    discount_percent: Decimal
    total_amount: Decimal
    final_amount: Decimal
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
