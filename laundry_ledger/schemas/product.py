from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class ProductCreate(BaseModel):
    name: str
    price: Decimal
    dry_clean_price: Optional[Decimal] = None


class ProductUpdate(BaseModel):
    price: Optional[Decimal] = None
    dry_clean_price: Optional[Decimal] = None
    is_active: Optional[bool] = None


class ProductResponse(BaseModel):
    id: int
    name: str
    price: Decimal
    dry_clean_price: Optional[Decimal] = None
    is_active: bool

    class Config:
        from_attributes = True
