from sqlalchemy import Boolean, Column, Integer, Numeric, String

from laundry_ledger.db.base import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)

    price = Column(Numeric(12, 2), nullable=False, default=0)
    dry_clean_price = Column(Numeric(12, 2), nullable=True)

    is_active = Column(Boolean, default=True)
