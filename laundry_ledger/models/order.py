from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from laundry_ledger.db.base import Base


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    bill_id = Column(Integer, ForeignKey("bills.id"), nullable=True, index=True)

    order_number = Column(String, unique=True, nullable=False)
    items = Column(JSON, nullable=False, default=list)
    urgent = Column(Boolean, nullable=False, default=False)
    discount_percent = Column(Numeric(5, 2), nullable=False, default=0)

    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    final_amount = Column(Numeric(12, 2), nullable=False, default=0)

    created_by = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow)

    client = relationship("Client")
    bill = relationship("Bill", back_populates="orders")
