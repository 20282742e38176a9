from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from laundry_ledger.db.base import Base


class Bill(Base):
    __tablename__ = "bills"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)

    amount = Column(Numeric(12, 2), nullable=False, default=0)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=0)
    is_paid = Column(Boolean, nullable=False, default=False)

    description = Column(String)
    reference_number = Column(String, index=True)
    created_by = Column(String)
    bill_date = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Append-only amount change history
    notes = Column(Text)

    client = relationship("Client", back_populates="bills")
    payments = relationship("Payment", back_populates="bill")
    orders = relationship("Order", back_populates="bill")
