from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from laundry_ledger.db.base import Base


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    phone = Column(String, unique=True, index=True)
    email = Column(String)
    address = Column(String)
    notes = Column(Text)

    preferred_payment_method = Column(String, nullable=False, default="cash")
    discount_percent = Column(Numeric(5, 2), nullable=False, default=0)

    # Cached figures, rewritten by ledger_store.reconcile_client
    amount = Column(Numeric(12, 2), nullable=False, default=0)
    deposit = Column(Numeric(12, 2), nullable=False, default=0)
    balance = Column(Numeric(12, 2), nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)

    bills = relationship("Bill", back_populates="client")
    transactions = relationship("Transaction", back_populates="client")
