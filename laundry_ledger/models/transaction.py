from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from laundry_ledger.db.base import Base


class Transaction(Base):
    __tablename__ = "client_transactions"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)

    # Audit back-reference only; bulk entries list their bills in description
    bill_id = Column(Integer, ForeignKey("bills.id"), nullable=True, index=True)

    type = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(String)
    date = Column(DateTime, default=datetime.utcnow, nullable=False)
    payment_method = Column(String)
    processed_by = Column(String)

    # Snapshot of client.balance after this entry
    running_balance = Column(Numeric(12, 2), nullable=False, default=0)

    client = relationship("Client", back_populates="transactions")
