"""
app/models/transaction.py

Purpose: Purchase ledger table

Status moves pending -> success | failed exactly once.
Amounts are whole UGX.
"""
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, JSON

from app.db.base import Base


TRANSACTION_PENDING = "pending"
TRANSACTION_SUCCESS = "success"
TRANSACTION_FAILED = "failed"
TERMINAL_STATUSES = (TRANSACTION_SUCCESS, TRANSACTION_FAILED)


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    transaction_id = Column(String(64), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    transaction_type = Column(String(20), nullable=False)  # bundle | airtime
    amount = Column(Integer, nullable=False)
    subscription_id = Column(String(32), nullable=False, index=True)
    bundle_token = Column(String(255), nullable=True)
    bundle_name = Column(String(255), nullable=True)
    subscriber_name = Column(String(200), nullable=True)
    status = Column(String(20), nullable=False, default=TRANSACTION_PENDING)
    provider_transaction_id = Column(String(128), nullable=True)
    error_code = Column(String(32), nullable=True)
    error_message = Column(Text, nullable=True)
    provider_response = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def __repr__(self):
        return f"<Transaction {self.transaction_id} {self.transaction_type} {self.status}>"
