"""
app/models/customer_subscription.py

Purpose: Saved recipient numbers per user

Upserted whenever a purchase flow resolves subscriber info so returning
users can pick a number instead of typing it again.
"""
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, UniqueConstraint

from app.db.base import Base


class CustomerSubscription(Base):
    __tablename__ = "customer_subscriptions"
    __table_args__ = (
        UniqueConstraint("user_id", "subscription_id", name="uq_customer_subscription"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    subscription_id = Column(String(32), nullable=False)
    subscriber_first_name = Column(String(100), nullable=True)
    subscriber_last_name = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_primary = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def subscriber_name(self) -> str:
        parts = [self.subscriber_first_name or "", self.subscriber_last_name or ""]
        return " ".join(p for p in parts if p).strip()

    def __repr__(self):
        return f"<CustomerSubscription user_id={self.user_id} subscription_id={self.subscription_id}>"
