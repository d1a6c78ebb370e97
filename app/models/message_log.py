"""Audit trail of inbound and outbound WhatsApp text."""
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Text

from app.db.base import Base


class MessageLog(Base):
    __tablename__ = "message_logs"

    id = Column(Integer, primary_key=True, index=True)
    phone = Column(String(32), nullable=False, index=True)
    direction = Column(String(10), nullable=False)  # incoming | outgoing
    message = Column(Text, nullable=False)
    message_id = Column(String(128), nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
