"""
app/models/session.py

Purpose: Conversation session table

One row per user, overwritten in place on every transition.
session_data holds the versioned JSON produced by app.schemas.session.
"""
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text

from app.db.base import Base


class ConversationSession(Base):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    state = Column(String(50), nullable=False, default="idle")
    current_action = Column(String(50), nullable=True)
    session_data = Column(Text, nullable=False, default="{}")
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<ConversationSession user_id={self.user_id} state={self.state}>"
