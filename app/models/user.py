"""
app/models/user.py

Purpose: User table

- WhatsApp sender identity (canonical phone)
- Optional display name
- Registration and last-activity timestamps
"""
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime

from app.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    phone = Column(String(32), unique=True, nullable=False, index=True)
    first_name = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    last_active = Column(DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self):
        return f"<User id={self.id} phone={self.phone}>"
