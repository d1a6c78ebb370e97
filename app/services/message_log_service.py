"""
app/services/message_log_service.py

Purpose: Message audit trail and duplicate webhook suppression

- Logs incoming and outgoing text (best-effort)
- Detects webhook redeliveries by provider message id, or, for deliveries
  without one, by the same sender and body inside a short window
"""

from datetime import timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.core.logging import get_logger
from app.db.database import Database
from app.models.message_log import MessageLog
from utils.time_utils import utcnow

logger = get_logger(__name__)

INCOMING = "incoming"
OUTGOING = "outgoing"


class MessageLogService:

    def __init__(self, database: Database, duplicate_window_seconds: int = 30):
        self.database = database
        self.duplicate_window_seconds = duplicate_window_seconds

    async def log(self, phone: str, direction: str, message: str, message_id: Optional[str] = None) -> bool:
        try:
            async with self.database.session() as db:
                db.add(MessageLog(phone=phone, direction=direction, message=message or "", message_id=message_id))
                await db.commit()
            return True
        except SQLAlchemyError as e:
            logger.warning(f"⚠️ Failed to log {direction} message for {phone}: {e}")
            return False

    async def is_duplicate(self, phone: str, body: str, message_id: Optional[str] = None) -> bool:
        """
        True if this incoming message was already logged.

        A failed lookup is treated as "not a duplicate" so messages are never
        dropped because the audit table is unavailable.
        """
        try:
            async with self.database.session() as db:
                if message_id:
                    result = await db.execute(
                        select(MessageLog.id).where(
                            MessageLog.direction == INCOMING,
                            MessageLog.message_id == message_id,
                        ).limit(1)
                    )
                    return result.first() is not None

                since = utcnow() - timedelta(seconds=self.duplicate_window_seconds)
                result = await db.execute(
                    select(MessageLog.id).where(
                        MessageLog.direction == INCOMING,
                        MessageLog.phone == phone,
                        MessageLog.message == (body or ""),
                        MessageLog.created_at >= since,
                    ).limit(1)
                )
                return result.first() is not None

        except SQLAlchemyError as e:
            logger.warning(f"⚠️ Duplicate check failed for {phone}: {e}")
            return False
