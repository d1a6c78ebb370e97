"""
app/services/session_service.py

Purpose: Session and state management

- One session row per user, created lazily in the idle state
- Overwrites state, action and data on every transition
- Handles session expiry and reset logic
- Session data crosses the database boundary only through the versioned codec
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import PersistenceError
from app.core.logging import get_logger, LogContext
from app.db.database import Database
from app.models.session import ConversationSession
from app.schemas.session import (
    IdleSession,
    SessionData,
    SessionDecodeError,
    SessionSnapshot,
    decode_session_data,
    encode_session_data,
)
from utils.time_utils import calculate_session_expiry, is_session_expired, utcnow

logger = get_logger(__name__)


class SessionStore:
    """
    Persists per-user conversation state with a sliding expiry window.
    """

    def __init__(self, database: Database, timeout_minutes: int = 30):
        self.database = database
        self.timeout_minutes = timeout_minutes

    async def get(self, user_id: int) -> SessionSnapshot:
        """
        Loads the user's session, creating or resetting it to idle when it is
        missing or expired.

        Raises:
            PersistenceError: The session row could not be read or created
        """
        with LogContext(user_id=user_id):
            try:
                async with self.database.session() as db:
                    row = await self._load_row(db, user_id)
                    now = utcnow()

                    if row is None:
                        row = ConversationSession(
                            user_id=user_id,
                            state="idle",
                            current_action=None,
                            session_data=encode_session_data(IdleSession()),
                            expires_at=calculate_session_expiry(self.timeout_minutes, now),
                        )
                        db.add(row)
                        await db.commit()
                        logger.info("🆕 Created idle session")
                        return self._snapshot(row, IdleSession())

                    if is_session_expired(row.expires_at, now):
                        logger.info(f"⏰ Session expired in state {row.state}, resetting to idle")
                        self._apply(row, IdleSession())
                        await db.commit()
                        return self._snapshot(row, IdleSession())

                    try:
                        data = decode_session_data(row.session_data)
                    except SessionDecodeError as e:
                        logger.warning(f"⚠️ Unreadable session data, resetting to idle: {e}")
                        data = IdleSession()
                        self._apply(row, data)
                        await db.commit()

                    return self._snapshot(row, data)

            except SQLAlchemyError as e:
                logger.error(f"❌ Failed to load session: {e}")
                raise PersistenceError("Could not load session", details={"user_id": user_id}) from e

    async def update(self, user_id: int, data: SessionData) -> bool:
        """
        Overwrites the session with a new variant and refreshes expiry.

        Best-effort: failures are logged and reported as False.
        """
        with LogContext(user_id=user_id, state=data.state):
            try:
                async with self.database.session() as db:
                    row = await self._load_row(db, user_id)
                    if row is None:
                        row = ConversationSession(user_id=user_id)
                        db.add(row)
                    self._apply(row, data)
                    await db.commit()

                logger.debug(f"Session saved: state={data.state} action={data.current_action}")
                return True

            except SQLAlchemyError as e:
                logger.error(f"❌ Failed to save session: {e}")
                return False

    async def clear(self, user_id: int) -> bool:
        """
        Resets the session to idle with empty data. The row is kept and its
        expiry refreshed.
        """
        return await self.update(user_id, IdleSession())

    async def _load_row(self, db, user_id: int) -> Optional[ConversationSession]:
        result = await db.execute(
            select(ConversationSession).where(ConversationSession.user_id == user_id)
        )
        return result.scalar_one_or_none()

    def _apply(self, row: ConversationSession, data: SessionData):
        now = utcnow()
        row.state = data.state
        row.current_action = data.current_action
        row.session_data = encode_session_data(data)
        row.expires_at = calculate_session_expiry(self.timeout_minutes, now)
        row.updated_at = now

    @staticmethod
    def _snapshot(row: ConversationSession, data: SessionData) -> SessionSnapshot:
        return SessionSnapshot(user_id=row.user_id, data=data, expires_at=row.expires_at)
