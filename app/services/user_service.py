"""
app/services/user_service.py

Purpose: User data management

- Create or update user records on every inbound message
- Saved recipient numbers (customer subscriptions)
- User retrieval
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.exceptions import PersistenceError
from app.core.logging import get_logger, LogContext
from app.db.database import Database
from app.models.customer_subscription import CustomerSubscription
from app.models.user import User
from utils.constants import SAVED_NUMBERS_LIMIT
from utils.time_utils import utcnow
from utils.transaction_utils import split_subscriber_name

logger = get_logger(__name__)


class UserService:
    """
    Users and their saved recipient numbers.
    """

    def __init__(self, database: Database):
        self.database = database

    async def get_or_create_user(self, phone: str, name: Optional[str] = None) -> User:
        """
        Retrieves an existing user or creates a new one, touching last_active.

        Args:
            phone: Canonical sender phone
            name: WhatsApp profile name, if the transport supplied one

        Returns:
            User row

        Raises:
            PersistenceError: The user could not be read or created
        """
        with LogContext(user_id=phone):
            try:
                async with self.database.session() as db:
                    user = await self._find(db, phone)

                    if user is None:
                        user = User(phone=phone, first_name=name or None)
                        db.add(user)
                        try:
                            await db.commit()
                            logger.info("✅ Created new user")
                            return user
                        except IntegrityError:
                            # Created by a concurrent request for the same sender
                            await db.rollback()
                            user = await self._find(db, phone)
                            if user is None:
                                raise

                    user.last_active = utcnow()
                    if name and not user.first_name:
                        user.first_name = name
                    await db.commit()
                    return user

            except SQLAlchemyError as e:
                logger.error(f"❌ Failed to load user: {e}")
                raise PersistenceError("Could not load user", details={"phone": phone}) from e

    async def get_user_by_phone(self, phone: str) -> Optional[User]:
        async with self.database.session() as db:
            return await self._find(db, phone)

    async def save_number(self, user_id: int, phone: str, subscriber_name: Optional[str] = None) -> bool:
        """
        Upserts a saved recipient number. Best-effort.

        A known name is never overwritten with an unknown one.
        """
        first_name, last_name = split_subscriber_name(subscriber_name)

        try:
            async with self.database.session() as db:
                result = await db.execute(
                    select(CustomerSubscription).where(
                        CustomerSubscription.user_id == user_id,
                        CustomerSubscription.subscription_id == phone,
                    )
                )
                saved = result.scalar_one_or_none()

                if saved is None:
                    saved = CustomerSubscription(
                        user_id=user_id,
                        subscription_id=phone,
                        subscriber_first_name=first_name,
                        subscriber_last_name=last_name,
                    )
                    db.add(saved)
                else:
                    if first_name:
                        saved.subscriber_first_name = first_name
                        saved.subscriber_last_name = last_name
                    saved.is_active = True
                    saved.updated_at = utcnow()

                await db.commit()
                return True

        except SQLAlchemyError as e:
            logger.warning(f"⚠️ Could not save number {phone}: {e}")
            return False

    async def list_saved_numbers(self, user_id: int, limit: int = SAVED_NUMBERS_LIMIT) -> List[Dict[str, Any]]:
        """
        Active saved numbers, primary first, then most recently used.

        Returns:
            [{"phone": "2567...", "name": "Jane Doe" | None}, ...]
        """
        async with self.database.session() as db:
            result = await db.execute(
                select(CustomerSubscription)
                .where(
                    CustomerSubscription.user_id == user_id,
                    CustomerSubscription.is_active.is_(True),
                )
                .order_by(
                    CustomerSubscription.is_primary.desc(),
                    CustomerSubscription.updated_at.desc(),
                    CustomerSubscription.id.desc(),
                )
                .limit(limit)
            )
            return [
                {"phone": saved.subscription_id, "name": saved.subscriber_name or None}
                for saved in result.scalars().all()
            ]

    async def count_saved_numbers(self, user_id: int) -> int:
        async with self.database.session() as db:
            result = await db.execute(
                select(func.count(CustomerSubscription.id)).where(
                    CustomerSubscription.user_id == user_id,
                    CustomerSubscription.is_active.is_(True),
                )
            )
            return result.scalar_one()

    @staticmethod
    async def _find(db, phone: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.phone == phone))
        return result.scalar_one_or_none()
