"""
app/services/ledger_service.py

Purpose: Transaction ledger

- Durable pending record before every reseller purchase call
- Exactly one terminal update per transaction (success | failed)
- History, per-user stats and hourly recharge counting
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import PersistenceError
from app.core.logging import get_logger, LogContext
from app.db.database import Database
from app.models.transaction import (
    Transaction,
    TRANSACTION_FAILED,
    TRANSACTION_PENDING,
    TRANSACTION_SUCCESS,
    TERMINAL_STATUSES,
)
from utils.constants import HISTORY_LIMIT
from utils.time_utils import utcnow

logger = get_logger(__name__)

# Fields the reseller may use for its own reference, most specific first
PROVIDER_REFERENCE_KEYS = ("providerTransactionId", "referenceId", "transactionReference", "orderId", "transactionId")


def extract_provider_reference(provider_result: Optional[Dict[str, Any]]) -> Optional[str]:
    if not provider_result:
        return None
    for key in PROVIDER_REFERENCE_KEYS:
        value = provider_result.get(key)
        if value:
            return str(value)
    return None


class TransactionLedger:
    """
    Records purchase attempts independently of the conversation flow.
    """

    def __init__(self, database: Database):
        self.database = database

    async def create(
        self,
        user_id: int,
        transaction_type: str,
        amount: int,
        target: str,
        transaction_id: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Transaction:
        """
        Writes a pending transaction.

        Args:
            user_id: Owner
            transaction_type: "bundle" or "airtime"
            amount: Whole UGX
            target: Recipient subscription (canonical phone)
            transaction_id: Locally generated unique id
            metadata: bundle_token, bundle_name, subscriber_name

        Raises:
            PersistenceError: The record could not be written; the purchase must not proceed
        """
        metadata = metadata or {}

        with LogContext(user_id=user_id, transaction_id=transaction_id):
            try:
                async with self.database.session() as db:
                    transaction = Transaction(
                        transaction_id=transaction_id,
                        user_id=user_id,
                        transaction_type=transaction_type,
                        amount=int(amount),
                        subscription_id=target,
                        bundle_token=metadata.get("bundle_token"),
                        bundle_name=metadata.get("bundle_name"),
                        subscriber_name=metadata.get("subscriber_name"),
                        status=TRANSACTION_PENDING,
                    )
                    db.add(transaction)
                    await db.commit()

                logger.info(f"🧾 Pending {transaction_type} transaction created for {target}")
                return transaction

            except SQLAlchemyError as e:
                logger.error(f"❌ Failed to create transaction: {e}")
                raise PersistenceError(
                    "Could not record transaction",
                    details={"transaction_id": transaction_id},
                ) from e

    async def update_status(
        self,
        transaction_id: str,
        status: str,
        provider_result: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> bool:
        """
        Moves a pending transaction to a terminal status.

        Best-effort: never raises. Terminal rows are left untouched, which
        makes repeated updates for the same id harmless.

        Returns:
            True if the row was updated
        """
        if status not in TERMINAL_STATUSES:
            logger.warning(f"⚠️ Refusing non-terminal status update to {status} for {transaction_id}")
            return False

        with LogContext(transaction_id=transaction_id):
            try:
                async with self.database.session() as db:
                    transaction = await self._find(db, transaction_id)

                    if transaction is None:
                        logger.warning("⚠️ Status update for unknown transaction")
                        return False

                    if transaction.is_terminal:
                        logger.warning(f"⚠️ Transaction already {transaction.status}, ignoring update to {status}")
                        return False

                    transaction.status = status
                    transaction.provider_response = provider_result
                    transaction.provider_transaction_id = extract_provider_reference(provider_result)
                    transaction.error_code = error_code
                    transaction.error_message = error_message
                    transaction.completed_at = utcnow()
                    await db.commit()

                emoji = "✅" if status == TRANSACTION_SUCCESS else "❌"
                logger.info(f"{emoji} Transaction marked {status}")
                return True

            except SQLAlchemyError as e:
                logger.error(f"❌ Failed to update transaction status to {status}: {e}")
                return False

    async def get(self, transaction_id: str, user_id: Optional[int] = None) -> Optional[Transaction]:
        async with self.database.session() as db:
            transaction = await self._find(db, transaction_id)
            if transaction is not None and user_id is not None and transaction.user_id != user_id:
                return None
            return transaction

    async def history(self, user_id: int, limit: int = HISTORY_LIMIT) -> List[Transaction]:
        """
        Most recent transactions first.
        """
        async with self.database.session() as db:
            result = await db.execute(
                select(Transaction)
                .where(Transaction.user_id == user_id)
                .order_by(Transaction.created_at.desc(), Transaction.id.desc())
                .limit(limit)
            )
            return list(result.scalars().all())

    async def stats(self, user_id: int) -> Dict[str, int]:
        """
        Transaction counts plus total spend over successful transactions.
        """
        async with self.database.session() as db:
            result = await db.execute(
                select(
                    Transaction.status,
                    func.count(Transaction.id),
                    func.coalesce(func.sum(Transaction.amount), 0),
                )
                .where(Transaction.user_id == user_id)
                .group_by(Transaction.status)
            )
            rows = result.all()

        counts = {status: (count, total) for status, count, total in rows}
        return {
            "total_transactions": sum(count for count, _ in counts.values()),
            "successful_transactions": counts.get(TRANSACTION_SUCCESS, (0, 0))[0],
            "failed_transactions": counts.get(TRANSACTION_FAILED, (0, 0))[0],
            "pending_transactions": counts.get(TRANSACTION_PENDING, (0, 0))[0],
            "total_spent": int(counts.get(TRANSACTION_SUCCESS, (0, 0))[1] or 0),
        }

    async def count_recent(self, target: str, since: datetime) -> int:
        """
        Pending or successful recharges to `target` created after `since`.

        Returns 0 when the count cannot be read; the reseller enforces the
        same limit with -10010.
        """
        try:
            async with self.database.session() as db:
                result = await db.execute(
                    select(func.count(Transaction.id)).where(
                        Transaction.subscription_id == target,
                        Transaction.status.in_((TRANSACTION_PENDING, TRANSACTION_SUCCESS)),
                        Transaction.created_at >= since,
                    )
                )
                return result.scalar_one()
        except SQLAlchemyError as e:
            logger.warning(f"⚠️ Could not count recent recharges for {target}: {e}")
            return 0

    @staticmethod
    async def _find(db, transaction_id: str) -> Optional[Transaction]:
        result = await db.execute(
            select(Transaction).where(Transaction.transaction_id == transaction_id)
        )
        return result.scalar_one_or_none()
