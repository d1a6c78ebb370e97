"""
app/flow/handlers/purchase.py

Handles: purchase confirmation and execution

- Best-effort subscriber lookup before confirming (also saves the number)
- YES / NO / re-prompt on the confirmation step
- Ledger create -> reseller call -> ledger update, then back to idle
"""

from typing import Any, Dict, Optional

from app.core.exceptions import PersistenceError, ResellerAPIError, ResellerTransportError
from app.core.logging import get_logger, LogContext
from app.flow.context import FlowContext, describe_failure, reply
from app.models.transaction import TRANSACTION_FAILED, TRANSACTION_SUCCESS
from app.schemas.session import (
    ConfirmingAirtimeSession,
    ConfirmingPurchaseSession,
    IdleSession,
    Plan,
)
from app.services.error_codes import get_error_message
from utils.constants import (
    AIRTIME_CONFIRMATION_MESSAGE,
    AIRTIME_SUCCESS_MESSAGE,
    BUNDLE_CONFIRMATION_MESSAGE,
    BUNDLE_SUCCESS_MESSAGE,
    CONFIRM_NO,
    CONFIRM_YES,
    CONFIRMATION_REPROMPT_MESSAGE,
    HOURLY_LIMIT_ERROR_CODE,
    PURCHASE_CANCELLED_MESSAGE,
    PURCHASE_FAILED_MESSAGE,
    PURCHASE_TECHNICAL_ERROR_MESSAGE,
    RECHARGE_LIMIT_MESSAGE,
    SUBSCRIBER_LINE,
)
from utils.time_utils import format_timestamp, one_hour_ago, utcnow
from utils.transaction_utils import extract_subscriber_name, generate_transaction_id
from utils.whatsapp_utils import format_currency, subscriber_suffix

logger = get_logger(__name__)


async def lookup_subscriber(ctx: FlowContext, phone: str) -> Optional[str]:
    """
    Subscriber display name, or None when the lookup fails.
    """
    try:
        info = await ctx.reseller.get_subscription_info(phone)
    except (ResellerAPIError, ResellerTransportError) as e:
        logger.info(f"Subscriber lookup for {phone} failed, continuing without a name: {e.message}")
        return None
    return extract_subscriber_name(info)


async def _resolve_subscriber(
    ctx: FlowContext,
    phone: str,
    known_name: Optional[str],
    saved: bool = False,
) -> Optional[str]:
    """
    Subscriber name for the confirmation. Only numbers the reseller
    recognised, or that are already saved, are kept as saved numbers.
    """
    name = known_name or await lookup_subscriber(ctx, phone)
    if name or saved:
        await ctx.users.save_number(ctx.user.id, phone, name)
    return name


async def prepare_bundle_confirmation(
    ctx: FlowContext,
    plan: Plan,
    phone: str,
    known_name: Optional[str] = None,
    saved: bool = False,
) -> Dict[str, Any]:
    name = await _resolve_subscriber(ctx, phone, known_name, saved)

    message = BUNDLE_CONFIRMATION_MESSAGE.format(
        name=plan.name,
        price=format_currency(plan.price),
        phone=phone,
        subscriber_line=subscriber_suffix(name, SUBSCRIBER_LINE),
        description=plan.description or "-",
    )
    return reply(message, ConfirmingPurchaseSession(plan=plan, phone=phone, subscriber_name=name))


async def prepare_airtime_confirmation(
    ctx: FlowContext,
    amount: int,
    phone: str,
    known_name: Optional[str] = None,
    saved: bool = False,
) -> Dict[str, Any]:
    name = await _resolve_subscriber(ctx, phone, known_name, saved)

    message = AIRTIME_CONFIRMATION_MESSAGE.format(
        amount=format_currency(amount),
        phone=phone,
        subscriber_line=subscriber_suffix(name, SUBSCRIBER_LINE),
    )
    return reply(message, ConfirmingAirtimeSession(amount=amount, phone=phone, subscriber_name=name))


async def handle_purchase_confirmation(ctx: FlowContext, message: str, session: ConfirmingPurchaseSession) -> Dict[str, Any]:
    """
    Confirmation step of a bundle purchase.
    """
    choice = message.strip().lower()

    if choice in CONFIRM_YES:
        return await execute_purchase(
            ctx,
            transaction_type="bundle",
            amount=session.plan.price,
            phone=session.phone,
            subscriber_name=session.subscriber_name,
            plan=session.plan,
        )

    if choice in CONFIRM_NO:
        logger.info("Bundle purchase cancelled at confirmation")
        return reply(PURCHASE_CANCELLED_MESSAGE, IdleSession())

    return reply(CONFIRMATION_REPROMPT_MESSAGE)


async def handle_airtime_confirmation(ctx: FlowContext, message: str, session: ConfirmingAirtimeSession) -> Dict[str, Any]:
    """
    Confirmation step of an airtime top-up.
    """
    choice = message.strip().lower()

    if choice in CONFIRM_YES:
        return await execute_purchase(
            ctx,
            transaction_type="airtime",
            amount=session.amount,
            phone=session.phone,
            subscriber_name=session.subscriber_name,
        )

    if choice in CONFIRM_NO:
        logger.info("Airtime purchase cancelled at confirmation")
        return reply(PURCHASE_CANCELLED_MESSAGE, IdleSession())

    return reply(CONFIRMATION_REPROMPT_MESSAGE)


async def execute_purchase(
    ctx: FlowContext,
    transaction_type: str,
    amount: int,
    phone: str,
    subscriber_name: Optional[str] = None,
    plan: Optional[Plan] = None,
) -> Dict[str, Any]:
    """
    Runs one purchase attempt and always returns the user to idle.

    Flow:
    1. Hourly recharge guard (refused locally, nothing recorded)
    2. Pending ledger record under a fresh transaction id
    3. Reseller purchase call
    4. Terminal ledger update and summary reply

    Raises:
        PersistenceError: The pending record could not be written
    """
    title = "Purchase" if transaction_type == "bundle" else "Airtime Top-up"

    recent = await ctx.ledger.count_recent(phone, one_hour_ago())
    if recent >= ctx.settings.MAX_RECHARGE_PER_HOUR:
        logger.warning(f"⏸️ Hourly recharge limit reached for {phone} ({recent} recent)")
        return reply(
            RECHARGE_LIMIT_MESSAGE.format(phone=phone, reason=get_error_message(HOURLY_LIMIT_ERROR_CODE)),
            IdleSession(),
        )

    transaction_id = generate_transaction_id()

    with LogContext(user_id=ctx.user.id, transaction_id=transaction_id):
        metadata = {"subscriber_name": subscriber_name}
        if plan is not None:
            metadata.update(bundle_token=plan.token, bundle_name=plan.name)

        try:
            await ctx.ledger.create(ctx.user.id, transaction_type, amount, phone, transaction_id, metadata)
        except PersistenceError:
            await ctx.sessions.clear(ctx.user.id)
            raise

        logger.info(f"💳 Executing {transaction_type} purchase of {amount} for {phone}")

        try:
            if transaction_type == "bundle":
                result = await ctx.reseller.purchase_bundle(phone, plan.token, transaction_id)
            else:
                result = await ctx.reseller.purchase_airtime(phone, amount, transaction_id)

        except ResellerAPIError as e:
            reason = describe_failure(e)
            await ctx.ledger.update_status(
                transaction_id,
                TRANSACTION_FAILED,
                provider_result=(e.details or {}).get("response"),
                error_code=e.response_code,
                error_message=reason,
            )
            message = PURCHASE_FAILED_MESSAGE.format(title=title, transaction_id=transaction_id, reason=reason)
            return reply(message, IdleSession())

        except ResellerTransportError as e:
            await ctx.ledger.update_status(
                transaction_id,
                TRANSACTION_FAILED,
                error_code=e.response_code,
                error_message=describe_failure(e),
            )
            message = PURCHASE_TECHNICAL_ERROR_MESSAGE.format(title=title, transaction_id=transaction_id)
            return reply(message, IdleSession())

        except Exception as e:
            logger.error(f"❌ Unexpected purchase error: {e}", exc_info=True)
            await ctx.ledger.update_status(
                transaction_id,
                TRANSACTION_FAILED,
                error_message=str(e) or type(e).__name__,
            )
            message = PURCHASE_TECHNICAL_ERROR_MESSAGE.format(title=title, transaction_id=transaction_id)
            return reply(message, IdleSession())

        await ctx.ledger.update_status(transaction_id, TRANSACTION_SUCCESS, provider_result=result)

        template = BUNDLE_SUCCESS_MESSAGE if transaction_type == "bundle" else AIRTIME_SUCCESS_MESSAGE
        message = template.format(
            name=plan.name if plan else "",
            amount=format_currency(amount),
            phone=phone,
            subscriber_line=subscriber_suffix(subscriber_name, SUBSCRIBER_LINE),
            transaction_id=transaction_id,
            date=format_timestamp(utcnow()),
        )
        return reply(message, IdleSession())
