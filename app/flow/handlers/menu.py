"""
app/flow/handlers/menu.py

Handles: idle commands

- Welcome, main menu, support
- Reseller wallet balance
- Transaction history, profile and transaction status
- Direct number lookup and the unknown-command fallback
"""

import random
from typing import Any, Dict

from app.core.exceptions import ResellerAPIError, ResellerTransportError
from app.core.logging import get_logger
from app.flow.context import FlowContext, describe_failure, reply
from app.flow.handlers.airtime import show_airtime_options
from app.flow.handlers.bundles import show_bundles
from app.flow.handlers.purchase import lookup_subscriber
from app.models.transaction import TRANSACTION_FAILED, TRANSACTION_PENDING, TRANSACTION_SUCCESS
from app.schemas.session import IdleSession, NumberSelectedSession
from utils.constants import (
    AIRTIME_COMMANDS,
    BALANCE_COMMANDS,
    BALANCE_FAILED_MESSAGE,
    BALANCE_MESSAGE,
    BUNDLE_COMMANDS,
    CANCEL_COMMANDS,
    GREETING_COMMANDS,
    HISTORY_COMMANDS,
    HISTORY_EMPTY_MESSAGE,
    HISTORY_FOOTER,
    HISTORY_HEADER,
    MAIN_MENU_MESSAGE,
    MENU_COMMANDS,
    NUMBER_SELECTED_MESSAGE,
    OPERATION_CANCELLED_MESSAGE,
    PROFILE_COMMANDS,
    PROFILE_MESSAGE,
    STATUS_COMMAND,
    STATUS_USAGE_MESSAGE,
    SUBSCRIBER_LINE,
    SUPPORT_COMMANDS,
    SUPPORT_MESSAGE,
    TRANSACTION_NOT_FOUND_MESSAGE,
    TRANSACTION_STATUS_MESSAGE,
    UNKNOWN_COMMAND_MESSAGES,
    WELCOME_MESSAGE,
)
from utils.time_utils import format_date
from utils.transaction_utils import extract_balance
from utils.validation_utils import format_phone_number, is_valid_uganda_number
from utils.whatsapp_utils import build_transaction_line, format_currency, subscriber_suffix

logger = get_logger(__name__)

# Reseller-side transaction states reported by check_ebalance_transaction_status
PROVIDER_SUCCESS_STATES = ("SUCCESS", "COMPLETED", "SUCCESSFUL")
PROVIDER_FAILED_STATES = ("FAILED", "FAILURE", "REJECTED")


def main_menu_text(ctx: FlowContext) -> str:
    return MAIN_MENU_MESSAGE.format(bot_name=ctx.settings.BOT_NAME)


async def handle_welcome(ctx: FlowContext, message: str) -> Dict[str, Any]:
    name_suffix = f" {ctx.user.first_name}" if ctx.user.first_name else ""
    return reply(WELCOME_MESSAGE.format(bot_name=ctx.settings.BOT_NAME, name_suffix=name_suffix))


async def handle_main_menu(ctx: FlowContext, message: str) -> Dict[str, Any]:
    return reply(main_menu_text(ctx))


async def handle_cancel(ctx: FlowContext, message: str) -> Dict[str, Any]:
    return reply(OPERATION_CANCELLED_MESSAGE, IdleSession())


async def handle_balance(ctx: FlowContext, message: str) -> Dict[str, Any]:
    """
    Reseller float wallet balance.
    """
    try:
        data = await ctx.reseller.get_wallet_balance()
    except (ResellerAPIError, ResellerTransportError) as e:
        logger.error(f"❌ Balance check failed: {e.message}")
        return reply(BALANCE_FAILED_MESSAGE.format(reason=describe_failure(e)))

    balance = extract_balance(data)
    display = format_currency(balance) if balance is not None else "N/A"
    return reply(BALANCE_MESSAGE.format(balance=display))


async def handle_bundles(ctx: FlowContext, message: str) -> Dict[str, Any]:
    return await show_bundles(ctx)


async def handle_airtime(ctx: FlowContext, message: str) -> Dict[str, Any]:
    return show_airtime_options(ctx)


async def handle_history(ctx: FlowContext, message: str) -> Dict[str, Any]:
    transactions = await ctx.ledger.history(ctx.user.id)
    if not transactions:
        return reply(HISTORY_EMPTY_MESSAGE)

    lines = "\n".join(build_transaction_line(transaction) for transaction in transactions)
    return reply(HISTORY_HEADER + lines + HISTORY_FOOTER)


async def handle_support(ctx: FlowContext, message: str) -> Dict[str, Any]:
    return reply(SUPPORT_MESSAGE.format(
        bot_name=ctx.settings.BOT_NAME,
        support_email=ctx.settings.SUPPORT_EMAIL,
        support_phone=ctx.settings.SUPPORT_PHONE,
    ))


async def handle_profile(ctx: FlowContext, message: str) -> Dict[str, Any]:
    stats = await ctx.ledger.stats(ctx.user.id)
    saved_numbers = await ctx.users.count_saved_numbers(ctx.user.id)

    return reply(PROFILE_MESSAGE.format(
        phone=ctx.user.phone,
        member_since=format_date(ctx.user.created_at),
        total_transactions=stats["total_transactions"],
        successful_transactions=stats["successful_transactions"],
        total_spent=format_currency(stats["total_spent"]),
        saved_numbers=saved_numbers,
    ))


async def handle_transaction_status(ctx: FlowContext, message: str) -> Dict[str, Any]:
    """
    `status <transaction id>`: shows a transaction, settling pending ones
    against the reseller first.
    """
    parts = message.split(maxsplit=1)
    if len(parts) < 2:
        return reply(STATUS_USAGE_MESSAGE)

    transaction_id = parts[1].strip()
    transaction = await ctx.ledger.get(transaction_id, user_id=ctx.user.id)
    if transaction is None:
        return reply(TRANSACTION_NOT_FOUND_MESSAGE.format(transaction_id=transaction_id))

    if transaction.status == TRANSACTION_PENDING:
        await _settle_pending(ctx, transaction)
        transaction = await ctx.ledger.get(transaction_id, user_id=ctx.user.id)

    reason_line = f"\n📄 *Reason:* {transaction.error_message}" if transaction.error_message else ""
    return reply(TRANSACTION_STATUS_MESSAGE.format(
        transaction_id=transaction.transaction_id,
        transaction_type=transaction.transaction_type.title(),
        amount=format_currency(transaction.amount),
        phone=transaction.subscription_id,
        status=transaction.status.upper(),
        reason_line=reason_line,
    ))


async def _settle_pending(ctx: FlowContext, transaction) -> None:
    try:
        result = await ctx.reseller.check_transaction_status(transaction.transaction_id, transaction.subscription_id)
    except ResellerAPIError as e:
        await ctx.ledger.update_status(
            transaction.transaction_id,
            TRANSACTION_FAILED,
            provider_result=(e.details or {}).get("response"),
            error_code=e.response_code,
            error_message=describe_failure(e),
        )
        return
    except ResellerTransportError as e:
        logger.warning(f"⚠️ Status check unavailable, leaving {transaction.transaction_id} pending: {e.message}")
        return

    provider_state = str(result.get("transactionStatus") or result.get("status") or "").upper()
    if provider_state in PROVIDER_SUCCESS_STATES:
        await ctx.ledger.update_status(transaction.transaction_id, TRANSACTION_SUCCESS, provider_result=result)
    elif provider_state in PROVIDER_FAILED_STATES:
        await ctx.ledger.update_status(
            transaction.transaction_id,
            TRANSACTION_FAILED,
            provider_result=result,
            error_message="The network reported this transaction as failed.",
        )


async def handle_direct_number(ctx: FlowContext, message: str) -> Dict[str, Any]:
    """
    A Uganda number sent from idle: look it up and offer bundle or airtime.
    """
    phone = format_phone_number(message)
    name = await lookup_subscriber(ctx, phone)

    logger.info(f"📞 Direct number lookup for {phone}")
    text = NUMBER_SELECTED_MESSAGE.format(phone=phone, subscriber_line=subscriber_suffix(name, SUBSCRIBER_LINE))
    return reply(text, NumberSelectedSession(phone=phone, subscriber_name=name))


async def handle_unknown(ctx: FlowContext, message: str) -> Dict[str, Any]:
    return reply(random.choice(UNKNOWN_COMMAND_MESSAGES))


IDLE_COMMANDS = {}
for _commands, _handler in (
    (GREETING_COMMANDS, handle_welcome),
    (MENU_COMMANDS, handle_main_menu),
    (BALANCE_COMMANDS, handle_balance),
    (BUNDLE_COMMANDS, handle_bundles),
    (AIRTIME_COMMANDS, handle_airtime),
    (HISTORY_COMMANDS, handle_history),
    (SUPPORT_COMMANDS, handle_support),
    (PROFILE_COMMANDS, handle_profile),
    (CANCEL_COMMANDS, handle_cancel),
):
    for _command in _commands:
        IDLE_COMMANDS[_command] = _handler


async def handle_idle_command(ctx: FlowContext, message: str, session: IdleSession) -> Dict[str, Any]:
    """
    Matches idle input against the command table, then the number
    predicate, then falls back to the unknown-command reply.
    """
    command = message.strip().lower()

    handler = IDLE_COMMANDS.get(command)
    if handler is not None:
        return await handler(ctx, message)

    if command == STATUS_COMMAND or command.startswith(f"{STATUS_COMMAND} "):
        return await handle_transaction_status(ctx, message.strip())

    if is_valid_uganda_number(message):
        return await handle_direct_number(ctx, message)

    logger.info(f"Unknown command: {command[:50]}")
    return await handle_unknown(ctx, message)
