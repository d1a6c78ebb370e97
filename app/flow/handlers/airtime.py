"""
app/flow/handlers/airtime.py

Handles: airtime amount entry

- Shows top-up instructions with the configured minimum and hard maximum
- Parses amounts ("UGX 2,000", "2000", "2,000/=")
- Rejects out-of-range amounts without leaving the step
"""

from typing import Any, Dict, Optional, Tuple

from app.core.logging import get_logger
from app.flow.context import FlowContext, reply
from app.flow.handlers.numbers import ask_for_recipient
from app.flow.handlers.purchase import prepare_airtime_confirmation
from app.flow.states import CurrentAction
from app.schemas.session import EnteringAmountForNumberSession, EnteringAmountSession
from utils.constants import (
    AIRTIME_INSTRUCTIONS_MESSAGE,
    AMOUNT_ABOVE_MAXIMUM_MESSAGE,
    AMOUNT_BELOW_MINIMUM_MESSAGE,
    AMOUNT_SELECTED_MESSAGE,
    ENTER_AMOUNT_FOR_NUMBER_MESSAGE,
    MAX_AIRTIME_AMOUNT,
)
from utils.validation_utils import parse_amount, validate_airtime_amount
from utils.whatsapp_utils import format_currency

logger = get_logger(__name__)


def show_airtime_options(ctx: FlowContext) -> Dict[str, Any]:
    message = AIRTIME_INSTRUCTIONS_MESSAGE.format(
        minimum=format_currency(ctx.settings.MIN_AIRTIME_AMOUNT),
        maximum=format_currency(MAX_AIRTIME_AMOUNT),
    )
    return reply(message, EnteringAmountSession())


def ask_amount_for_number(ctx: FlowContext, phone: str, subscriber_name: Optional[str]) -> Dict[str, Any]:
    message = ENTER_AMOUNT_FOR_NUMBER_MESSAGE.format(
        phone=phone,
        minimum=format_currency(ctx.settings.MIN_AIRTIME_AMOUNT),
        maximum=format_currency(MAX_AIRTIME_AMOUNT),
    )
    return reply(message, EnteringAmountForNumberSession(phone=phone, subscriber_name=subscriber_name))


def _check_amount(ctx: FlowContext, message: str) -> Tuple[int, Optional[str]]:
    """
    Returns (amount, error reply or None).
    """
    amount = parse_amount(message)
    minimum = ctx.settings.MIN_AIRTIME_AMOUNT
    is_valid, reason = validate_airtime_amount(amount, minimum)

    if is_valid:
        return amount, None

    logger.info(f"Rejected airtime amount {amount}: {reason}")
    if reason == "below_minimum":
        return amount, AMOUNT_BELOW_MINIMUM_MESSAGE.format(minimum=format_currency(minimum))
    return amount, AMOUNT_ABOVE_MAXIMUM_MESSAGE.format(maximum=format_currency(MAX_AIRTIME_AMOUNT))


async def handle_amount_input(ctx: FlowContext, message: str, session: EnteringAmountSession) -> Dict[str, Any]:
    amount, error = _check_amount(ctx, message)
    if error:
        return reply(error)

    intro = AMOUNT_SELECTED_MESSAGE.format(amount=format_currency(amount))
    return await ask_for_recipient(ctx, intro, action=CurrentAction.AIRTIME_PURCHASE.value, amount=amount)


async def handle_amount_for_number(
    ctx: FlowContext,
    message: str,
    session: EnteringAmountForNumberSession,
) -> Dict[str, Any]:
    amount, error = _check_amount(ctx, message)
    if error:
        return reply(error)

    return await prepare_airtime_confirmation(ctx, amount, session.phone, known_name=session.subscriber_name)
