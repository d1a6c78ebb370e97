"""
app/flow/handlers/numbers.py

Handles: recipient number selection

- Offers saved numbers (top 5) or asks for a new one
- Validates and normalizes typed Uganda numbers
- Action menu for numbers sent directly from idle
"""

from typing import Any, Dict, Optional

from app.core.logging import get_logger
from app.flow.context import FlowContext, reply
from app.flow.handlers.purchase import prepare_airtime_confirmation, prepare_bundle_confirmation
from app.flow.states import CurrentAction
from app.schemas.session import (
    AwaitingNumberSession,
    IdleSession,
    NumberSelectedSession,
    Plan,
    SavedNumberOption,
    SelectingSavedNumberSession,
)
from utils.constants import (
    ENTER_NEW_NUMBER_MESSAGE,
    ENTER_NUMBER_MESSAGE,
    FLOW_LOST_MESSAGE,
    INVALID_NUMBER_ACTION_MESSAGE,
    INVALID_NUMBER_MESSAGE,
    INVALID_SAVED_NUMBER_MESSAGE,
    MAIN_MENU_MESSAGE,
    NEW_NUMBER_COMMAND,
    SELECT_SAVED_NUMBER_FOOTER,
    SELECT_SAVED_NUMBER_HEADER,
)
from utils.validation_utils import format_phone_number, is_valid_uganda_number, parse_selection
from utils.whatsapp_utils import build_saved_number_list

logger = get_logger(__name__)

NUMBER_ACTION_BUNDLE = ("1", "bundle", "bundles")
NUMBER_ACTION_AIRTIME = ("2", "airtime")
NUMBER_ACTION_MENU = ("3",)


async def ask_for_recipient(
    ctx: FlowContext,
    intro: str,
    action: str,
    plan: Optional[Plan] = None,
    amount: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Next step once the plan or amount is known: saved numbers if the user
    has any, otherwise free number entry.
    """
    saved = await ctx.users.list_saved_numbers(ctx.user.id)

    if saved:
        options = [SavedNumberOption(**item) for item in saved]
        message = (
            intro
            + SELECT_SAVED_NUMBER_HEADER
            + build_saved_number_list(saved)
            + SELECT_SAVED_NUMBER_FOOTER
        )
        return reply(
            message,
            SelectingSavedNumberSession(action=action, plan=plan, amount=amount, saved_numbers=options),
        )

    return reply(intro + ENTER_NUMBER_MESSAGE, AwaitingNumberSession(action=action, plan=plan, amount=amount))


async def _confirm_for_number(
    ctx: FlowContext,
    session,
    phone: str,
    known_name: Optional[str] = None,
    saved: bool = False,
) -> Dict[str, Any]:
    if session.action == CurrentAction.BUNDLE_PURCHASE and session.plan is not None:
        return await prepare_bundle_confirmation(ctx, session.plan, phone, known_name=known_name, saved=saved)

    if session.action == CurrentAction.AIRTIME_PURCHASE and session.amount is not None:
        return await prepare_airtime_confirmation(ctx, session.amount, phone, known_name=known_name, saved=saved)

    logger.error(f"❌ Session for {session.action} is missing its plan or amount")
    return reply(FLOW_LOST_MESSAGE, IdleSession())


async def handle_number_input(ctx: FlowContext, message: str, session: AwaitingNumberSession) -> Dict[str, Any]:
    if not is_valid_uganda_number(message):
        logger.info("Invalid recipient number entered")
        return reply(INVALID_NUMBER_MESSAGE)

    return await _confirm_for_number(ctx, session, format_phone_number(message))


async def handle_saved_number_selection(
    ctx: FlowContext,
    message: str,
    session: SelectingSavedNumberSession,
) -> Dict[str, Any]:
    choice = message.strip().lower()

    if choice == NEW_NUMBER_COMMAND:
        return reply(
            ENTER_NEW_NUMBER_MESSAGE,
            AwaitingNumberSession(action=session.action, plan=session.plan, amount=session.amount),
        )

    index = parse_selection(choice, len(session.saved_numbers))
    if index is None:
        return reply(INVALID_SAVED_NUMBER_MESSAGE.format(count=len(session.saved_numbers)))

    selected = session.saved_numbers[index]
    return await _confirm_for_number(ctx, session, selected.phone, known_name=selected.name, saved=True)


async def handle_number_action(ctx: FlowContext, message: str, session: NumberSelectedSession) -> Dict[str, Any]:
    """
    Choice after a number was sent directly: bundle, airtime or menu.
    """
    from app.flow.handlers.airtime import ask_amount_for_number
    from app.flow.handlers.bundles import show_bundles

    choice = message.strip().lower()

    if choice in NUMBER_ACTION_BUNDLE:
        return await show_bundles(ctx, phone=session.phone, subscriber_name=session.subscriber_name)

    if choice in NUMBER_ACTION_AIRTIME:
        return ask_amount_for_number(ctx, session.phone, session.subscriber_name)

    if choice in NUMBER_ACTION_MENU:
        return reply(MAIN_MENU_MESSAGE.format(bot_name=ctx.settings.BOT_NAME), IdleSession())

    return reply(INVALID_NUMBER_ACTION_MESSAGE)
