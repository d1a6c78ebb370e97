"""
app/flow/handlers/bundles.py

Handles: data bundle selection

- Fetches and renders the float-enabled bundle catalogue
- Parses the bundle choice against the list stored in the session
- Moves on to saved-number choice, number entry or confirmation
"""

from typing import Any, Dict, Optional

from app.core.exceptions import ResellerAPIError, ResellerTransportError
from app.core.logging import get_logger
from app.flow.context import FlowContext, reply
from app.flow.handlers.numbers import ask_for_recipient
from app.flow.handlers.purchase import prepare_bundle_confirmation
from app.flow.states import CurrentAction
from app.schemas.session import (
    Plan,
    SelectingBundleForNumberSession,
    SelectingBundleSession,
)
from utils.constants import (
    BUNDLE_SELECTED_MESSAGE,
    BUNDLES_FAILED_MESSAGE,
    BUNDLES_FOOTER,
    BUNDLES_HEADER,
    INVALID_BUNDLE_SELECTION_MESSAGE,
    NO_BUNDLES_MESSAGE,
)
from utils.validation_utils import parse_selection
from utils.whatsapp_utils import build_plan_list, format_currency

logger = get_logger(__name__)


async def show_bundles(
    ctx: FlowContext,
    phone: Optional[str] = None,
    subscriber_name: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Renders the catalogue and stores it in the session.

    With `phone` set the flow is scoped to that number and skips recipient
    selection later on. A failed fetch leaves the session unchanged.
    """
    try:
        plans = [Plan(**item) for item in await ctx.reseller.get_float_enabled_plans()]
    except (ResellerAPIError, ResellerTransportError) as e:
        logger.error(f"❌ Could not load bundles: {e.message}")
        return reply(BUNDLES_FAILED_MESSAGE)

    if not plans:
        logger.warning("⚠️ Reseller returned an empty bundle catalogue")
        return reply(NO_BUNDLES_MESSAGE)

    message = (
        BUNDLES_HEADER
        + build_plan_list([plan.model_dump() for plan in plans])
        + BUNDLES_FOOTER.format(count=len(plans))
    )

    if phone:
        session = SelectingBundleForNumberSession(phone=phone, subscriber_name=subscriber_name, plans=plans)
    else:
        session = SelectingBundleSession(plans=plans)

    logger.info(f"📱 Showing {len(plans)} bundles")
    return reply(message, session)


async def handle_bundle_selection(ctx: FlowContext, message: str, session: SelectingBundleSession) -> Dict[str, Any]:
    """
    Bundle number from the menu-driven flow.
    """
    index = parse_selection(message, len(session.plans))
    if index is None:
        return reply(INVALID_BUNDLE_SELECTION_MESSAGE.format(count=len(session.plans)))

    plan = session.plans[index]
    logger.info(f"Bundle selected: {plan.name}")

    intro = BUNDLE_SELECTED_MESSAGE.format(name=plan.name, price=format_currency(plan.price))
    return await ask_for_recipient(ctx, intro, action=CurrentAction.BUNDLE_PURCHASE.value, plan=plan)


async def handle_bundle_selection_for_number(
    ctx: FlowContext,
    message: str,
    session: SelectingBundleForNumberSession,
) -> Dict[str, Any]:
    """
    Bundle number when the recipient was chosen up front.
    """
    index = parse_selection(message, len(session.plans))
    if index is None:
        return reply(INVALID_BUNDLE_SELECTION_MESSAGE.format(count=len(session.plans)))

    plan = session.plans[index]
    return await prepare_bundle_confirmation(ctx, plan, session.phone, known_name=session.subscriber_name)
