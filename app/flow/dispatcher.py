"""
app/flow/dispatcher.py

Purpose: Central message dispatcher (conversation engine)

- Receives normalized messages from the webhook
- Loads the user and their session
- Applies universal keywords (cancel, stop, menu) outside idle
- Routes to the handler for the current state
- Persists the session the handler hands back and returns reply text
"""

from typing import Any, Awaitable, Callable, Dict, Optional

from app.core.config import Settings, settings as default_settings
from app.core.exceptions import PersistenceError
from app.core.logging import get_logger, LogContext
from app.flow.context import FlowContext, reply
from app.flow.handlers.airtime import handle_amount_for_number, handle_amount_input
from app.flow.handlers.bundles import handle_bundle_selection, handle_bundle_selection_for_number
from app.flow.handlers.menu import handle_idle_command, main_menu_text
from app.flow.handlers.numbers import (
    handle_number_action,
    handle_number_input,
    handle_saved_number_selection,
)
from app.flow.handlers.purchase import handle_airtime_confirmation, handle_purchase_confirmation
from app.flow.states import ConversationState, get_state_metadata, is_valid_transition, parse_state
from app.schemas.session import IdleSession, SessionData
from app.services.ledger_service import TransactionLedger
from app.services.reseller_api import ResellerAPIClient
from app.services.session_service import SessionStore
from app.services.user_service import UserService
from utils.constants import (
    CANCEL_COMMANDS,
    GENERIC_ERROR_MESSAGE,
    OPERATION_CANCELLED_MESSAGE,
    PURCHASE_CANCELLED_MESSAGE,
)
from utils.validation_utils import normalize_sender, sanitize_input

logger = get_logger(__name__)

Handler = Callable[[FlowContext, str, Any], Awaitable[Dict[str, Any]]]

STATE_HANDLERS: Dict[ConversationState, Handler] = {
    ConversationState.IDLE: handle_idle_command,
    ConversationState.SELECTING_BUNDLE: handle_bundle_selection,
    ConversationState.ENTERING_AMOUNT: handle_amount_input,
    ConversationState.AWAITING_NUMBER: handle_number_input,
    ConversationState.SELECTING_SAVED_NUMBER: handle_saved_number_selection,
    ConversationState.CONFIRMING_PURCHASE: handle_purchase_confirmation,
    ConversationState.CONFIRMING_AIRTIME: handle_airtime_confirmation,
    ConversationState.NUMBER_SELECTED: handle_number_action,
    ConversationState.SELECTING_BUNDLE_FOR_NUMBER: handle_bundle_selection_for_number,
    ConversationState.ENTERING_AMOUNT_FOR_NUMBER: handle_amount_for_number,
}

CONFIRMATION_STATES = (ConversationState.CONFIRMING_PURCHASE, ConversationState.CONFIRMING_AIRTIME)

UNIVERSAL_MENU_COMMAND = "menu"


class ConversationEngine:
    """
    Maps (session state, user input) to (next session, reply text).

    Every collaborator is injected; one engine serves all users. Messages
    from one user are expected to arrive one at a time.
    """

    def __init__(
        self,
        reseller: ResellerAPIClient,
        sessions: SessionStore,
        ledger: TransactionLedger,
        users: UserService,
        config: Optional[Settings] = None,
    ):
        self.reseller = reseller
        self.sessions = sessions
        self.ledger = ledger
        self.users = users
        self.settings = config or default_settings

    async def handle_message(
        self,
        sender: str,
        body: str,
        message_id: Optional[str] = None,
        profile_name: Optional[str] = None,
    ) -> str:
        """
        Single entry point for an inbound message.

        Args:
            sender: Sender identity (phone, optionally "whatsapp:"-prefixed)
            body: Raw message text
            message_id: Provider message id, for logging
            profile_name: Display name supplied by the transport

        Returns:
            Plain reply text
        """
        phone = normalize_sender(sender)
        text = sanitize_input(body)

        with LogContext(user_id=phone):
            logger.info(f"📨 Handling message {message_id or '-'}: {text[:50]}")

            try:
                user = await self.users.get_or_create_user(phone, profile_name)
                session = await self.sessions.get(user.id)
            except PersistenceError as e:
                logger.error(f"❌ Could not load user or session: {e.message}")
                return GENERIC_ERROR_MESSAGE

            ctx = FlowContext(
                user=user,
                settings=self.settings,
                reseller=self.reseller,
                sessions=self.sessions,
                ledger=self.ledger,
                users=self.users,
            )

            try:
                response = await self.route_to_handler(ctx, session.data, text)
            except PersistenceError as e:
                logger.error(f"❌ Required write failed, aborting handler: {e.message}")
                return GENERIC_ERROR_MESSAGE
            except Exception as e:
                logger.error(f"❌ Handler error: {e}", exc_info=True)
                return GENERIC_ERROR_MESSAGE

            next_session = response.get("session")
            if next_session is not None:
                await self._save_session(user.id, session.data, next_session)

            return response["message"]

    async def route_to_handler(self, ctx: FlowContext, session: SessionData, text: str) -> Dict[str, Any]:
        """
        Universal keywords first (outside idle), then the state's handler.
        """
        state = parse_state(session.state)
        command = text.strip().lower()

        with LogContext(state=state.value):
            if state != ConversationState.IDLE:
                if command in CANCEL_COMMANDS:
                    notice = PURCHASE_CANCELLED_MESSAGE if state in CONFIRMATION_STATES else OPERATION_CANCELLED_MESSAGE
                    logger.info(f"🚫 Flow cancelled in state {state.value}")
                    return reply(notice, IdleSession())

                if command == UNIVERSAL_MENU_COMMAND:
                    logger.info(f"↩️ Menu requested in state {state.value}")
                    return reply(main_menu_text(ctx), IdleSession())

            handler = STATE_HANDLERS.get(state, handle_idle_command)
            if state == ConversationState.IDLE and not isinstance(session, IdleSession):
                session = IdleSession()

            logger.info(f"🚦 Routing to {handler.__name__}")
            return await handler(ctx, text, session)

    async def _save_session(self, user_id: int, current: SessionData, new: SessionData):
        from_state = parse_state(current.state)
        to_state = parse_state(new.state)

        if not is_valid_transition(from_state, to_state):
            logger.warning(
                f"⚠️ Unexpected state transition: {get_state_metadata(from_state).display_name} -> "
                f"{get_state_metadata(to_state).display_name}"
            )

        saved = await self.sessions.update(user_id, new)
        if not saved:
            logger.warning(f"⚠️ Session not saved ({to_state.value}); user will resume from {from_state.value}")
