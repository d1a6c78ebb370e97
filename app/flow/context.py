"""
app/flow/context.py

Purpose: Per-message handler context

- Bundles the current user with the injected collaborators
- Shared reply helpers used by several handlers
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from app.core.config import Settings
from app.core.exceptions import ResellerAPIError, ResellerTransportError
from app.models.user import User
from app.schemas.session import SessionData
from app.services.error_codes import get_error_message
from app.services.ledger_service import TransactionLedger
from app.services.reseller_api import ResellerAPIClient
from app.services.session_service import SessionStore
from app.services.user_service import UserService

NETWORK_UNAVAILABLE_REASON = "The network could not be reached. Please try again later."


@dataclass
class FlowContext:
    user: User
    settings: Settings
    reseller: ResellerAPIClient
    sessions: SessionStore
    ledger: TransactionLedger
    users: UserService


def reply(message: str, session: Optional[SessionData] = None) -> Dict[str, Any]:
    """
    Handler response. A session of None leaves the stored session as it is.
    """
    response: Dict[str, Any] = {"message": message}
    if session is not None:
        response["session"] = session
    return response


def describe_failure(error: Exception) -> str:
    """
    Customer-facing reason for a reseller failure, never a raw code.
    """
    if isinstance(error, ResellerAPIError):
        return error.message
    if isinstance(error, ResellerTransportError) and error.response_code:
        return get_error_message(error.response_code)
    return NETWORK_UNAVAILABLE_REASON
