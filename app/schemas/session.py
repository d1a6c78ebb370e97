"""
app/schemas/session.py

Purpose: Typed conversation session data

- One pydantic model per conversation state, discriminated on `state`
- Each variant carries only the fields its state needs
- Versioned JSON codec used at the session store boundary
"""

import json
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from app.flow.states import CurrentAction

SESSION_DATA_VERSION = 1


class Plan(BaseModel):
    """A purchasable data bundle from the reseller catalogue."""
    name: str
    price: int
    description: str = ""
    token: str


class SavedNumberOption(BaseModel):
    phone: str
    name: Optional[str] = None


class IdleSession(BaseModel):
    state: Literal["idle"] = "idle"

    @property
    def current_action(self) -> Optional[str]:
        return None


class SelectingBundleSession(BaseModel):
    state: Literal["selecting_bundle"] = "selecting_bundle"
    plans: List[Plan]

    @property
    def current_action(self) -> str:
        return CurrentAction.BUNDLE_SELECTION.value


class EnteringAmountSession(BaseModel):
    state: Literal["entering_amount"] = "entering_amount"

    @property
    def current_action(self) -> str:
        return CurrentAction.AIRTIME_PURCHASE.value


class AwaitingNumberSession(BaseModel):
    """
    Waiting for a recipient number. `action` says which purchase the
    number is for; the matching pending plan or amount is set.
    """
    state: Literal["awaiting_number"] = "awaiting_number"
    action: Literal["bundle_purchase", "airtime_purchase"]
    plan: Optional[Plan] = None
    amount: Optional[int] = None

    @property
    def current_action(self) -> str:
        return self.action


class SelectingSavedNumberSession(BaseModel):
    state: Literal["selecting_saved_number"] = "selecting_saved_number"
    action: Literal["bundle_purchase", "airtime_purchase"]
    plan: Optional[Plan] = None
    amount: Optional[int] = None
    saved_numbers: List[SavedNumberOption]

    @property
    def current_action(self) -> str:
        return self.action


class ConfirmingPurchaseSession(BaseModel):
    state: Literal["confirming_purchase"] = "confirming_purchase"
    plan: Plan
    phone: str
    subscriber_name: Optional[str] = None

    @property
    def current_action(self) -> str:
        return CurrentAction.BUNDLE_PURCHASE.value


class ConfirmingAirtimeSession(BaseModel):
    state: Literal["confirming_airtime"] = "confirming_airtime"
    amount: int
    phone: str
    subscriber_name: Optional[str] = None

    @property
    def current_action(self) -> str:
        return CurrentAction.AIRTIME_PURCHASE.value


class NumberSelectedSession(BaseModel):
    state: Literal["number_selected"] = "number_selected"
    phone: str
    subscriber_name: Optional[str] = None

    @property
    def current_action(self) -> str:
        return CurrentAction.NUMBER_LOOKUP.value


class SelectingBundleForNumberSession(BaseModel):
    state: Literal["selecting_bundle_for_number"] = "selecting_bundle_for_number"
    phone: str
    subscriber_name: Optional[str] = None
    plans: List[Plan]

    @property
    def current_action(self) -> str:
        return CurrentAction.BUNDLE_PURCHASE.value


class EnteringAmountForNumberSession(BaseModel):
    state: Literal["entering_amount_for_number"] = "entering_amount_for_number"
    phone: str
    subscriber_name: Optional[str] = None

    @property
    def current_action(self) -> str:
        return CurrentAction.AIRTIME_PURCHASE.value


SessionData = Annotated[
    Union[
        IdleSession,
        SelectingBundleSession,
        EnteringAmountSession,
        AwaitingNumberSession,
        SelectingSavedNumberSession,
        ConfirmingPurchaseSession,
        ConfirmingAirtimeSession,
        NumberSelectedSession,
        SelectingBundleForNumberSession,
        EnteringAmountForNumberSession,
    ],
    Field(discriminator="state"),
]

_session_data_adapter = TypeAdapter(SessionData)


class SessionSnapshot(BaseModel):
    """
    A user's session as loaded from the store.
    """
    user_id: int
    data: SessionData
    expires_at: datetime

    @property
    def state(self) -> str:
        return self.data.state

    @property
    def current_action(self) -> Optional[str]:
        return self.data.current_action


class SessionDecodeError(ValueError):
    """Stored session data is unreadable or from an unknown version."""


def encode_session_data(data: SessionData) -> str:
    """
    Serializes a session variant as {"v": 1, "state": ..., ...}.
    """
    payload = {"v": SESSION_DATA_VERSION}
    payload.update(data.model_dump(mode="json"))
    return json.dumps(payload, ensure_ascii=False)


def decode_session_data(raw: Optional[str]) -> SessionData:
    """
    Parses stored session JSON back into its variant.

    Empty or missing data decodes to IdleSession.

    Raises:
        SessionDecodeError: Invalid JSON, unknown version or invalid fields
    """
    if not raw:
        return IdleSession()

    try:
        payload = json.loads(raw)
    except ValueError as e:
        raise SessionDecodeError(f"Session data is not valid JSON: {e}") from e

    if not isinstance(payload, dict) or not payload:
        return IdleSession()

    version = payload.pop("v", None)
    if version != SESSION_DATA_VERSION:
        raise SessionDecodeError(f"Unsupported session data version: {version}")

    try:
        return _session_data_adapter.validate_python(payload)
    except ValueError as e:
        raise SessionDecodeError(f"Invalid session data: {e}") from e
