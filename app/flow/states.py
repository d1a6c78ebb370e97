"""
app/flow/states.py

Purpose: Defines all conversation states

- Enum for each step of the bundle and airtime journeys
- Current action tags distinguishing which purchase a shared state serves
- Single source of truth for flow stages
- State transition validation
"""

from enum import Enum
from typing import Dict, List, Optional
from dataclasses import dataclass


class ConversationState(str, Enum):
    """
    Defines all possible states in the purchase conversation.
    Every completed or cancelled flow lands back in IDLE.
    """

    IDLE = "idle"

    # Menu-driven flows
    SELECTING_BUNDLE = "selecting_bundle"
    ENTERING_AMOUNT = "entering_amount"
    AWAITING_NUMBER = "awaiting_number"
    SELECTING_SAVED_NUMBER = "selecting_saved_number"

    # Confirmation
    CONFIRMING_PURCHASE = "confirming_purchase"
    CONFIRMING_AIRTIME = "confirming_airtime"

    # Flows started by sending a phone number directly
    NUMBER_SELECTED = "number_selected"
    SELECTING_BUNDLE_FOR_NUMBER = "selecting_bundle_for_number"
    ENTERING_AMOUNT_FOR_NUMBER = "entering_amount_for_number"


class CurrentAction(str, Enum):
    BUNDLE_SELECTION = "bundle_selection"
    BUNDLE_PURCHASE = "bundle_purchase"
    AIRTIME_PURCHASE = "airtime_purchase"
    NUMBER_LOOKUP = "number_lookup"


@dataclass
class StateMetadata:
    """
    Metadata associated with each conversation state.
    """
    name: ConversationState
    display_name: str
    description: str = ""


STATE_METADATA: Dict[ConversationState, StateMetadata] = {
    ConversationState.IDLE: StateMetadata(
        name=ConversationState.IDLE,
        display_name="Main Menu",
        description="No flow in progress; input matched against the command table"
    ),
    ConversationState.SELECTING_BUNDLE: StateMetadata(
        name=ConversationState.SELECTING_BUNDLE,
        display_name="Select Bundle",
        description="Catalogue shown, waiting for a bundle number"
    ),
    ConversationState.ENTERING_AMOUNT: StateMetadata(
        name=ConversationState.ENTERING_AMOUNT,
        display_name="Enter Amount",
        description="Waiting for an airtime amount"
    ),
    ConversationState.AWAITING_NUMBER: StateMetadata(
        name=ConversationState.AWAITING_NUMBER,
        display_name="Enter Number",
        description="Waiting for the recipient number of a bundle or airtime purchase"
    ),
    ConversationState.SELECTING_SAVED_NUMBER: StateMetadata(
        name=ConversationState.SELECTING_SAVED_NUMBER,
        display_name="Choose Saved Number",
        description="Saved recipients shown, waiting for a choice or 'new'"
    ),
    ConversationState.CONFIRMING_PURCHASE: StateMetadata(
        name=ConversationState.CONFIRMING_PURCHASE,
        display_name="Confirm Bundle",
        description="Waiting for YES/NO on a bundle purchase"
    ),
    ConversationState.CONFIRMING_AIRTIME: StateMetadata(
        name=ConversationState.CONFIRMING_AIRTIME,
        display_name="Confirm Airtime",
        description="Waiting for YES/NO on an airtime top-up"
    ),
    ConversationState.NUMBER_SELECTED: StateMetadata(
        name=ConversationState.NUMBER_SELECTED,
        display_name="Number Selected",
        description="User sent a number; waiting for bundle/airtime/menu choice"
    ),
    ConversationState.SELECTING_BUNDLE_FOR_NUMBER: StateMetadata(
        name=ConversationState.SELECTING_BUNDLE_FOR_NUMBER,
        display_name="Select Bundle For Number",
        description="Catalogue shown for a pre-selected number"
    ),
    ConversationState.ENTERING_AMOUNT_FOR_NUMBER: StateMetadata(
        name=ConversationState.ENTERING_AMOUNT_FOR_NUMBER,
        display_name="Enter Amount For Number",
        description="Waiting for an airtime amount for a pre-selected number"
    ),
}


# Valid state transitions; IDLE is always reachable (cancel, menu, completion)
STATE_TRANSITIONS: Dict[ConversationState, List[ConversationState]] = {
    ConversationState.IDLE: [
        ConversationState.IDLE,
        ConversationState.SELECTING_BUNDLE,
        ConversationState.ENTERING_AMOUNT,
        ConversationState.NUMBER_SELECTED,
    ],
    ConversationState.SELECTING_BUNDLE: [
        ConversationState.SELECTING_BUNDLE,  # Retry on invalid input
        ConversationState.SELECTING_SAVED_NUMBER,
        ConversationState.AWAITING_NUMBER,
        ConversationState.IDLE,
    ],
    ConversationState.ENTERING_AMOUNT: [
        ConversationState.ENTERING_AMOUNT,
        ConversationState.SELECTING_SAVED_NUMBER,
        ConversationState.AWAITING_NUMBER,
        ConversationState.IDLE,
    ],
    ConversationState.SELECTING_SAVED_NUMBER: [
        ConversationState.SELECTING_SAVED_NUMBER,
        ConversationState.AWAITING_NUMBER,  # 'new'
        ConversationState.CONFIRMING_PURCHASE,
        ConversationState.CONFIRMING_AIRTIME,
        ConversationState.IDLE,
    ],
    ConversationState.AWAITING_NUMBER: [
        ConversationState.AWAITING_NUMBER,
        ConversationState.CONFIRMING_PURCHASE,
        ConversationState.CONFIRMING_AIRTIME,
        ConversationState.IDLE,
    ],
    ConversationState.CONFIRMING_PURCHASE: [
        ConversationState.CONFIRMING_PURCHASE,
        ConversationState.IDLE,
    ],
    ConversationState.CONFIRMING_AIRTIME: [
        ConversationState.CONFIRMING_AIRTIME,
        ConversationState.IDLE,
    ],
    ConversationState.NUMBER_SELECTED: [
        ConversationState.NUMBER_SELECTED,
        ConversationState.SELECTING_BUNDLE_FOR_NUMBER,
        ConversationState.ENTERING_AMOUNT_FOR_NUMBER,
        ConversationState.IDLE,
    ],
    ConversationState.SELECTING_BUNDLE_FOR_NUMBER: [
        ConversationState.SELECTING_BUNDLE_FOR_NUMBER,
        ConversationState.CONFIRMING_PURCHASE,
        ConversationState.IDLE,
    ],
    ConversationState.ENTERING_AMOUNT_FOR_NUMBER: [
        ConversationState.ENTERING_AMOUNT_FOR_NUMBER,
        ConversationState.CONFIRMING_AIRTIME,
        ConversationState.IDLE,
    ],
}


def is_valid_transition(from_state: ConversationState, to_state: ConversationState) -> bool:
    """
    Checks if a state transition is valid.

    Args:
        from_state: Current state
        to_state: Target state

    Returns:
        True if transition is allowed, False otherwise
    """
    allowed_transitions = STATE_TRANSITIONS.get(from_state, [])
    return to_state in allowed_transitions


def get_state_metadata(state: ConversationState) -> StateMetadata:
    return STATE_METADATA.get(state, StateMetadata(
        name=state,
        display_name=state.value,
        description="Unknown state"
    ))


def parse_state(value: Optional[str]) -> ConversationState:
    """
    Maps a stored state string to the enum, unknown values to IDLE.
    """
    try:
        return ConversationState(value)
    except ValueError:
        return ConversationState.IDLE
