import typing

from app.flow.states import (
    ConversationState,
    CurrentAction,
    STATE_METADATA,
    STATE_TRANSITIONS,
    get_state_metadata,
    is_valid_transition,
    parse_state,
)
from app.schemas.session import ConfirmingAirtimeSession, NumberSelectedSession, SelectingBundleSession, SessionData


def test_every_state_has_metadata_and_transitions():
    for state in ConversationState:
        assert state in STATE_METADATA
        assert state in STATE_TRANSITIONS
        assert get_state_metadata(state).name == state


def test_idle_is_reachable_from_every_state():
    for state in ConversationState:
        assert is_valid_transition(state, ConversationState.IDLE)


def test_confirmation_only_leads_back_to_idle():
    assert not is_valid_transition(ConversationState.CONFIRMING_PURCHASE, ConversationState.SELECTING_BUNDLE)
    assert is_valid_transition(ConversationState.SELECTING_SAVED_NUMBER, ConversationState.CONFIRMING_AIRTIME)


def test_parse_state_falls_back_to_idle():
    assert parse_state("confirming_airtime") == ConversationState.CONFIRMING_AIRTIME
    assert parse_state("retired_state") == ConversationState.IDLE
    assert parse_state(None) == ConversationState.IDLE


def test_session_variants_match_states_and_actions():
    union = typing.get_args(SessionData)[0]
    variants = typing.get_args(union)
    actions = {action.value for action in CurrentAction}

    assert {variant.model_fields["state"].default for variant in variants} == {s.value for s in ConversationState}

    for variant in variants:
        action = variant.model_fields.get("action")
        if action is not None:
            assert set(typing.get_args(action.annotation)) <= actions


def test_session_actions_come_from_the_action_enum():
    assert ConfirmingAirtimeSession(amount=1000, phone="256772123456").current_action == CurrentAction.AIRTIME_PURCHASE
    assert NumberSelectedSession(phone="256772123456").current_action == CurrentAction.NUMBER_LOOKUP
    assert SelectingBundleSession(plans=[]).current_action == CurrentAction.BUNDLE_SELECTION
