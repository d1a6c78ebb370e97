from app.services.error_codes import (
    ERROR_MESSAGES,
    UNKNOWN_ERROR_MESSAGE,
    get_error_message,
    is_technical_error,
)


def test_integer_and_string_codes_are_equivalent():
    assert get_error_message(-10030) == get_error_message("-10030")
    assert "insufficient" in get_error_message(-10030).lower()


def test_unknown_code_maps_to_generic_message():
    assert get_error_message("-99999") == UNKNOWN_ERROR_MESSAGE
    assert get_error_message(None) == UNKNOWN_ERROR_MESSAGE


def test_messages_never_expose_raw_codes():
    for code, message in ERROR_MESSAGES.items():
        assert code not in message


def test_known_codes_are_covered():
    for code in ("-10001", "-10002", "-10003", "-10005", "-10006", "-10010", "-10016",
                 "-10017", "-10022", "-10030", "-10031", "-10033", "-10035", "-10036", "-10037"):
        assert get_error_message(code) != UNKNOWN_ERROR_MESSAGE


def test_technical_error_detection():
    assert is_technical_error(-10017)
    assert is_technical_error("-10017")
    assert not is_technical_error("-10030")
