import pytest

from utils.validation_utils import (
    format_phone_number,
    is_valid_uganda_number,
    normalize_sender,
    parse_amount,
    parse_selection,
    validate_airtime_amount,
)
from utils.whatsapp_utils import build_plan_list, emoji_number, format_currency
from utils.transaction_utils import generate_transaction_id, normalize_plans


@pytest.mark.parametrize("raw", [
    "0772123456",
    "772123456",
    "256772123456",
    "+256772123456",
    "+256 772 123 456",
    "0772-123-456",
])
def test_uganda_number_forms_normalize_to_canonical(raw):
    assert is_valid_uganda_number(raw)
    assert format_phone_number(raw) == "256772123456"


@pytest.mark.parametrize("raw", [
    "",
    "hello",
    "12345",
    "0812345678",
    "254712345678",
    "25677212345",
    "2567721234567",
    "07721234ab",
    "status LYCA_1_abc",
])
def test_non_uganda_strings_are_rejected(raw):
    assert not is_valid_uganda_number(raw)


def test_normalize_sender_strips_transport_prefix():
    assert normalize_sender("whatsapp:+256772123456") == "256772123456"
    assert normalize_sender("whatsapp:+14155238886") == "14155238886"


@pytest.mark.parametrize("text", ["UGX 2,000", "2000", "2,000/="])
def test_parse_amount_strips_non_digits(text):
    assert parse_amount(text) == 2000


def test_parse_amount_without_digits_is_zero():
    assert parse_amount("lots") == 0


def test_format_currency():
    assert format_currency(2000) == "UGX 2,000"
    assert format_currency(0) == "UGX 0"
    assert format_currency(1500000) == "UGX 1,500,000"


def test_airtime_bounds():
    assert validate_airtime_amount(499, 500) == (False, "below_minimum")
    assert validate_airtime_amount(100001, 500) == (False, "above_maximum")
    assert validate_airtime_amount(100000, 500) == (True, None)
    assert validate_airtime_amount(500, 500) == (True, None)


def test_parse_selection():
    assert parse_selection("1", 3) == 0
    assert parse_selection(" 3 ", 3) == 2
    assert parse_selection("0", 3) is None
    assert parse_selection("99", 3) is None
    assert parse_selection("two", 3) is None


def test_emoji_number():
    assert emoji_number(1) == "1️⃣"
    assert emoji_number(10) == "🔟"
    assert emoji_number(12) == "1️⃣2️⃣"


def test_plan_list_rendering():
    text = build_plan_list([{"name": "Daily 1GB", "price": 1000, "description": "24 hours"}])
    assert "1️⃣ *Daily 1GB*" in text
    assert "💰 UGX 1,000" in text
    assert "📄 24 hours" in text


def test_normalize_plans_accepts_envelope_and_list():
    raw = [{"serviceBundleName": "A", "serviceBundlePrice": "1500", "serviceBundleToken": "t1"},
           {"serviceBundleName": "No token"}]

    assert normalize_plans(raw) == [{"name": "A", "price": 1500, "description": "", "token": "t1"}]
    assert normalize_plans({"status": "SUCCESS", "data": raw}) == normalize_plans(raw)


def test_transaction_ids_are_unique():
    ids = {generate_transaction_id() for _ in range(200)}
    assert len(ids) == 200
    assert all(i.startswith("LYCA_") for i in ids)


def test_normalize_plans_reads_formatted_prices_and_skips_unreadable_ones():
    raw = [
        {"serviceBundleName": "A", "serviceBundlePrice": "1,000", "serviceBundleToken": "t1"},
        {"serviceBundleName": "B", "serviceBundlePrice": "UGX 2,500.00", "serviceBundleToken": "t2"},
        {"serviceBundleName": "C", "serviceBundlePrice": "free", "serviceBundleToken": "t3"},
    ]

    assert [(plan["name"], plan["price"]) for plan in normalize_plans(raw)] == [("A", 1000), ("B", 2500)]
