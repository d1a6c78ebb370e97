"""
utils/validation_utils.py

Purpose: Input validation

- Uganda phone number normalization and validation
- Airtime amount parsing and bounds checks
- Menu selection parsing
- Input sanitization
"""

import re
from typing import Optional, Tuple

from utils.constants import MAX_AIRTIME_AMOUNT


UGANDA_NUMBER_PATTERN = re.compile(r"^2567\d{8}$")


def format_phone_number(phone: str) -> str:
    """
    Normalizes a Uganda mobile number to the canonical 2567XXXXXXXX form.

    Accepts 07XXXXXXXX, 7XXXXXXXX, 2567XXXXXXXX and +2567XXXXXXXX, with any
    spaces, dashes or other symbols. Anything else is returned as bare
    digits so the validity check can reject it.

    Args:
        phone: Raw phone input

    Returns:
        Digits-only phone string
    """
    if not phone:
        return ""

    # Remove all non-digit characters
    digits = re.sub(r"\D", "", phone)

    if len(digits) == 9 and digits.startswith("7"):
        return "256" + digits
    if len(digits) == 10 and digits.startswith("07"):
        return "256" + digits[1:]

    return digits


def is_valid_uganda_number(phone: str) -> bool:
    """
    Validates a Uganda mobile number in any accepted input form.

    Args:
        phone: Phone number string

    Returns:
        True if it normalizes to 2567XXXXXXXX
    """
    if not phone:
        return False

    # Letters mixed into the input mean it was not meant as a number
    if re.search(r"[A-Za-z]", phone):
        return False

    return bool(UGANDA_NUMBER_PATTERN.match(format_phone_number(phone)))


def normalize_sender(sender: str) -> str:
    """
    Canonical user identity for an inbound sender id.

    Transport prefixes ("whatsapp:") and symbols are stripped; Uganda
    numbers are normalized, other numbers keep their digits.
    """
    sender = (sender or "").replace("whatsapp:", "")
    if is_valid_uganda_number(sender):
        return format_phone_number(sender)
    return re.sub(r"\D", "", sender)


def parse_amount(text: str) -> int:
    """
    Extracts an integer amount by dropping every non-digit character.

    "UGX 2,000", "2000" and "2,000/=" all parse to 2000. Input without
    digits parses to 0.
    """
    if not text:
        return 0

    digits = re.sub(r"\D", "", text)
    return int(digits) if digits else 0


def validate_airtime_amount(amount: int, minimum: int) -> Tuple[bool, Optional[str]]:
    """
    Checks an airtime amount against the configured minimum and the hard ceiling.

    Args:
        amount: Parsed amount in UGX
        minimum: Configured minimum top-up

    Returns:
        (is_valid, reason) where reason is "below_minimum" or "above_maximum"
    """
    if amount < minimum:
        return False, "below_minimum"

    if amount > MAX_AIRTIME_AMOUNT:
        return False, "above_maximum"

    return True, None


def parse_selection(text: str, count: int) -> Optional[int]:
    """
    Parses a 1-based menu choice into a 0-based index.

    Args:
        text: User input
        count: Number of options offered

    Returns:
        Index if the input is a whole number in 1..count, else None
    """
    if not text:
        return None

    text = text.strip()
    if not text.isdigit():
        return None

    choice = int(text)
    if 1 <= choice <= count:
        return choice - 1

    return None


def sanitize_input(text: str, max_length: int = 1000) -> str:
    """
    Sanitizes user input to prevent injection attacks.

    Args:
        text: Input text
        max_length: Maximum allowed length

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    text = text[:max_length]

    # Strip markup
    text = re.sub(r"<[^>]*>", "", text)
    text = re.sub(r"[<>{}\[\]]", "", text)

    # Normalize whitespace
    text = " ".join(text.split())

    return text.strip()
