"""
app/services/error_codes.py

Purpose: Reseller response code translation

- Maps reseller response codes to customer-facing reasons
- Integer and string codes are equivalent
- Unknown codes fall back to a generic message, never the raw code
"""

from typing import Optional, Union

from utils.constants import TECHNICAL_ERROR_CODE

UNKNOWN_ERROR_MESSAGE = "An unexpected error occurred. Please try again or contact support."

ERROR_MESSAGES = {
    "-10001": "Invalid request parameters. Please check the details and try again.",
    "-10002": "The phone number is not a valid Lycamobile subscription.",
    "-10003": "Top-up value is less than the minimum of UGX 500.",
    "-10005": "The service is temporarily misconfigured (invalid API key). Please contact support.",
    "-10006": "Invalid transaction ID.",
    "-10010": "This number has reached the maximum number of recharges for the hour.",
    "-10016": "The subscription is inactive.",
    TECHNICAL_ERROR_CODE: "Technical error on the network. Please try again shortly.",
    "-10021": "Reseller account not found. Please contact support.",
    "-10022": "Reseller wallet is not configured. Please contact support.",
    "-10023": "Failed to deduct the amount from the reseller wallet.",
    "-10024": "The recharge service is currently unavailable.",
    "-10029": "The selected plan group was not found.",
    "-10030": "The reseller balance is insufficient for this purchase. Please contact support.",
    "-10031": "This plan is not available for purchase through this channel.",
    "-10032": "The recharge service is currently unavailable.",
    "-10033": "A recharge with this transaction ID already exists.",
    "-10035": "The same amount cannot be recharged again within 5 minutes.",
    "-10036": "The same bundle cannot be purchased again within 5 minutes.",
    "-10037": "The subscriber's documents have not been approved.",
}


def normalize_code(code: Union[str, int, None]) -> Optional[str]:
    """
    Canonical string form of a response code ("-10017", -10017 -> "-10017").
    """
    if code is None:
        return None
    return str(code).strip()


def get_error_message(code: Union[str, int, None]) -> str:
    """
    Human readable reason for a reseller response code.

    Args:
        code: Response code as returned by the reseller

    Returns:
        Customer-facing message
    """
    return ERROR_MESSAGES.get(normalize_code(code), UNKNOWN_ERROR_MESSAGE)


def is_technical_error(code: Union[str, int, None]) -> bool:
    return normalize_code(code) == TECHNICAL_ERROR_CODE
