"""
utils/transaction_utils.py

Purpose: Transaction identifiers and reseller payload helpers

- Globally unique local transaction ids (LYCA_<epoch>_<hex>)
- Subscriber name extraction from lookup responses
- Catalogue normalization into plain plan dicts
"""

import time
import uuid
from typing import Any, Dict, List, Optional

from utils.constants import TRANSACTION_ID_PREFIX

# Keys the reseller has been seen to wrap list payloads in
PLAN_LIST_KEYS = ("plans", "data", "serviceBundles", "bundles")
BALANCE_KEYS = ("balance", "walletBalance", "floatBalance", "ebalance", "amount")


def generate_transaction_id() -> str:
    """
    Generates a transaction id unique across processes and restarts.

    Returns:
        e.g. "LYCA_1700000000_3f2a9c1b7d4e"
    """
    return f"{TRANSACTION_ID_PREFIX}_{int(time.time())}_{uuid.uuid4().hex[:12]}"


def extract_subscriber_name(info: Optional[Dict[str, Any]]) -> Optional[str]:
    """
    Full subscriber name from a get_subscription_info response, if present.
    """
    if not info:
        return None

    first = (info.get("subscriberName") or "").strip()
    last = (info.get("subscriberSurname") or "").strip()
    full = f"{first} {last}".strip()
    return full or None


def split_subscriber_name(name: Optional[str]):
    """
    Splits a display name into (first, last) for the saved-number row.
    """
    if not name:
        return None, None
    parts = name.split(" ", 1)
    return parts[0], (parts[1] if len(parts) > 1 else None)


def parse_price(value: Any) -> Optional[int]:
    """
    Whole UGX from a catalogue price: 1000, "1000", "1,000", "UGX 1,000.00".
    Returns None for anything else.
    """
    if isinstance(value, bool):
        return None

    text = str(value if value is not None else "").replace(",", "").replace("UGX", "").strip()
    try:
        return int(float(text or 0))
    except (ValueError, OverflowError):
        return None


def extract_plan_list(payload: Any) -> List[Any]:
    if isinstance(payload, dict):
        return next(
            (payload[key] for key in PLAN_LIST_KEYS if isinstance(payload.get(key), list)),
            [],
        )
    return payload if isinstance(payload, list) else []


def normalize_plans(payload: Any) -> List[Dict[str, Any]]:
    """
    Turns a catalogue response into [{"name", "price", "description", "token"}].

    The reseller returns either a bare list or an envelope carrying the list
    under one of PLAN_LIST_KEYS. Entries without a token are dropped since
    they cannot be purchased, and so are entries whose price cannot be read.
    """
    plans = []
    for item in extract_plan_list(payload):
        if not isinstance(item, dict) or not item.get("serviceBundleToken"):
            continue
        price = parse_price(item.get("serviceBundlePrice"))
        if price is None:
            continue
        plans.append({
            "name": str(item.get("serviceBundleName") or "Bundle"),
            "price": price,
            "description": str(item.get("serviceBundleDescription") or ""),
            "token": str(item["serviceBundleToken"]),
        })
    return plans


def extract_balance(payload: Optional[Dict[str, Any]]) -> Optional[float]:
    """
    Wallet balance from a check_reseller_float_wallet_balance response.
    """
    if not payload:
        return None

    for key in BALANCE_KEYS:
        value = payload.get(key)
        if value is not None:
            try:
                return float(value)
            except (TypeError, ValueError):
                continue
    return None
