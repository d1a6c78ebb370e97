"""
utils/time_utils.py

Purpose: Time and expiry helpers

- Session TTL calculations
- Recharge window boundaries
- Timestamps rendered in East Africa Time
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

DISPLAY_TIMEZONE = ZoneInfo("Africa/Kampala")


def utcnow() -> datetime:
    """
    Naive UTC now, matching what the database columns store.
    """
    return datetime.utcnow()


def calculate_session_expiry(timeout_minutes: int = 30, now: Optional[datetime] = None) -> datetime:
    """
    Calculates the expiry timestamp for a session touched at `now`.
    """
    return (now or utcnow()) + timedelta(minutes=timeout_minutes)


def is_session_expired(expires_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """
    Checks if a session has expired. A missing expiry counts as expired.
    """
    if not expires_at:
        return True
    return (now or utcnow()) > expires_at


def one_hour_ago(now: Optional[datetime] = None) -> datetime:
    return (now or utcnow()) - timedelta(hours=1)


def format_timestamp(dt: Optional[datetime], format_str: str = "%Y-%m-%d %H:%M:%S") -> str:
    """
    Formats a naive UTC datetime in local (Kampala) time.
    """
    if not dt:
        return "N/A"
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(DISPLAY_TIMEZONE).strftime(format_str)


def format_date(dt: Optional[datetime]) -> str:
    return format_timestamp(dt, "%d %b %Y")
