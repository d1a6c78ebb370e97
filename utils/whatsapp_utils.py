"""
utils/whatsapp_utils.py

Purpose: WhatsApp text builders

- Currency and number-emoji formatting
- Numbered bundle and saved-number lists
- Transaction summary lines
- Plain text only; Twilio wraps it for delivery
"""

from typing import Any, Dict, List, Optional

from utils.time_utils import format_timestamp

NUMBER_EMOJIS = {
    0: "0️⃣", 1: "1️⃣", 2: "2️⃣", 3: "3️⃣", 4: "4️⃣",
    5: "5️⃣", 6: "6️⃣", 7: "7️⃣", 8: "8️⃣", 9: "9️⃣", 10: "🔟",
}

STATUS_EMOJIS = {
    "success": "✅",
    "failed": "❌",
    "pending": "⏳",
}


def format_currency(amount: Any) -> str:
    """
    Formats an amount as Uganda shillings with thousands grouping.

    Examples:
        format_currency(2000) -> "UGX 2,000"
        format_currency(0) -> "UGX 0"
    """
    try:
        value = int(float(amount or 0))
    except (TypeError, ValueError):
        value = 0
    return f"UGX {value:,}"


def emoji_number(number: int) -> str:
    """
    Keycap emoji for 0-10, digit-by-digit keycaps above that.
    """
    if number in NUMBER_EMOJIS:
        return NUMBER_EMOJIS[number]
    return "".join(NUMBER_EMOJIS[int(d)] for d in str(number))


def bold(text: str) -> str:
    return f"*{text}*"


def build_plan_list(plans: List[Dict[str, Any]]) -> str:
    """
    Numbered bundle catalogue, one block per plan.

    Args:
        plans: Plans with name, price and description

    Returns:
        Text block ending with a blank line
    """
    lines = []
    for index, plan in enumerate(plans, start=1):
        lines.append(f"{emoji_number(index)} {bold(plan['name'])}")
        lines.append(f"   💰 {format_currency(plan['price'])}")
        if plan.get("description"):
            lines.append(f"   📄 {plan['description']}")
        lines.append("")
    return "\n".join(lines) + "\n"


def build_saved_number_list(numbers: List[Dict[str, Any]]) -> str:
    """
    Numbered saved recipients, name in brackets or 'Unknown'.
    """
    lines = []
    for index, number in enumerate(numbers, start=1):
        name = number.get("name") or "Unknown"
        lines.append(f"{emoji_number(index)} {number['phone']} ({name})")
    return "\n".join(lines) + "\n"


def build_transaction_line(transaction: Any) -> str:
    """
    One history entry for a Transaction row.
    """
    emoji = STATUS_EMOJIS.get(transaction.status, "❔")
    label = transaction.bundle_name if transaction.transaction_type == "bundle" and transaction.bundle_name else transaction.transaction_type.title()
    return (
        f"{emoji} {bold(label)} - {format_currency(transaction.amount)}\n"
        f"   📞 {transaction.subscription_id}\n"
        f"   🔢 {transaction.transaction_id}\n"
        f"   📅 {format_timestamp(transaction.created_at)}\n"
    )


def subscriber_suffix(name: Optional[str], template: str) -> str:
    """
    Renders the optional subscriber line, empty when the name is unknown.
    """
    if not name:
        return ""
    return template.format(name=name)
