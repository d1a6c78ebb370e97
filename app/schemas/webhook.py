"""
app/schemas/webhook.py

Purpose: WhatsApp webhook payload schema and parser

- Normalizes Twilio form posts into UnifiedMessage
- Strips the "whatsapp:" transport prefix from sender ids
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class UnifiedMessage(BaseModel):
    """
    Normalized inbound message for internal processing.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "phone": "+256772123456",
                "name": "Jane",
                "text": "menu",
                "message_id": "SM0123456789abcdef",
            }
        }
    )

    phone: str = Field(..., description="Sender phone without transport prefix")
    name: Optional[str] = Field(default=None, description="WhatsApp profile name")
    text: str = Field(default="", description="Message text content")
    message_id: Optional[str] = Field(default=None, description="Provider message SID")
    timestamp: datetime = Field(default_factory=datetime.utcnow)


def parse_twilio_message(
    from_number: str,
    body: Optional[str],
    profile_name: Optional[str] = None,
    message_sid: Optional[str] = None
) -> UnifiedMessage:
    """
    Parses Twilio WhatsApp webhook payload

    Twilio format (form data):
    - From: whatsapp:+256772123456
    - Body: message text
    - ProfileName: User's name
    - MessageSid: SMxxxxxxxx
    """
    phone = from_number.replace("whatsapp:", "").strip()

    return UnifiedMessage(
        phone=phone,
        name=profile_name or None,
        text=body or "",
        message_id=message_sid or None,
    )
