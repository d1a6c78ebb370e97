"""
app/services/twilio_service.py

Purpose: Twilio WhatsApp message sending

- Sends WhatsApp text replies via the Twilio REST API
- Validates X-Twilio-Signature on inbound webhooks
- Delivery failures are reported, never retried here
"""

import base64
import hashlib
import hmac
from typing import Any, Dict, Mapping, Optional

import httpx

from app.core.config import Settings, settings
from app.core.logging import get_logger

logger = get_logger(__name__)

# Twilio caps a single WhatsApp body at 1600 characters
MAX_BODY_LENGTH = 1600


class TwilioService:
    """Service for sending WhatsApp messages via Twilio"""

    def __init__(
        self,
        account_sid: Optional[str],
        auth_token: Optional[str],
        whatsapp_number: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.whatsapp_number = whatsapp_number  # whatsapp:+14155238886
        self.base_url = f"https://api.twilio.com/2010-04-01/Accounts/{account_sid}"
        self._transport = transport

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None, **kwargs) -> "TwilioService":
        config = config or settings
        return cls(
            account_sid=config.TWILIO_ACCOUNT_SID,
            auth_token=config.TWILIO_AUTH_TOKEN,
            whatsapp_number=config.TWILIO_WHATSAPP_NUMBER,
            **kwargs,
        )

    def is_configured(self) -> bool:
        """Check if Twilio is properly configured"""
        return bool(self.account_sid and self.auth_token and self.whatsapp_number)

    async def send_message(self, to_phone: str, message: str) -> Dict[str, Any]:
        """
        Sends a WhatsApp message via Twilio

        Args:
            to_phone: Recipient phone (256772123456, +256772123456 or whatsapp:+256...)
            message: Message text

        Returns:
            {
                "success": True/False,
                "message_sid": "SMxxx...",
                "error": "Optional error message"
            }
        """
        if not self.is_configured():
            logger.warning(f"⚠️ Twilio not configured, reply to {to_phone} not sent")
            return {"success": False, "error": "Twilio not configured"}

        to_address = format_whatsapp_address(to_phone)
        data = {
            "From": self.whatsapp_number,
            "To": to_address,
            "Body": message[:MAX_BODY_LENGTH],
        }

        logger.info(f"📤 Sending Twilio message to {to_address}")

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=10.0) as client:
                response = await client.post(
                    f"{self.base_url}/Messages.json",
                    data=data,
                    auth=(self.account_sid, self.auth_token),
                )

            if response.status_code in (200, 201):
                result = response.json()
                logger.info(f"✅ Message sent: SID={result.get('sid')}")
                return {
                    "success": True,
                    "message_sid": result.get("sid"),
                    "status": result.get("status"),
                }

            logger.error(f"❌ Twilio API error: {response.status_code} - {response.text}")
            return {"success": False, "error": f"Twilio API error: {response.status_code}"}

        except httpx.TimeoutException:
            logger.error("Twilio API timeout")
            return {"success": False, "error": "Twilio API timeout"}
        except httpx.HTTPError as e:
            logger.error(f"Error sending Twilio message: {e}", exc_info=True)
            return {"success": False, "error": str(e)}

    def validate_signature(self, url: str, params: Mapping[str, str], signature: Optional[str]) -> bool:
        """
        Checks X-Twilio-Signature: base64 HMAC-SHA1 over the URL followed by
        the sorted form parameters, keyed with the auth token.
        """
        if not signature or not self.auth_token:
            return False

        payload = url + "".join(f"{key}{params[key]}" for key in sorted(params))
        digest = hmac.new(self.auth_token.encode("utf-8"), payload.encode("utf-8"), hashlib.sha1).digest()
        expected = base64.b64encode(digest).decode("utf-8")
        return hmac.compare_digest(expected, signature)


def format_whatsapp_address(phone: str) -> str:
    """
    "256772123456" -> "whatsapp:+256772123456"
    """
    if phone.startswith("whatsapp:"):
        return phone
    if not phone.startswith("+"):
        phone = f"+{phone}"
    return f"whatsapp:{phone}"
