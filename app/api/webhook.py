"""
app/api/webhook.py

Purpose: WhatsApp webhook endpoint (Twilio)

- Receives incoming Twilio form posts
- Optional X-Twilio-Signature validation
- Drops redelivered webhooks before they reach the engine
- Runs the conversation engine and sends the reply via Twilio
- Logs incoming and outgoing text
- Always answers Twilio with empty TwiML
"""

from fastapi import APIRouter, Request, Form
from fastapi.responses import Response
from typing import Optional

from app.core.exceptions import AuthenticationError, ValidationError
from app.core.logging import get_logger
from app.schemas.webhook import parse_twilio_message
from app.services.message_log_service import INCOMING, OUTGOING
from utils.validation_utils import normalize_sender

logger = get_logger(__name__)
router = APIRouter()

EMPTY_TWIML = "<?xml version=\"1.0\" encoding=\"UTF-8\"?><Response></Response>"


def twiml_response() -> Response:
    return Response(content=EMPTY_TWIML, media_type="application/xml")


async def verify_twilio_signature(request: Request):
    """
    Raises AuthenticationError when signature validation is enabled and fails.
    """
    state = request.app.state
    if not state.settings.VALIDATE_TWILIO_SIGNATURE:
        return

    form = await request.form()
    params = {key: str(value) for key, value in form.items()}
    signature = request.headers.get("X-Twilio-Signature")

    if not state.twilio.validate_signature(str(request.url), params, signature):
        logger.warning("Invalid Twilio signature")
        raise AuthenticationError("Invalid Twilio signature")


@router.post("/webhook")
async def webhook_handler(
    request: Request,
    From: Optional[str] = Form(None),
    Body: Optional[str] = Form(None),
    ProfileName: Optional[str] = Form(None),
    MessageSid: Optional[str] = Form(None),
):
    """
    Twilio WhatsApp webhook.

    The reply is sent through the Twilio REST API rather than in the TwiML
    body, so the response is always empty TwiML.
    """
    if not From:
        raise ValidationError("Missing sender (From)")

    await verify_twilio_signature(request)

    state = request.app.state
    message = parse_twilio_message(
        from_number=From,
        body=Body,
        profile_name=ProfileName,
        message_sid=MessageSid
    )
    phone = normalize_sender(message.phone)

    logger.info(f"📱 Twilio webhook received from {phone}: {message.text[:50]}")

    try:
        if await state.message_log.is_duplicate(phone, message.text, message.message_id):
            logger.info(f"🔁 Duplicate webhook ignored for {phone} ({message.message_id or 'no id'})")
            return twiml_response()

        await state.message_log.log(phone, INCOMING, message.text, message.message_id)

        reply_text = await state.engine.handle_message(
            sender=From,
            body=message.text,
            message_id=message.message_id,
            profile_name=message.name,
        )

        result = await state.twilio.send_message(to_phone=phone, message=reply_text)
        if result["success"]:
            logger.info(f"✅ Reply sent: SID={result.get('message_sid', 'N/A')}")
        else:
            logger.error(f"❌ Failed to send reply: {result.get('error')}")

        await state.message_log.log(phone, OUTGOING, reply_text)

    except Exception as e:
        logger.error(f"Webhook error: {e}", exc_info=True)

    return twiml_response()


@router.get("/webhook")
async def webhook_verification(request: Request):
    """
    Liveness check for the webhook URL.
    """
    return {"status": "ok", "message": "Webhook endpoint is active"}
