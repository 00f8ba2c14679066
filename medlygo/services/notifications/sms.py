"""
SMS Service
Primary: Hubtel (Ghana local coverage)
Fallback: Twilio (global reliability)
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from ... import config
from ...shared.validators import format_ghana_phone, format_international_phone

logger = logging.getLogger(__name__)

HUBTEL_SEND_URL = "https://smsc.hubtel.com/v1/messages/send"


@dataclass
class SMSResult:
    success: bool
    provider: str
    message_id: Optional[str] = None
    error: Optional[str] = None


async def send_via_hubtel(to_phone: str, message: str) -> SMSResult:
    if not config.HUBTEL_CLIENT_ID or not config.HUBTEL_CLIENT_SECRET:
        return SMSResult(success=False, provider="hubtel", error="Hubtel credentials not configured")

    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                HUBTEL_SEND_URL,
                auth=(config.HUBTEL_CLIENT_ID, config.HUBTEL_CLIENT_SECRET),
                json={
                    "From": config.HUBTEL_SENDER_ID,
                    "To": format_ghana_phone(to_phone),
                    "Content": message,
                },
                timeout=10.0,
            )
        data = response.json()
        if response.is_success and data.get("MessageId"):
            return SMSResult(success=True, provider="hubtel", message_id=data["MessageId"])
        return SMSResult(
            success=False,
            provider="hubtel",
            error=data.get("Message") or f"Hubtel HTTP {response.status_code}",
        )
    except (httpx.HTTPError, ValueError) as e:
        return SMSResult(success=False, provider="hubtel", error=str(e))


async def send_via_twilio(to_phone: str, message: str) -> SMSResult:
    account_sid = config.TWILIO_ACCOUNT_SID
    if not account_sid or not config.TWILIO_AUTH_TOKEN or not config.TWILIO_PHONE_NUMBER:
        return SMSResult(success=False, provider="twilio", error="Twilio credentials not configured")

    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"https://api.twilio.com/2010-04-01/Accounts/{account_sid}/Messages.json",
                auth=(account_sid, config.TWILIO_AUTH_TOKEN),
                data={
                    "To": format_international_phone(to_phone),
                    "From": config.TWILIO_PHONE_NUMBER,
                    "Body": message,
                },
                timeout=10.0,
            )
        data = response.json()
        if response.status_code in (200, 201) and data.get("sid"):
            return SMSResult(success=True, provider="twilio", message_id=data["sid"])

        error_code = data.get("code")
        error_message = data.get("message", "Failed to send SMS via Twilio")
        logger.error(f"❌ Twilio API error [{error_code}]: {error_message}")
        return SMSResult(
            success=False,
            provider="twilio",
            error=f"[{error_code}] {error_message}" if error_code else error_message,
        )
    except (httpx.HTTPError, ValueError) as e:
        return SMSResult(success=False, provider="twilio", error=str(e))


async def send_sms(to_phone: str, message: str) -> SMSResult:
    """Send through Hubtel, falling back to Twilio when Hubtel does not accept the message"""
    if not to_phone:
        return SMSResult(success=False, provider="none", error="No phone number provided")

    logger.info(f"📱 Sending SMS to {format_international_phone(to_phone)}")
    result = await send_via_hubtel(to_phone, message)
    if result.success:
        logger.info(f"✅ SMS sent via Hubtel (id: {result.message_id})")
        return result

    logger.warning(f"⚠️ Hubtel SMS failed, trying Twilio fallback: {result.error}")
    result = await send_via_twilio(to_phone, message)
    if result.success:
        logger.info(f"✅ SMS sent via Twilio (sid: {result.message_id})")
    else:
        logger.error(f"❌ All SMS providers failed: {result.error}")
    return result
