"""
Email Service using Resend
Templates are MJML and compiled to HTML before sending
"""

import logging
from dataclasses import dataclass
from typing import Optional

import resend
from mjml import mjml_to_html

from ... import config

logger = logging.getLogger(__name__)


@dataclass
class EmailResult:
    success: bool
    provider: str = "resend"
    message_id: Optional[str] = None
    error: Optional[str] = None


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    result = mjml_to_html(mjml_content)
    errors = getattr(result, "errors", None)
    if errors:
        logger.warning(f"MJML compilation warnings: {errors}")
    html = getattr(result, "html", None)
    if html is None and isinstance(result, dict):
        html = result.get("html", "")
    return html if html is not None else str(result)


async def send_email(to: str, subject: str, mjml_content: str) -> EmailResult:
    """Send an email via Resend; configuration and provider errors become a failed result"""
    if not config.RESEND_API_KEY:
        logger.warning("⚠️ Resend API key not configured")
        return EmailResult(success=False, error="Email service not configured")

    try:
        html_content = compile_mjml_to_html(mjml_content)
        resend.api_key = config.RESEND_API_KEY
        logger.info(f"📧 Sending email via Resend to: {to}")
        response = resend.Emails.send(
            {
                "from": config.EMAIL_FROM_ADDRESS,
                "to": [to],
                "subject": subject,
                "html": html_content,
            }
        )
        message_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
        logger.info(f"✅ Email sent successfully via Resend: {message_id}")
        return EmailResult(success=True, message_id=message_id)
    except Exception as e:
        logger.error(f"❌ Email send error to {to}: {e}")
        return EmailResult(success=False, error=str(e))
