"""
Consultation emails. Delivery is best-effort: notify() reports success as a
bool and never raises.
"""

import html
import logging
from datetime import datetime
from typing import Optional, Protocol

import httpx

from app.core.config import Settings
from app.core.exceptions import NotificationFailure
from app.services.oracle.eligibility import mask_email

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"
EMAIL_SUBJECT = "Your Oracle Consultation"


class Notifier(Protocol):
    async def notify(self, email: str, question: str, reading: str, name: Optional[str] = None) -> bool:
        ...


def render_consultation_email(question: str, reading: str, name: Optional[str] = None) -> str:
    greeting = f"<p style=\"color: #D3D3D3;\">Kia ora {html.escape(name)},</p>" if name else ""
    return f"""
        <div style="font-family: sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; color: #333;">
          <h1 style="color: #4B0082; text-align: center;">KiaOra Oracle</h1>
          <div style="background-color: #1A1F4D; color: #F5F5F5; padding: 20px; border-radius: 8px; margin: 20px 0;">
            {greeting}
            <h2 style="color: #DAA520; margin-top: 0;">Your Question</h2>
            <p style="color: #D3D3D3;">{html.escape(question)}</p>

            <h2 style="color: #DAA520; margin-top: 20px;">The Oracle's Response</h2>
            <p style="color: #F5F5F5;">{html.escape(reading)}</p>
          </div>
          <p style="text-align: center; color: #666; font-size: 14px;">
            &copy; {datetime.now().year} KiaOra Oracle | Mystical Guidance for the Modern Seeker
          </p>
        </div>
    """


class LoggingNotifier:
    """Used when no email provider is configured."""

    async def notify(self, email: str, question: str, reading: str, name: Optional[str] = None) -> bool:
        logger.info(f"Email delivery not configured, skipping consultation email to {mask_email(email)}")
        return False


class ResendEmailNotifier:
    """Sends the consultation email through the Resend HTTP API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        sender_email: str,
        sender_name: str = "KiaOra Oracle",
        development: bool = False,
        developer_email: str = "dev@example.com"
    ):
        self.client = client
        self.api_key = api_key
        self.sender_email = sender_email
        self.sender_name = sender_name
        self.development = development
        self.developer_email = developer_email

    def recipient_for(self, email: str) -> str:
        # In development every email goes to the developer to avoid provider restrictions
        if self.development:
            if email != self.developer_email:
                logger.info(
                    f"[DEV MODE] Email would be sent to {mask_email(email)}, "
                    f"redirecting to {self.developer_email} for testing"
                )
            return self.developer_email
        return email

    async def _send(self, email: str, question: str, reading: str, name: Optional[str]) -> str:
        payload = {
            "from": f"{self.sender_name} <{self.sender_email}>",
            "to": [self.recipient_for(email)],
            "subject": EMAIL_SUBJECT,
            "html": render_consultation_email(question, reading, name),
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        try:
            response = await self.client.post(RESEND_API_URL, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise NotificationFailure(f"Resend request failed: {e}") from e

        if response.status_code >= 300:
            raise NotificationFailure(f"Resend API error: {response.status_code} - {response.text}")
        try:
            return response.json().get("id", "")
        except ValueError:
            return ""

    async def notify(self, email: str, question: str, reading: str, name: Optional[str] = None) -> bool:
        try:
            message_id = await self._send(email, question, reading, name)
        except NotificationFailure as e:
            logger.error(f"Failed to send consultation email to {mask_email(email)}: {e}")
            return False
        except Exception as e:
            logger.exception(f"Unexpected error sending consultation email to {mask_email(email)}: {e}")
            return False

        logger.info(f"Email sent successfully to {mask_email(email)} (id: {message_id})")
        return True

    async def close(self) -> None:
        await self.client.aclose()


def create_notifier(settings: Settings) -> Notifier:
    if not settings.resend_api_key:
        logger.warning("RESEND_API_KEY not set, consultation emails are disabled")
        return LoggingNotifier()
    return ResendEmailNotifier(
        httpx.AsyncClient(timeout=settings.email_timeout_seconds),
        api_key=settings.resend_api_key,
        sender_email=settings.sender_email,
        sender_name=settings.sender_name,
        development=settings.is_development,
        developer_email=settings.developer_email
    )
