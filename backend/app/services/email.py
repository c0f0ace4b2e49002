# backend/app/services/email.py
"""
Email Service for the MatePeak platform.

Sends transactional email through the Resend API. With
``EMAIL_PROVIDER=console`` (the development default) messages are logged
instead of sent.

Provider failures surface as ``ProviderException`` and timeouts as
``ProviderTimeoutException`` so the outbox dispatcher can retry them.
"""

import logging
import re
from typing import Any, Dict, Optional

import requests
import resend
from resend.exceptions import ResendError

from ..core.config import settings
from ..core.exceptions import (
    ProviderException,
    ProviderNotConfiguredException,
    ProviderTimeoutException,
)

logger = logging.getLogger(__name__)


def html_to_text(html_content: str) -> str:
    """Convert HTML content to plain text for better deliverability"""
    text = re.sub(r"<[^>]+>", "", html_content)
    text = re.sub(r"\s+", " ", text)
    return text.strip()


class EmailService:
    """Thin wrapper around Resend with a console mode for local development."""

    def __init__(self, provider: Optional[str] = None):
        self.provider = provider or settings.email_provider
        self.from_email = settings.from_email

        if self.provider == "resend":
            if not settings.resend_api_key:
                raise ProviderNotConfiguredException("Resend email", "RESEND_API_KEY")
            resend.api_key = settings.resend_api_key

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Send one email.

        Returns:
            Dict containing the provider response (``{"id": ...}``)

        Raises:
            ProviderTimeoutException: Resend did not answer in time
            ProviderException: Resend rejected the request or failed
        """
        if not text_content:
            text_content = html_to_text(html_content)

        if self.provider == "console":
            logger.info(f"[console email] to={to_email} subject={subject!r}\n{text_content}")
            return {"id": "console"}

        email_data: Dict[str, Any] = {
            "from": self.from_email,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
            "text": text_content,
        }
        try:
            response = resend.Emails.send(email_data)
        except requests.exceptions.Timeout as e:
            logger.warning(f"Email to {to_email} timed out: {str(e)}")
            raise ProviderTimeoutException(
                "Email provider timed out", details={"provider": "resend"}
            ) from e
        except (ResendError, requests.exceptions.RequestException) as e:
            logger.error(f"Failed to send email to {to_email}: {str(e)}")
            raise ProviderException(
                f"Email sending failed: {str(e)}", details={"provider": "resend"}
            ) from e

        logger.info(f"Email sent successfully to {to_email} - Subject: {subject}")
        return dict(response)
