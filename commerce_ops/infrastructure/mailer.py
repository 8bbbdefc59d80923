"""Outbound email through the Resend HTTP API."""

from typing import List, Optional

import httpx

from shared.core import get_logger
from commerce_ops.application.errors import PreconditionFailed
from .http import provider_call

logger = get_logger(__name__)

PROVIDER = "resend"


class ResendMailer:
    def __init__(
        self,
        api_key: Optional[str],
        from_address: str,
        sender_name: str,
        bcc: Optional[List[str]] = None,
        api_base: str = "https://api.resend.com",
        timeout: float = 15.0,
    ):
        self.api_key = api_key
        self.from_address = from_address
        self.sender_name = sender_name
        self.bcc = bcc or []
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def send(self, to: str, subject: str, text: str, html: Optional[str] = None, reply_to: Optional[str] = None) -> str:
        """Send one message and return the provider's message id."""
        if not self.is_configured:
            raise PreconditionFailed("Email provider not configured. Please add RESEND_API_KEY to your environment.")
        payload = {
            "from": f"{self.sender_name} <{self.from_address}>",
            "to": [to],
            "subject": subject,
            "text": text,
        }
        if html:
            payload["html"] = html
        if self.bcc:
            payload["bcc"] = self.bcc
        if reply_to:
            payload["reply_to"] = reply_to
        with httpx.Client(timeout=self.timeout) as client:
            result = provider_call(
                PROVIDER,
                client,
                "POST",
                f"{self.api_base}/emails",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        logger.info("Email sent", extra={"extra_fields": {"subject": subject, "message_id": result.get("id")}})
        return result.get("id", "")
