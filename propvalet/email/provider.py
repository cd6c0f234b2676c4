"""
Email provider - delivers an already-authorized message.

Providers never decide who may receive mail; callers must pass every
message through EmailContextGuard.authorize first.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.resend.com/emails"
REQUEST_TIMEOUT = 30.0

_TAG_RE = re.compile(r"<[^>]*>")


@dataclass
class OutboundEmail:
    from_address: str
    to: str
    subject: str
    html: str
    cc: List[str] = field(default_factory=list)
    bcc: List[str] = field(default_factory=list)
    reply_to: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "from": self.from_address,
            "to": [self.to],
            "subject": self.subject,
            "html": self.html,
            "text": _TAG_RE.sub("", self.html),
        }
        if self.cc:
            payload["cc"] = self.cc
        if self.bcc:
            payload["bcc"] = self.bcc
        if self.reply_to:
            payload["reply_to"] = self.reply_to
        return payload


class BaseEmailSender(ABC):
    """
    Abstract base class for email delivery.

    All senders must implement:
    - send(message) - deliver and return a result dict
    - is_enabled() - whether the sender is configured
    """

    def __init__(self):
        self.provider_name = self.__class__.__name__

    @abstractmethod
    async def send(self, message: OutboundEmail) -> Dict[str, Any]:
        """
        Deliver a message.

        Returns:
            {"success": True, "message_id": ...} or {"success": False, "error": ...}
        """
        pass

    @abstractmethod
    def is_enabled(self) -> bool:
        pass


class ResendEmailSender(BaseEmailSender):
    """Resend-compatible JSON email API."""

    def __init__(self, api_key: str, api_url: str = DEFAULT_API_URL):
        super().__init__()
        self.api_key = api_key
        self.api_url = api_url or DEFAULT_API_URL

    def is_enabled(self) -> bool:
        return bool(self.api_key)

    def _get_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def send(self, message: OutboundEmail) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.api_url,
                    headers=self._get_headers(),
                    json=message.to_payload(),
                    timeout=REQUEST_TIMEOUT,
                )

            if response.status_code >= 400:
                logger.error(f"Email API error: {response.status_code} - {response.text}")
                return {
                    "success": False,
                    "error": f"Email provider error {response.status_code}: {response.text}",
                }

            data = response.json()
            logger.info(f"Email sent to {message.to} (id={data.get('id')})")
            return {"success": True, "message_id": data.get("id")}

        except httpx.TimeoutException:
            logger.error("Email send timed out")
            return {"success": False, "error": "Email send timed out"}
        except httpx.HTTPError as e:
            logger.error(f"Email send failed: {e}")
            return {"success": False, "error": f"Email send failed: {e}"}
