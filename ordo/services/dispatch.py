import logging
import re
from typing import Optional
from urllib.parse import quote

import httpx

from ordo.errors import DispatchError

logger = logging.getLogger(__name__)

WA_BASE = "https://wa.me"


def whatsapp_link(destination: str, text: str) -> str:
    digits = re.sub(r"\D", "", destination or "")
    return f"{WA_BASE}/{digits}?text={quote(text, safe='')}"


class WhatsAppDispatcher:
    """
    Hands a formatted order message to WhatsApp.

    Always returns the click-to-chat link for the customer's device. When a
    webhook is configured the message is also POSTed there; a transport
    failure raises DispatchError after the link has been built.
    """

    def __init__(self, webhook_url: Optional[str] = None, timeout: float = 3.0,
                 transport: Optional[httpx.BaseTransport] = None):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self._transport = transport

    def send(self, destination: str, text: str) -> Optional[str]:
        digits = re.sub(r"\D", "", destination or "")
        if not digits:
            raise DispatchError("no WhatsApp number configured for the branch")
        url = whatsapp_link(digits, text)
        if not self.webhook_url:
            return url

        payload = {"destination": digits, "text": text, "url": url}
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                r = client.post(self.webhook_url, json=payload)
                r.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("order webhook %s failed: %s", self.webhook_url, e)
            raise DispatchError(str(e) or e.__class__.__name__, url=url) from e
        logger.info("order message delivered to webhook for %s", digits)
        return url
