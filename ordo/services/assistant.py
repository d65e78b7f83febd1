"""
Conversational assistant backed by the Gemini ``generateContent`` REST API.

Purely advisory: nothing it returns feeds pricing, carts or orders, and every
failure degrades to a canned reply instead of raising.
"""
import logging
from typing import Optional, Sequence

import httpx

from ordo.schemas.assistant import ChatMessage

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are OrdoBot, a witty and professional restaurant assistant. Answer menu questions concisely."

CHAT_FALLBACK = "I'm having a little trouble connecting. Please try again in a moment."
CHAT_EMPTY = "I'm here to help!"
DESCRIBE_UNAVAILABLE = "AI service is unavailable."
DESCRIBE_FAILED = "Failed to generate description."
DESCRIBE_EMPTY = "Delicious choice prepared with fresh ingredients."


def _contents(history: Sequence[ChatMessage], message: str) -> list[dict]:
    turns = [
        {"role": "user" if m.sender == "user" else "model", "parts": [{"text": m.text}]}
        for m in history
    ]
    turns.append({"role": "user", "parts": [{"text": message}]})
    return turns


def _text_of(data: dict) -> str:
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return ""
    return "".join(p.get("text", "") for p in parts if isinstance(p, dict)).strip()


class Assistant:
    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.0-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def _generate(self, body: dict) -> str:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            r = await client.post(url, params={"key": self.api_key}, json=body)
            r.raise_for_status()
            return _text_of(r.json())

    async def reply(self, history: Sequence[ChatMessage], message: str) -> str:
        if not self.enabled:
            return CHAT_FALLBACK
        body = {
            "systemInstruction": {"parts": [{"text": SYSTEM_PROMPT}]},
            "contents": _contents(history, message),
        }
        try:
            text = await self._generate(body)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("assistant reply failed: %s", e)
            return CHAT_FALLBACK
        return text or CHAT_EMPTY

    async def describe_product(self, name: str, category: str = "", current: str = "") -> str:
        """One-sentence menu blurb for the admin console."""
        if not self.enabled:
            return DESCRIBE_UNAVAILABLE
        prompt = (
            "Generate a chic, minimalist, and enticing one-sentence description for a cafe menu item.\n"
            f"Item Name: {name}\n"
            f"Category: {category}\n"
            f"Current Description (if any): {current}\n"
            "Focus on fresh ingredients and experience. Max 15 words."
        )
        try:
            text = await self._generate({"contents": [{"role": "user", "parts": [{"text": prompt}]}]})
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("product description failed: %s", e)
            return DESCRIBE_FAILED
        return text or DESCRIBE_EMPTY
