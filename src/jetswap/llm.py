"""Thin client for the Gemini ``generateContent`` REST endpoint.

Every call goes through a RequestGovernor so the audit and the support
assistant share one quota-aware slot.
API docs: https://ai.google.dev/api/generate-content
"""

import logging
from typing import Any, Optional

import httpx

from jetswap.utils.governor import RequestGovernor, raise_for_throttle

logger = logging.getLogger(__name__)


class GenerativeResponseError(Exception):
    """Raised when the response envelope carries no candidate text."""

    pass


class GenerativeClient:
    """Governed text generation client."""

    def __init__(
        self,
        api_key: str,
        governor: RequestGovernor,
        model: str = "gemini-1.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            api_key: Service credential
            governor: Governor shared by every caller of this endpoint
            model: Model name
            base_url: API base URL
            timeout: HTTP timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.api_key = api_key
        self.governor = governor
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _get_headers(self) -> dict:
        return {"Content-Type": "application/json", "x-goog-api-key": self.api_key}

    async def _post(self, body: dict) -> dict:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(url, headers=self._get_headers(), json=body)
            raise_for_throttle(response)
            response.raise_for_status()
            return response.json()

    async def generate(
        self,
        contents: list[dict],
        generation_config: Optional[dict[str, Any]] = None,
        label: str = "generate",
    ) -> str:
        """Generate text for ``contents``.

        Raises:
            ThrottledRetryExhausted: quota errors on every attempt
            httpx.HTTPError: network or HTTP failure
            GenerativeResponseError: no text in the response
        """
        body: dict[str, Any] = {"contents": contents}
        if generation_config:
            body["generationConfig"] = generation_config

        data = await self.governor.schedule(lambda: self._post(body), label=label)
        return extract_text(data)


def extract_text(data: Any) -> str:
    """Join the text parts of the first candidate."""
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        raise GenerativeResponseError("response has no candidate content")
    text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
    if not text:
        raise GenerativeResponseError("candidate content is empty")
    return text


def user_turn(text: str) -> dict:
    return {"role": "user", "parts": [{"text": text}]}
