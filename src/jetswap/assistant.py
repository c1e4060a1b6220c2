"""Support assistant.

Shares the audit governor with the phrase audit so the two never compete for
the same quota at once.
"""

import logging
from typing import AsyncIterator, Optional

from jetswap.llm import GenerativeClient, user_turn

logger = logging.getLogger(__name__)

OFFLINE_REPLY = "Pilot support is currently offline."
FAILURE_REPLY = "Operational drift detected."


class SupportAssistant:
    """Answers user questions through the generative service."""

    def __init__(self, generator: Optional[GenerativeClient] = None, temperature: float = 0.8):
        self.generator = generator
        self.temperature = temperature

    async def stream(self, message: str, history: Optional[list[dict]] = None) -> AsyncIterator[str]:
        """Yield the answer to ``message`` as text chunks.

        ``history`` holds previous turns as ``{"role": ..., "parts": [{"text": ...}]}``.
        """
        if self.generator is None:
            yield OFFLINE_REPLY
            return

        try:
            text = await self.generator.generate(
                [*(history or []), user_turn(message)],
                generation_config={"temperature": self.temperature},
                label="support chat",
            )
        except Exception as e:
            logger.warning(f"Support chat failed: {type(e).__name__}: {e}")
            yield FAILURE_REPLY
            return

        for paragraph in text.replace("*", "").split("\n\n"):
            if paragraph.strip():
                yield paragraph
