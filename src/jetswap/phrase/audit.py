"""Linguistic audit tier.

Asks the remote judgment service whether a checksum-valid phrase is a
plausible BIP-39 phrase. The service is told to answer with strict JSON, but
the answer is still parsed defensively: surrounding commentary is tolerated,
a missing JSON object is a malformed response, never a guess.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Optional, Union

import httpx
from pydantic import BaseModel, Field, ValidationError

from jetswap.llm import GenerativeClient, GenerativeResponseError, user_turn
from jetswap.phrase.results import REQUIRED_WORDS, AuditVerdict, ErrorKind, ValidationSource
from jetswap.utils.governor import ThrottledRetryExhausted

logger = logging.getLogger(__name__)

AUDIT_PROMPT = (
    'BIP-39 Security Audit: "{phrase}". '
    "Check every word against the BIP-39 English word list. "
    'Return JSON: {{"valid": boolean, "valid_count": number, "invalid_words": []}}'
)

AUDIT_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "valid": {"type": "BOOLEAN"},
        "valid_count": {"type": "INTEGER"},
        "invalid_words": {"type": "ARRAY", "items": {"type": "STRING"}},
    },
    "required": ["valid", "valid_count", "invalid_words"],
}

_OBJECT_SPAN = re.compile(r"\{[\s\S]*\}")


@dataclass(frozen=True)
class Parsed:
    value: dict


@dataclass(frozen=True)
class Unparsable:
    reason: str


ParseResult = Union[Parsed, Unparsable]


def extract_json(text: str) -> ParseResult:
    """Pull one JSON object out of free text.

    The whole text is tried first, then the span from the first ``{`` to the
    last ``}``.
    """
    candidates = [text.strip()]
    match = _OBJECT_SPAN.search(text)
    if match:
        candidates.append(match.group(0))

    for candidate in candidates:
        try:
            value = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(value, dict):
            return Parsed(value)
    return Unparsable("no JSON object found" if not match else "JSON object did not parse")


class AuditPayload(BaseModel):
    """Shape the audit service must answer with."""

    valid: bool = Field(..., strict=True)
    valid_count: int = Field(..., ge=0)
    invalid_words: list[str] = Field(default_factory=list)


class LinguisticAuditClient:
    """Remote phrase audit with an explicit offline mode."""

    def __init__(self, generator: Optional[GenerativeClient] = None):
        """Initialize the client.

        Args:
            generator: Governed remote client; None selects offline mode
        """
        self.generator = generator

    @property
    def enabled(self) -> bool:
        return self.generator is not None

    def _offline_verdict(self, phrase: str) -> AuditVerdict:
        words = phrase.lower().split()
        return AuditVerdict(
            valid=len(words) >= REQUIRED_WORDS,
            word_count=len(words),
            source=ValidationSource.OFFLINE,
        )

    @staticmethod
    def _failure(kind: ErrorKind) -> AuditVerdict:
        return AuditVerdict(valid=False, word_count=0, error_kind=kind)

    async def audit(self, phrase: str) -> AuditVerdict:
        """Judge ``phrase``. Never raises; failures are encoded in the verdict."""
        if not phrase:
            return AuditVerdict(valid=False, word_count=0, source=ValidationSource.LOCAL)

        if not self.enabled:
            logger.info("Audit credential not configured, using offline verdict")
            return self._offline_verdict(phrase)

        try:
            text = await self.generator.generate(
                [user_turn(AUDIT_PROMPT.format(phrase=phrase))],
                generation_config={
                    "responseMimeType": "application/json",
                    "responseSchema": AUDIT_RESPONSE_SCHEMA,
                    "temperature": 0,
                },
                label="phrase audit",
            )
        except ThrottledRetryExhausted as e:
            logger.warning(f"Audit throttled out: {e}")
            return self._failure(ErrorKind.THROTTLED_RETRY_EXHAUSTED)
        except GenerativeResponseError as e:
            logger.warning(f"Audit response unusable: {e}")
            return self._failure(ErrorKind.MALFORMED_REMOTE_RESPONSE)
        except httpx.HTTPError as e:
            logger.warning(f"Audit request failed: {type(e).__name__}: {e}")
            return self._failure(ErrorKind.AUDIT_UNAVAILABLE)
        except Exception as e:
            logger.error(f"Unexpected audit failure: {type(e).__name__}: {e}")
            return self._failure(ErrorKind.AUDIT_UNAVAILABLE)

        parsed = extract_json(text)
        if isinstance(parsed, Unparsable):
            logger.warning(f"Audit verdict unparsable: {parsed.reason}")
            return self._failure(ErrorKind.MALFORMED_REMOTE_RESPONSE)

        try:
            payload = AuditPayload.model_validate(parsed.value)
        except ValidationError as e:
            logger.warning(f"Audit verdict has wrong shape: {e.error_count()} error(s)")
            return self._failure(ErrorKind.MALFORMED_REMOTE_RESPONSE)

        valid = payload.valid and payload.valid_count >= REQUIRED_WORDS
        return AuditVerdict(
            valid=valid,
            word_count=payload.valid_count,
            invalid_words=tuple(w.lower() for w in payload.invalid_words),
            source=ValidationSource.REMOTE,
            error_kind=None if valid else ErrorKind.AUDIT_REJECTED,
        )
