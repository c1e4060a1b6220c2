"""Phrase validation pipeline.

Tiers run in a fixed order and the first failing tier ends validation:

1. normalize (lowercase, split on whitespace)
2. dictionary: every token must be a vocabulary word (spelling first)
3. length: exactly 12 tokens
4. checksum: BIP-39 checksum over the word indices
5. linguistic audit (remote, or offline pass-through)

Spelling is checked before length so a user fixes typos before being told
the count is wrong.
"""

import asyncio
import hashlib
import logging
from typing import Callable, Optional

from jetswap.phrase.audit import LinguisticAuditClient
from jetswap.phrase.checksum import is_valid_checksum
from jetswap.phrase.dictionary import DictionaryStore, get_dictionary
from jetswap.phrase.results import (
    REQUIRED_WORDS,
    AuditVerdict,
    ErrorKind,
    ValidationResult,
    ValidationSource,
)
from jetswap.utils.cache import TTLCache

logger = logging.getLogger(__name__)


def normalize(raw_text: str) -> list[str]:
    """Lowercase and split free-form input into word tokens."""
    return raw_text.lower().split()


def fingerprint(tokens: list[str]) -> str:
    """Opaque, non-reversible identifier for a normalized phrase."""
    digest = hashlib.sha256(("jetswap:" + " ".join(tokens)).encode("utf-8")).hexdigest()
    return digest[:32]


class PhrasePipeline:
    """Runs the validation tiers for one phrase."""

    def __init__(
        self,
        dictionary: Optional[DictionaryStore] = None,
        auditor: Optional[LinguisticAuditClient] = None,
        verdict_ttl: float = 300.0,
    ):
        """Initialize the pipeline.

        Args:
            dictionary: Vocabulary (defaults to the process-wide English list)
            auditor: Audit tier; None or a disabled client means offline mode
            verdict_ttl: Seconds a successful remote verdict is reused
        """
        self.dictionary = dictionary or get_dictionary()
        self.auditor = auditor or LinguisticAuditClient()
        self._verdicts: TTLCache[AuditVerdict] = TTLCache(ttl=verdict_ttl)

    async def validate(self, raw_text: str) -> ValidationResult:
        """Validate free-form phrase text. Never raises."""
        tokens = normalize(raw_text)
        count = len(tokens)

        if count == 0:
            return ValidationResult(valid=False, word_count=0)

        unknown = self.dictionary.unknown(tokens)
        if unknown:
            return ValidationResult(
                valid=False,
                word_count=count,
                invalid_words=frozenset(unknown),
                error_kind=ErrorKind.SPELLING_ERROR,
                ordered_invalid=tuple(unknown),
            )

        if count != REQUIRED_WORDS:
            return ValidationResult(
                valid=False,
                word_count=count,
                error_kind=ErrorKind.WRONG_LENGTH,
            )

        if not is_valid_checksum(tokens, self.dictionary):
            return ValidationResult(
                valid=False,
                word_count=count,
                error_kind=ErrorKind.CHECKSUM_ERROR,
            )

        verdict = await self._audit(tokens)
        return self._from_verdict(verdict, count)

    async def _audit(self, tokens: list[str]) -> AuditVerdict:
        if not self.auditor.enabled:
            return await self.auditor.audit(" ".join(tokens))

        key = fingerprint(tokens)
        cached = self._verdicts.get(key)
        if cached is not None:
            logger.debug("Reusing cached audit verdict")
            return cached

        verdict = await self.auditor.audit(" ".join(tokens))
        if not verdict.is_failure:
            self._verdicts.set(key, verdict)
        return verdict

    @staticmethod
    def _from_verdict(verdict: AuditVerdict, count: int) -> ValidationResult:
        if verdict.source is ValidationSource.OFFLINE:
            return ValidationResult(valid=verdict.valid, word_count=count, source=ValidationSource.OFFLINE)

        if verdict.is_failure:
            # Fail closed: an indeterminate audit never opens the gate.
            kind = verdict.error_kind
            if kind is ErrorKind.THROTTLED_RETRY_EXHAUSTED:
                kind = ErrorKind.AUDIT_UNAVAILABLE
            return ValidationResult(
                valid=False,
                word_count=count,
                error_kind=kind,
                source=ValidationSource.REMOTE,
            )

        if verdict.valid:
            return ValidationResult(valid=True, word_count=count, source=ValidationSource.REMOTE)

        return ValidationResult(
            valid=False,
            word_count=verdict.word_count,
            invalid_words=frozenset(verdict.invalid_words),
            error_kind=ErrorKind.AUDIT_REJECTED,
            source=ValidationSource.REMOTE,
            ordered_invalid=verdict.invalid_words,
        )


class DebouncedValidator:
    """Validates input as it is typed, keeping only the newest result.

    Every submission cancels the pending one and gets a fresh sequence number.
    A finished validation is applied only if its number is still the latest,
    so a slow, stale audit can never overwrite a newer result.
    """

    def __init__(
        self,
        pipeline: PhrasePipeline,
        delay: float = 0.5,
        on_result: Optional[Callable[[ValidationResult], None]] = None,
    ):
        self.pipeline = pipeline
        self.delay = delay
        self.on_result = on_result
        self.current: Optional[ValidationResult] = None
        self._seq = 0
        self._pending: Optional[asyncio.Task] = None

    @property
    def sequence(self) -> int:
        return self._seq

    @property
    def busy(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def _apply(self, seq: int, result: ValidationResult) -> bool:
        if seq != self._seq:
            logger.debug(f"Dropping stale validation #{seq} (latest #{self._seq})")
            return False
        self.current = result
        if self.on_result is not None:
            self.on_result(result)
        return True

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def _run(self, seq: int, text: str) -> None:
        await asyncio.sleep(self.delay)
        result = await self.pipeline.validate(text)
        self._apply(seq, result)

    def submit(self, text: str) -> asyncio.Task:
        """Schedule validation of ``text`` after the debounce delay."""
        self._cancel_pending()
        self._seq += 1
        self._pending = asyncio.create_task(self._run(self._seq, text))
        return self._pending

    async def validate_now(self, text: str) -> ValidationResult:
        """Validate immediately, superseding any pending submission."""
        self._cancel_pending()
        self._seq += 1
        seq = self._seq
        result = await self.pipeline.validate(text)
        self._apply(seq, result)
        return result

    def close(self) -> None:
        """Drop pending work; later results are ignored."""
        self._cancel_pending()
        self._seq += 1
