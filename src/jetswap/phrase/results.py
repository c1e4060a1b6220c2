"""Result types shared by the phrase validation tiers."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

REQUIRED_WORDS = 12


class ErrorKind(str, Enum):
    """Why a phrase was not accepted."""

    SPELLING_ERROR = "spelling_error"
    WRONG_LENGTH = "wrong_length"
    CHECKSUM_ERROR = "checksum_error"
    AUDIT_REJECTED = "audit_rejected"
    AUDIT_UNAVAILABLE = "audit_unavailable"
    THROTTLED_RETRY_EXHAUSTED = "throttled_retry_exhausted"
    MALFORMED_REMOTE_RESPONSE = "malformed_remote_response"


class ValidationSource(str, Enum):
    """Which tier produced the final verdict."""

    LOCAL = "local"
    REMOTE = "remote"
    OFFLINE = "offline"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of one run of the phrase pipeline."""

    valid: bool
    word_count: int
    invalid_words: frozenset[str] = field(default_factory=frozenset)
    error_kind: Optional[ErrorKind] = None
    source: ValidationSource = ValidationSource.LOCAL
    # Offending tokens in input order, for messages.
    ordered_invalid: tuple[str, ...] = ()

    @property
    def too_many_words(self) -> bool:
        return self.word_count > REQUIRED_WORDS

    @property
    def message(self) -> Optional[str]:
        """User-facing explanation, None when there is nothing to say."""
        if self.valid:
            return None
        kind = self.error_kind
        if kind is ErrorKind.SPELLING_ERROR:
            if len(self.invalid_words) > 1:
                return "Multiple spelling errors detected."
            word = self.ordered_invalid[0] if self.ordered_invalid else next(iter(self.invalid_words))
            return f'Spelling Error: "{word}" is not in dictionary.'
        if kind is ErrorKind.WRONG_LENGTH:
            if self.too_many_words:
                return f"Limit Exceeded: Only {REQUIRED_WORDS} words required."
            return f"{self.word_count} / {REQUIRED_WORDS} words entered."
        if kind is ErrorKind.CHECKSUM_ERROR:
            return "Invalid Checksum: Incorrect word order."
        if kind is ErrorKind.AUDIT_REJECTED:
            return "Linguistic audit rejected the phrase."
        if kind in (ErrorKind.AUDIT_UNAVAILABLE, ErrorKind.THROTTLED_RETRY_EXHAUSTED):
            return "Audit unavailable. Please try again shortly."
        if kind is ErrorKind.MALFORMED_REMOTE_RESPONSE:
            return "Audit returned an unreadable verdict. Please try again."
        return None


@dataclass(frozen=True)
class AuditVerdict:
    """Answer of the linguistic audit tier."""

    valid: bool
    word_count: int
    invalid_words: tuple[str, ...] = ()
    source: ValidationSource = ValidationSource.REMOTE
    error_kind: Optional[ErrorKind] = None

    @property
    def is_failure(self) -> bool:
        """True when no usable verdict was obtained."""
        return self.error_kind is not None and self.error_kind is not ErrorKind.AUDIT_REJECTED
