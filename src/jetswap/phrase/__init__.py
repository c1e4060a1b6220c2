"""Recovery phrase validation.

Tiers: dictionary -> length -> checksum -> linguistic audit.
"""

from jetswap.phrase.audit import LinguisticAuditClient, extract_json
from jetswap.phrase.checksum import is_valid_checksum
from jetswap.phrase.dictionary import DictionaryStore, get_dictionary
from jetswap.phrase.pipeline import DebouncedValidator, PhrasePipeline, fingerprint, normalize
from jetswap.phrase.results import AuditVerdict, ErrorKind, ValidationResult, ValidationSource

__all__ = [
    "AuditVerdict",
    "DebouncedValidator",
    "DictionaryStore",
    "ErrorKind",
    "LinguisticAuditClient",
    "PhrasePipeline",
    "ValidationResult",
    "ValidationSource",
    "extract_json",
    "fingerprint",
    "get_dictionary",
    "is_valid_checksum",
    "normalize",
]
