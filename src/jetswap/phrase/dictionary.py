"""Mnemonic vocabulary store.

The canonical English list ships with the ``mnemonic`` package; a custom
2048-line word file can be used instead.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Optional

from mnemonic import Mnemonic

logger = logging.getLogger(__name__)

WORDLIST_SIZE = 2048


class DictionaryError(Exception):
    """Raised when a word list cannot be loaded or is malformed."""

    pass


class DictionaryStore:
    """Lazily loaded, immutable 2048-word vocabulary.

    Only membership and index lookup are exposed.
    """

    def __init__(self, source: Optional[Path] = None, language: str = "english"):
        self._source = source
        self._language = language
        self._words: Optional[tuple[str, ...]] = None
        self._index: Optional[dict[str, int]] = None
        self._mnemo: Optional[Mnemonic] = None

    def _load(self) -> None:
        if self._source is not None:
            lines = self._source.read_text(encoding="utf-8").splitlines()
            words = [line.strip().lower() for line in lines if line.strip()]
            origin = str(self._source)
            mnemo = None
        else:
            mnemo = Mnemonic(self._language)
            words = [w.lower() for w in mnemo.wordlist]
            origin = f"mnemonic:{self._language}"

        if len(words) != WORDLIST_SIZE:
            raise DictionaryError(f"{origin}: expected {WORDLIST_SIZE} words, got {len(words)}")
        if len(set(words)) != WORDLIST_SIZE:
            raise DictionaryError(f"{origin}: word list contains duplicates")

        self._words = tuple(words)
        self._index = {w: i for i, w in enumerate(words)}
        self._mnemo = mnemo or Mnemonic(self._language, wordlist=words)
        logger.debug(f"Loaded {len(words)} words from {origin}")

    @property
    def mnemo(self) -> Mnemonic:
        """Checksum-capable view of this vocabulary."""
        if self._mnemo is None:
            self._load()
        return self._mnemo

    @property
    def words(self) -> tuple[str, ...]:
        if self._words is None:
            self._load()
        return self._words

    def __contains__(self, word: str) -> bool:
        if self._index is None:
            self._load()
        return word in self._index

    def __len__(self) -> int:
        return len(self.words)

    def index(self, word: str) -> int:
        """Return the 11-bit index of ``word``.

        Raises:
            KeyError: word is not in the vocabulary
        """
        if self._index is None:
            self._load()
        return self._index[word]

    def unknown(self, tokens: Iterable[str]) -> list[str]:
        """Tokens not in the vocabulary, in input order, without repeats."""
        return [token for token in dict.fromkeys(tokens) if token not in self]


@lru_cache
def get_dictionary() -> DictionaryStore:
    """Process-wide English vocabulary."""
    return DictionaryStore()
