"""BIP-39 checksum verification.

The trailing bits of the last word are a checksum over the entropy carried by
the others, so a phrase with the right words in the wrong order fails.
"""

from typing import Sequence

from jetswap.phrase.dictionary import DictionaryStore

VALID_WORD_COUNTS = (12, 15, 18, 21, 24)


def is_valid_checksum(words: Sequence[str], dictionary: DictionaryStore) -> bool:
    """Check the BIP-39 checksum of an already dictionary-valid phrase.

    Args:
        words: Lowercase tokens, all present in ``dictionary``
        dictionary: Vocabulary the phrase is drawn from

    Returns:
        True if the trailing checksum bits match
    """
    if len(words) not in VALID_WORD_COUNTS:
        return False
    return dictionary.mnemo.check(" ".join(words))
