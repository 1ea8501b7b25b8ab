"""
Text canonicalization and the polynomial string hash shared by the embedder.
"""

import re
from typing import List, Tuple

from ..core.config import HASH_MULTIPLIER

# Runs of characters that are neither letters, numbers nor whitespace.
# \w also matches "_", which is punctuation here.
_NON_WORD_RUN = re.compile(r"(?:[^\w\s]|_)+")
_WHITESPACE_RUN = re.compile(r"\s+")

_INT64_MASK = (1 << 64) - 1
_INT64_SIGN = 1 << 63


def normalize_text(text: str) -> Tuple[str, List[str]]:
    """Lowercase, strip symbols and collapse whitespace.

    Returns the normalized text and its whitespace-separated tokens.
    Empty or symbol-only input yields ("", []).
    """
    if not text:
        return "", []

    normalized = text.lower()
    normalized = _NON_WORD_RUN.sub(" ", normalized)
    normalized = _WHITESPACE_RUN.sub(" ", normalized)
    normalized = normalized.strip()

    return normalized, normalized.split()


def simple_hash(value: str, multiplier: int = HASH_MULTIPLIER) -> int:
    """Fold code points as hash * multiplier + codepoint, returning the absolute value.

    The fold wraps as signed 64-bit arithmetic, keeping the hash bounded and
    the same for a given string on every run.
    """
    h = 0
    for ch in value:
        h = (h * multiplier + ord(ch)) & _INT64_MASK
    if h & _INT64_SIGN:
        h -= 1 << 64
    return abs(h)


def bucket(value: str, buckets: int, multiplier: int = HASH_MULTIPLIER) -> int:
    """Map a string to one of `buckets` slots."""
    return simple_hash(value, multiplier) % buckets
