"""
Feature extractors for the statistical embedder.

Each extractor writes into its own region of the embedding vector:

    [0, 10)     scalar whole-text statistics
    [10, 100)   character n-gram frequencies
    [100, 300)  hashed word frequencies
    [300, 384)  hashed token positions

Frequency tables are sorted by count descending with ties broken
lexicographically, so the output never depends on dict iteration order.
"""

import math
import re
import unicodedata
from collections import Counter
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..core.config import (
    HASH_MULTIPLIER,
    NGRAM_MAX_N,
    NGRAM_MIN_N,
    NGRAM_OFFSET,
    NGRAM_SLOTS,
    POSITION_BUCKETS,
    POSITION_OFFSET,
    SCALAR_SLOTS,
    WORD_BUCKETS,
    WORD_OFFSET,
)
from .text import bucket

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_SENTENCE_ENDINGS = (".", "!", "?")


def rank_by_frequency(counts: Dict[str, int]) -> List[Tuple[str, int]]:
    """Sort (key, count) pairs by count descending, then key ascending."""
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))


def scalar_features(text: str, tokens: Sequence[str], capital_source: Optional[str] = None) -> List[float]:
    """Compute the ten whole-text statistics.

    Args:
        text: Normalized text
        tokens: Tokens of the normalized text
        capital_source: Text the capital-letter ratio runs over; defaults to `text`

    Returns:
        Ten floats, all zero when there are no tokens
    """
    if not tokens:
        return [0.0] * SCALAR_SLOTS

    word_freq = Counter(tokens)
    token_count = len(tokens)

    return [
        len(text) / 1000.0,
        token_count / 100.0,
        len(word_freq) / token_count,
        average_token_length(tokens),
        entropy(word_freq),
        capital_ratio(text if capital_source is None else capital_source),
        digit_ratio(text),
        punctuation_ratio(text),
        readability(tokens),
        sentence_complexity(text),
    ]


def average_token_length(tokens: Sequence[str]) -> float:
    if not tokens:
        return 0.0
    return sum(len(t) for t in tokens) / len(tokens) / 10.0


def entropy(word_freq: Dict[str, int]) -> float:
    """Shannon entropy (base 2) of the token distribution, scaled by 1/10."""
    total = sum(word_freq.values())
    if total == 0:
        return 0.0

    result = 0.0
    for _, freq in rank_by_frequency(word_freq):
        p = freq / total
        result -= p * math.log2(p)
    return result / 10.0


def capital_ratio(text: str) -> float:
    letters = 0
    capitals = 0
    for ch in text:
        if ch.isalpha():
            letters += 1
            if ch.isupper():
                capitals += 1
    if letters == 0:
        return 0.0
    return capitals / letters


def digit_ratio(text: str) -> float:
    if not text:
        return 0.0
    return sum(1 for ch in text if ch.isdecimal()) / len(text)


def punctuation_ratio(text: str) -> float:
    if not text:
        return 0.0
    return sum(1 for ch in text if unicodedata.category(ch).startswith("P")) / len(text)


def readability(tokens: Sequence[str]) -> float:
    """Crude readability proxy from tokens per sentence and characters per token."""
    if not tokens:
        return 0.0

    total_chars = 0
    sentences = 1
    for token in tokens:
        total_chars += len(token)
        if token.endswith(_SENTENCE_ENDINGS):
            sentences += 1

    avg_tokens_per_sentence = len(tokens) / sentences
    avg_chars_per_token = total_chars / len(tokens)
    return (avg_tokens_per_sentence * 0.39 + avg_chars_per_token * 11.8) / 100.0


def sentence_complexity(text: str) -> float:
    """Average distinct-token count per sentence, scaled by 1/20."""
    sentences = _SENTENCE_SPLIT.split(text)
    if len(sentences) <= 1:
        return 0.0

    total = 0.0
    valid = 0
    for sentence in sentences:
        words = sentence.split()
        if not words:
            continue
        # token count times lexical diversity
        total += len(words) * (len(set(words)) / len(words))
        valid += 1

    if valid == 0:
        return 0.0
    return total / valid / 20.0


def char_ngrams(text: str, min_n: int = NGRAM_MIN_N, max_n: int = NGRAM_MAX_N) -> List[Tuple[str, int]]:
    """Count every contiguous substring of length min_n..max_n, ranked by frequency."""
    counts: Dict[str, int] = Counter()
    for n in range(min_n, max_n + 1):
        for i in range(len(text) - n + 1):
            counts[text[i:i + n]] += 1
    return rank_by_frequency(counts)


def apply_ngram_features(vector: np.ndarray, text: str) -> None:
    if not text:
        return
    text_len = len(text)
    for rank, (_, freq) in enumerate(char_ngrams(text)[:NGRAM_SLOTS]):
        vector[NGRAM_OFFSET + rank] = freq / text_len


def apply_word_features(vector: np.ndarray, tokens: Sequence[str],
                        buckets: int = WORD_BUCKETS, multiplier: int = HASH_MULTIPLIER) -> None:
    """Accumulate count / token_count for every distinct word into its hashed bucket."""
    if not tokens:
        return
    token_count = len(tokens)
    for word, freq in rank_by_frequency(Counter(tokens)):
        vector[WORD_OFFSET + bucket(word, buckets, multiplier)] += freq / token_count


def apply_positional_features(vector: np.ndarray, tokens: Sequence[str],
                              buckets: int = POSITION_BUCKETS, multiplier: int = HASH_MULTIPLIER) -> None:
    """Accumulate relative position i / token_count for the first `buckets` tokens."""
    token_count = len(tokens)
    for i, token in enumerate(tokens[:buckets]):
        vector[POSITION_OFFSET + bucket(token, buckets, multiplier)] += i / token_count


def l2_normalize(vector: np.ndarray) -> np.ndarray:
    """Scale to unit length; an all-zero vector is returned unchanged."""
    norm = np.linalg.norm(vector)
    if norm == 0:
        return vector
    return vector / norm
