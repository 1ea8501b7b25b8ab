"""
Statistical text embeddings. Deterministic, model-free feature vectors
used by the vector store on every insert and every query.
"""

from abc import ABC, abstractmethod

import numpy as np

from ..core.config import EMBED_DIM, SCALAR_SLOTS
from .features import (
    apply_ngram_features,
    apply_positional_features,
    apply_word_features,
    l2_normalize,
    scalar_features,
)
from .text import normalize_text
from ..util.logging import logger


class IEmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    @abstractmethod
    def embed_text(self, text: str) -> list[float]:
        """Generate embedding vector for given text."""
        pass

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        pass


class StatisticalEmbedding(IEmbeddingProvider):
    """Hand-engineered embedding built from text statistics and feature hashing.

    The vector is partitioned into scalar statistics, character n-gram
    frequencies, hashed word frequencies and hashed token positions, then
    scaled to unit length. Text without tokens maps to the zero vector.
    """

    def __init__(self, capital_ratio_source: str = "normalized"):
        if capital_ratio_source not in ("normalized", "original"):
            raise ValueError(f"Invalid capital_ratio_source: {capital_ratio_source}")
        self.dimension = EMBED_DIM
        self.capital_ratio_source = capital_ratio_source

    def embed(self, text: str) -> np.ndarray:
        """Generate the embedding as a float64 numpy array."""
        normalized, tokens = normalize_text(text)
        logger.log_embedding(text, len(tokens))
        vector = np.zeros(self.dimension, dtype=np.float64)
        if not tokens:
            return vector

        capital_source = text if self.capital_ratio_source == "original" else None
        vector[:SCALAR_SLOTS] = scalar_features(normalized, tokens, capital_source)
        apply_ngram_features(vector, normalized)
        apply_word_features(vector, tokens)
        apply_positional_features(vector, tokens)

        return l2_normalize(vector)

    def embed_text(self, text: str) -> list[float]:
        """Generate embedding vector for given text."""
        return self.embed(text).tolist()

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        return self.dimension


_default_embedder = StatisticalEmbedding()


def embed(text: str) -> list[float]:
    """Embed text with the default statistical embedder."""
    return _default_embedder.embed_text(text)
