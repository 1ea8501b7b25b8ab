"""
Statistical embeddings and vector storage.
"""

# Package initialization for vector module
from .index import IVectorStore, SimpleInMemoryVectorStore
from .faiss_store import FaissVectorStore
from .types import VectorRecord, QueryResult
from .embeddings import IEmbeddingProvider, StatisticalEmbedding, embed
from .text import normalize_text, simple_hash

__all__ = [
    'IVectorStore',
    'SimpleInMemoryVectorStore',
    'FaissVectorStore',
    'VectorRecord',
    'QueryResult',
    'IEmbeddingProvider',
    'StatisticalEmbedding',
    'embed',
    'normalize_text',
    'simple_hash'
]
