"""
Runtime configuration for the statistical memory server.
All settings come from environment variables with local-first defaults.
"""

import os
from pathlib import Path

# Database path configuration
DB_PATH = os.getenv("DB_PATH", "./data/memory.db")

DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# Vector system configuration
VECTOR_PROVIDER = os.getenv("VECTOR_PROVIDER", "memory")  # memory|faiss
EMBED_PROVIDER = os.getenv("EMBED_PROVIDER", "statistical")  # statistical

# Embedding layout. Changing any of these invalidates an existing index.
EMBED_DIM = 384
SCALAR_SLOTS = 10
NGRAM_OFFSET = 10
NGRAM_SLOTS = 90
NGRAM_MIN_N = 2
NGRAM_MAX_N = 3
WORD_OFFSET = 100
WORD_BUCKETS = 200
POSITION_OFFSET = 300
POSITION_BUCKETS = 84
HASH_MULTIPLIER = 31

# Text the capital-letter ratio feature is computed over (normalized|original).
# "normalized" keeps compatibility with indexes built by the reference embedder,
# where the feature is always 0 because the text is already lowercased.
CAPITAL_RATIO_SOURCE = os.getenv("CAPITAL_RATIO_SOURCE", "normalized")

# Ranking configuration
FAVORITE_BOOST = float(os.getenv("FAVORITE_BOOST", "1.2"))
DEFAULT_SEARCH_LIMIT = int(os.getenv("DEFAULT_SEARCH_LIMIT", "10"))
DEFAULT_SEARCH_THRESHOLD = float(os.getenv("DEFAULT_SEARCH_THRESHOLD", "0.1"))
LIST_ALL_LIMIT = int(os.getenv("LIST_ALL_LIMIT", "1000"))

# Dashboard configuration
WEB_HOST = os.getenv("WEB_HOST", "127.0.0.1")
WEB_PORT = int(os.getenv("WEB_PORT", "8080"))

# Tool server identity reported on initialize
SERVER_NAME = "memory-server"
PROTOCOL_VERSION = "2024-11-05"

VERSION = "1.0.0"


def get_vector_store():
    """Get configured vector store implementation."""
    provider = os.getenv("VECTOR_PROVIDER", VECTOR_PROVIDER)

    if provider == "faiss":
        from statmem.vector.faiss_store import FaissVectorStore
        return FaissVectorStore(dimension=EMBED_DIM)

    from statmem.vector.index import SimpleInMemoryVectorStore
    return SimpleInMemoryVectorStore()


def get_embedding_provider():
    """Get configured embedding provider implementation."""
    from statmem.vector.embeddings import StatisticalEmbedding
    return StatisticalEmbedding(capital_ratio_source=get_capital_ratio_source())


def get_capital_ratio_source():
    """Get the text source for the capital-letter ratio (normalized|original)."""
    return os.getenv("CAPITAL_RATIO_SOURCE", CAPITAL_RATIO_SOURCE)


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def get_db_path():
    """Get the SQLite database path."""
    return os.getenv("DB_PATH", DB_PATH)


def ensure_db_directory(db_path: str = None):
    """Ensure the database directory exists."""
    Path(db_path or get_db_path()).parent.mkdir(parents=True, exist_ok=True)


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    provider = os.getenv("VECTOR_PROVIDER", VECTOR_PROVIDER)
    if provider not in ["memory", "faiss"]:
        issues.append(f"Invalid VECTOR_PROVIDER: {provider}")

    if EMBED_PROVIDER not in ["statistical"]:
        issues.append(f"Invalid EMBED_PROVIDER: {EMBED_PROVIDER}")

    if get_capital_ratio_source() not in ["normalized", "original"]:
        issues.append(f"Invalid CAPITAL_RATIO_SOURCE: {get_capital_ratio_source()}")

    if FAVORITE_BOOST <= 0:
        issues.append("FAVORITE_BOOST must be > 0")

    if DEFAULT_SEARCH_LIMIT < 1:
        issues.append("DEFAULT_SEARCH_LIMIT must be >= 1")

    if not 0.0 <= DEFAULT_SEARCH_THRESHOLD <= 1.0:
        issues.append("DEFAULT_SEARCH_THRESHOLD must be within [0, 1]")

    if LIST_ALL_LIMIT < 1:
        issues.append("LIST_ALL_LIMIT must be >= 1")

    if NGRAM_OFFSET + NGRAM_SLOTS > WORD_OFFSET or WORD_OFFSET + WORD_BUCKETS > POSITION_OFFSET \
            or POSITION_OFFSET + POSITION_BUCKETS > EMBED_DIM:
        issues.append("Embedding regions overlap or exceed EMBED_DIM")

    return issues
