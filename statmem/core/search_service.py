"""
Similarity ranking over vector store results.

The store returns its top-k neighbours for the embedded query; this module
drops hits below the similarity threshold and attaches a boosted score to
favorite documents. The boost is reported on the result only: the final
order is always the store's rank order.
"""

import math
from typing import List, Optional

from .config import DEFAULT_SEARCH_LIMIT, DEFAULT_SEARCH_THRESHOLD, FAVORITE_BOOST, LIST_ALL_LIMIT, get_embedding_provider
from .documents import Document, RankedResult
from .errors import InvalidParameterError, StoreUnavailableError
from ..util.logging import logger


def validate_search_params(limit: int, threshold: float) -> None:
    """Reject a non-positive limit or a threshold outside [0, 1]."""
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise InvalidParameterError(f"limit must be a positive integer, got {limit!r}")
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
        raise InvalidParameterError(f"threshold must be a number, got {threshold!r}")
    try:
        value = float(threshold)
    except (OverflowError, TypeError):
        raise InvalidParameterError("threshold must be within [0, 1]") from None
    if math.isnan(value) or not 0.0 <= value <= 1.0:
        raise InvalidParameterError(f"threshold must be within [0, 1], got {value!r}")


def boost_score(score: float, favorite: bool, boost: float = FAVORITE_BOOST) -> float:
    return score * boost if favorite else score


def _query_store(vector_store, embedding_provider, query: str, limit: int):
    query_embedding = embedding_provider.embed_text(query)
    try:
        return vector_store.search(query_embedding, limit)
    except Exception as e:
        logger.log_store_error("search", e, {"limit": limit})
        raise StoreUnavailableError(f"Vector store query failed: {e}") from e


def _rank(vector_results, threshold: Optional[float]) -> List[RankedResult]:
    ranked = []
    for result in vector_results:
        # Filter by similarity threshold
        if threshold is not None and result.score < threshold:
            continue

        document = Document.from_metadata(result.id, result.content, result.metadata)
        score = float(result.score)
        ranked.append(RankedResult(
            document=document,
            score=score,
            boosted_score=boost_score(score, document.favorite),
        ))
    return ranked


def semantic_search(query: str, limit: int = DEFAULT_SEARCH_LIMIT, threshold: float = DEFAULT_SEARCH_THRESHOLD,
                    _vector_store=None, _embedding_provider=None) -> List[RankedResult]:
    """
    Rank documents by similarity to a free-text query.

    A query that normalizes to no tokens embeds to the zero vector; the
    store scores that probe as 0.0 everywhere, so any positive threshold
    filters out every hit. That is a degenerate probe, not an error.

    Args:
        query: The search query string
        limit: Maximum number of neighbours requested from the store
        threshold: Minimum raw similarity score to keep a hit (0-1)
        _vector_store: Vector store to query
        _embedding_provider: Optional embedding provider, defaults to config

    Returns:
        RankedResult list in the store's order, with favorite hits carrying a boosted score

    Raises:
        InvalidParameterError: limit <= 0 or threshold outside [0, 1]
        StoreUnavailableError: the vector store failed to execute the query
    """
    validate_search_params(limit, threshold)

    if _vector_store is None:
        raise StoreUnavailableError("No vector store configured")
    embedding_provider = _embedding_provider if _embedding_provider is not None else get_embedding_provider()

    vector_results = _query_store(_vector_store, embedding_provider, query, limit)
    results = _rank(vector_results, threshold)

    logger.log_search(query, limit, threshold, len(results))
    return results


def list_all(limit: int = LIST_ALL_LIMIT, _vector_store=None, _embedding_provider=None) -> List[RankedResult]:
    """Return up to `limit` documents by probing the store with an empty query.

    The threshold step is bypassed because every score against the zero
    probe is 0.0.
    """
    validate_search_params(limit, 0.0)

    if _vector_store is None:
        raise StoreUnavailableError("No vector store configured")
    embedding_provider = _embedding_provider if _embedding_provider is not None else get_embedding_provider()

    vector_results = _query_store(_vector_store, embedding_provider, "", limit)
    results = _rank(vector_results, None)

    logger.log_operation("list_all", "success", {"count": len(results)})
    return results
