"""
Vector store interface and the default in-memory cosine similarity store.
"""

import threading
from abc import ABC, abstractmethod
from typing import List, Optional
import numpy as np

from .types import VectorRecord, QueryResult


class IVectorStore(ABC):
    """Abstract interface for vector storage operations.

    search() returns at most top_k results ordered by cosine similarity,
    highest first; equal scores keep insertion order. A zero query vector
    scores 0.0 against every record, so it returns the first top_k records
    in insertion order.
    """

    @abstractmethod
    def add(self, record: VectorRecord) -> None:
        """Add a single vector record to the store, replacing any record with the same ID."""
        pass

    @abstractmethod
    def batch_add(self, records: List[VectorRecord]) -> None:
        """Add multiple vector records to the store."""
        pass

    @abstractmethod
    def search(self, query_vector: np.ndarray, top_k: int = 5) -> List[QueryResult]:
        """Search for similar vectors and return ranked results."""
        pass

    @abstractmethod
    def get(self, record_id: str) -> Optional[VectorRecord]:
        """Get a vector record by ID."""
        pass

    @abstractmethod
    def delete(self, record_id: str) -> bool:
        """Delete a vector record by ID. Returns False if it did not exist."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Clear all records from the store."""
        pass

    @abstractmethod
    def count(self) -> int:
        """Number of records in the store."""
        pass


def unit_vector(vector) -> np.ndarray:
    """Return a float64 copy scaled to unit length (zero vectors stay zero)."""
    array = np.asarray(vector, dtype=np.float64)
    norm = np.linalg.norm(array)
    if norm == 0:
        return array.copy()
    return array / norm


class SimpleInMemoryVectorStore(IVectorStore):
    """Simple in-memory implementation of IVectorStore using cosine similarity."""

    def __init__(self):
        self._vectors = {}  # record_id -> VectorRecord
        self._index = {}    # record_id -> unit vector
        self._lock = threading.Lock()

    def add(self, record: VectorRecord) -> None:
        """Add a single vector record to the store."""
        if record.vector is None:
            raise ValueError(f"Record {record.id} has no vector")

        with self._lock:
            # Re-adding moves the record to the end of the insertion order
            self._vectors.pop(record.id, None)
            self._index.pop(record.id, None)
            self._vectors[record.id] = record
            self._index[record.id] = unit_vector(record.vector)

    def batch_add(self, records: List[VectorRecord]) -> None:
        """Add multiple vector records to the store."""
        for record in records:
            self.add(record)

    def search(self, query_vector: np.ndarray, top_k: int = 5) -> List[QueryResult]:
        """Search for similar vectors and return ranked results."""
        if top_k <= 0:
            return []

        normalized_query = unit_vector(query_vector)

        with self._lock:
            if not self._index:
                return []

            # sorted() is stable, so ties keep insertion order
            similarities = [
                (record_id, float(np.dot(normalized_query, stored_vector)))
                for record_id, stored_vector in self._index.items()
            ]
            sorted_results = sorted(similarities, key=lambda x: -x[1])

            query_results = []
            for record_id, score in sorted_results[:top_k]:
                original_record = self._vectors[record_id]
                query_results.append(QueryResult(
                    id=original_record.id,
                    score=score,
                    metadata=dict(original_record.metadata),
                    content=original_record.content,
                ))

        return query_results

    def get(self, record_id: str) -> Optional[VectorRecord]:
        """Get a vector record by ID."""
        with self._lock:
            return self._vectors.get(record_id)

    def delete(self, record_id: str) -> bool:
        """Delete a vector record by ID."""
        with self._lock:
            existed = self._vectors.pop(record_id, None) is not None
            self._index.pop(record_id, None)
        return existed

    def clear(self) -> None:
        """Clear all records from the store."""
        with self._lock:
            self._vectors.clear()
            self._index.clear()

    def count(self) -> int:
        """Number of records in the store."""
        with self._lock:
            return len(self._vectors)
