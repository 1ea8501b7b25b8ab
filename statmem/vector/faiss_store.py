"""
FAISS-backed vector store. Optional alternative to the in-memory store,
selected with VECTOR_PROVIDER=faiss. Requires the faiss-cpu package.
"""

import threading
from typing import List, Optional
import numpy as np

from .types import VectorRecord, QueryResult
from .index import IVectorStore, unit_vector


class FaissVectorStore(IVectorStore):
    """FAISS-backed implementation of IVectorStore.

    Vectors are stored unit-normalized in a flat inner-product index, so the
    inner product is the cosine similarity. FAISS cannot remove rows from a
    flat index, so delete() rebuilds the index from the remaining records.
    """

    def __init__(self, dimension: int = 384):
        """
        Initialize FAISS vector store.

        Args:
            dimension: Dimension of the vectors (default: 384 for statistical embeddings)
        """
        try:
            import faiss
        except ImportError:
            raise ImportError("FAISS not installed. Please install faiss-cpu package.")

        self.faiss = faiss
        self.dimension = dimension
        self.index = faiss.IndexFlatIP(dimension)

        # Row i of the FAISS index holds self._records[i]
        self._records: List[VectorRecord] = []
        self._positions = {}  # record_id -> row
        self._lock = threading.Lock()

    def _prepare(self, record: VectorRecord) -> np.ndarray:
        if record.vector is None:
            raise ValueError(f"Record {record.id} has no vector")
        if len(record.vector) != self.dimension:
            raise ValueError(f"Vector dimension {len(record.vector)} does not match expected dimension {self.dimension}")
        return np.asarray(unit_vector(record.vector), dtype=np.float32).reshape(1, -1)

    def _rebuild(self) -> None:
        self.index = self.faiss.IndexFlatIP(self.dimension)
        self._positions = {}
        if not self._records:
            return
        batch = np.vstack([self._prepare(r) for r in self._records]).astype(np.float32)
        self.index.add(batch)
        self._positions = {r.id: i for i, r in enumerate(self._records)}

    def add(self, record: VectorRecord) -> None:
        """Add a single vector record to the FAISS store."""
        vector_array = self._prepare(record)

        with self._lock:
            if record.id in self._positions:
                self._records = [r for r in self._records if r.id != record.id]
                self._records.append(record)
                self._rebuild()
                return

            self.index.add(vector_array)
            self._positions[record.id] = len(self._records)
            self._records.append(record)

    def batch_add(self, records: List[VectorRecord]) -> None:
        """Add multiple vector records to the FAISS store."""
        for record in records:
            self.add(record)

    def search(self, query_vector: np.ndarray, top_k: int = 5) -> List[QueryResult]:
        """Search for similar vectors and return ranked results."""
        if top_k <= 0:
            return []

        with self._lock:
            total = self.index.ntotal
            if not total:
                return []

            query = unit_vector(query_vector)
            if not np.any(query):
                hits = [(row, 0.0) for row in range(min(top_k, total))]
            else:
                query_array = np.asarray(query, dtype=np.float32).reshape(1, -1)
                scores, indices = self.index.search(query_array, min(top_k, total))
                hits = [
                    (int(row), float(score))
                    for row, score in zip(indices[0], scores[0])
                    if row >= 0
                ]
                # FAISS does not order equal scores; keep insertion order for ties
                hits.sort(key=lambda hit: (-hit[1], hit[0]))

            return [
                QueryResult(
                    id=self._records[row].id,
                    score=score,
                    metadata=dict(self._records[row].metadata),
                    content=self._records[row].content,
                )
                for row, score in hits
            ]

    def get(self, record_id: str) -> Optional[VectorRecord]:
        with self._lock:
            row = self._positions.get(record_id)
            return self._records[row] if row is not None else None

    def delete(self, record_id: str) -> bool:
        """Delete a vector record by ID, rebuilding the flat index."""
        with self._lock:
            if record_id not in self._positions:
                return False
            self._records = [r for r in self._records if r.id != record_id]
            self._rebuild()
            return True

    def clear(self) -> None:
        """Clear all records from the FAISS store."""
        with self._lock:
            self._records = []
            self._rebuild()

    def count(self) -> int:
        with self._lock:
            return len(self._records)
