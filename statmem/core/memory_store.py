"""
Memory document store: canonical documents in SQLite, statistical
embeddings in a vector index, ranking through the search service.
"""

import json
import threading
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

import numpy as np

from .config import LIST_ALL_LIMIT, DEFAULT_SEARCH_LIMIT, DEFAULT_SEARCH_THRESHOLD, get_db_path, get_vector_store, get_embedding_provider
from .db import get_db, init_db
from .documents import Document, RankedResult, utc_now
from .errors import DocumentNotFoundError, StoreUnavailableError
from .search_service import semantic_search, list_all
from ..vector.types import VectorRecord
from ..util.logging import logger, truncate


def _row_to_document(row) -> Document:
    doc_id, content, tags, properties, favorite, created_at = row
    return Document(
        id=doc_id,
        content=content,
        tags=json.loads(tags),
        properties=json.loads(properties),
        favorite=bool(favorite),
        created_at=datetime.fromisoformat(created_at),
    )


class MemoryStore:
    """Document CRUD and semantic search over a pluggable vector store."""

    STAT_KEYS = (
        "add_document_count",
        "search_count",
        "delete_document_count",
        "get_document_count",
        "get_all_documents",
    )

    def __init__(self, db_path: str = None, vector_store=None, embedding_provider=None):
        self.db_path = db_path or get_db_path()
        self.vector_store = vector_store if vector_store is not None else get_vector_store()
        self.embedding_provider = embedding_provider if embedding_provider is not None else get_embedding_provider()
        self._stats = {key: 0 for key in self.STAT_KEYS}
        self._stats_lock = threading.Lock()

        logger.log_operation("memory_store.init", "started", {"path": self.db_path})
        init_db(self.db_path)
        indexed = self.rebuild_index()
        logger.log_operation("memory_store.init", "success", {"path": self.db_path, "documents": indexed})

    def _bump(self, key: str) -> None:
        with self._stats_lock:
            self._stats[key] += 1

    def _index_document(self, doc: Document) -> None:
        vector = np.asarray(self.embedding_provider.embed_text(doc.content), dtype=np.float64)
        record = VectorRecord(id=doc.id, vector=vector, metadata=doc.to_metadata(), content=doc.content)
        try:
            self.vector_store.add(record)
        except Exception as e:
            logger.log_store_error("add", e, {"id": doc.id})
            raise StoreUnavailableError(f"Failed to index document {doc.id}: {e}") from e

    def _write_document(self, conn, doc: Document) -> None:
        conn.execute(
            "INSERT OR REPLACE INTO documents (id, content, tags, properties, favorite, created_at) VALUES (?, ?, ?, ?, ?, ?)",
            (doc.id, doc.content, json.dumps(doc.tags), json.dumps(doc.properties),
             doc.favorite, doc.created_at.isoformat())
        )

    def add_document(self, content: str, tags: Optional[List[str]] = None,
                     properties: Optional[Dict[str, str]] = None, favorite: bool = False) -> Document:
        """Persist and index a new document under a fresh UUID."""
        doc = Document(
            id=str(uuid.uuid4()),
            content=content,
            tags=list(tags or []),
            properties=dict(properties or {}),
            favorite=favorite,
        )
        self._save(doc)
        self._bump("add_document_count")
        logger.log_document_operation("add", doc.id, details={"content": truncate(content)})
        return doc

    def _save(self, doc: Document) -> None:
        # The SQLite write only commits once the vector index accepted the document
        with get_db(self.db_path) as conn:
            self._write_document(conn, doc)
            self._index_document(doc)

    def get_document(self, document_id: str) -> Document:
        """Get a document by ID."""
        self._bump("get_document_count")
        with get_db(self.db_path) as conn:
            row = conn.execute(
                "SELECT id, content, tags, properties, favorite, created_at FROM documents WHERE id = ?",
                (document_id,)
            ).fetchone()

        if row is None:
            raise DocumentNotFoundError(document_id)
        return _row_to_document(row)

    def update_document(self, document_id: str, content: str, tags: Optional[List[str]] = None,
                        properties: Optional[Dict[str, str]] = None, favorite: bool = False) -> Document:
        """Replace a document's fields, keeping its ID and refreshing its timestamp."""
        self._require(document_id)
        doc = Document(
            id=document_id,
            content=content,
            tags=list(tags or []),
            properties=dict(properties or {}),
            favorite=favorite,
            created_at=utc_now(),
        )
        self._save(doc)
        logger.log_document_operation("update", document_id)
        return doc

    def set_favorite(self, document_id: str, favorite: bool) -> Document:
        """Set the favorite flag. The embedding is unchanged; only metadata is re-indexed."""
        doc = self._require(document_id)
        doc.favorite = favorite
        self._save(doc)
        logger.log_document_operation("favorite", document_id, details={"favorite": favorite})
        return doc

    def delete_document(self, document_id: str) -> None:
        """Delete a document from SQLite and the vector index."""
        self._require(document_id)
        with get_db(self.db_path) as conn:
            conn.execute("DELETE FROM documents WHERE id = ?", (document_id,))
            try:
                self.vector_store.delete(document_id)
            except Exception as e:
                logger.log_store_error("delete", e, {"id": document_id})
                raise StoreUnavailableError(f"Failed to delete document {document_id}: {e}") from e

        self._bump("delete_document_count")
        logger.log_document_operation("delete", document_id)

    def _require(self, document_id: str) -> Document:
        with get_db(self.db_path) as conn:
            row = conn.execute(
                "SELECT id, content, tags, properties, favorite, created_at FROM documents WHERE id = ?",
                (document_id,)
            ).fetchone()
        if row is None:
            logger.log_document_operation("lookup", document_id, status="not_found")
            raise DocumentNotFoundError(document_id)
        return _row_to_document(row)

    def search_documents(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT,
                         threshold: float = DEFAULT_SEARCH_THRESHOLD) -> List[RankedResult]:
        """Semantic search; see search_service.semantic_search."""
        self._bump("search_count")
        return semantic_search(query, limit, threshold,
                               _vector_store=self.vector_store,
                               _embedding_provider=self.embedding_provider)

    def list_documents(self, limit: int = LIST_ALL_LIMIT) -> List[Document]:
        """List documents through the empty-query probe, in index order."""
        self._bump("get_all_documents")
        results = list_all(limit, _vector_store=self.vector_store, _embedding_provider=self.embedding_provider)
        return [r.document for r in results]

    def rebuild_index(self) -> int:
        """Re-embed every persisted document into a cleared vector index."""
        with get_db(self.db_path) as conn:
            rows = conn.execute(
                "SELECT id, content, tags, properties, favorite, created_at FROM documents ORDER BY created_at, rowid"
            ).fetchall()

        try:
            self.vector_store.clear()
        except Exception as e:
            logger.log_store_error("clear", e)
            raise StoreUnavailableError(f"Failed to clear vector index: {e}") from e

        for row in rows:
            self._index_document(_row_to_document(row))

        logger.log_operation("index.rebuild", "success", {"documents": len(rows)})
        return len(rows)

    def count(self) -> int:
        """Number of documents in the vector index."""
        return self.vector_store.count()

    def stats(self) -> Dict[str, Any]:
        """Document total plus per-operation counters since startup."""
        with self._stats_lock:
            stats = dict(self._stats)
        stats["total_documents"] = self.count()
        return stats

    def close(self) -> None:
        logger.log_operation("memory_store.close", "success", {"path": self.db_path})
