"""
Dashboard page and API: document CRUD, favorites, stats and semantic search.
"""

from fastapi import FastAPI, HTTPException, Depends, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from pathlib import Path
from typing import List

from .schemas import (
    DocumentRequest,
    DocumentResponse,
    DocumentStatusResponse,
    FavoriteRequest,
    HealthResponse,
    SearchHit,
    StatsResponse,
)
from ..core.config import VERSION, DEFAULT_SEARCH_LIMIT, DEFAULT_SEARCH_THRESHOLD, debug_enabled
from ..core.db import health_check
from ..core.documents import Document
from ..core.errors import DocumentNotFoundError, InvalidParameterError, StoreUnavailableError
from ..core.memory_store import MemoryStore
from ..util.logging import logger

DASHBOARD_PAGE = Path(__file__).parent / "static" / "dashboard.html"


def _document_response(doc: Document) -> DocumentResponse:
    return DocumentResponse(**doc.to_dict())


def create_app(store: MemoryStore = None) -> FastAPI:
    """Build the dashboard app. The store is opened lazily unless one is given."""
    app = FastAPI(
        title="Statistical Memory Server",
        version=VERSION,
        description="Document memory with statistical embeddings and similarity search",
        docs_url="/docs" if debug_enabled() else None,
        redoc_url="/redoc" if debug_enabled() else None
    )
    app.state.store = store

    # Add CORS middleware to allow frontend connections
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def get_store(request: Request) -> MemoryStore:
        if request.app.state.store is None:
            request.app.state.store = MemoryStore()
        return request.app.state.store

    @app.exception_handler(DocumentNotFoundError)
    async def not_found_handler(request: Request, exc: DocumentNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(InvalidParameterError)
    async def invalid_parameter_handler(request: Request, exc: InvalidParameterError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
        logger.error(f"Backing store unavailable: {exc}")
        return JSONResponse(status_code=503, content={"detail": "Backing store unavailable"})

    @app.get("/", response_class=HTMLResponse, include_in_schema=False)
    def dashboard():
        """Serve the single-page dashboard; it talks to the /api routes."""
        return HTMLResponse(DASHBOARD_PAGE.read_text(encoding="utf-8"))

    @app.get("/health", response_model=HealthResponse)
    def health_check_endpoint(store: MemoryStore = Depends(get_store)):
        """Check system health."""
        db_health = health_check(store.db_path)
        return HealthResponse(
            status="healthy" if db_health else "unhealthy",
            version=VERSION,
            db_health=db_health,
            document_count=store.count()
        )

    @app.get("/api/stats", response_model=StatsResponse)
    def stats_endpoint(store: MemoryStore = Depends(get_store)):
        return StatsResponse(**store.stats())

    @app.get("/api/documents", response_model=List[DocumentResponse])
    def list_documents_endpoint(store: MemoryStore = Depends(get_store)):
        return [_document_response(doc) for doc in store.list_documents()]

    @app.post("/api/documents", response_model=DocumentStatusResponse)
    def create_document_endpoint(req: DocumentRequest, store: MemoryStore = Depends(get_store)):
        doc = store.add_document(req.content, req.tags, req.properties, req.favorite)
        return DocumentStatusResponse(id=doc.id, status="created")

    @app.get("/api/documents/{document_id}", response_model=DocumentResponse)
    def get_document_endpoint(document_id: str, store: MemoryStore = Depends(get_store)):
        return _document_response(store.get_document(document_id))

    @app.put("/api/documents/{document_id}", response_model=DocumentStatusResponse)
    def update_document_endpoint(document_id: str, req: DocumentRequest, store: MemoryStore = Depends(get_store)):
        store.update_document(document_id, req.content, req.tags, req.properties, req.favorite)
        return DocumentStatusResponse(id=document_id, status="updated")

    @app.delete("/api/documents/{document_id}", response_model=DocumentStatusResponse)
    def delete_document_endpoint(document_id: str, store: MemoryStore = Depends(get_store)):
        store.delete_document(document_id)
        return DocumentStatusResponse(id=document_id, status="deleted")

    @app.put("/api/documents/{document_id}/favorite", response_model=DocumentStatusResponse)
    def favorite_endpoint(document_id: str, req: FavoriteRequest, store: MemoryStore = Depends(get_store)):
        doc = store.set_favorite(document_id, req.favorite)
        return DocumentStatusResponse(id=doc.id, status="updated", favorite=doc.favorite)

    @app.get("/api/search", response_model=List[SearchHit])
    def search_endpoint(
        q: str = Query(""),
        limit: int = Query(DEFAULT_SEARCH_LIMIT),
        threshold: float = Query(DEFAULT_SEARCH_THRESHOLD),
        store: MemoryStore = Depends(get_store),
    ):
        if not q:
            raise HTTPException(status_code=400, detail="Query parameter 'q' is required")

        results = store.search_documents(q, limit, threshold)
        return [
            SearchHit(**r.document.to_dict(), score=r.score, boosted_score=r.boosted_score)
            for r in results
        ]

    return app


app = create_app()
