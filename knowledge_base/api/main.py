"""
HTTP API for the knowledge base.
"""

from contextlib import asynccontextmanager
import traceback
from typing import Optional

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .dependencies import get_service
from .documents import router as documents_router
from .schemas import (
    AddDocumentResponse,
    AddTextRequest,
    AddVideoRequest,
    ErrorResponse,
    HealthResponse,
    SearchRequest,
    SearchResponse,
    SearchResult,
)
from ..core.config import (
    ALLOWED_ORIGINS,
    MAX_FILE_SIZE,
    UPLOAD_DIR,
    VERSION,
    debug_enabled,
    get_document_store,
    get_embedding_provider,
    validate_config,
)
from ..core.exceptions import KnowledgeBaseError, ValidationError
from ..core.schema import DocumentRecord
from ..core.service import KnowledgeBaseService
from ..core.uploads import check_mime_type, cleanup_upload, read_text, save_upload
from ..util.logging import logger


ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    404: {"model": ErrorResponse, "description": "Document not found"},
    500: {"model": ErrorResponse, "description": "Internal error"},
    503: {"model": ErrorResponse, "description": "Document store unavailable"},
}


def _error(status_code: int, message: str, exc: Exception = None) -> JSONResponse:
    debug = None
    if exc is not None and debug_enabled():
        debug = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    body = ErrorResponse(error=message, debug=debug)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _result_source(record: DocumentRecord) -> str:
    # Caller metadata may carry any JSON value under "source"
    source = record.metadata.get("source")
    if isinstance(source, str) and source:
        return source
    return record.source


def create_app(service: Optional[KnowledgeBaseService] = None, upload_dir: str = UPLOAD_DIR,
               max_file_size: int = MAX_FILE_SIZE) -> FastAPI:
    """Build the application.

    When no service is passed, one is built on startup from configuration
    and its store is closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = service is None
        if owned:
            for issue in validate_config():
                logger.warning(f"Configuration issue: {issue}")
            app.state.service = KnowledgeBaseService(get_document_store(), get_embedding_provider())
        else:
            app.state.service = service
        logger.info(f"Knowledge base API {VERSION} started")
        try:
            yield
        finally:
            if owned:
                app.state.service.store.close()
            logger.info("Knowledge base API stopped")

    app = FastAPI(
        title="Knowledge Base API",
        version=VERSION,
        description="Store text, files and video transcripts and search them by similarity",
        docs_url="/docs" if debug_enabled() else None,
        redoc_url="/redoc" if debug_enabled() else None,
        lifespan=lifespan,
        responses=ERROR_RESPONSES,
    )

    origins = ALLOWED_ORIGINS or (["*"] if debug_enabled() else [])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=bool(ALLOWED_ORIGINS),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def root():
        return {
            "name": "Knowledge Base API",
            "version": VERSION,
            "status": "running",
            "endpoints": {
                "health_check": "/health",
                "search": "/search",
                "add_text": "/add/text",
                "add_file": "/add/file",
                "add_video": "/add/video",
                "documents": "/documents",
            },
        }

    @app.get("/health", response_model=HealthResponse)
    def health_check_endpoint(service: KnowledgeBaseService = Depends(get_service)):
        """Check system health."""
        health = service.health()
        if not health["healthy"]:
            return JSONResponse(
                status_code=503,
                content={
                    "status": "unavailable",
                    "message": "Document store unavailable",
                    "version": VERSION,
                    "document_count": 0,
                },
            )

        return HealthResponse(
            status="ok",
            message="API is running",
            version=VERSION,
            document_count=health["document_count"],
        )

    @app.post("/search", response_model=SearchResponse)
    def search_endpoint(request: Optional[SearchRequest] = None,
                        service: KnowledgeBaseService = Depends(get_service)):
        """Search the knowledge base by cosine similarity."""
        request = request or SearchRequest()
        hits = service.search(request.query, k=request.k, threshold=request.threshold)

        results = [
            SearchResult(
                id=hit.payload.id,
                content=hit.payload.content,
                metadata=hit.payload.metadata,
                similarity=hit.score,
                source=_result_source(hit.payload),
            )
            for hit in hits
        ]
        return SearchResponse(query=request.query, results=results, result_count=len(results))

    @app.post("/add/text", response_model=AddDocumentResponse, status_code=201)
    def add_text_endpoint(request: Optional[AddTextRequest] = None,
                          service: KnowledgeBaseService = Depends(get_service)):
        request = request or AddTextRequest()
        doc_id = service.add_text(request.text, title=request.title, metadata=request.metadata, tags=request.tags)
        return AddDocumentResponse(message="Added text to knowledge base", doc_id=doc_id)

    @app.post("/add/file", response_model=AddDocumentResponse, status_code=201)
    def add_file_endpoint(file: Optional[UploadFile] = File(None),
                          service: KnowledgeBaseService = Depends(get_service)):
        """Store the UTF-8 text of an uploaded file. The temporary copy is always removed."""
        if file is None or not file.filename:
            raise ValidationError("No file provided")

        check_mime_type(file.content_type)
        path = save_upload(file.file, file.filename, upload_dir=upload_dir, max_size=max_file_size)
        try:
            size = path.stat().st_size
            content = read_text(path)
            doc_id = service.add_file(content, filename=file.filename, mime_type=file.content_type, size=size)
        except KnowledgeBaseError as e:
            logger.log_upload(file.filename, 0, file.content_type, status="failed", details={"error": e.message})
            raise
        finally:
            cleanup_upload(path)

        logger.log_upload(file.filename, size, file.content_type)
        return AddDocumentResponse(message=f"Added file {file.filename} to knowledge base", doc_id=doc_id)

    @app.post("/add/video", response_model=AddDocumentResponse, status_code=201)
    def add_video_endpoint(request: Optional[AddVideoRequest] = None,
                           service: KnowledgeBaseService = Depends(get_service)):
        request = request or AddVideoRequest()
        doc_id = service.add_video(request.transcription, title=request.title, video_url=request.video_url)
        return AddDocumentResponse(message="Added video transcription to knowledge base", doc_id=doc_id)

    app.include_router(documents_router, prefix="/documents", tags=["documents"])

    @app.exception_handler(KnowledgeBaseError)
    async def knowledge_base_exception_handler(request: Request, exc: KnowledgeBaseError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"Invalid request: {location}: {first.get('msg')}" if location else f"Invalid request: {first.get('msg')}"
        else:
            message = "Invalid request"
        return _error(400, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle all unhandled exceptions."""
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
        return _error(500, str(exc) or "Internal server error", exc)

    return app


app = create_app()
