"""
Knowledge base operations: ingestion (embed then append) and search
(snapshot then rank), on top of an injected store and embedding provider.
"""

from datetime import datetime, timezone
import time
from typing import Any, Dict, List, Optional

from .config import SEARCH_DEFAULT_K, SEARCH_DEFAULT_THRESHOLD, SEARCH_WORKERS
from .exceptions import ValidationError
from .schema import DocumentPayload, DocumentRecord
from .store import DocumentStore
from ..util.logging import logger
from ..vector.embeddings import IEmbeddingProvider
from ..vector.ranking import rank
from ..vector.types import RankedResult

MAX_PAGE_SIZE = 100


def _require_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValidationError(f"Missing {field} parameter")
    return value


def _added_at() -> str:
    return datetime.now(timezone.utc).isoformat()


class KnowledgeBaseService:
    """Ingests and searches documents.

    The store and the embedding provider are owned by the caller; the service
    holds references only.
    """

    def __init__(self, store: DocumentStore, embedder: IEmbeddingProvider, workers: int = SEARCH_WORKERS):
        self.store = store
        self.embedder = embedder
        self.workers = workers

    def _ingest(self, content: str, payload: DocumentPayload) -> int:
        vector = self.embedder.embed_text(content)
        return self.store.append(vector, payload)

    def add_text(self, text: str, title: Optional[str] = None, metadata: Optional[Dict[str, Any]] = None,
                 tags: Optional[List[str]] = None) -> int:
        """Embed and store a text document, returning its id."""
        text = _require_text(text, "text")
        title = title or "Untitled document"
        payload = DocumentPayload(
            title=title,
            content=text,
            source="text_input",
            metadata={**(metadata or {}), "title": title, "added_at": _added_at()},
            tags=list(tags or []),
        )
        return self._ingest(text, payload)

    def add_file(self, content: str, filename: str, mime_type: str, size: int) -> int:
        """Embed and store the text of an uploaded file, returning its id."""
        if not isinstance(content, str):
            raise ValidationError("No file provided")
        payload = DocumentPayload(
            title=filename,
            content=content,
            source="file_upload",
            metadata={
                "filename": filename,
                "mimetype": mime_type,
                "size": size,
                "file_type": filename.rsplit(".", 1)[-1].lower() if "." in filename else "",
                "added_at": _added_at(),
                "source": filename,
            },
        )
        return self._ingest(content, payload)

    def add_video(self, transcription: str, title: Optional[str] = None, video_url: Optional[str] = None) -> int:
        """Embed and store a video transcription, returning its id."""
        if not isinstance(transcription, str) or not transcription:
            raise ValidationError("No transcription provided")
        title = title or "Untitled video"
        metadata = {"content_type": "video_transcription", "title": title, "added_at": _added_at()}
        if video_url:
            metadata["video_url"] = video_url
        payload = DocumentPayload(title=title, content=transcription, source="video", metadata=metadata)
        return self._ingest(transcription, payload)

    def search(self, query: str, k: Optional[int] = None, threshold: Optional[float] = None) -> List[RankedResult]:
        """Rank every stored document against ``query``.

        Args:
            query: Search text
            k: Maximum number of results, defaults to SEARCH_DEFAULT_K
            threshold: Minimum similarity, defaults to SEARCH_DEFAULT_THRESHOLD

        Returns:
            RankedResult list whose payloads are DocumentRecords
        """
        query = _require_text(query, "query")
        k = SEARCH_DEFAULT_K if k is None else k
        threshold = SEARCH_DEFAULT_THRESHOLD if threshold is None else threshold

        start = time.perf_counter()
        query_vector = self.embedder.embed_text(query)
        snapshot = self.store.all()
        candidates = [(vector, record) for _, vector, record in snapshot]
        results = rank(query_vector, candidates, k, threshold=threshold, workers=self.workers)

        logger.log_search(
            query,
            candidates=len(candidates),
            results=len(results),
            duration_ms=(time.perf_counter() - start) * 1000,
            details={"k": k, "threshold": threshold},
        )
        return results

    def get(self, doc_id: int) -> DocumentRecord:
        return self.store.get(doc_id)[1]

    def update(self, doc_id: int, title: Optional[str] = None, content: Optional[str] = None,
               metadata: Optional[Dict[str, Any]] = None, tags: Optional[List[str]] = None) -> DocumentRecord:
        """Apply a partial update. A content change re-embeds the document."""
        vector, record = self.store.get(doc_id)
        if content is not None:
            content = _require_text(content, "content")
            if content != record.content:
                vector = self.embedder.embed_text(content)

        merged = {**record.metadata, **(metadata or {})}
        if title and "title" in merged:
            merged["title"] = title

        payload = DocumentPayload(
            title=title or record.title,
            content=record.content if content is None else content,
            source=record.source,
            metadata=merged,
            tags=record.tags if tags is None else list(tags),
        )
        return self.store.update(doc_id, vector, payload)

    def delete(self, doc_id: int) -> bool:
        return self.store.delete(doc_id)

    def list(self, limit: int = 10, offset: int = 0) -> List[DocumentRecord]:
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        if offset < 0:
            raise ValidationError("offset must be >= 0")
        return self.store.list(limit=limit, offset=offset)

    def reindex(self) -> int:
        """Re-embed every document with the current provider.

        Needed after EMBED_DIMENSION or EMBED_MODE changes, since vectors of a
        different length can no longer be ranked. Returns the number of
        documents whose vector changed.
        """
        changed = 0
        for doc_id, vector, record in self.store.all():
            new_vector = self.embedder.embed_text(record.content)
            if new_vector == vector:
                continue
            payload = DocumentPayload(
                title=record.title,
                content=record.content,
                source=record.source,
                metadata=record.metadata,
                tags=record.tags,
            )
            self.store.update(doc_id, new_vector, payload)
            changed += 1

        logger.log_operation("reindex", "success", {"documents": changed})
        return changed

    def health(self) -> Dict[str, Any]:
        """Store reachability and size."""
        healthy = self.store.health_check()
        return {
            "healthy": healthy,
            "document_count": self.store.count() if healthy else 0,
            "dimension": self.embedder.get_dimension(),
        }
