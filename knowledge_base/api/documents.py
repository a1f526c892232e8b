"""
Document management endpoints: list, fetch, update and delete stored
documents.
"""

from fastapi import APIRouter, Depends, Query, Response

from ..core.service import KnowledgeBaseService
from ..util.logging import logger
from .dependencies import get_service
from .schemas import DocumentListResponse, DocumentOut, DocumentResponse, UpdateDocumentRequest

router = APIRouter()


@router.get("", response_model=DocumentListResponse)
def list_documents(
    limit: int = Query(10, description="Maximum number of documents to return"),
    offset: int = Query(0, description="Number of documents to skip"),
    service: KnowledgeBaseService = Depends(get_service),
):
    """Page through stored documents in insertion order."""
    records = service.list(limit=limit, offset=offset)
    return DocumentListResponse(
        count=len(records),
        data=[DocumentOut.model_validate(record) for record in records],
    )


@router.get("/{doc_id}", response_model=DocumentResponse)
def get_document(doc_id: int, service: KnowledgeBaseService = Depends(get_service)):
    record = service.get(doc_id)
    return DocumentResponse(data=DocumentOut.model_validate(record))


@router.put("/{doc_id}", response_model=DocumentResponse)
def update_document(doc_id: int, request: UpdateDocumentRequest,
                    service: KnowledgeBaseService = Depends(get_service)):
    """Update a document. Changing the content re-embeds it."""
    record = service.update(
        doc_id,
        title=request.title,
        content=request.content,
        metadata=request.metadata,
        tags=request.tags,
    )
    return DocumentResponse(data=DocumentOut.model_validate(record))


@router.delete("/{doc_id}", status_code=204)
def delete_document(doc_id: int, service: KnowledgeBaseService = Depends(get_service)):
    service.delete(doc_id)
    logger.info(f"Document deleted: {doc_id}")
    return Response(status_code=204)
