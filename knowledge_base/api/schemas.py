"""
Request and response models for the HTTP API.

Required fields are declared Optional on the request models so that a missing
field reaches the service and fails with the same envelope as any other
validation error.
"""

from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime


class SearchRequest(BaseModel):
    query: Optional[str] = None
    k: Optional[int] = None
    threshold: Optional[float] = None


class SearchResult(BaseModel):
    id: int
    content: str
    metadata: Dict[str, Any]
    similarity: float
    source: str


class SearchResponse(BaseModel):
    query: str
    results: List[SearchResult]
    result_count: int


class AddTextRequest(BaseModel):
    text: Optional[str] = None
    title: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    tags: Optional[List[str]] = None

    @field_validator('tags')
    @classmethod
    def tags_must_not_be_blank(cls, v):
        if v is not None and any(not tag.strip() for tag in v):
            raise ValueError('tags cannot be blank')
        return v


class AddVideoRequest(BaseModel):
    transcription: Optional[str] = None
    title: Optional[str] = None
    video_url: Optional[str] = None


class AddDocumentResponse(BaseModel):
    success: bool = True
    message: str
    doc_id: int


class UpdateDocumentRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    tags: Optional[List[str]] = None

    @field_validator('title')
    @classmethod
    def title_must_not_be_empty(cls, v):
        if v is not None and not v.strip():
            raise ValueError('title cannot be empty')
        return v


class DocumentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    source: str
    metadata: Dict[str, Any]
    tags: List[str]
    created_at: datetime
    updated_at: datetime


class DocumentResponse(BaseModel):
    success: bool = True
    data: DocumentOut


class DocumentListResponse(BaseModel):
    success: bool = True
    count: int
    data: List[DocumentOut]


class HealthResponse(BaseModel):
    status: str
    message: str
    version: str
    document_count: int


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    debug: Optional[str] = None
