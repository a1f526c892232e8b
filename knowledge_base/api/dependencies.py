"""
Request-scoped access to the application's knowledge base service.
"""

from fastapi import Request

from ..core.service import KnowledgeBaseService


def get_service(request: Request) -> KnowledgeBaseService:
    """The service built at startup and held on ``app.state``."""
    return request.app.state.service
