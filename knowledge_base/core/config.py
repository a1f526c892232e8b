"""
Environment-driven configuration for the knowledge base service.
"""

import os
from pathlib import Path

# Database path configuration (":memory:" keeps the store in-process)
DB_PATH = os.getenv("DB_PATH", "./data/knowledge_base.db")
DB_CONNECT_RETRIES = int(os.getenv("DB_CONNECT_RETRIES", "3"))
DB_CONNECT_RETRY_DELAY_SEC = float(os.getenv("DB_CONNECT_RETRY_DELAY_SEC", "1.0"))

# Embedding configuration, fixed once per deployment
EMBED_DIMENSION = int(os.getenv("EMBED_DIMENSION", "10"))
EMBED_MODE = os.getenv("EMBED_MODE", "words")  # words|whole

# Search defaults
SEARCH_DEFAULT_K = int(os.getenv("SEARCH_DEFAULT_K", "5"))
_threshold = os.getenv("SEARCH_DEFAULT_THRESHOLD", "")
SEARCH_DEFAULT_THRESHOLD = float(_threshold) if _threshold else None
SEARCH_WORKERS = int(os.getenv("SEARCH_WORKERS", "1"))

# Upload handling
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "./uploads")
MAX_FILE_SIZE = int(os.getenv("MAX_FILE_SIZE", str(10 * 1024 * 1024)))  # 10MB default
ALLOWED_MIME_TYPES = (
    "text/plain",
    "text/markdown",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)

# HTTP server
ALLOWED_ORIGINS = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "").split(",") if o.strip()]
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "3000"))

# Version string
VERSION = "1.0.0"


def get_document_store(db_path: str = None):
    """Open the configured document store."""
    from .store import SqliteDocumentStore
    return SqliteDocumentStore(
        db_path or DB_PATH,
        retries=DB_CONNECT_RETRIES,
        retry_delay=DB_CONNECT_RETRY_DELAY_SEC,
    )


def get_embedding_provider():
    """Get the configured embedding provider."""
    from ..vector.embeddings import SinHashEmbedding
    return SinHashEmbedding(dimension=EMBED_DIMENSION, mode=EMBED_MODE)


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def ensure_directory(path: str):
    """Ensure a directory exists."""
    Path(path).mkdir(parents=True, exist_ok=True)


def ensure_db_directory(db_path: str = None):
    """Ensure the database directory exists."""
    db_path = db_path or DB_PATH
    if db_path != ":memory:":
        ensure_directory(str(Path(db_path).parent))


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if EMBED_DIMENSION < 1:
        issues.append("EMBED_DIMENSION must be >= 1")

    if EMBED_MODE not in ["words", "whole"]:
        issues.append(f"Invalid EMBED_MODE: {EMBED_MODE}")

    if SEARCH_DEFAULT_K < 1:
        issues.append("SEARCH_DEFAULT_K must be >= 1")

    if SEARCH_WORKERS < 1:
        issues.append("SEARCH_WORKERS must be >= 1")

    if DB_CONNECT_RETRIES < 1:
        issues.append("DB_CONNECT_RETRIES must be >= 1")

    if MAX_FILE_SIZE < 1:
        issues.append("MAX_FILE_SIZE must be >= 1")

    return issues
