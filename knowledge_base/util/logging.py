"""
Structured logging for knowledge base operations.
"""

import logging
import os
from typing import Any, Dict, Optional


def _truncate(value: str, limit: int = 50) -> str:
    return value[:limit] + "..." if len(value) > limit else value


class StructuredLogger:
    """Structured logger for document, search and storage operations."""

    def __init__(self, name: str = "knowledge_base"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None, level: int = logging.INFO):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        self.logger.log(level, message)

    def log_document_operation(self, operation: str, doc_id: Any, title: str = None, status: str = "success", details: Dict[str, Any] = None):
        """Log a document create/update/delete."""
        log_details = {"doc_id": doc_id}
        if title is not None:
            log_details["title"] = _truncate(title)
        if details:
            log_details.update(details)

        level = logging.INFO if status == "success" else logging.WARNING
        self.log_operation(f"document.{operation}", status, log_details, level)

    def log_search(self, query: str, candidates: int, results: int, duration_ms: float, details: Dict[str, Any] = None):
        """Log a similarity search."""
        log_details = {
            "query": _truncate(query),
            "candidates": candidates,
            "results": results,
            "duration_ms": round(duration_ms, 2),
        }
        if details:
            log_details.update(details)

        self.log_operation("search", "success", log_details)

    def log_query(self, connection_id: str, query_number: int, sql: str, duration_ms: float, status: str = "success", error: Optional[str] = None):
        """Log a single database statement. Successful statements log at DEBUG."""
        log_details = {
            "query": f"{connection_id}.{query_number}",
            "sql": _truncate(" ".join(sql.split()), 80),
            "duration_ms": round(duration_ms, 2),
        }
        if error:
            log_details["error"] = error

        level = logging.DEBUG if status == "success" else logging.ERROR
        self.log_operation("db.query", status, log_details, level)

    def log_upload(self, filename: str, size: int, mime_type: str, status: str = "success", details: Dict[str, Any] = None):
        """Log a file upload."""
        log_details = {"filename": filename, "size": size, "mime_type": mime_type}
        if details:
            log_details.update(details)

        level = logging.INFO if status == "success" else logging.WARNING
        self.log_operation("upload", status, log_details, level)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)

    def exception(self, message: str) -> None:
        """Log an error message with the active traceback."""
        self.logger.exception(message)


# Global logger instance
logger = StructuredLogger()
