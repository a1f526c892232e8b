"""
Error taxonomy for the knowledge base.

Every error carries the HTTP status the API layer maps it to, so handlers
never need to inspect the exception type.
"""


class KnowledgeBaseError(Exception):
    """Base class for all knowledge base errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(KnowledgeBaseError):
    """A required request field is missing or malformed."""

    status_code = 400


class InvalidArgument(KnowledgeBaseError, ValueError):
    """Bad ranking parameters (k, threshold)."""

    status_code = 400


class DimensionMismatch(InvalidArgument):
    """Query and candidate vectors have different lengths."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Vector dimension mismatch: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class NotFound(KnowledgeBaseError, LookupError):
    """Unknown document id."""

    status_code = 404

    def __init__(self, doc_id):
        super().__init__(f"Document {doc_id} not found")
        self.doc_id = doc_id


class StoreUnavailable(KnowledgeBaseError):
    """The persistence backend cannot be reached. Callers may retry."""

    status_code = 503
