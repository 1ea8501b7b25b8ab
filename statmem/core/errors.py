"""
Exceptions raised by the memory store and search service.
"""


class InvalidParameterError(ValueError):
    """Raised when a caller passes an out-of-range search parameter."""
    pass


class StoreUnavailableError(Exception):
    """Raised when the backing vector store fails to execute an operation."""
    pass


class DocumentNotFoundError(KeyError):
    """Raised when a document ID does not exist."""

    def __init__(self, document_id: str):
        super().__init__(document_id)
        self.document_id = document_id

    def __str__(self):
        return f"Document not found: {self.document_id}"
