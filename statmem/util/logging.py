"""
Structured logging for document, search and embedding operations.
Logs go to stderr so the stdio tool server keeps stdout for protocol traffic.
"""

import logging
from typing import Any, Dict

from ..core.config import debug_enabled


def truncate(text: str, limit: int = 50) -> str:
    """Shorten text for log output."""
    return text[:limit] + "..." if len(text) > limit else text


class StructuredLogger:
    """Structured logger for memory server operations."""

    def __init__(self, name: str = "statmem"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG if debug_enabled() else logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        if status in ("failed", "rejected"):
            self.logger.error(message)
        else:
            self.logger.info(message)

    def log_document_operation(self, operation: str, document_id: str, status: str = "success",
                               details: Dict[str, Any] = None):
        """Log a document CRUD operation."""
        log_details = {"id": document_id}
        if details:
            log_details.update(details)

        self.log_operation(f"document.{operation}", status, log_details)

    def log_search(self, query: str, limit: int, threshold: float, result_count: int = None,
                   status: str = "success"):
        """Log a search request and its outcome."""
        log_details = {
            "query": truncate(query),
            "limit": limit,
            "threshold": threshold
        }
        if result_count is not None:
            log_details["count"] = result_count

        self.log_operation("search", status, log_details)

    def log_embedding(self, text: str, token_count: int):
        """Log an embedding computation at debug level."""
        self.logger.debug(f"Embedding text: {truncate(text)!r} ({token_count} tokens)")

    def log_store_error(self, operation: str, error: Exception, details: Dict[str, Any] = None):
        """Log a backing store failure."""
        log_details = {"error": str(error)[:100]}
        if details:
            log_details.update(details)

        self.log_operation(f"store.{operation}", "failed", log_details)

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


# Global logger instance
logger = StructuredLogger()
