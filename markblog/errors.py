import logging
import uuid
from typing import Optional

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Failure reported by the key-value store (I/O, corruption, ...)."""

    status = 500

    def __init__(self, message: str, operation: Optional[str] = None, key: Optional[str] = None):
        super().__init__(message)
        self.operation = operation
        self.key = key


class NotFoundError(StoreError):
    """The requested key has no record."""

    status = 404

    def __init__(self, key: str, operation: str = "get"):
        super().__init__(f"Key not found: {key}", operation=operation, key=key)


class RenderError(Exception):
    """Markdown could not be converted to HTML."""

    status = 500


def log_and_sanitize_error(error: Exception, context: str) -> tuple[str, str]:
    """
    Log the failure with its traceback and return a message safe to show
    the client, plus the id that ties the two together.
    """
    error_id = str(uuid.uuid4())[:8]
    logger.error(
        f"{context} failed [{error_id}]: {type(error).__name__}: {error}",
        exc_info=error
    )
    return f"Something went wrong on our side. (Error ID: {error_id})", error_id
