"""
Error types and common error handling utilities for the BGG collection package.

Import failures all derive from CollectionImportError and carry a single
human-readable ``user_message`` suitable for showing to the person who
started the import. Store failures derive from StoreError.
"""

import logging
from typing import Optional, Any, Callable, List
from functools import wraps

logger = logging.getLogger(__name__)


class CollectionImportError(Exception):
    """Base class for failures of a collection import run."""

    user_message = "Import failed. Please try again."

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail or self.user_message)
        self.detail = detail


class InvalidInput(CollectionImportError):
    user_message = "Please provide a BGG username."


class UserNotFound(CollectionImportError):
    user_message = "BGG user not found."


class CollectionTimeout(CollectionImportError):
    user_message = "BGG is still preparing the collection. Please try again shortly."


class ServiceUnavailable(CollectionImportError):
    user_message = "Could not fetch the BGG collection right now. Please try again later."


class DetailFetchFailed(CollectionImportError):
    """
    A detail batch failed after retries.

    Records normalized from earlier, successful batches are kept on
    ``partial_records`` so the caller can still use them.
    """

    user_message = "Could not fetch BGG game details."

    def __init__(self, detail: Optional[str] = None, partial_records: Optional[List[Any]] = None,
                 batch_index: Optional[int] = None):
        super().__init__(detail)
        self.partial_records = list(partial_records or [])
        self.batch_index = batch_index


class ImportCancelled(CollectionImportError):
    user_message = "Import was cancelled."


class StoreError(Exception):
    """Base class for collection store failures."""


class EntryNotFound(StoreError):
    def __init__(self, local_id: int):
        super().__init__(f"No game with id {local_id}")
        self.local_id = local_id


class DuplicateGame(StoreError):
    def __init__(self, name: str):
        super().__init__(f"That game already exists in your collection: {name}")
        self.name = name


class InvalidTier(StoreError):
    pass


def handle_errors(default_return: Any = None, log_error: bool = True):
    """
    Decorator to handle common exceptions and provide consistent error logging.

    Only meant for best-effort reporting paths; import and store operations
    raise their typed errors instead.

    Args:
        default_return: Value to return on error
        log_error: Whether to log the error
    """
    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if log_error:
                    logger.error(f"Error in {func.__name__}: {e}")
                return default_return
        return wrapper
    return decorator


def describe_failure(error: Exception) -> str:
    """Convert any import failure into one human-readable message."""
    if isinstance(error, CollectionImportError):
        return error.user_message
    return CollectionImportError.user_message
