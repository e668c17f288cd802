"""Storage exceptions for Semantic Bookmarks."""

from .base import SemanticBookmarksError


class StorageError(SemanticBookmarksError):
    """Reading or writing Q&A items failed."""

    error_code = "SB_STO_001"
