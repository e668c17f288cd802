"""Validation exceptions for Semantic Bookmarks."""

from .base import SemanticBookmarksError


class ValidationError(SemanticBookmarksError):
    """User input failed validation."""

    error_code = "SB_VAL_001"


class EmptyQueryError(ValidationError):
    """Search query is empty or whitespace only."""

    error_code = "SB_VAL_002"
