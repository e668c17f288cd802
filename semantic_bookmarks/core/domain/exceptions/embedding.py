"""Embedding exceptions for Semantic Bookmarks."""

from .base import SemanticBookmarksError


class EmbeddingError(SemanticBookmarksError):
    """Base error for embedding handling."""

    error_code = "SB_EMB_001"


class DimensionMismatchError(EmbeddingError):
    """Two vectors that must be compared have different lengths.

    The similarity ranker excludes such candidates instead of surfacing
    this error.
    """

    error_code = "SB_EMB_002"


class InvalidEncodingError(EmbeddingError):
    """An encoded embedding could not be decoded."""

    error_code = "SB_EMB_003"
