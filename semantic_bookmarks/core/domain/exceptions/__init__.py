"""Custom exception hierarchy for Semantic Bookmarks.

This package provides structured exceptions with automatic context capture.
Each exception includes:
- Error codes for quick identification
- Automatic capture of class, method, file, and line number
- Cause chaining for underlying exceptions
- JSON serialization for structured logging

Import from this package directly:

    from semantic_bookmarks.core.domain.exceptions import RateLimitError
"""

# Base classes
from .base import RaiseSite, SemanticBookmarksError

# Remote API exceptions
from .api import (
    ApiError,
    ClientError,
    EmptyResponseError,
    MalformedResponseError,
    NetworkError,
    RateLimitError,
    RequestTimeoutError,
    ServerError,
)

# Configuration exceptions
from .configuration import (
    ConfigurationError,
    InvalidConfigurationError,
    MissingAPIKeyError,
)

# Embedding exceptions
from .embedding import (
    DimensionMismatchError,
    EmbeddingError,
    InvalidEncodingError,
)

# Storage exceptions
from .storage import StorageError

# Validation exceptions
from .validation import (
    EmptyQueryError,
    ValidationError,
)

__all__ = [
    # Base
    "RaiseSite",
    "SemanticBookmarksError",
    # Configuration
    "ConfigurationError",
    "MissingAPIKeyError",
    "InvalidConfigurationError",
    # Remote API
    "ApiError",
    "ClientError",
    "RateLimitError",
    "ServerError",
    "RequestTimeoutError",
    "NetworkError",
    "MalformedResponseError",
    "EmptyResponseError",
    # Embedding
    "EmbeddingError",
    "DimensionMismatchError",
    "InvalidEncodingError",
    # Validation
    "ValidationError",
    "EmptyQueryError",
    # Storage
    "StorageError",
]
