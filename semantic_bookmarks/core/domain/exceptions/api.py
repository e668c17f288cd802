"""Remote API exceptions for Semantic Bookmarks.

Every error raised while talking to the OpenAI-compatible endpoint is an
``ApiError``. The ``retryable`` flag is what the request executor looks at
when deciding between another attempt and failing fast.
"""

from typing import Any

from .base import SemanticBookmarksError


class ApiError(SemanticBookmarksError):
    """Base error for remote API calls."""

    error_code = "SB_API_001"

    def __init__(
        self,
        message: str,
        *,
        status: int = 0,
        endpoint: str = "",
        cause: Exception | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        merged = {"status": status, "endpoint": endpoint}
        merged.update(context or {})
        super().__init__(message, cause=cause, context=merged)
        self.status = status
        self.endpoint = endpoint


class ClientError(ApiError):
    """HTTP 4xx other than 429. The request itself is wrong; never retried."""

    error_code = "SB_API_002"


class RateLimitError(ApiError):
    """HTTP 429. Retried with a heavier backoff."""

    error_code = "SB_API_003"
    retryable = True


class ServerError(ApiError):
    """HTTP 5xx."""

    error_code = "SB_API_004"
    retryable = True


class RequestTimeoutError(ApiError, TimeoutError):
    """An attempt exceeded the configured request timeout."""

    error_code = "SB_API_005"
    retryable = True


class NetworkError(ApiError):
    """Transport failure before an HTTP status was received."""

    error_code = "SB_API_006"
    retryable = True


class MalformedResponseError(ApiError):
    """Response body could not be parsed into the expected shape."""

    error_code = "SB_API_007"


class EmptyResponseError(ApiError):
    """Response parsed but carried no usable data."""

    error_code = "SB_API_008"
