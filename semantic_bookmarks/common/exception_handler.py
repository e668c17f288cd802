"""Turn exceptions into JSON payloads, log lines and CLI exit codes.

Library errors serialize themselves; anything else is described from its
traceback so the CLI and the logs show one shape for every failure.
"""

import json
import logging
import traceback
from typing import Any

from ..core.domain.exceptions import (
    ApiError,
    ConfigurationError,
    SemanticBookmarksError,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)

UNKNOWN_ERROR_CODE = "PYTHON_ERR"

EXIT_GENERIC = 1
EXIT_VALIDATION = 2
EXIT_CONFIGURATION = 3
EXIT_API = 4
EXIT_STORAGE = 5

# First matching category wins
_EXIT_CODES: tuple[tuple[type[SemanticBookmarksError], int], ...] = (
    (ValidationError, EXIT_VALIDATION),
    (ConfigurationError, EXIT_CONFIGURATION),
    (ApiError, EXIT_API),
    (StorageError, EXIT_STORAGE),
)


def _traceback_location(exc: BaseException) -> dict[str, Any]:
    """Describe the innermost frame of ``exc``'s traceback."""
    frames = traceback.extract_tb(exc.__traceback__) if exc.__traceback__ else []
    if not frames:
        return {"class": "<unknown>", "method": "<unknown>", "file": "<unknown>", "line": 0}
    last = frames[-1]
    return {
        "class": "<unknown>",
        "method": last.name,
        "file": last.filename.replace("\\", "/").rsplit("/", 1)[-1],
        "line": last.lineno,
    }


def format_exception_json(
    exc: Exception,
    include_trace: bool = False,
    extra_context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Describe ``exc`` as a JSON-ready dict.

    Args:
        exc: Library error or any other exception.
        include_trace: Add the formatted stack trace.
        extra_context: Merged into the ``context`` section.

    Returns:
        Dict with ``error``, ``location`` and optional ``context``,
        ``cause`` and ``stack_trace`` sections.
    """
    if isinstance(exc, SemanticBookmarksError):
        result = exc.to_dict(include_trace=include_trace)
        if extra_context:
            result.setdefault("context", {}).update(extra_context)
        return result

    result: dict[str, Any] = {
        "error": {
            "type": type(exc).__name__,
            "code": UNKNOWN_ERROR_CODE,
            "message": str(exc),
            "retryable": False,
        },
        "location": _traceback_location(exc),
    }
    if extra_context:
        result["context"] = dict(extra_context)
    if include_trace:
        result["stack_trace"] = [
            line.strip()
            for line in traceback.format_exception(type(exc), exc, exc.__traceback__)
            if line.strip()
        ]
    return result


def log_exception(
    exc: Exception,
    log: logging.Logger | None = None,
    level: int = logging.ERROR,
    extra_context: dict[str, Any] | None = None,
) -> None:
    """Log ``exc`` as indented JSON, stack trace included."""
    exc_data = format_exception_json(exc, include_trace=True, extra_context=extra_context)
    (log or logger).log(level, json.dumps(exc_data, indent=2, default=str))


def get_error_code(exc: Exception) -> str:
    """Error code of a library error, ``PYTHON_ERR`` for anything else."""
    if isinstance(exc, SemanticBookmarksError):
        return exc.error_code
    return UNKNOWN_ERROR_CODE


def is_retryable(exc: Exception) -> bool:
    """Whether trying the same operation again might succeed."""
    return isinstance(exc, SemanticBookmarksError) and exc.retryable


def get_exit_code(exc: Exception) -> int:
    """Process exit code the CLI reports for ``exc``."""
    for category, code in _EXIT_CODES:
        if isinstance(exc, category):
            return code
    return EXIT_GENERIC
