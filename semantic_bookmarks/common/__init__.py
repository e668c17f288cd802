"""Common utilities shared across adapters and services."""

from .exception_handler import (
    format_exception_json,
    get_error_code,
    get_exit_code,
    is_retryable,
    log_exception,
)
from .single_flight import SingleFlight

__all__ = [
    "format_exception_json",
    "log_exception",
    "get_error_code",
    "get_exit_code",
    "is_retryable",
    "SingleFlight",
]
