"""Configuration-related exceptions for Semantic Bookmarks."""

from .base import SemanticBookmarksError


class ConfigurationError(SemanticBookmarksError):
    """Configuration or environment variable errors.

    Raised when required configuration is missing or invalid. Never retried.
    """

    error_code = "SB_CFG_001"


class MissingAPIKeyError(ConfigurationError):
    """Required API key is not configured."""

    error_code = "SB_CFG_002"


class InvalidConfigurationError(ConfigurationError):
    """Configuration value is invalid."""

    error_code = "SB_CFG_003"
