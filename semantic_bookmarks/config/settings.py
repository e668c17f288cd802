"""Configuration management for Semantic Bookmarks."""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.domain import QualityThresholds, RetryPolicy
from ..core.domain.exceptions import InvalidConfigurationError

DEFAULT_QA_SYSTEM_PROMPT = """You are a helpful assistant that generates question-answer pairs for semantic search retrieval.

Given a document, generate 5-10 diverse Q&A pairs that:
1. Cover the main topics and key facts in the document
2. Include both factual questions ("What is X?") and conceptual questions ("How does X work?")
3. Would help someone find this document when searching with related queries
4. Have concise but complete answers (1-3 sentences each)

Respond with JSON only, no other text. Format:
{"pairs": [{"question": "...", "answer": "..."}, ...]}"""


def _sanitize_secret(value: str) -> str:
    """Remove BOM characters and whitespace from secrets.

    Secrets pasted into .env files may carry a BOM that breaks HTTP headers.
    """
    if not value:
        return value
    return value.lstrip("\ufeff").strip()


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Every variable is prefixed with ``SEMANTIC_BOOKMARKS_``. Unknown
    prefixed keys, in the process environment or in ``.env``, are
    rejected instead of silently ignored, and the instance is immutable
    once loaded.
    """

    model_config = SettingsConfigDict(
        env_prefix="SEMANTIC_BOOKMARKS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="forbid",
        frozen=True,
    )

    # OpenAI-compatible API
    api_key: str = ""
    api_base_url: str = "https://api.openai.com/v1"
    chat_model: str = "gpt-4o-mini"
    embedding_model: str = "text-embedding-3-small"
    request_timeout_ms: int = Field(default=30000, gt=0)
    content_max_chars: int = Field(default=15000, gt=0)
    chat_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    use_chat_temperature: bool = True
    qa_system_prompt: str = DEFAULT_QA_SYSTEM_PROMPT

    # Retry policy
    max_retries: int = Field(default=3, ge=0)
    retry_base_delay_ms: int = Field(default=1000, ge=0)
    retry_max_delay_ms: int = Field(default=8000, ge=0)

    # Similarity thresholds
    similarity_threshold_excellent: float = Field(default=0.9, ge=0.0, le=1.0)
    similarity_threshold_good: float = Field(default=0.7, ge=0.0, le=1.0)
    similarity_threshold_fair: float = Field(default=0.5, ge=0.0, le=1.0)
    similarity_threshold_poor: float = Field(default=0.3, ge=0.0, le=1.0)

    # Search
    search_top_k: int = Field(default=200, gt=0)

    # Storage
    db_path: Path = Path("data/semantic_bookmarks.db")

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    @model_validator(mode="before")
    @classmethod
    def reject_unknown_env_keys(cls, data: Any) -> Any:
        """Fail on prefixed environment variables that match no field.

        ``extra="forbid"`` only covers ``.env`` entries; pydantic-settings
        skips unknown process environment variables on its own.
        """
        prefix = cls.model_config["env_prefix"].upper()
        known = {f"{prefix}{name.upper()}" for name in cls.model_fields}
        unknown = sorted(
            key for key in os.environ if key.upper().startswith(prefix) and key.upper() not in known
        )
        if unknown:
            raise ValueError(f"Unknown environment variables: {', '.join(unknown)}")
        return data

    @field_validator("api_key", "api_base_url", mode="after")
    @classmethod
    def sanitize_secrets(cls, value: str) -> str:
        """Remove BOM and whitespace from secret values."""
        return _sanitize_secret(value)

    @field_validator("api_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        """Endpoints are appended as ``/embeddings``; avoid a double slash."""
        return value.rstrip("/")

    @model_validator(mode="after")
    def check_ordering(self) -> "Settings":
        """Thresholds must descend and the backoff bounds must be ordered."""
        thresholds = [
            self.similarity_threshold_excellent,
            self.similarity_threshold_good,
            self.similarity_threshold_fair,
            self.similarity_threshold_poor,
        ]
        if any(a <= b for a, b in zip(thresholds, thresholds[1:])):
            raise ValueError(
                "similarity thresholds must be strictly descending "
                "(excellent > good > fair > poor)"
            )
        if self.retry_base_delay_ms > self.retry_max_delay_ms:
            raise ValueError("retry_base_delay_ms must not exceed retry_max_delay_ms")
        return self

    @property
    def retry_policy(self) -> RetryPolicy:
        """Retry policy for API requests."""
        return RetryPolicy(
            max_retries=self.max_retries,
            base_delay_ms=self.retry_base_delay_ms,
            max_delay_ms=self.retry_max_delay_ms,
        )

    @property
    def quality_thresholds(self) -> QualityThresholds:
        """Thresholds for result quality buckets."""
        return QualityThresholds(
            excellent=self.similarity_threshold_excellent,
            good=self.similarity_threshold_good,
            fair=self.similarity_threshold_fair,
            poor=self.similarity_threshold_poor,
        )

    @property
    def request_timeout_seconds(self) -> float:
        return self.request_timeout_ms / 1000.0

    def masked_api_key(self) -> str:
        """API key safe for display."""
        if not self.api_key:
            return "<not set>"
        return f"{self.api_key[:3]}...{self.api_key[-4:]}" if len(self.api_key) > 8 else "****"

    def ensure_directories(self) -> None:
        """Create the database directory if it doesn't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process.

    Raises:
        InvalidConfigurationError: If the environment holds invalid or unknown keys.
    """
    try:
        return Settings()
    except ValidationError as e:
        raise InvalidConfigurationError(
            "Invalid configuration",
            cause=e,
            context={"errors": [err["msg"] for err in e.errors()]},
        ) from e
