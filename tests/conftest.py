"""
Pytest configuration and shared fixtures.
"""

import random
from unittest.mock import MagicMock

import pytest

from semantic_bookmarks.config.settings import Settings
from semantic_bookmarks.core.domain import QAItem
from semantic_bookmarks.core.services.embedding_codec import encode_embedding
from semantic_bookmarks.core.services.request_executor import RequestExecutor


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (require API keys)")


class RecordingSleep:
    """Async sleep replacement that records requested delays and returns at once."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def make_response(status: int = 200, json_data=None, text: str = "") -> MagicMock:
    """Build a ``requests.Response``-like mock."""
    response = MagicMock()
    response.status_code = status
    response.text = text
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


def make_item(owner_id: str, question_vec, both_vec=None, question: str = "Q?") -> QAItem:
    """Build a QAItem from raw vectors."""
    return QAItem(
        owner_id=owner_id,
        question=question,
        answer="A.",
        embedding_question=encode_embedding(question_vec),
        embedding_both=encode_embedding(both_vec if both_vec is not None else question_vec),
    )


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from any .env file."""
    return Settings(
        _env_file=None,
        api_key="sk-test-key-1234",
        api_base_url="https://api.example.com/v1/",
        request_timeout_ms=1000,
        db_path=tmp_path / "qa.db",
    )


@pytest.fixture
def fake_sleep():
    """Recording async sleep."""
    return RecordingSleep()


@pytest.fixture
def executor(settings, fake_sleep):
    """Request executor that never actually waits."""
    return RequestExecutor(settings.retry_policy, sleep=fake_sleep, rng=random.Random(42))


@pytest.fixture
def mock_session():
    """A MagicMock standing in for ``requests.Session``."""
    return MagicMock()


@pytest.fixture
def response_factory():
    """Factory for mocked HTTP responses."""
    return make_response


@pytest.fixture
def item_factory():
    """Factory for QAItems built from raw vectors."""
    return make_item
