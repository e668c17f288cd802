"""Unit tests for the typer CLI with the composition root patched out."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from typer.testing import CliRunner

from semantic_bookmarks.adapters.inbound.cli import commands
from semantic_bookmarks.common.exception_handler import EXIT_API, EXIT_VALIDATION
from semantic_bookmarks.config.settings import Settings
from semantic_bookmarks.core.domain import QualityBucket, RankedGroup
from semantic_bookmarks.core.domain.exceptions import EmptyQueryError, ServerError

pytestmark = pytest.mark.unit

runner = CliRunner()


@pytest.fixture(autouse=True)
def patched_environment(monkeypatch, tmp_path):
    settings = Settings(
        _env_file=None, api_key="sk-secret-abcdef", db_path=tmp_path / "qa.db"
    )
    monkeypatch.setattr(commands, "get_settings", lambda: settings)
    monkeypatch.setattr(commands, "setup_logging", MagicMock())
    monkeypatch.delenv("DEBUG", raising=False)
    return settings


def test_index_command(monkeypatch, tmp_path, item_factory):
    page = tmp_path / "page.md"
    page.write_text("# Cats\nCats are great.", encoding="utf-8")
    service = MagicMock()
    service.index = AsyncMock(return_value=[item_factory("b1", [1.0], question="Are cats great?")])
    monkeypatch.setattr(commands, "get_indexing_service", lambda: service)

    result = runner.invoke(commands.app, ["index", "b1", str(page)])

    assert result.exit_code == 0, result.output
    assert "Indexed 1 Q&A items for b1" in result.output
    assert "Are cats great?" in result.output
    service.index.assert_awaited_once_with("b1", "# Cats\nCats are great.")


def test_index_missing_file(tmp_path):
    result = runner.invoke(commands.app, ["index", "b1", str(tmp_path / "missing.md")])
    assert result.exit_code != 0


def test_search_command_prints_table(monkeypatch, item_factory):
    group = RankedGroup(
        owner_id="b1",
        best_score=0.93,
        representative_item=item_factory("b1", [1.0], question="Cats?"),
        quality=QualityBucket.EXCELLENT,
    )
    service = MagicMock()
    service.search = AsyncMock(return_value=[group])
    monkeypatch.setattr(commands, "get_search_service", lambda: service)

    result = runner.invoke(commands.app, ["search", "cats", "--top-k", "5"])

    assert result.exit_code == 0, result.output
    assert "b1" in result.output
    assert "0.930" in result.output
    assert "excellent" in result.output
    service.search.assert_awaited_once_with("cats", top_k=5)


def test_search_without_top_k_uses_default(monkeypatch):
    service = MagicMock()
    service.search = AsyncMock(return_value=[])
    monkeypatch.setattr(commands, "get_search_service", lambda: service)

    result = runner.invoke(commands.app, ["search", "cats"])

    assert result.exit_code == 0
    assert "No matches found" in result.output
    service.search.assert_awaited_once_with("cats", top_k=None)


def test_search_error_shows_code_and_exits(monkeypatch):
    service = MagicMock()
    service.search = AsyncMock(side_effect=EmptyQueryError("Search query must not be empty"))
    monkeypatch.setattr(commands, "get_search_service", lambda: service)

    result = runner.invoke(commands.app, ["search", " "])

    assert result.exit_code == EXIT_VALIDATION
    assert "Error [SB_VAL_002]" in result.output
    assert "try again shortly" not in result.output


def test_transient_api_error_suggests_retry(monkeypatch):
    monkeypatch.delenv("DEBUG", raising=False)
    service = MagicMock()
    service.search = AsyncMock(side_effect=ServerError("down", status=503))
    monkeypatch.setattr(commands, "get_search_service", lambda: service)

    result = runner.invoke(commands.app, ["search", "cats"])

    assert result.exit_code == EXIT_API
    assert "Error [SB_API_004]" in result.output
    assert "try again shortly" in result.output


def test_api_error_in_debug_mode_prints_json(monkeypatch):
    monkeypatch.setenv("DEBUG", "true")
    service = MagicMock()
    service.search = AsyncMock(side_effect=ServerError("down", status=503))
    monkeypatch.setattr(commands, "get_search_service", lambda: service)

    result = runner.invoke(commands.app, ["search", "cats"])

    assert result.exit_code == EXIT_API
    assert "SB_API_004" in result.output
    assert '"status": 503' in result.output


def test_delete_and_stats(monkeypatch, tmp_path, item_factory):
    from semantic_bookmarks.adapters.outbound.sqlite_qa_store import SQLiteQAStore

    store = SQLiteQAStore(tmp_path / "cli.db")
    store.replace_items("b1", [item_factory("b1", [1.0]), item_factory("b1", [0.5])])
    monkeypatch.setattr(commands, "get_store", lambda: store)

    stats = runner.invoke(commands.app, ["stats"])
    assert stats.exit_code == 0
    assert "Q&A items: 2" in stats.output
    assert "Bookmarks: 1" in stats.output

    deleted = runner.invoke(commands.app, ["delete", "b1"])
    assert deleted.exit_code == 0
    assert "Deleted 2 Q&A items for b1" in deleted.output
    assert store.count() == 0


def test_config_masks_api_key():
    result = runner.invoke(commands.app, ["config"])

    assert result.exit_code == 0
    assert "sk-...cdef" in result.output
    assert "sk-secret-abcdef" not in result.output
