"""SQLite adapter for storing Q&A items and their encoded embeddings."""

import logging
import sqlite3
from collections.abc import Sequence
from pathlib import Path

from ...core.domain import QAItem
from ...core.domain.exceptions import StorageError
from ...core.ports import QAStorePort

logger = logging.getLogger(__name__)

_COLUMNS = "id, owner_id, question, answer, embedding_question, embedding_both, created_at"


class SQLiteQAStore(QAStorePort):
    """Adapter for SQLite Q&A item storage.

    Embeddings are persisted as the encoded base64 strings they arrive as.
    """

    def __init__(self, db_path: str | Path = "data/semantic_bookmarks.db") -> None:
        """Initialize the store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self._ensure_db_dir()
        self._init_db()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _init_db(self) -> None:
        """Initialize the database schema."""
        try:
            with self._connect() as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS qa_items (
                        id TEXT PRIMARY KEY,
                        owner_id TEXT NOT NULL,
                        question TEXT NOT NULL,
                        answer TEXT NOT NULL,
                        embedding_question TEXT NOT NULL,
                        embedding_both TEXT NOT NULL,
                        created_at TEXT NOT NULL
                    )
                """)
                conn.execute("""
                    CREATE INDEX IF NOT EXISTS idx_qa_items_owner
                    ON qa_items(owner_id)
                """)
        except sqlite3.Error as e:
            logger.error(f"Failed to initialize database: {e}")
            raise StorageError(
                "Failed to initialize Q&A store",
                cause=e,
                context={"db_path": str(self.db_path)},
            ) from e

    def replace_items(self, owner_id: str, items: Sequence[QAItem]) -> int:
        """Replace all items of ``owner_id`` in a single transaction.

        Returns:
            Number of items written.
        """
        rows = [
            (
                item.item_id,
                owner_id,
                item.question,
                item.answer,
                item.embedding_question,
                item.embedding_both,
                item.created_at,
            )
            for item in items
        ]
        try:
            # The connection context manager commits on success and rolls back on error
            with self._connect() as conn:
                conn.execute("DELETE FROM qa_items WHERE owner_id = ?", (owner_id,))
                conn.executemany(
                    f"INSERT INTO qa_items ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                    rows,
                )
        except sqlite3.Error as e:
            logger.error(f"Failed to replace items for {owner_id}: {e}")
            raise StorageError(
                f"Failed to store Q&A items for {owner_id}",
                cause=e,
                context={"owner_id": owner_id, "items": len(rows)},
            ) from e

        logger.debug(f"Stored {len(rows)} items for {owner_id}")
        return len(rows)

    def list_items(self) -> list[QAItem]:
        """Return every stored item in insertion order."""
        return self._query(f"SELECT {_COLUMNS} FROM qa_items ORDER BY rowid", ())

    def list_items_for(self, owner_id: str) -> list[QAItem]:
        """Return the items owned by ``owner_id``."""
        return self._query(
            f"SELECT {_COLUMNS} FROM qa_items WHERE owner_id = ? ORDER BY rowid",
            (owner_id,),
        )

    def delete_owner(self, owner_id: str) -> int:
        """Delete all items of ``owner_id``.

        Returns:
            Number of items removed.
        """
        try:
            with self._connect() as conn:
                cursor = conn.execute("DELETE FROM qa_items WHERE owner_id = ?", (owner_id,))
                return cursor.rowcount
        except sqlite3.Error as e:
            logger.error(f"Failed to delete items for {owner_id}: {e}")
            raise StorageError(
                f"Failed to delete Q&A items for {owner_id}",
                cause=e,
                context={"owner_id": owner_id},
            ) from e

    def count(self) -> int:
        """Return the number of stored items."""
        try:
            with self._connect() as conn:
                (total,) = conn.execute("SELECT COUNT(*) FROM qa_items").fetchone()
                return int(total)
        except sqlite3.Error as e:
            raise StorageError("Failed to count Q&A items", cause=e) from e

    def owner_count(self) -> int:
        """Return the number of distinct owners with stored items."""
        try:
            with self._connect() as conn:
                (total,) = conn.execute(
                    "SELECT COUNT(DISTINCT owner_id) FROM qa_items"
                ).fetchone()
                return int(total)
        except sqlite3.Error as e:
            raise StorageError("Failed to count owners", cause=e) from e

    def _query(self, sql: str, params: tuple) -> list[QAItem]:
        try:
            with self._connect() as conn:
                rows = conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Failed to read Q&A items: {e}")
            raise StorageError("Failed to read Q&A items", cause=e) from e

        return [
            QAItem(
                item_id=row[0],
                owner_id=row[1],
                question=row[2],
                answer=row[3],
                embedding_question=row[4],
                embedding_both=row[5],
                created_at=row[6],
            )
            for row in rows
        ]
