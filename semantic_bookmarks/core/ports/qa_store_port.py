"""Q&A Store Port Interface."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from ..domain import QAItem


class QAStorePort(ABC):
    """Abstract interface for the storage collaborator.

    Stores hold encoded embeddings as opaque strings; they never decode them.
    """

    @abstractmethod
    def replace_items(self, owner_id: str, items: Sequence[QAItem]) -> int:
        """Atomically replace all items owned by ``owner_id``."""
        ...

    @abstractmethod
    def list_items(self) -> list[QAItem]:
        """Return every stored item."""
        ...

    @abstractmethod
    def list_items_for(self, owner_id: str) -> list[QAItem]:
        """Return the items owned by ``owner_id``."""
        ...

    @abstractmethod
    def delete_owner(self, owner_id: str) -> int:
        """Delete all items of an owner, returning how many were removed."""
        ...

    @abstractmethod
    def count(self) -> int:
        """Return the number of stored items."""
        ...
