"""Embedding Port Interface."""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Sequence

from ..domain import Embedding


class EmbeddingPort(ABC):
    """Abstract interface for turning text into embeddings."""

    @abstractmethod
    async def generate_embeddings(
        self,
        texts: Sequence[str],
        cancel_event: asyncio.Event | None = None,
    ) -> list[Embedding]:
        """Embed a batch of texts, returning vectors in input order."""
        ...
