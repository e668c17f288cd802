"""Semantic search over stored Q&A items."""

import asyncio
import logging

from ..domain import RankedGroup
from ..domain.exceptions import EmptyQueryError, EmptyResponseError
from ..ports import EmbeddingPort, QAStorePort
from .similarity_ranker import SimilarityRanker

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 200


class SearchService:
    """Embeds a query and ranks every stored item against it."""

    def __init__(
        self,
        embedder: EmbeddingPort,
        store: QAStorePort,
        ranker: SimilarityRanker,
        top_k: int = DEFAULT_TOP_K,
    ) -> None:
        self.embedder = embedder
        self.store = store
        self.ranker = ranker
        self.top_k = top_k

    async def search(
        self,
        query: str,
        top_k: int | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[RankedGroup]:
        """Find the bookmarks whose Q&A items best match ``query``.

        Args:
            query: Free-text search query.
            top_k: Candidates to keep before grouping; defaults to the
                service's configured value.
            cancel_event: Optional event that aborts pending retries when set.

        Returns:
            One group per matching bookmark, best first.

        Raises:
            EmptyQueryError: If the query is empty or whitespace only.
            ApiError: If the query cannot be embedded.
        """
        if not query or not query.strip():
            raise EmptyQueryError("Search query must not be empty")

        k = self.top_k if top_k is None else top_k
        embeddings = await self.embedder.generate_embeddings([query.strip()], cancel_event)
        if not embeddings:
            raise EmptyResponseError("No embedding returned for query")

        corpus = await asyncio.to_thread(self.store.list_items)
        groups = self.ranker.rank_groups(embeddings[0], corpus, k)
        logger.info(f"Search matched {len(groups)} bookmarks from {len(corpus)} items")
        return groups
