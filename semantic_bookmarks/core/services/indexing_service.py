"""Turns a bookmark's content into stored, searchable Q&A items."""

import asyncio
import logging

from ...common.single_flight import SingleFlight
from ..domain import QAItem, combined_text
from ..domain.exceptions import EmptyResponseError, ValidationError
from ..ports import EmbeddingPort, QAGeneratorPort, QAStorePort
from .embedding_codec import encode_embedding

logger = logging.getLogger(__name__)


class IndexingService:
    """Generates Q&A pairs for content, embeds them and stores the result.

    Concurrent ``index`` calls for the same owner share one in-flight
    operation instead of racing each other into the store. A call that
    joins a running operation gets that operation's items; if its own
    content differs, that content is not indexed and a warning is logged.
    """

    def __init__(
        self,
        generator: QAGeneratorPort,
        embedder: EmbeddingPort,
        store: QAStorePort,
    ) -> None:
        self.generator = generator
        self.embedder = embedder
        self.store = store
        self._flight = SingleFlight()
        self._flight_content: dict[str, str] = {}

    async def index(
        self,
        owner_id: str,
        content: str,
        cancel_event: asyncio.Event | None = None,
    ) -> list[QAItem]:
        """Index ``content`` for ``owner_id``, replacing any previous items.

        Args:
            owner_id: Id of the owning bookmark.
            content: Page text to generate Q&A pairs from.
            cancel_event: Optional event that aborts pending retries when set.

        Returns:
            The stored items (empty if the model produced no pairs).

        Raises:
            ValidationError: If ``owner_id`` or ``content`` is blank.
            ApiError: If generation or embedding fails.
            StorageError: If the items cannot be stored.
        """
        if not owner_id or not owner_id.strip():
            raise ValidationError("Owner id must not be empty")
        if not content or not content.strip():
            raise ValidationError("Content must not be empty", context={"owner_id": owner_id})

        text = content.strip()
        if not self._flight.in_flight(owner_id):
            self._flight_content[owner_id] = text
        elif self._flight_content.get(owner_id) != text:
            logger.warning(
                f"Indexing for {owner_id} already in flight with different content; "
                "sharing its result, this content is not indexed"
            )

        return await self._flight.run(owner_id, lambda: self._index(owner_id, text, cancel_event))

    async def _index(
        self,
        owner_id: str,
        content: str,
        cancel_event: asyncio.Event | None,
    ) -> list[QAItem]:
        try:
            return await self._generate_and_store(owner_id, content, cancel_event)
        finally:
            self._flight_content.pop(owner_id, None)

    async def _generate_and_store(
        self,
        owner_id: str,
        content: str,
        cancel_event: asyncio.Event | None,
    ) -> list[QAItem]:
        logger.info(f"Generating Q&A pairs for {owner_id} ({len(content)} chars)")
        pairs = await self.generator.generate_qa_pairs(content, cancel_event)

        if not pairs:
            logger.warning(f"No Q&A pairs generated for {owner_id}")
            await asyncio.to_thread(self.store.replace_items, owner_id, [])
            return []

        questions = [p.question for p in pairs]
        combined = [combined_text(p.question, p.answer) for p in pairs]

        question_embeddings = await self.embedder.generate_embeddings(questions, cancel_event)
        both_embeddings = await self.embedder.generate_embeddings(combined, cancel_event)

        if len(question_embeddings) != len(pairs) or len(both_embeddings) != len(pairs):
            raise EmptyResponseError(
                "Embedding count does not match Q&A pair count",
                context={
                    "pairs": len(pairs),
                    "question_embeddings": len(question_embeddings),
                    "both_embeddings": len(both_embeddings),
                },
            )

        items = [
            QAItem(
                owner_id=owner_id,
                question=pair.question,
                answer=pair.answer,
                embedding_question=encode_embedding(q_emb),
                embedding_both=encode_embedding(b_emb),
            )
            for pair, q_emb, b_emb in zip(pairs, question_embeddings, both_embeddings)
        ]

        await asyncio.to_thread(self.store.replace_items, owner_id, items)
        logger.info(f"Indexed {len(items)} Q&A items for {owner_id}")
        return items
