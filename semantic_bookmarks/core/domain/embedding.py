"""Embedding and Q&A models."""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime

# A float vector produced by the remote model, components nominally in [-1, 1].
Embedding = list[float]

# Base64 text of little-endian int16 quantized components. See embedding_codec.
EncodedEmbedding = str


def combined_text(question: str, answer: str) -> str:
    """Text embedded for the "both" variant of a Q&A pair."""
    return f"Q: {question}\nA: {answer}"


@dataclass(frozen=True)
class QAPair:
    """A question/answer pair as returned by the chat endpoint."""

    question: str
    answer: str


@dataclass(frozen=True)
class QAItem:
    """A persisted Q&A pair with its two encoded embeddings.

    Items are created once when a bookmark is processed and never mutated;
    they are deleted together with their owner.

    Attributes:
        owner_id: Id of the owning content record (bookmark).
        question: Generated question.
        answer: Generated answer.
        embedding_question: Encoded embedding of the question alone.
        embedding_both: Encoded embedding of "Q: ...\\nA: ...".
        item_id: Unique id of this item.
        created_at: Creation timestamp (UTC, ISO 8601).
    """

    owner_id: str
    question: str
    answer: str
    embedding_question: EncodedEmbedding
    embedding_both: EncodedEmbedding
    item_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())
