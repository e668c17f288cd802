"""Domain models for Semantic Bookmarks.

Models are organized by domain area:

- embedding: Embedding aliases, QAPair and QAItem
- retrieval: SimilarityMatch, RankedGroup and quality buckets
- retry: RetryPolicy for the API client

All models are re-exported here for convenient importing:

    from semantic_bookmarks.core.domain import QAItem, RankedGroup
"""

from .embedding import Embedding, EncodedEmbedding, QAItem, QAPair, combined_text
from .retrieval import (
    EmbeddingVariant,
    QualityBucket,
    QualityThresholds,
    RankedGroup,
    SimilarityMatch,
)
from .retry import RetryPolicy

__all__ = [
    # Embedding models
    "Embedding",
    "EncodedEmbedding",
    "QAPair",
    "QAItem",
    "combined_text",
    # Retrieval models
    "EmbeddingVariant",
    "QualityBucket",
    "QualityThresholds",
    "SimilarityMatch",
    "RankedGroup",
    # Retry
    "RetryPolicy",
]
