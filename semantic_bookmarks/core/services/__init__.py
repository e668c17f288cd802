"""Core services: retry policy, codec, ranking, indexing and search."""

from .backoff import calculate_backoff_delay, exponential_delay
from .embedding_codec import (
    CompressionStats,
    compression_ratio,
    decode_embedding,
    encode_embedding,
    is_encoded_embedding,
    max_quantization_error,
)
from .indexing_service import IndexingService
from .request_executor import RequestExecutor, next_state
from .search_service import SearchService
from .similarity_ranker import SimilarityRanker, cosine_similarity

__all__ = [
    "calculate_backoff_delay",
    "exponential_delay",
    "CompressionStats",
    "compression_ratio",
    "decode_embedding",
    "encode_embedding",
    "is_encoded_embedding",
    "max_quantization_error",
    "IndexingService",
    "RequestExecutor",
    "next_state",
    "SearchService",
    "SimilarityRanker",
    "cosine_similarity",
]
