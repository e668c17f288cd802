"""Port interfaces implemented by the outbound adapters."""

from .embedding_port import EmbeddingPort
from .qa_generator_port import QAGeneratorPort
from .qa_store_port import QAStorePort

__all__ = ["EmbeddingPort", "QAGeneratorPort", "QAStorePort"]
