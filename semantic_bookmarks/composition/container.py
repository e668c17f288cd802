"""Composition root wiring adapters to the core services."""

import logging
from functools import lru_cache

from ..adapters.outbound.openai_client import OpenAICompatibleClient
from ..adapters.outbound.sqlite_qa_store import SQLiteQAStore
from ..config.settings import get_settings
from ..core.services.indexing_service import IndexingService
from ..core.services.search_service import SearchService
from ..core.services.similarity_ranker import SimilarityRanker

logger = logging.getLogger(__name__)


@lru_cache
def get_api_client() -> OpenAICompatibleClient:
    logger.debug("Initializing OpenAICompatibleClient...")
    return OpenAICompatibleClient(get_settings())


@lru_cache
def get_store() -> SQLiteQAStore:
    settings = get_settings()
    logger.debug(f"Opening Q&A store at {settings.db_path}")
    settings.ensure_directories()
    return SQLiteQAStore(settings.db_path)


@lru_cache
def get_ranker() -> SimilarityRanker:
    # Thresholds are read from settings on every ranking pass
    return SimilarityRanker(thresholds=lambda: get_settings().quality_thresholds)


@lru_cache
def get_indexing_service() -> IndexingService:
    client = get_api_client()
    return IndexingService(generator=client, embedder=client, store=get_store())


@lru_cache
def get_search_service() -> SearchService:
    return SearchService(
        embedder=get_api_client(),
        store=get_store(),
        ranker=get_ranker(),
        top_k=get_settings().search_top_k,
    )
