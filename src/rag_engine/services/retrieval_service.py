"""Similarity retrieval over a user's indexed chunks."""

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rag_engine.config import get_settings
from rag_engine.database.session import get_session_factory
from rag_engine.models.provider import ProviderConfig
from rag_engine.models.retrieval import RetrievedChunk
from rag_engine.repositories.embedding_repository import EmbeddingRepository
from rag_engine.services.embedding_service import EmbeddingService
from rag_engine.utils.logging import get_logger

logger = get_logger("retrieval_service")
settings = get_settings()

DEFAULT_TOP_K = 10
DEFAULT_THRESHOLD = 0.7

# (max query length, similarity floor); short queries score lower
_LENGTH_FLOORS = ((6, 0.2), (12, 0.3), (20, 0.4))


def resolve_similarity_threshold(query: str, base_threshold: float) -> float:
    """
    Lower the threshold for short queries.

    Args:
        query: Trimmed query text
        base_threshold: Caller's threshold

    Returns:
        min(base_threshold, floor for the query length)
    """
    length = len(query)
    for max_length, floor in _LENGTH_FLOORS:
        if length <= max_length:
            return min(base_threshold, floor)
    return base_threshold


class RetrievalService:
    """Embed a query and rank the user's chunks by cosine similarity."""

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        embedding_service: Optional[EmbeddingService] = None,
    ):
        self._session_factory = session_factory or get_session_factory()
        self.embedding_service = embedding_service or EmbeddingService()

    async def retrieve(
        self,
        query: str,
        user_id: str,
        config: ProviderConfig,
        top_k: int = DEFAULT_TOP_K,
        threshold: float = DEFAULT_THRESHOLD,
    ) -> List[RetrievedChunk]:
        """
        Return the user's chunks most similar to the query.

        Args:
            query: Free-text query
            user_id: Owner whose chunks are searched
            config: Provider configuration used to embed the query
            top_k: Maximum number of results
            threshold: Minimum cosine similarity before length adjustment

        Returns:
            Chunks ordered by similarity descending; empty when nothing qualifies
        """
        trimmed = query.strip()
        if not trimmed:
            return []

        effective_threshold = resolve_similarity_threshold(trimmed, threshold)
        query_vector = await self.embedding_service.embed_query(config, trimmed)
        if not query_vector:
            return []

        async with self._session_factory() as session:
            repository = EmbeddingRepository(session)
            results = await repository.nearest(
                user_id,
                query_vector,
                limit=top_k,
                min_similarity=effective_threshold,
            )

            if settings.retrieval.debug:
                diagnostics = {
                    "length": len(trimmed),
                    "top_k": top_k,
                    "threshold": effective_threshold,
                    "base_threshold": threshold,
                    "hits": len(results),
                }
                if not results:
                    diagnostics["top_similarity"] = await repository.closest_similarity(
                        user_id, query_vector
                    )
                logger.info(f"RAG query: {diagnostics}", extra={"extra_fields": diagnostics})

        return results
