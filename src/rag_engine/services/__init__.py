"""Services for chunking, embedding, indexing and retrieval."""

from rag_engine.services.chunking_service import BoundaryLevel, ChunkingService, split_text
from rag_engine.services.embedding_service import EmbeddingService
from rag_engine.services.pipeline_service import DocumentPipeline
from rag_engine.services.provider_config_service import ProviderConfigService
from rag_engine.services.retrieval_service import RetrievalService, resolve_similarity_threshold

__all__ = [
    "BoundaryLevel",
    "ChunkingService",
    "split_text",
    "EmbeddingService",
    "DocumentPipeline",
    "ProviderConfigService",
    "RetrievalService",
    "resolve_similarity_threshold",
]
