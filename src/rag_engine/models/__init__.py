"""Data models for chunks, provider configuration and retrieval results."""

from rag_engine.models.chunk import TextChunk
from rag_engine.models.document import DocumentStatus, ProcessDocumentResult
from rag_engine.models.provider import ProviderConfig
from rag_engine.models.retrieval import RetrievedChunk

__all__ = [
    "TextChunk",
    "DocumentStatus",
    "ProcessDocumentResult",
    "ProviderConfig",
    "RetrievedChunk",
]
