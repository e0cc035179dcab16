"""Repository layer for data access."""

from rag_engine.repositories.base import BaseRepository
from rag_engine.repositories.document_repository import DocumentRepository
from rag_engine.repositories.embedding_repository import EmbeddingRepository
from rag_engine.repositories.settings_repository import SettingsRepository

__all__ = [
    "BaseRepository",
    "DocumentRepository",
    "EmbeddingRepository",
    "SettingsRepository",
]
