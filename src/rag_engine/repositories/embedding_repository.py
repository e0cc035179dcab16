"""Repository for chunk embeddings stored in pgvector."""

import logging
from typing import List, Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rag_engine.database.models import Document, Embedding
from rag_engine.models.chunk import TextChunk
from rag_engine.models.retrieval import RetrievedChunk
from rag_engine.repositories.base import BaseRepository
from rag_engine.utils.errors import DatabaseError

logger = logging.getLogger(__name__)


class EmbeddingRepository(BaseRepository[Embedding]):
    """Repository for the embeddings table."""

    def __init__(self, session: AsyncSession):
        super().__init__(Embedding, session)

    async def delete_by_document(self, document_id: str) -> int:
        """
        Delete every embedding row of a document.

        Args:
            document_id: Document ID

        Returns:
            Number of rows deleted
        """
        try:
            result = await self.session.execute(
                delete(Embedding).where(Embedding.document_id == document_id)
            )
            deleted = result.rowcount or 0
            logger.debug(f"Deleted {deleted} embeddings for document {document_id}")
            return deleted
        except SQLAlchemyError as e:
            logger.error(f"Error deleting embeddings for document {document_id}: {e}")
            raise DatabaseError("Failed to delete embeddings") from e

    async def bulk_insert(
        self,
        document_id: str,
        user_id: str,
        chunks: Sequence[TextChunk],
        vectors: Sequence[Sequence[float]],
    ) -> List[Embedding]:
        """
        Insert one row per (chunk, vector) pair.

        Args:
            document_id: Owning document ID
            user_id: Owner user ID
            chunks: Chunks in index order
            vectors: Vectors aligned 1:1 with chunks

        Returns:
            Inserted rows
        """
        if len(chunks) != len(vectors):
            raise ValueError(
                f"Chunk count ({len(chunks)}) does not match vector count ({len(vectors)})"
            )

        rows = [
            Embedding(
                document_id=document_id,
                user_id=user_id,
                content=chunk.content,
                vector=list(vector),
                chunk_index=chunk.chunk_index,
                chunk_metadata=chunk.metadata,
            )
            for chunk, vector in zip(chunks, vectors)
        ]
        if not rows:
            return rows

        try:
            self.session.add_all(rows)
            await self.session.flush()
            logger.debug(f"Inserted {len(rows)} embeddings for document {document_id}")
            return rows
        except SQLAlchemyError as e:
            logger.error(f"Error inserting embeddings for document {document_id}: {e}")
            raise DatabaseError("Failed to insert embeddings") from e

    async def count_by_document(self, document_id: str) -> int:
        """Count embedding rows of a document."""
        return await self.count(filters={"document_id": document_id})

    async def nearest(
        self,
        user_id: str,
        query_vector: Sequence[float],
        limit: int,
        min_similarity: float,
    ) -> List[RetrievedChunk]:
        """
        Exact cosine nearest-neighbour search over a user's chunks.

        Similarity is ``1 - cosine_distance``. Rows below ``min_similarity``
        are dropped; the rest are ordered by distance ascending.

        Args:
            user_id: Owner user ID
            query_vector: Query embedding
            limit: Maximum number of rows
            min_similarity: Inclusive similarity threshold

        Returns:
            Ranked chunks joined with their document file names
        """
        distance = Embedding.vector.cosine_distance(list(query_vector))
        similarity = (1 - distance).label("similarity")

        query = (
            select(
                Embedding.document_id,
                Document.file_name,
                Embedding.content,
                Embedding.chunk_metadata,
                similarity,
            )
            .join(Document, Embedding.document_id == Document.id)
            .where(Embedding.user_id == user_id, (1 - distance) >= min_similarity)
            .order_by(distance)
            .limit(limit)
        )

        try:
            result = await self.session.execute(query)
            return [
                RetrievedChunk(
                    document_id=row.document_id,
                    file_name=row.file_name,
                    content=row.content,
                    metadata=row.chunk_metadata,
                    similarity=float(row.similarity or 0),
                )
                for row in result
            ]
        except SQLAlchemyError as e:
            logger.error(f"Error searching embeddings for user {user_id}: {e}")
            raise DatabaseError("Failed to search embeddings") from e

    async def closest_similarity(
        self, user_id: str, query_vector: Sequence[float]
    ) -> Optional[float]:
        """Similarity of the single closest chunk, ignoring any threshold."""
        distance = Embedding.vector.cosine_distance(list(query_vector))
        query = (
            select((1 - distance).label("similarity"))
            .join(Document, Embedding.document_id == Document.id)
            .where(Embedding.user_id == user_id)
            .order_by(distance)
            .limit(1)
        )

        try:
            result = await self.session.execute(query)
            value = result.scalar_one_or_none()
            return float(value) if value is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Error probing closest embedding for user {user_id}: {e}")
            raise DatabaseError("Failed to search embeddings") from e
