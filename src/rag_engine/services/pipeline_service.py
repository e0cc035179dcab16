"""Document indexing pipeline: chunk, embed and atomically replace embeddings."""

import time
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rag_engine.database.session import get_session_factory
from rag_engine.models.chunk import TextChunk
from rag_engine.models.document import DocumentStatus, ProcessDocumentResult
from rag_engine.models.provider import ProviderConfig
from rag_engine.repositories.document_repository import DocumentRepository
from rag_engine.repositories.embedding_repository import EmbeddingRepository
from rag_engine.services.chunking_service import ChunkingService
from rag_engine.services.embedding_service import EmbeddingService
from rag_engine.utils.errors import (
    DatabaseError,
    DimensionMismatchError,
    NotFoundError,
    TransactionError,
)
from rag_engine.utils.logging import get_logger, log_error

logger = get_logger("pipeline_service")


class DocumentPipeline:
    """
    (Re)index one document.

    Processing pipeline:
    1. Load the document scoped to its owner
    2. Mark it processing
    3. Chunk the content
    4. Embed the chunks
    5. Replace all embedding rows and mark it completed in one transaction

    Any failure after the document is found marks it failed and re-raises.
    """

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        chunking_service: Optional[ChunkingService] = None,
        embedding_service: Optional[EmbeddingService] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            session_factory: Session factory (defaults to the global one)
            chunking_service: Chunker (defaults to ChunkingService())
            embedding_service: Embedder (defaults to EmbeddingService())
        """
        self._session_factory = session_factory or get_session_factory()
        self.chunking_service = chunking_service or ChunkingService()
        self.embedding_service = embedding_service or EmbeddingService()

    async def process_document(
        self,
        document_id: str,
        user_id: str,
        config: ProviderConfig,
        *,
        content: Optional[str] = None,
        mark_processing: bool = True,
        mark_failed: bool = True,
    ) -> ProcessDocumentResult:
        """
        Index a document, replacing any previous embeddings.

        Args:
            document_id: Document ID
            user_id: Owner user ID
            config: Provider configuration used for embeddings
            content: New content to index and persist; stored content when None
            mark_processing: Commit status=processing before work starts
            mark_failed: Mark the document failed when processing fails; when False
                the status held before this run is restored instead

        Returns:
            ProcessDocumentResult with the persisted chunk count

        Raises:
            NotFoundError: If the document does not exist for this user
            DimensionMismatchError: If vectors do not line up with chunks
            TransactionError: If the replacement transaction fails
        """
        started = time.perf_counter()

        async with self._session_factory() as session:
            document = await DocumentRepository(session).get_for_user(document_id, user_id)
            if document is None:
                raise NotFoundError("Document", document_id)
            stored_content = document.content
            previous_status = DocumentStatus(document.status)

        text = content if content is not None else stored_content
        logger.info(
            f"Processing document: document_id={document_id}, user_id={user_id}, "
            f"length={len(text)}, inline_content={content is not None}"
        )

        try:
            if mark_processing:
                await self._set_status(document_id, DocumentStatus.PROCESSING)

            chunks = self.chunking_service.split(text)
            logger.info(f"Document chunked: document_id={document_id}, chunks={len(chunks)}")

            vectors: List[List[float]] = []
            if chunks:
                vectors = await self.embedding_service.generate_embeddings(
                    config, [chunk.content for chunk in chunks]
                )
            if len(vectors) != len(chunks):
                raise DimensionMismatchError(
                    "Vector count does not match chunk count",
                    expected=len(chunks),
                    actual=len(vectors),
                    details={"document_id": document_id},
                )

            await self._replace_embeddings(document_id, user_id, chunks, vectors, content)

        except Exception as e:
            log_error(e, context={"document_id": document_id, "user_id": user_id})
            if mark_failed:
                await self._set_status_best_effort(document_id, DocumentStatus.FAILED)
            elif mark_processing:
                await self._set_status_best_effort(document_id, previous_status)
            raise

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        logger.info(
            f"Document indexed successfully: document_id={document_id}, "
            f"chunks={len(chunks)}, time_ms={elapsed_ms}"
        )
        return ProcessDocumentResult(
            document_id=document_id,
            chunk_count=len(chunks),
            status=DocumentStatus.COMPLETED,
            processing_time_ms=elapsed_ms,
        )

    async def _set_status(self, document_id: str, status: DocumentStatus) -> None:
        async with self._session_factory() as session, session.begin():
            await DocumentRepository(session).update_status(document_id, status)

    async def _replace_embeddings(
        self,
        document_id: str,
        user_id: str,
        chunks: List[TextChunk],
        vectors: List[List[float]],
        content: Optional[str],
    ) -> None:
        """Delete, insert and mark completed as a single unit of work."""
        try:
            async with self._session_factory() as session, session.begin():
                documents = DocumentRepository(session)
                embeddings = EmbeddingRepository(session)

                deleted = await embeddings.delete_by_document(document_id)
                await embeddings.bulk_insert(document_id, user_id, chunks, vectors)
                if content is not None:
                    await documents.update_content(document_id, content)
                await documents.update_status(document_id, DocumentStatus.COMPLETED)

                logger.debug(
                    f"Replacing embeddings: document_id={document_id}, "
                    f"deleted={deleted}, inserted={len(chunks)}"
                )
        except (SQLAlchemyError, DatabaseError) as e:
            raise TransactionError(
                f"Failed to replace embeddings for document {document_id}",
                document_id=document_id,
            ) from e

    async def _set_status_best_effort(self, document_id: str, status: DocumentStatus) -> None:
        """Best effort; a failure here is logged and never replaces the original error."""
        try:
            await self._set_status(document_id, status)
        except Exception as update_error:
            logger.error(
                f"Failed to update status to {status.value}: document_id={document_id} - {update_error}",
                exc_info=True,
            )
