"""Repository for document status and content updates."""

import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rag_engine.database.models import Document
from rag_engine.models.document import DocumentStatus
from rag_engine.repositories.base import BaseRepository
from rag_engine.utils.errors import DatabaseError

logger = logging.getLogger(__name__)


class DocumentRepository(BaseRepository[Document]):
    """Repository for documents owned by the web application."""

    def __init__(self, session: AsyncSession):
        super().__init__(Document, session)

    async def get_for_user(self, document_id: str, user_id: str) -> Optional[Document]:
        """
        Get a document only if it belongs to the given user.

        Args:
            document_id: Document ID
            user_id: Owner user ID

        Returns:
            Document or None if missing or owned by someone else
        """
        try:
            result = await self.session.execute(
                select(Document).where(Document.id == document_id, Document.user_id == user_id)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error getting document {document_id} for user {user_id}: {e}")
            raise DatabaseError("Failed to retrieve document") from e

    async def update_status(self, document_id: str, status: DocumentStatus) -> bool:
        """
        Set the processing status of a document.

        Returns:
            True if a row was updated
        """
        try:
            result = await self.session.execute(
                update(Document)
                .where(Document.id == document_id)
                .values(status=status.value)
                .execution_options(synchronize_session="fetch")
            )
            logger.debug(f"Document {document_id} status set to {status.value}")
            return result.rowcount > 0
        except SQLAlchemyError as e:
            logger.error(f"Error updating status of document {document_id}: {e}")
            raise DatabaseError("Failed to update document status") from e

    async def update_content(self, document_id: str, content: str) -> bool:
        """
        Replace the stored content and recompute the file size in UTF-8 bytes.

        Returns:
            True if a row was updated
        """
        try:
            result = await self.session.execute(
                update(Document)
                .where(Document.id == document_id)
                .values(content=content, file_size=len(content.encode("utf-8")))
                .execution_options(synchronize_session="fetch")
            )
            return result.rowcount > 0
        except SQLAlchemyError as e:
            logger.error(f"Error updating content of document {document_id}: {e}")
            raise DatabaseError("Failed to update document content") from e
