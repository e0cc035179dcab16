"""Repository for per-user provider settings."""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rag_engine.database.models import UserSettings
from rag_engine.repositories.base import BaseRepository
from rag_engine.utils.errors import DatabaseError

logger = logging.getLogger(__name__)


class SettingsRepository(BaseRepository[UserSettings]):
    """Repository for the settings table."""

    def __init__(self, session: AsyncSession):
        super().__init__(UserSettings, session)

    async def get_by_user_id(self, user_id: str) -> Optional[UserSettings]:
        """Get the settings row of a user, if any."""
        try:
            result = await self.session.execute(
                select(UserSettings).where(UserSettings.user_id == user_id)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error getting settings for user {user_id}: {e}")
            raise DatabaseError("Failed to retrieve user settings") from e
