"""SQLAlchemy async session management."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rag_engine.database.connection import check_connection, close_engine, get_engine

logger = logging.getLogger(__name__)

# Global session factory
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory."""
    global _session_factory
    if _session_factory is None:
        engine = get_engine()
        _session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
            autocommit=False,
        )
        logger.info("Session factory created")
    return _session_factory


@asynccontextmanager
async def get_session_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Context manager for database sessions.

    Commits on success and rolls back on any error.

    Usage:
        async with get_session_context() as session:
            config = await ProviderConfigService(session).load(user_id)
    """
    session_factory = get_session_factory()
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        except Exception as e:
            await session.rollback()
            logger.error(f"Unexpected error in database session: {e}")
            raise
        finally:
            await session.close()


async def init_db(create_tables: bool = False) -> None:
    """
    Verify connectivity and optionally create the pgvector extension and tables.

    Table creation is meant for local development; deployed databases are
    migrated by the owning web application.
    """
    is_connected = await check_connection()
    if not is_connected:
        logger.warning("Database connection check failed")
        return

    if create_tables:
        from rag_engine.database.models import Base

        engine = get_engine()
        async with engine.begin() as conn:
            if engine.dialect.name == "postgresql":
                await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    logger.info("Database connection initialized successfully")


async def close_db() -> None:
    """Close database connections."""
    global _session_factory
    try:
        await close_engine()
        _session_factory = None
        logger.info("Database connections closed")
    except Exception as e:
        logger.error(f"Error closing database connections: {e}")
