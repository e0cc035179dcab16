"""Pytest configuration and fixtures."""

import base64
from typing import List, Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from rag_engine.config import get_settings
from rag_engine.database.models import Base, Document, UserSettings
from rag_engine.models.provider import ProviderConfig

# Test database URL (in-memory SQLite for unit tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_ENCRYPTION_KEY = base64.b64encode(b"k" * 32).decode("ascii")
DIMENSION = get_settings().embedding.dimension


def fake_vector(seed: float = 0.1) -> List[float]:
    """Vector of the configured dimension."""
    return [seed] * DIMENSION


@pytest.fixture
def make_vector():
    """Build vectors of the configured dimension."""
    return fake_vector


@pytest.fixture
async def engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Cleanup
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def encryption_key(monkeypatch):
    """Install a known encryption key on the global settings."""
    monkeypatch.setattr(get_settings().security, "encryption_key", TEST_ENCRYPTION_KEY)
    return TEST_ENCRYPTION_KEY


@pytest.fixture
def provider_config():
    """Plaintext provider configuration."""
    return ProviderConfig(
        base_url="https://llm.example.com/v1",
        api_key="sk-test",
        embedding_model="text-embedding-3-small",
    )


@pytest.fixture
def create_document(session_factory):
    """Factory that inserts a document row and returns its ID."""

    async def _create(
        content: str,
        user_id: str = "user-1",
        status: str = "uploading",
        file_name: str = "notes.md",
        document_id: Optional[str] = None,
    ) -> str:
        async with session_factory() as session, session.begin():
            document = Document(
                user_id=user_id,
                file_name=file_name,
                file_type=file_name.rsplit(".", 1)[-1],
                file_size=len(content.encode("utf-8")),
                content=content,
                status=status,
            )
            if document_id:
                document.id = document_id
            session.add(document)
            await session.flush()
            return document.id

    return _create


@pytest.fixture
def create_user_settings(session_factory):
    """Factory that inserts a settings row."""

    async def _create(user_id: str = "user-1", **values) -> None:
        async with session_factory() as session, session.begin():
            session.add(UserSettings(user_id=user_id, **values))

    return _create
