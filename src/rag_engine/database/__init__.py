"""Database package for SQLAlchemy models and session management."""

from rag_engine.database.connection import (
    check_connection,
    close_engine,
    create_engine,
    get_database_url,
    get_engine,
)
from rag_engine.database.models import Base, Document, Embedding, UserSettings
from rag_engine.database.session import (
    close_db,
    get_session_context,
    get_session_factory,
    init_db,
)

__all__ = [
    "Base",
    "Document",
    "Embedding",
    "UserSettings",
    "check_connection",
    "close_engine",
    "create_engine",
    "get_database_url",
    "get_engine",
    "close_db",
    "get_session_context",
    "get_session_factory",
    "init_db",
]
