"""Database package: async engine, sessions and the generation tables."""

from app.db.session import (
    AsyncSessionLocal,
    Base,
    async_engine,
    init_db,
    session_scope,
)

__all__ = [
    "AsyncSessionLocal",
    "Base",
    "async_engine",
    "init_db",
    "session_scope",
]
