"""
Database Engine and Session Factories

The engine and session factory are built by the application at startup and
handed to the storage gateway; nothing here is created at import time.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from shortlink.db.sqlite_adapter import get_database_adapter


def build_engine(database_url: str) -> AsyncEngine:
    """Create the async engine through the configured database adapter."""
    db_adapter = get_database_adapter()
    return db_adapter.create_engine(database_url)


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    """
    Create the async session factory bound to engine.

    expire_on_commit=False keeps returned rows readable after the
    gateway's transaction has been committed and the session closed.
    """
    return async_sessionmaker(
        engine,
        class_=SQLModelAsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
