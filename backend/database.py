# database.py - Async database setup
import os
import logging
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

logger = logging.getLogger("taskboard.database")

# Database configuration
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./taskboard.db")


def is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def configure_sqlite_connections(engine) -> None:
    """Per-connection SQLite setup.

    SQLite ignores ON DELETE CASCADE unless the foreign_keys pragma is set, and
    its built-in lower() only folds ASCII, which would make case-insensitive
    search miss non-ASCII text.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()
        dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)


def build_engine(url: str = DATABASE_URL):
    """Create the async engine; pooling options only apply to server databases"""
    echo = os.getenv("SQL_ECHO", "false").lower() == "true"
    if is_sqlite(url):
        engine = create_async_engine(url, echo=echo, future=True)
        configure_sqlite_connections(engine)
        return engine

    return create_async_engine(
        url,
        echo=echo,
        future=True,
        pool_size=20,
        max_overflow=0,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


engine = build_engine()

# Create async session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)


async def get_db_session():
    """Dependency for getting database session (FastAPI Depends)"""
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db():
    """Initialize database and create tables"""
    from models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database initialized (%s)", engine.url.render_as_string(hide_password=True))


async def close_db():
    """Close database connection pool"""
    await engine.dispose()

