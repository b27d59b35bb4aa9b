from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from hackportal.core.config import settings

# Create base class for models (can be defined before engine)
Base = declarative_base()


def get_database_url(url: str) -> str:
    """Get properly formatted database URL"""
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif url.startswith("sqlite:///"):
        url = url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def is_sqlite_url(url: str) -> bool:
    return "sqlite" in url


def build_engine(url: str) -> AsyncEngine:
    """
    Create an engine for the database-backed store.

    Connection pooling strategy:
    - SQLite: NullPool, with a busy timeout so a locked file waits instead of failing
    - PostgreSQL: pooled, sized by DB_POOL_SIZE / DB_MAX_OVERFLOW / DB_POOL_TIMEOUT
    """
    db_url = get_database_url(url)

    if is_sqlite_url(db_url):
        return create_async_engine(
            db_url,
            echo=settings.DB_ECHO,
            connect_args={"check_same_thread": False, "timeout": settings.STORE_TIMEOUT_SECONDS},
            poolclass=NullPool,
        )

    return create_async_engine(
        db_url,
        echo=settings.DB_ECHO,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=1800,  # 30 minutes
        pool_pre_ping=True,  # Verify connections before use
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to one engine"""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )
