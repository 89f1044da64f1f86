"""Database session and engine setup using SQLAlchemy's async API."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from licensegate.config import Settings
from licensegate.db.base_class import Base

DATABASE_URL = Settings.from_env().database_url


def build_engine(url: str, **kwargs) -> AsyncEngine:
    connect_args = {}
    if url.startswith("sqlite"):
        # concurrent writers wait on the sqlite write lock instead of failing
        connect_args = {"check_same_thread": False, "timeout": 15}
    return create_async_engine(url, echo=False, connect_args=connect_args, **kwargs)


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
        class_=AsyncSession,
    )


async def init_models(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    # register the models on Base.metadata
    from licensegate.models import license, user  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


engine = build_engine(DATABASE_URL)
SessionLocal = build_sessionmaker(engine)
