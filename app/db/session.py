# app/db/session.py
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.config import get_settings
from app.db.base import Base

# Import ORM models so that Base.metadata is aware of them
from app.models.appointment import Appointment  # noqa: F401

settings = get_settings()

IS_TEST = settings.APP_ENV.lower() == "test"

engine = create_async_engine(
    settings.DB_URL,
    echo=False,
    future=True,
    # Tests open the app from more than one event loop, so never reuse
    # pooled connections across them.
    poolclass=NullPool if IS_TEST else None,
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    autoflush=False,
    expire_on_commit=False,
    class_=AsyncSession,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides an async SQLAlchemy session.

    The session is automatically closed when the request is completed.
    """
    async with AsyncSessionLocal() as session:
        yield session


async def init_db() -> None:
    """
    Create any missing tables for the current models.

    Safe to call on every application startup; existing tables and rows are
    left untouched. Replace with Alembic migrations once the schema starts
    changing in place.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
