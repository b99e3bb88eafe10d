from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from hrms.core.config import settings


def engine_options(database_url: str) -> Dict[str, Any]:
    """Pool settings per backend.

    PostgreSQL (asyncpg): pre-ping and recycle idle connections after 5 minutes.
    SQLite (aiosqlite): used for local runs and tests, shares its connection
    across threads.
    """
    if make_url(database_url).get_backend_name() == "sqlite":
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_recycle": 300}


engine = create_async_engine(settings.database_url, echo=False, **engine_options(settings.database_url))

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db() -> AsyncIterator[AsyncSession]:
    """Request-scoped session; one per request."""
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Commit everything done inside the block, or roll all of it back and re-raise."""
    try:
        yield db
        await db.commit()
    except Exception:
        await db.rollback()
        raise
