from datetime import datetime, timezone
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from piclips.core.config import DatabaseSettings

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_engine(db_settings: DatabaseSettings) -> AsyncEngine:
    return create_async_engine(
        db_settings.database_url,
        echo=db_settings.debug_sql,
        future=True,
        poolclass=NullPool,
    )

def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

async def create_tables(engine: AsyncEngine):
    # models must be imported so their tables are registered on Base.metadata
    import piclips.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.sessionmaker() as session:
        yield session
