import logging
from typing import AsyncIterator

from fastapi import Request
from sqlmodel import SQLModel
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

import models  # noqa: F401  registers the bookings table on SQLModel.metadata

logger = logging.getLogger(__name__)


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    return create_async_engine(database_url, echo=echo, future=True)


def create_session_factory(engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        # This creates the tables (and the slot unique constraint) if they don't exist
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Connected to database, schema ready")


async def close_db(engine: AsyncEngine) -> None:
    await engine.dispose()
    logger.info("Database connections closed")


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    async_session = request.app.state.session_factory
    async with async_session() as session:
        yield session
