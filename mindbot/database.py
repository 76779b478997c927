"""Async SQLite database engine, session factory, and initialization."""
import logging
import os
from typing import Tuple

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def create_engine_and_factory(database_url: str) -> Tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """The rate-limit store relies on SQLite upserts; other backends are rejected."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        raise ValueError(f"Unsupported database (SQLite only): {url.render_as_string(hide_password=True)}")
    engine = create_async_engine(database_url, echo=False)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    return engine, factory


async def init_db(engine: AsyncEngine):
    """Create all tables (and the SQLite data directory if needed)."""
    url = engine.url
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        os.makedirs(os.path.dirname(os.path.abspath(url.database)), exist_ok=True)

    async with engine.begin() as conn:
        from . import models  # noqa: ensure models are registered
        await conn.run_sync(Base.metadata.create_all)

    logger.info(f"Database initialized at {url.render_as_string(hide_password=True)}")
