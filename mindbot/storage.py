"""Rate-limit store — async SQLAlchemy access to per-user quota records.

All mutating operations are single UPDATE/INSERT statements so that two
messages from the same user can never both act on the same pre-update count.
"""
import logging
import time
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .errors import StorageError
from .models import RateLimitEntry

logger = logging.getLogger(__name__)


@dataclass
class RateLimitRecord:
    user_id: str
    message_count: int
    reset_time: int  # epoch ms
    daily_limit: int

    @property
    def remaining(self) -> int:
        return max(self.daily_limit - self.message_count, 0)


def _to_record(row: RateLimitEntry) -> RateLimitRecord:
    return RateLimitRecord(
        user_id=row.user_id,
        message_count=row.message_count,
        reset_time=row.reset_time,
        daily_limit=row.daily_limit,
    )


class RateLimitStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get(self, user_id: str) -> Optional[RateLimitRecord]:
        t0 = time.monotonic()
        try:
            async with self._session_factory() as db:
                row = await db.get(RateLimitEntry, user_id)
                record = _to_record(row) if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"get {user_id} failed: {e}") from e
        logger.debug(f"Store get {user_id}: {record} ({(time.monotonic() - t0) * 1000:.1f}ms)")
        return record

    async def put(self, record: RateLimitRecord) -> None:
        try:
            async with self._session_factory() as db:
                await db.merge(RateLimitEntry(
                    user_id=record.user_id,
                    message_count=record.message_count,
                    reset_time=record.reset_time,
                    daily_limit=record.daily_limit,
                ))
                await db.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"put {record.user_id} failed: {e}") from e

    async def create_if_absent(self, record: RateLimitRecord) -> RateLimitRecord:
        """Insert the record unless one exists; return whichever is stored."""
        stmt = sqlite_insert(RateLimitEntry).values(
            user_id=record.user_id,
            message_count=record.message_count,
            reset_time=record.reset_time,
            daily_limit=record.daily_limit,
        ).on_conflict_do_nothing(index_elements=["user_id"])
        try:
            async with self._session_factory() as db:
                await db.execute(stmt)
                await db.commit()
                row = await db.get(RateLimitEntry, record.user_id, populate_existing=True)
                stored = _to_record(row)
        except SQLAlchemyError as e:
            raise StorageError(f"create {record.user_id} failed: {e}") from e
        return stored

    async def update(
        self,
        user_id: str,
        message_count: Optional[int] = None,
        increment: Optional[int] = None,
        reset_time: Optional[int] = None,
    ) -> None:
        """Set absolute fields, or bump message_count by a relative increment."""
        if message_count is not None and increment is not None:
            raise ValueError("message_count and increment are mutually exclusive")
        values = {}
        if message_count is not None:
            values["message_count"] = message_count
        if increment is not None:
            values["message_count"] = RateLimitEntry.message_count + increment
        if reset_time is not None:
            values["reset_time"] = reset_time
        if not values:
            return
        stmt = update(RateLimitEntry).where(RateLimitEntry.user_id == user_id).values(**values)
        try:
            async with self._session_factory() as db:
                await db.execute(stmt, execution_options={"synchronize_session": False})
                await db.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"update {user_id} failed: {e}") from e

    async def increment_if_below_limit(self, user_id: str) -> Optional[RateLimitRecord]:
        """Atomically count one message if quota remains.

        Returns the updated record, or None when the user is already at
        (or over) their daily limit, in which case nothing is written.
        """
        stmt = (
            update(RateLimitEntry)
            .where(RateLimitEntry.user_id == user_id)
            .where(RateLimitEntry.message_count < RateLimitEntry.daily_limit)
            .values(message_count=RateLimitEntry.message_count + 1)
        )
        return await self._conditional_update(user_id, stmt)

    async def reset_window(self, user_id: str, expired_reset_time: int, next_reset_time: int,
                           message_count: int = 1) -> Optional[RateLimitRecord]:
        """Start a new window, only if the stored window is still the expired one.

        Returns the updated record, or None if another request already reset it.
        """
        stmt = (
            update(RateLimitEntry)
            .where(RateLimitEntry.user_id == user_id)
            .where(RateLimitEntry.reset_time == expired_reset_time)
            .values(message_count=message_count, reset_time=next_reset_time)
        )
        return await self._conditional_update(user_id, stmt)

    async def _conditional_update(self, user_id: str, stmt) -> Optional[RateLimitRecord]:
        try:
            async with self._session_factory() as db:
                result = await db.execute(stmt, execution_options={"synchronize_session": False})
                if result.rowcount == 0:
                    await db.rollback()
                    return None
                row = await db.get(RateLimitEntry, user_id, populate_existing=True)
                record = _to_record(row)
                await db.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"conditional update {user_id} failed: {e}") from e
        return record
