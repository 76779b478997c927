"""Per-user daily message quota.

Each user is either Active (message_count < daily_limit) or Exhausted; the
window returns to Active at reset_time, the next UTC midnight. When the store
is unreachable the limiter fails open and admits the message.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

from .storage import RateLimitRecord, RateLimitStore
from .telemetry import log_rate_limit

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_epoch_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def next_utc_midnight(now: datetime) -> datetime:
    """First UTC midnight strictly after ``now``."""
    now = now.astimezone(timezone.utc)
    return datetime(now.year, now.month, now.day, tzinfo=timezone.utc) + timedelta(days=1)


class RateLimiter:
    def __init__(
        self,
        store: RateLimitStore,
        default_daily_limit: int = 10,
        privileged_user_ids: Iterable[str] = (),
        clock: Callable[[], datetime] = _utcnow,
    ):
        if default_daily_limit <= 0:
            raise ValueError("default_daily_limit must be positive")
        self.store = store
        self.default_daily_limit = default_daily_limit
        self.privileged_user_ids = frozenset(str(uid) for uid in privileged_user_ids)
        self._clock = clock

    async def check_and_increment(self, user_id: str) -> bool:
        """Count one message for ``user_id``. True = admitted, False = quota exhausted."""
        if user_id in self.privileged_user_ids:
            logger.debug(f"Quota bypass for privileged user {user_id}")
            return True

        try:
            return await self._check_and_increment(user_id)
        except Exception as e:
            logger.error(f"Rate limiting failed for {user_id}, admitting: {e}", exc_info=True)
            return True

    async def _check_and_increment(self, user_id: str) -> bool:
        now = self._clock()
        entry = await self._get_or_create(user_id, now)

        if to_epoch_ms(now) >= entry.reset_time:
            renewed = await self.store.reset_window(
                user_id,
                expired_reset_time=entry.reset_time,
                next_reset_time=to_epoch_ms(next_utc_midnight(now)),
            )
            if renewed is not None:
                logger.info(f"Quota window reset for {user_id}")
                self._report(user_id, True, renewed)
                return True
            # Another request renewed the window first; count against the new one.

        updated = await self.store.increment_if_below_limit(user_id)
        if updated is None:
            self._report(user_id, False, entry)
            return False
        self._report(user_id, True, updated)
        return True

    async def _get_or_create(self, user_id: str, now: datetime) -> RateLimitRecord:
        entry = await self.store.get(user_id)
        if entry is not None:
            return entry
        return await self.store.create_if_absent(RateLimitRecord(
            user_id=user_id,
            message_count=0,
            reset_time=to_epoch_ms(next_utc_midnight(now)),
            daily_limit=self.default_daily_limit,
        ))

    @staticmethod
    def _report(user_id: str, admitted: bool, record: Optional[RateLimitRecord]) -> None:
        log_rate_limit(
            user_id,
            admitted,
            remaining=record.remaining if record else None,
            reset_time=record.reset_time if record else None,
        )
