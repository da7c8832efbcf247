"""Daily message limit for free-tier clients."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING

from pydantic import ValidationError

from meligy.config import settings
from meligy.models import DailyMessageCounter
from meligy.storage import DAILY_MESSAGES_KEY, SUBSCRIBED_KEY

if TYPE_CHECKING:
    from meligy.storage import KeyValueStore

logger = logging.getLogger(__name__)


class DailyLimitGate:
    """Per-client message counter that resets on each new calendar day.

    The counter is persisted under ``meleji-daily-message-data``. Subscribed
    clients bypass the gate entirely.
    """

    def __init__(self, store: KeyValueStore, limit: int | None = None) -> None:
        self._store = store
        self.limit = limit if limit is not None else settings.daily_message_limit

    async def read(self) -> DailyMessageCounter:
        """Return today's counter, resetting it if the stored date is stale."""
        today = date.today().isoformat()
        raw = await self._store.get(DAILY_MESSAGES_KEY)
        counter = None
        if raw:
            try:
                counter = DailyMessageCounter.model_validate(raw)
            except ValidationError:
                logger.warning("Stored daily counter is invalid, resetting")

        if counter is None or counter.last_reset_date != today:
            counter = DailyMessageCounter(count=0, last_reset_date=today)
            await self._store.set(DAILY_MESSAGES_KEY, counter.dump())
        return counter

    async def is_limit_reached(self) -> bool:
        return (await self.read()).count >= self.limit

    async def increment_message_count(self) -> DailyMessageCounter:
        counter = await self.read()
        counter.count += 1
        await self._store.set(DAILY_MESSAGES_KEY, counter.dump())
        logger.debug("Daily message count now %d/%d", counter.count, self.limit)
        return counter

    async def remaining_messages(self) -> int:
        return max(0, self.limit - (await self.read()).count)

    @staticmethod
    def time_until_reset(now: datetime | None = None) -> tuple[int, int]:
        """Hours and minutes until local midnight."""
        now = now or datetime.now()
        midnight = datetime.combine(now.date() + timedelta(days=1), datetime.min.time())
        minutes = int((midnight - now).total_seconds() // 60)
        return divmod(minutes, 60)

    # -- Subscription ----------------------------------------------------------

    async def is_subscribed(self) -> bool:
        return bool(await self._store.get(SUBSCRIBED_KEY, False))

    async def set_subscribed(self, subscribed: bool = True) -> None:
        await self._store.set(SUBSCRIBED_KEY, subscribed)
        logger.info("Subscription set to %s", subscribed)
