"""Tests for DailyLimitGate — counting, daily reset, subscription."""

from datetime import date, datetime, timedelta

import pytest

from meligy.limits import DailyLimitGate
from meligy.storage import DAILY_MESSAGES_KEY, InMemoryStore


@pytest.fixture
def gate(store: InMemoryStore) -> DailyLimitGate:
    return DailyLimitGate(store)


async def test_fresh_counter(gate: DailyLimitGate, store: InMemoryStore) -> None:
    counter = await gate.read()
    assert counter.count == 0
    assert counter.last_reset_date == date.today().isoformat()
    assert (await store.get(DAILY_MESSAGES_KEY))["count"] == 0


async def test_limit_reached_after_25(gate: DailyLimitGate) -> None:
    for _ in range(24):
        await gate.increment_message_count()
    assert not await gate.is_limit_reached()
    assert await gate.remaining_messages() == 1

    await gate.increment_message_count()
    assert await gate.is_limit_reached()
    assert await gate.remaining_messages() == 0


async def test_yesterday_resets(store: InMemoryStore) -> None:
    yesterday = (date.today() - timedelta(days=1)).isoformat()
    await store.set(DAILY_MESSAGES_KEY, {"count": 25, "lastResetDate": yesterday})
    gate = DailyLimitGate(store)

    counter = await gate.read()

    assert counter.count == 0
    assert counter.last_reset_date == date.today().isoformat()
    assert (await store.get(DAILY_MESSAGES_KEY))["count"] == 0


async def test_corrupt_counter_resets(store: InMemoryStore) -> None:
    await store.set(DAILY_MESSAGES_KEY, {"count": -4, "lastResetDate": "nope"})
    assert (await DailyLimitGate(store).read()).count == 0


async def test_custom_limit(store: InMemoryStore) -> None:
    gate = DailyLimitGate(store, limit=1)
    await gate.increment_message_count()
    assert await gate.is_limit_reached()


async def test_subscription_flag(gate: DailyLimitGate) -> None:
    assert not await gate.is_subscribed()
    await gate.set_subscribed()
    assert await gate.is_subscribed()


def test_time_until_reset() -> None:
    assert DailyLimitGate.time_until_reset(datetime(2025, 1, 1, 22, 30)) == (1, 30)
    assert DailyLimitGate.time_until_reset(datetime(2025, 1, 1, 0, 0)) == (24, 0)
