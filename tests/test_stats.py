import asyncio
from datetime import date

import pytest

from helpers.stats import increment_daily_stats, increment_monthly_messages
from models.daily_stats import DailyStats


@pytest.mark.asyncio
async def test_concurrent_increments_are_not_lost(client):
    day = date(2026, 10, 18)

    await asyncio.gather(
        *(increment_daily_stats(client.id, missed_calls=1, messages=1, day=day) for _ in range(10))
    )

    rows = await DailyStats.filter(client_id=client.id, date=day)
    assert len(rows) == 1
    assert rows[0].missed_calls_captured == 10
    assert rows[0].messages_sent == 10
    assert rows[0].conversations_started == 0


@pytest.mark.asyncio
async def test_days_are_kept_apart(client):
    await increment_daily_stats(client.id, conversations=1, day=date(2026, 10, 17))
    await increment_daily_stats(client.id, conversations=2, day=date(2026, 10, 18))

    assert await DailyStats.filter(client_id=client.id).count() == 2
    row = await DailyStats.get(client_id=client.id, date=date(2026, 10, 18))
    assert row.conversations_started == 2


@pytest.mark.asyncio
async def test_zero_increment_writes_nothing(client):
    await increment_daily_stats(client.id)
    assert await DailyStats.all().count() == 0


@pytest.mark.asyncio
async def test_monthly_counter_accumulates(client):
    await asyncio.gather(*(increment_monthly_messages(client.id) for _ in range(5)))
    await increment_monthly_messages(client.id, n=3)

    await client.refresh_from_db()
    assert client.monthly_message_count == 8
