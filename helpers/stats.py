# helpers/stats.py
"""
Additive counters shared with the rest of the system.

Nothing here reads a value and writes it back: every change is a single
`col = col + n` UPDATE, and the row for a new day is created under the
(client, date) unique constraint. A create that loses that race falls
back to the increment, so concurrent callers never drop a count.
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from tortoise import timezone
from tortoise.exceptions import IntegrityError
from tortoise.expressions import F

from models.client import Client
from models.daily_stats import DailyStats


def _today() -> date:
    return timezone.now().date()


async def _increment_existing(client_id: int, day: date, increments: dict) -> int:
    return await DailyStats.filter(client_id=client_id, date=day).update(
        **{field: F(field) + n for field, n in increments.items()}
    )


async def increment_daily_stats(
    client_id: int,
    *,
    missed_calls: int = 0,
    messages: int = 0,
    conversations: int = 0,
    day: Optional[date] = None,
) -> None:
    day = day or _today()
    increments = {
        field: n
        for field, n in (
            ("missed_calls_captured", missed_calls),
            ("messages_sent", messages),
            ("conversations_started", conversations),
        )
        if n
    }
    if not increments:
        return

    if await _increment_existing(client_id, day, increments):
        return

    try:
        await DailyStats.create(client_id=client_id, date=day, **increments)
    except IntegrityError:
        # someone else created today's row between our update and insert
        await _increment_existing(client_id, day, increments)


async def increment_monthly_messages(client_id: int, n: int = 1) -> None:
    await Client.filter(id=client_id).update(monthly_message_count=F("monthly_message_count") + n)
