# helpers/spam_guard.py
from datetime import datetime
from typing import Optional

from tortoise import timezone
from tortoise.expressions import F, Q

from models.call_blocklist import BlockedNumber


async def is_blocked(client_id: int, phone: Optional[str], now: Optional[datetime] = None) -> bool:
    """
    True when the caller is on this client's block list. Rows with an
    expired `blocked_until` no longer count; a null one never expires.
    Every hit bumps `hit_count`.
    """
    if not phone:
        return False
    now = now or timezone.now()

    active = BlockedNumber.filter(client_id=client_id, phone=phone).filter(
        Q(blocked_until__isnull=True) | Q(blocked_until__gt=now)
    )
    hits = await active.update(hit_count=F("hit_count") + 1)
    return bool(hits)


async def block_number(
    client_id: int,
    phone: str,
    reason: Optional[str] = None,
    blocked_until: Optional[datetime] = None,
) -> BlockedNumber:
    row, _ = await BlockedNumber.update_or_create(
        defaults={"reason": reason, "blocked_until": blocked_until},
        client_id=client_id,
        phone=phone,
    )
    return row
