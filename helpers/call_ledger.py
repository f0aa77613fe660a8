# helpers/call_ledger.py
"""
Durable record of forwarded call legs that are waiting for an outcome.

The ledger is what lets the reconciler find calls whose dial-result
webhook never arrived. Losing a row only costs fallback coverage for that
call, so writes here never get in the way of the call itself.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from tortoise import timezone
from tortoise.exceptions import IntegrityError

from helpers.metrics import ledger_write_failures_total
from models.active_call import ActiveCall

logger = logging.getLogger("call_ledger")


async def open_call(
    call_sid: str,
    client_id: int,
    caller_phone: str,
    twilio_number: str,
    received_at: Optional[datetime] = None,
) -> Optional[ActiveCall]:
    try:
        return await ActiveCall.create(
            call_sid=call_sid,
            client_id=client_id,
            caller_phone=caller_phone,
            twilio_number=twilio_number,
            received_at=received_at or timezone.now(),
        )
    except IntegrityError:
        # provider re-delivered the inbound webhook for the same leg
        existing = await ActiveCall.get_or_none(call_sid=call_sid)
        if existing is not None:
            return existing
        ledger_write_failures_total.inc()
        logger.error("[ledger] insert conflict but no row for call_sid=%s", call_sid)
        return None
    except Exception as e:
        ledger_write_failures_total.inc()
        logger.error("[ledger] failed to store active call call_sid=%s error=%s", call_sid, e)
        return None


async def mark_resolved(call_sid: str) -> bool:
    """
    Flip the row to processed. Only the caller that performs the
    transition gets True; repeats and unknown sids are a quiet no-op.
    """
    updated = await ActiveCall.filter(call_sid=call_sid, processed=False).update(
        processed=True,
        processed_at=timezone.now(),
    )
    return bool(updated)


async def find_stale(
    older_than_seconds: int,
    unresolved_only: bool = True,
    limit: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[ActiveCall]:
    cutoff = (now or timezone.now()) - timedelta(seconds=older_than_seconds)
    qs = ActiveCall.filter(received_at__lte=cutoff).select_related("client")
    if unresolved_only:
        qs = qs.filter(processed=False)
    qs = qs.order_by("received_at", "id")
    if limit:
        qs = qs.limit(limit)
    return await qs


async def discard(call: ActiveCall) -> None:
    await mark_resolved(call.call_sid)
    await ActiveCall.filter(id=call.id).delete()


async def close(call_sid: str) -> bool:
    """
    Resolve and remove the row. Returns whether this caller performed the
    resolution transition; the row is gone afterwards either way.
    """
    resolved = await mark_resolved(call_sid)
    await ActiveCall.filter(call_sid=call_sid).delete()
    return resolved


async def purge_resolved(older_than_seconds: int, now: Optional[datetime] = None) -> int:
    """Drop resolved rows a crashed resolver left behind."""
    cutoff = (now or timezone.now()) - timedelta(seconds=older_than_seconds)
    return await ActiveCall.filter(processed=True, received_at__lte=cutoff).delete()
