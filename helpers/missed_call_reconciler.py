# helpers/missed_call_reconciler.py
"""
Fallback path: find ledger entries whose dial-result webhook never came
and ask the provider what happened to them.

Only entries older than dial timeout + margin are looked at, so a call
whose fast path is still legitimately in flight is never second-guessed.
Each entry stands alone: a provider error on one leaves it for the next
run and the rest of the batch carries on.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from helpers import call_ledger
from helpers.metrics import reconcile_provider_errors_total
from helpers.missed_call import handle_missed_call
from helpers.outcome_classifier import CallOutcome, classify_call_outcome
from helpers.settings import Settings
from helpers.twilio_gateway import CallNotFoundError, ProviderLookupError, TwilioGateway
from models.active_call import ActiveCall

logger = logging.getLogger("missed_call_reconciler")


@dataclass
class ReconcileSummary:
    checked: int = 0
    processed: int = 0
    missed_detected: int = 0
    still_active: int = 0
    errors: int = 0

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


async def _reconcile_entry(
    settings: Settings,
    gateway: TwilioGateway,
    call: ActiveCall,
    summary: ReconcileSummary,
) -> None:
    try:
        status = await asyncio.wait_for(
            gateway.fetch_call_status(call.call_sid),
            timeout=settings.provider_timeout_seconds,
        )
    except CallNotFoundError:
        logger.info("[reconcile] call %s not found at provider, cleaning up", call.call_sid)
        await call_ledger.discard(call)
        summary.processed += 1
        return
    except (ProviderLookupError, asyncio.TimeoutError) as e:
        reconcile_provider_errors_total.inc()
        summary.errors += 1
        logger.error("[reconcile] status lookup failed call_sid=%s: %s", call.call_sid, str(e) or "timeout")
        return

    outcome = classify_call_outcome(status.status)
    logger.info(
        "[reconcile] call_sid=%s provider_status=%s duration=%s outcome=%s",
        call.call_sid, status.status, status.duration, outcome.value,
    )

    if outcome is CallOutcome.INDETERMINATE:
        summary.still_active += 1
        return

    if outcome is CallOutcome.MISSED:
        summary.missed_detected += 1
        try:
            await handle_missed_call(
                settings,
                gateway,
                caller_phone=call.caller_phone,
                twilio_number=call.twilio_number,
                call_sid=call.call_sid,
                path="reconciler",
            )
        except Exception as e:
            logger.error("[reconcile] missed-call handling failed call_sid=%s: %s", call.call_sid, e, exc_info=True)

    await call_ledger.discard(call)
    summary.processed += 1


async def reconcile_missed_calls(
    settings: Settings,
    gateway: TwilioGateway,
    *,
    now: Optional[datetime] = None,
) -> ReconcileSummary:
    purged = await call_ledger.purge_resolved(settings.stale_after_seconds, now=now)
    if purged:
        logger.info("[reconcile] purged %s resolved ledger entries", purged)

    stale = await call_ledger.find_stale(
        settings.stale_after_seconds,
        unresolved_only=True,
        limit=settings.reconcile_batch_limit,
        now=now,
    )
    summary = ReconcileSummary(checked=len(stale))
    if stale:
        logger.info("[reconcile] found %s calls to check", len(stale))

    for call in stale:
        try:
            await _reconcile_entry(settings, gateway, call, summary)
        except Exception as e:
            # ledger/db hiccup on one entry; leave it for the next run
            summary.errors += 1
            logger.exception("[reconcile] unexpected error call_sid=%s: %s", call.call_sid, e)

    return summary
