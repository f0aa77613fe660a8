# helpers/dial_outcome.py
"""
Fast path: the provider's dial-completion callback for a forwarded leg.

Runs the whole missed-call flow inline and then closes the ledger entry.
Nothing here is allowed to raise into the webhook handler; a failed text
is logged and not retried (the ledger is closed either way, so the
reconciler will not pick it up again).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from helpers import call_ledger
from helpers.missed_call import MissedCallResult, handle_missed_call
from helpers.outcome_classifier import CallOutcome, classify_call_outcome
from helpers.settings import Settings
from helpers.twilio_gateway import TwilioGateway

logger = logging.getLogger("dial_outcome")


@dataclass
class DialOutcomeResult:
    call_sid: str
    outcome: CallOutcome
    effect: Optional[MissedCallResult] = None
    error: Optional[str] = None
    ledger_resolved: bool = False


async def resolve_dial_outcome(
    settings: Settings,
    gateway: TwilioGateway,
    *,
    call_sid: str,
    dial_status: Optional[str],
    caller_phone: str,
    twilio_number: str,
    dial_duration: Optional[int] = None,
) -> DialOutcomeResult:
    outcome = classify_call_outcome(
        dial_status,
        dial_duration=dial_duration,
        voicemail_threshold_seconds=settings.voicemail_threshold_seconds,
    )
    result = DialOutcomeResult(call_sid=call_sid, outcome=outcome)

    logger.info(
        "[dial-result] call_sid=%s dial_status=%s duration=%s outcome=%s",
        call_sid, dial_status, dial_duration, outcome.value,
    )

    if outcome is CallOutcome.MISSED:
        try:
            result.effect = await handle_missed_call(
                settings,
                gateway,
                caller_phone=caller_phone,
                twilio_number=twilio_number,
                call_sid=call_sid,
                path="webhook",
            )
        except Exception as e:
            result.error = str(e)
            logger.error("[dial-result] missed-call handling failed call_sid=%s: %s", call_sid, e, exc_info=True)

    try:
        result.ledger_resolved = await call_ledger.close(call_sid)
    except Exception as e:
        logger.error("[dial-result] failed to close ledger entry call_sid=%s: %s", call_sid, e)

    return result
