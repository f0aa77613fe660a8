# helpers/outcome_classifier.py
"""
The one place that decides whether a call leg counts as missed.

Both the dial-result webhook and the reconciler go through
`classify_call_outcome`, so the two paths can never disagree about a
status. The webhook may also pass the dial duration (voicemail pickup
detection); the reconciler only ever has the provider's terminal status.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional


class CallOutcome(str, Enum):
    MISSED = "missed"
    ANSWERED = "answered"
    INDETERMINATE = "indeterminate"


MISSED_STATUSES = frozenset({"no-answer", "busy", "failed", "canceled"})

# provider still has the call in flight; nothing to decide yet
NON_TERMINAL_STATUSES = frozenset({"queued", "initiated", "ringing", "in-progress"})


def normalize_status(status: Optional[str]) -> str:
    return (status or "").strip().lower()


def classify_call_outcome(
    status: Optional[str],
    *,
    answered: Optional[bool] = None,
    dial_duration: Optional[int] = None,
    voicemail_threshold_seconds: Optional[int] = None,
) -> CallOutcome:
    s = normalize_status(status)

    if s in MISSED_STATUSES:
        return CallOutcome.MISSED

    if s in NON_TERMINAL_STATUSES:
        return CallOutcome.INDETERMINATE

    if s == "completed":
        if answered is False:
            return CallOutcome.MISSED
        if (
            answered is None
            and dial_duration is not None
            and voicemail_threshold_seconds
            and 0 < dial_duration <= voicemail_threshold_seconds
        ):
            # carrier voicemail picked up the forwarded leg
            return CallOutcome.MISSED

    return CallOutcome.ANSWERED
