# helpers/missed_call.py
"""
Side effects of a missed call: find the business, skip duplicates and
blocked callers, upsert the lead, text the caller, log the message and
bump the counters.

Callers have already decided the call was missed (see
helpers.outcome_classifier). This module can be entered from the
dial-result webhook, from the reconciler, or from a provider retry of
either; the dedup guard makes all of those collapse into one text.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from tortoise import timezone
from tortoise.exceptions import IntegrityError

from helpers import dedup_guard, spam_guard, stats
from helpers.Normalizers import mask_phone, normalize_phone
from helpers.metrics import (
    effect_partial_failures_total,
    missed_call_skipped_total,
    missed_calls_processed_total,
    sms_send_failures_total,
)
from helpers.settings import Settings
from helpers.templates import render_template
from helpers.twilio_gateway import SmsDeliveryError, TwilioGateway
from models.client import Client, ClientStatus
from models.lead import Lead, LeadSource, LeadStatus

logger = logging.getLogger("missed_call")


class SkipReason(str, Enum):
    NO_ACTIVE_CLIENT = "no_active_client"
    ALREADY_PROCESSED = "already_processed"
    BLOCKED = "blocked"


@dataclass
class MissedCallResult:
    processed: bool
    reason: Optional[SkipReason] = None
    client_id: Optional[int] = None
    lead_id: Optional[int] = None
    is_new_lead: bool = False
    message_sid: Optional[str] = None

    @classmethod
    def skipped(cls, reason: SkipReason, **kw) -> "MissedCallResult":
        missed_call_skipped_total.labels(reason=reason.value).inc()
        return cls(processed=False, reason=reason, **kw)


async def upsert_lead(client_id: int, caller_phone: str) -> Tuple[Lead, bool]:
    """Return (lead, created). Repeat callers only get `updated_at` touched."""
    lead = await Lead.get_or_none(client_id=client_id, phone=caller_phone)
    if lead is None:
        try:
            lead = await Lead.create(
                client_id=client_id,
                phone=caller_phone,
                source=LeadSource.MISSED_CALL,
                status=LeadStatus.NEW,
            )
            return lead, True
        except IntegrityError:
            # another resolver created the same (client, phone) lead first
            lead = await Lead.get(client_id=client_id, phone=caller_phone)

    now = timezone.now()
    await Lead.filter(id=lead.id).update(updated_at=now)
    lead.updated_at = now
    return lead, False


async def handle_missed_call(
    settings: Settings,
    gateway: TwilioGateway,
    *,
    caller_phone: str,
    twilio_number: str,
    call_sid: str,
    path: str = "webhook",
) -> MissedCallResult:
    """
    Raises SmsDeliveryError when the text could not be sent; nothing is
    logged or counted in that case, so a later trigger can try again.
    Every other early exit is a normal, structured result.
    """
    caller = normalize_phone(caller_phone, settings.default_sms_region)
    business_number = normalize_phone(twilio_number, settings.default_sms_region)

    logger.info(
        "[missed-call] processing call_sid=%s from=%s to=%s path=%s",
        call_sid, mask_phone(caller), business_number, path,
    )

    # 1. client that owns the number
    client = await Client.get_or_none(twilio_number=business_number, status=ClientStatus.ACTIVE)
    if client is None:
        logger.info("[missed-call] no active client for number=%s call_sid=%s", business_number, call_sid)
        return MissedCallResult.skipped(SkipReason.NO_ACTIVE_CLIENT)

    # 2. already texted for this call?
    if await dedup_guard.notice_exists(call_sid):
        logger.info("[missed-call] notice already sent for call_sid=%s", call_sid)
        return MissedCallResult.skipped(SkipReason.ALREADY_PROCESSED, client_id=client.id)

    # 3. block list
    if await spam_guard.is_blocked(client.id, caller):
        logger.info("[missed-call] caller %s is blocked for client=%s", mask_phone(caller), client.id)
        return MissedCallResult.skipped(SkipReason.BLOCKED, client_id=client.id)

    # 4. lead
    lead, is_new_lead = await upsert_lead(client.id, caller)

    # 5. text the caller
    body = render_template(
        "missed_call",
        {"ownerName": client.owner_name, "businessName": client.business_name},
        custom_template=client.missed_call_template,
    )
    try:
        receipt = await gateway.send_sms(to=caller, from_=client.twilio_number, body=body)
    except SmsDeliveryError as e:
        sms_send_failures_total.inc()
        logger.error(
            "[missed-call] sms send failed call_sid=%s client=%s code=%s error=%s",
            call_sid, client.id, e.code, e,
        )
        raise

    result = MissedCallResult(
        processed=True,
        client_id=client.id,
        lead_id=lead.id,
        is_new_lead=is_new_lead,
        message_sid=receipt.sid,
    )

    # 6-8. the text is out; failures from here on are a data-quality gap, not an error to raise
    try:
        conversation = await dedup_guard.record_notice(
            call_sid=call_sid,
            client_id=client.id,
            lead_id=lead.id,
            content=body,
            message_sid=receipt.sid,
        )
        if conversation is None:
            logger.warning(
                "[missed-call] another resolver logged call_sid=%s first; duplicate text sid=%s not counted",
                call_sid, receipt.sid,
            )
            return MissedCallResult.skipped(
                SkipReason.ALREADY_PROCESSED,
                client_id=client.id,
                lead_id=lead.id,
                message_sid=receipt.sid,
            )

        await stats.increment_daily_stats(
            client.id,
            missed_calls=1,
            messages=1,
            conversations=1 if is_new_lead else 0,
        )
        await stats.increment_monthly_messages(client.id)
    except Exception as e:
        effect_partial_failures_total.inc()
        logger.error(
            "[missed-call] data-quality gap: sms sid=%s sent for call_sid=%s but log/stats write failed: %s",
            receipt.sid, call_sid, e,
            exc_info=True,
        )
        return result

    missed_calls_processed_total.labels(path=path).inc()
    logger.info(
        "[missed-call] done call_sid=%s client=%s lead=%s new_lead=%s sms=%s",
        call_sid, client.id, lead.id, is_new_lead, receipt.sid,
    )
    return result
