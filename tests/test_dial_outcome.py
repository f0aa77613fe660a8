from datetime import timedelta

import pytest
from tortoise import timezone

from helpers import call_ledger
from helpers.dial_outcome import resolve_dial_outcome
from helpers.missed_call_reconciler import reconcile_missed_calls
from helpers.outcome_classifier import CallOutcome
from helpers.twilio_gateway import SmsDeliveryError
from models.active_call import ActiveCall
from models.conversation import Conversation

from conftest import BUSINESS_NUMBER, CALLER


async def _resolve(settings, gateway, status, call_sid="CA1", duration=None):
    return await resolve_dial_outcome(
        settings,
        gateway,
        call_sid=call_sid,
        dial_status=status,
        caller_phone=CALLER,
        twilio_number=BUSINESS_NUMBER,
        dial_duration=duration,
    )


async def _ring(client, call_sid="CA1"):
    await call_ledger.open_call(
        call_sid=call_sid,
        client_id=client.id,
        caller_phone=CALLER,
        twilio_number=BUSINESS_NUMBER,
    )


@pytest.mark.asyncio
async def test_no_answer_texts_and_closes_ledger(settings, gateway, client):
    await _ring(client)

    result = await _resolve(settings, gateway, "no-answer")

    assert result.outcome is CallOutcome.MISSED
    assert result.effect.processed is True
    assert result.ledger_resolved is True
    assert len(gateway.sent) == 1
    assert not await ActiveCall.filter(call_sid="CA1").exists()


@pytest.mark.asyncio
async def test_webhook_retry_sends_one_text(settings, gateway, client):
    await _ring(client)

    await _resolve(settings, gateway, "busy")
    retry = await _resolve(settings, gateway, "busy")

    assert len(gateway.sent) == 1
    assert retry.effect.processed is False
    assert retry.ledger_resolved is False
    assert await Conversation.filter(dedup_key="CA1").count() == 1


@pytest.mark.asyncio
async def test_answered_call_only_closes_ledger(settings, gateway, client):
    await _ring(client)

    result = await _resolve(settings, gateway, "completed", duration=180)

    assert result.outcome is CallOutcome.ANSWERED
    assert result.effect is None
    assert result.ledger_resolved is True
    assert gateway.sent == []
    assert not await ActiveCall.filter(call_sid="CA1").exists()


@pytest.mark.asyncio
async def test_voicemail_pickup_counts_as_missed(settings, gateway, client):
    await _ring(client)

    result = await _resolve(settings, gateway, "completed", duration=12)

    assert result.outcome is CallOutcome.MISSED
    assert len(gateway.sent) == 1


@pytest.mark.asyncio
async def test_send_failure_is_reported_not_raised(settings, gateway, client):
    await _ring(client)
    gateway.sms_error = SmsDeliveryError("carrier rejected", code=30007)

    result = await _resolve(settings, gateway, "no-answer")

    assert result.error == "carrier rejected"
    assert result.ledger_resolved is True
    assert not await Conversation.filter(dedup_key="CA1").exists()


@pytest.mark.asyncio
async def test_callback_without_ledger_row_still_texts(settings, gateway, client):
    result = await _resolve(settings, gateway, "failed", call_sid="CA-no-ledger")

    assert result.effect.processed is True
    assert result.ledger_resolved is False


@pytest.mark.asyncio
async def test_resolved_call_does_not_linger_in_ledger(settings, gateway, client):
    now = timezone.now().replace(microsecond=500000)
    await call_ledger.open_call(
        call_sid="CA-old",
        client_id=client.id,
        caller_phone=CALLER,
        twilio_number=BUSINESS_NUMBER,
        received_at=now - timedelta(hours=2),
    )

    await _resolve(settings, gateway, "completed", call_sid="CA-old", duration=120)
    await reconcile_missed_calls(settings, gateway, now=now)
    await reconcile_missed_calls(settings, gateway, now=now)

    assert await ActiveCall.all().count() == 0
    assert gateway.lookups == []
