import pytest
from httpx import ASGITransport, AsyncClient

from main import create_app
from models.active_call import ActiveCall
from models.conversation import Conversation

from conftest import BUSINESS_NUMBER, CALLER, OWNER_PHONE


@pytest.fixture
def app(settings, gateway):
    # lifespan is not run by ASGITransport; the db fixture owns Tortoise
    return create_app(settings, gateway)


@pytest.fixture
def http(app):
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver")


@pytest.mark.asyncio
async def test_health_endpoint(http):
    async with http:
        response = await http.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_inbound_call_is_forwarded_and_ledgered(http, client):
    async with http:
        response = await http.post(
            "/api/twilio/voice",
            data={"CallSid": "CA1", "From": CALLER, "To": BUSINESS_NUMBER},
        )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/xml")
    body = response.text
    assert "<Dial" in body
    assert 'timeout="18"' in body
    assert OWNER_PHONE in body
    assert "/api/twilio/voice/dial-result" in body

    row = await ActiveCall.get(call_sid="CA1")
    assert row.client_id == client.id
    assert row.processed is False


@pytest.mark.asyncio
async def test_inbound_call_for_unknown_number_apologises(http, db):
    async with http:
        response = await http.post(
            "/api/twilio/voice",
            data={"CallSid": "CA1", "From": CALLER, "To": "+14155550999"},
        )

    assert response.status_code == 200
    assert "<Say>" in response.text
    assert "<Dial" not in response.text
    assert not await ActiveCall.all().exists()


@pytest.mark.asyncio
async def test_bad_signature_hangs_up(http, gateway, client):
    gateway.signature_ok = False

    async with http:
        response = await http.post(
            "/api/twilio/voice",
            data={"CallSid": "CA1", "From": CALLER, "To": BUSINESS_NUMBER},
        )

    assert "<Hangup" in response.text
    assert not await ActiveCall.all().exists()


@pytest.mark.asyncio
async def test_dial_result_no_answer_texts_caller(http, gateway, client):
    async with http:
        await http.post(
            "/api/twilio/voice",
            data={"CallSid": "CA1", "From": CALLER, "To": BUSINESS_NUMBER},
        )
        response = await http.post(
            "/api/twilio/voice/dial-result",
            params={"mode": "dial-result", "origFrom": CALLER, "origTo": BUSINESS_NUMBER},
            data={"CallSid": "CA1", "DialCallStatus": "no-answer", "DialCallDuration": "0"},
        )

    assert response.status_code == 200
    assert response.text.startswith("<?xml")
    assert [m["to"] for m in gateway.sent] == [CALLER]
    assert await Conversation.filter(dedup_key="CA1").exists()
    assert not await ActiveCall.filter(call_sid="CA1").exists()


@pytest.mark.asyncio
async def test_dial_result_answered_sends_nothing(http, gateway, client):
    async with http:
        response = await http.post(
            "/api/twilio/voice/dial-result",
            params={"origFrom": CALLER, "origTo": BUSINESS_NUMBER},
            data={"CallSid": "CA1", "DialCallStatus": "completed", "DialCallDuration": "240"},
        )

    assert response.status_code == 200
    assert gateway.sent == []


@pytest.mark.asyncio
async def test_cron_requires_bearer_secret(http, db):
    async with http:
        missing = await http.get("/api/cron/check-missed-calls")
        wrong = await http.post(
            "/api/cron/check-missed-calls", headers={"Authorization": "Bearer nope"}
        )

    assert missing.status_code == 401
    assert wrong.status_code == 401


@pytest.mark.asyncio
async def test_cron_runs_reconciliation(http, db):
    async with http:
        response = await http.get(
            "/api/cron/check-missed-calls", headers={"Authorization": "Bearer s3cret"}
        )

    assert response.status_code == 200
    payload = response.json()
    assert payload["checked"] == 0
    assert payload["errors"] == 0
    assert "timestamp" in payload


@pytest.mark.asyncio
async def test_cron_disabled_without_secret(settings, gateway, db):
    app = create_app(settings.model_copy(update={"cron_secret": None}), gateway)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as http:
        response = await http.get(
            "/api/cron/check-missed-calls", headers={"Authorization": "Bearer "}
        )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_metrics_endpoint_exposes_counters(http):
    async with http:
        response = await http.get("/metrics")

    assert response.status_code == 200
    assert "missed_call_skipped_total" in response.text
