"""Shared fixtures: an in-memory Tortoise database and a scripted SMS/voice provider."""
from __future__ import annotations

from typing import Dict, List, Optional, Union

import pytest
import pytest_asyncio
from tortoise import Tortoise

from helpers.settings import Settings
from helpers.tortoise_config import build_tortoise_config
from helpers.twilio_gateway import CallNotFoundError, CallStatus, SmsReceipt
from models.client import Client, ClientStatus

BUSINESS_NUMBER = "+14155550100"
OWNER_PHONE = "+14155550199"
CALLER = "+14155550123"


class FakeGateway:
    """Stands in for TwilioGateway; records sends and replays scripted call statuses."""

    def __init__(self) -> None:
        self.sent: List[Dict[str, str]] = []
        self.call_statuses: Dict[str, Union[str, Exception]] = {}
        self.lookups: List[str] = []
        self.sms_error: Optional[Exception] = None
        self.signature_ok = True

    async def send_sms(self, *, to: str, from_: str, body: str) -> SmsReceipt:
        if self.sms_error is not None:
            raise self.sms_error
        self.sent.append({"to": to, "from": from_, "body": body})
        return SmsReceipt(sid=f"SM{len(self.sent):032d}", status="queued")

    async def fetch_call_status(self, call_sid: str) -> CallStatus:
        self.lookups.append(call_sid)
        scripted = self.call_statuses.get(call_sid)
        if scripted is None:
            raise CallNotFoundError(call_sid)
        if isinstance(scripted, Exception):
            raise scripted
        return CallStatus(sid=call_sid, status=scripted)

    def validate_signature(self, url, params, signature) -> bool:
        return self.signature_ok


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite://:memory:",
        twilio_account_sid="ACtest",
        twilio_auth_token="token",
        cron_secret="s3cret",
        reconciler_enabled=False,
        provider_timeout_seconds=1.0,
    )


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest_asyncio.fixture
async def db():
    await Tortoise.init(config=build_tortoise_config("sqlite://:memory:", with_aerich=False))
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def client(db) -> Client:
    return await Client.create(
        business_name="Acme Plumbing",
        owner_name="Bob",
        owner_phone=OWNER_PHONE,
        twilio_number=BUSINESS_NUMBER,
        status=ClientStatus.ACTIVE,
    )
