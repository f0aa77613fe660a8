# helpers/twilio_gateway.py
"""
Thin async wrapper around the Twilio REST client.

The SDK is blocking, so every call is pushed to the threadpool. Errors are
translated into the small set of exceptions the pipeline knows how to
react to.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from starlette.concurrency import run_in_threadpool
from twilio.base.exceptions import TwilioRestException
from twilio.request_validator import RequestValidator
from twilio.rest import Client

from helpers.settings import Settings

logger = logging.getLogger("twilio_gateway")

TWILIO_NOT_FOUND_CODE = 20404


class SmsDeliveryError(Exception):
    """The SMS transport refused or failed to send a message."""

    def __init__(self, message: str, *, code: Optional[int] = None, status: Optional[int] = None):
        super().__init__(message)
        self.code = code
        self.status = status


class CallNotFoundError(Exception):
    """The provider has no record of the call sid."""


class ProviderLookupError(Exception):
    """Call-status lookup failed for a reason worth retrying later."""


@dataclass(frozen=True)
class SmsReceipt:
    sid: Optional[str]
    status: Optional[str] = None


@dataclass(frozen=True)
class CallStatus:
    sid: str
    status: str
    duration: Optional[int] = None
    answered_by: Optional[str] = None


def _to_int(x: Any) -> Optional[int]:
    try:
        return int(x) if x is not None else None
    except (TypeError, ValueError):
        return None


class TwilioGateway:
    def __init__(self, settings: Settings, client: Optional[Client] = None):
        self._settings = settings
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._settings.require_twilio()
            self._client = Client(self._settings.twilio_account_sid, self._settings.twilio_auth_token)
        return self._client

    async def send_sms(self, *, to: str, from_: str, body: str) -> SmsReceipt:
        def _send():
            return self.client.messages.create(body=body, from_=from_, to=to)

        try:
            msg = await run_in_threadpool(_send)
        except TwilioRestException as e:
            raise SmsDeliveryError(getattr(e, "msg", str(e)), code=e.code, status=e.status) from e
        return SmsReceipt(sid=getattr(msg, "sid", None), status=getattr(msg, "status", None))

    async def fetch_call_status(self, call_sid: str) -> CallStatus:
        def _fetch():
            return self.client.calls(call_sid).fetch()

        try:
            call = await run_in_threadpool(_fetch)
        except TwilioRestException as e:
            if e.status == 404 or e.code == TWILIO_NOT_FOUND_CODE:
                raise CallNotFoundError(call_sid) from e
            raise ProviderLookupError(f"twilio error code={e.code} status={e.status}: {e.msg}") from e

        return CallStatus(
            sid=call_sid,
            status=(getattr(call, "status", None) or "").lower(),
            duration=_to_int(getattr(call, "duration", None)),
            answered_by=getattr(call, "answered_by", None),
        )

    def validate_signature(self, url: str, params: Mapping[str, Any], signature: str) -> bool:
        if not self._settings.twilio_validate_signatures:
            return True
        token = self._settings.twilio_auth_token
        if not token or not signature:
            return False
        try:
            return RequestValidator(token).validate(url, dict(params), signature)
        except Exception as e:
            logger.warning("[twilio] signature validation error: %s", e)
            return False
