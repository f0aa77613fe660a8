# controllers/twilio_voice_controller.py
"""
Provider-facing voice webhooks.

* /twilio/voice               inbound call: open the ledger row and forward
                              the call to the business owner.
* /twilio/voice/dial-result   <Dial action>: the fast path for missed calls.

Both always answer with well-formed TwiML. An error response would make
the provider retry the webhook, which the dedup guard survives but which
is pointless load.
"""
import logging
from typing import Annotated, Dict, Optional

from fastapi import APIRouter, Depends, Request, Response
from twilio.twiml.voice_response import Dial, VoiceResponse

from helpers import call_ledger
from helpers.Normalizers import mask_phone, normalize_phone
from helpers.dependencies import get_app_settings, get_gateway
from helpers.dial_outcome import resolve_dial_outcome
from helpers.settings import Settings
from helpers.twilio_gateway import TwilioGateway
from models.client import Client, ClientStatus

router = APIRouter()
logger = logging.getLogger("twilio_voice")


def twiml(resp: VoiceResponse) -> Response:
    return Response(content=str(resp), media_type="text/xml")


def _public_url(request: Request, settings: Settings) -> str:
    """URL Twilio signed: PUBLIC_BASE_URL wins over what the proxy handed us."""
    url = str(request.url)
    if settings.public_base_url:
        path_q = request.url.path
        if request.url.query:
            path_q += f"?{request.url.query}"
        url = f"{settings.public_base_url.rstrip('/')}{path_q}"
    return url


async def _read_twilio_form(
    request: Request,
    settings: Settings,
    gateway: TwilioGateway,
) -> Optional[Dict[str, str]]:
    """Return the form payload, or None if the signature does not check out."""
    form = await request.form()
    payload = {k: str(v) for k, v in form.items()}
    signature = request.headers.get("X-Twilio-Signature", "")
    if not gateway.validate_signature(_public_url(request, settings), payload, signature):
        logger.warning("[voice] rejected webhook with bad signature path=%s", request.url.path)
        return None
    return payload


def _dial_action_url(request: Request, settings: Settings, orig_from: str, orig_to: str) -> str:
    url = request.url_for("twilio_dial_result").include_query_params(
        mode="dial-result", origFrom=orig_from, origTo=orig_to
    )
    if settings.public_base_url:
        path_q = f"{url.path}?{url.query}"
        return f"{settings.public_base_url.rstrip('/')}{path_q}"
    return str(url)


def _to_int(x: Optional[str]) -> Optional[int]:
    try:
        return int(x) if x not in (None, "") else None
    except ValueError:
        return None


@router.post("/twilio/voice", name="twilio_voice")
async def twilio_voice_webhook(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
    gateway: Annotated[TwilioGateway, Depends(get_gateway)],
):
    resp = VoiceResponse()
    try:
        payload = await _read_twilio_form(request, settings, gateway)
        if payload is None:
            resp.hangup()
            return twiml(resp)

        call_sid = payload.get("CallSid") or ""
        from_ = payload.get("From") or ""
        to = payload.get("To") or ""
        if not call_sid or not from_ or not to:
            return twiml(resp)

        twilio_number = normalize_phone(to, settings.default_sms_region)
        client = await Client.get_or_none(twilio_number=twilio_number, status=ClientStatus.ACTIVE)
        if client is None:
            logger.info("[voice] no active client for number=%s", twilio_number)
            resp.say("Sorry, we could not process your call.")
            return twiml(resp)

        if not client.owner_phone:
            resp.say("Sorry, the business line is not currently available.")
            return twiml(resp)

        await call_ledger.open_call(
            call_sid=call_sid,
            client_id=client.id,
            caller_phone=normalize_phone(from_, settings.default_sms_region),
            twilio_number=twilio_number,
        )

        dial = Dial(
            timeout=settings.dial_timeout_seconds,
            answer_on_bridge=True,
            action=_dial_action_url(request, settings, from_, to),
            method="POST",
        )
        dial.number(client.owner_phone)
        resp.append(dial)

        logger.info(
            "[voice] forwarding call_sid=%s from=%s to client=%s",
            call_sid, mask_phone(from_), client.id,
        )
        return twiml(resp)
    except Exception as e:
        logger.exception("[voice] webhook error: %s", e)
        return twiml(VoiceResponse())


@router.post("/twilio/voice/dial-result", name="twilio_dial_result")
async def twilio_dial_result_webhook(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
    gateway: Annotated[TwilioGateway, Depends(get_gateway)],
):
    try:
        payload = await _read_twilio_form(request, settings, gateway)
        if payload is None:
            resp = VoiceResponse()
            resp.hangup()
            return twiml(resp)

        call_sid = payload.get("CallSid") or ""
        if not call_sid:
            return twiml(VoiceResponse())

        # the callback is a separate request; the original numbers ride along on the action URL
        caller = request.query_params.get("origFrom") or payload.get("From") or ""
        business = request.query_params.get("origTo") or payload.get("To") or ""

        await resolve_dial_outcome(
            settings,
            gateway,
            call_sid=call_sid,
            dial_status=payload.get("DialCallStatus"),
            caller_phone=caller,
            twilio_number=business,
            dial_duration=_to_int(payload.get("DialCallDuration")),
        )
    except Exception as e:
        logger.exception("[dial-result] webhook error: %s", e)

    return twiml(VoiceResponse())
