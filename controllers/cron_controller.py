# controllers/cron_controller.py
import hmac
import logging
from datetime import datetime, timezone
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status

from helpers.dependencies import get_app_settings, get_gateway
from helpers.missed_call_reconciler import reconcile_missed_calls
from helpers.settings import Settings
from helpers.twilio_gateway import TwilioGateway

router = APIRouter()
logger = logging.getLogger("cron")


def verify_cron_secret(
    settings: Annotated[Settings, Depends(get_app_settings)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> None:
    secret = settings.cron_secret
    expected = f"Bearer {secret}" if secret else None
    if not expected or not authorization or not hmac.compare_digest(authorization, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


@router.api_route(
    "/cron/check-missed-calls",
    methods=["GET", "POST"],
    dependencies=[Depends(verify_cron_secret)],
)
async def check_missed_calls(
    settings: Annotated[Settings, Depends(get_app_settings)],
    gateway: Annotated[TwilioGateway, Depends(get_gateway)],
):
    try:
        summary = await reconcile_missed_calls(settings, gateway)
    except Exception as e:
        logger.exception("[cron] check missed calls failed: %s", e)
        raise HTTPException(status_code=500, detail="Processing failed")

    return {
        **summary.as_dict(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
