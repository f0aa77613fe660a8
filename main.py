# main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.middleware.trustedhost import TrustedHostMiddleware
from tortoise import Tortoise

from helpers.logging_config import configure_logging
from helpers.metrics import REGISTRY
from helpers.settings import Settings, get_settings
from helpers.tortoise_config import build_tortoise_config
from helpers.twilio_gateway import TwilioGateway

# ----- Routers / controllers -----
from controllers import cron_controller, twilio_voice_controller
from scheduler.reconcile_scheduler import schedule_reconciler, shutdown_scheduler

logger = logging.getLogger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    configure_logging(settings.log_level)

    # no credentials, no pipeline: fail before accepting any webhook
    settings.require_twilio()

    await Tortoise.init(config=build_tortoise_config(settings.database_url))

    if settings.reconciler_enabled:
        schedule_reconciler(settings, app.state.gateway)
    else:
        logger.info("[startup] in-process reconciler disabled; relying on /api/cron/check-missed-calls")

    try:
        yield
    finally:
        shutdown_scheduler(wait=False)
        await Tortoise.close_connections()


def create_app(settings: Optional[Settings] = None, gateway: Optional[TwilioGateway] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(title="Missed Call Text-Back", lifespan=lifespan)
    app.state.settings = settings
    app.state.gateway = gateway or TwilioGateway(settings)

    # ----- Middlewares -----
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=["*"])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ----- Routers -----
    app.include_router(twilio_voice_controller.router, prefix="/api", tags=["Twilio Voice"])
    app.include_router(cron_controller.router, prefix="/api", tags=["Cron"])

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    @app.get("/metrics")
    async def metrics():
        return Response(generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()
