from fastapi import Request

from helpers.settings import Settings
from helpers.twilio_gateway import TwilioGateway


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_gateway(request: Request) -> TwilioGateway:
    return request.app.state.gateway
