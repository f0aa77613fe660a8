# helpers/settings.py
"""
Process-wide configuration.

Read once from the environment (and `.env`) at startup and handed to the
resolvers, the reconciler and the controllers. Business logic never
touches os.environ directly.
"""
from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class ConfigurationError(RuntimeError):
    """Raised when the service cannot start with the given configuration."""


def _env_bool(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return str(v).strip().lower() in ("1", "true", "y", "yes", "on")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return default


class Settings(BaseModel):
    database_url: str = "sqlite://db.sqlite3"

    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_validate_signatures: bool = False
    public_base_url: Optional[str] = None

    cron_secret: Optional[str] = None

    # <Dial timeout> used when forwarding; the reconciler waits this long plus
    # the margin before treating a ledger entry as stale
    dial_timeout_seconds: int = Field(default=18, ge=1)
    stale_margin_seconds: int = Field(default=13, ge=0)
    reconcile_interval_seconds: int = Field(default=15, ge=1)
    reconcile_batch_limit: int = Field(default=100, ge=1)
    provider_timeout_seconds: float = Field(default=10.0, gt=0)
    reconciler_enabled: bool = True

    # a forwarded leg that "completes" this quickly was picked up by carrier voicemail
    voicemail_threshold_seconds: int = Field(default=45, ge=0)

    aps_timezone: str = "UTC"
    default_sms_region: str = "US"
    log_level: str = "INFO"

    @property
    def stale_after_seconds(self) -> int:
        return self.dial_timeout_seconds + self.stale_margin_seconds

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            database_url=os.getenv("DATABASE_URL") or "sqlite://db.sqlite3",
            twilio_account_sid=os.getenv("TWILIO_ACCOUNT_SID") or None,
            twilio_auth_token=os.getenv("TWILIO_AUTH_TOKEN") or None,
            twilio_validate_signatures=_env_bool("TWILIO_VALIDATE_SIGNATURE", False),
            public_base_url=os.getenv("PUBLIC_BASE_URL") or None,
            cron_secret=os.getenv("CRON_SECRET") or None,
            dial_timeout_seconds=_env_int("DIAL_TIMEOUT_SECONDS", 18),
            stale_margin_seconds=_env_int("STALE_MARGIN_SECONDS", 13),
            reconcile_interval_seconds=_env_int("RECONCILE_INTERVAL_SECONDS", 15),
            reconcile_batch_limit=_env_int("RECONCILE_BATCH_LIMIT", 100),
            provider_timeout_seconds=_env_float("PROVIDER_TIMEOUT_SECONDS", 10.0),
            reconciler_enabled=_env_bool("RECONCILER_ENABLED", True),
            voicemail_threshold_seconds=_env_int("VOICEMAIL_THRESHOLD_SECONDS", 45),
            aps_timezone=os.getenv("APS_TIMEZONE", "UTC"),
            default_sms_region=(os.getenv("DEFAULT_SMS_REGION") or "US").upper(),
            log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        )

    def require_twilio(self) -> None:
        """Refuse to start the pipeline without provider credentials."""
        missing = [
            name
            for name, value in (
                ("TWILIO_ACCOUNT_SID", self.twilio_account_sid),
                ("TWILIO_AUTH_TOKEN", self.twilio_auth_token),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"Missing Twilio credentials: {', '.join(missing)}")


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
