"""Environment-driven runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be numeric, got {raw!r}") from exc


def _env_optional(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


@dataclass(frozen=True)
class Settings:
    app_name: str = "Hotel Operations Service"
    app_version: str = "1.0.0"
    log_level: str = "INFO"
    database_path: Path = Path("data/hotelops.db")
    admin_token: Optional[str] = None

    default_gst_rate: float = 18.0
    default_service_charge_rate: float = 10.0
    default_currency: str = "INR"

    sla_poll_interval_seconds: float = 30.0
    post_checkout_cleaning_service: str = "Post-Checkout Cleaning"
    post_checkout_cleaning_category: str = "Housekeeping Services"

    email_api_url: str = "https://api.resend.com/emails"
    email_api_key: Optional[str] = None
    email_sender: str = "invoices@hotelops.local"
    email_timeout_seconds: float = 10.0

    demo_hotel_id: str = "demo-hotel"
    shift_time_regex: str = r"^([01]\d|2[0-3]):[0-5]\d$"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process from environment variables."""
    defaults = Settings()
    return Settings(
        log_level=os.getenv("LOG_LEVEL", defaults.log_level),
        database_path=Path(os.getenv("HOTELOPS_DB_PATH", str(defaults.database_path))),
        admin_token=_env_optional("ADMIN_TOKEN"),
        default_gst_rate=_env_float("DEFAULT_GST_RATE", defaults.default_gst_rate),
        default_service_charge_rate=_env_float(
            "DEFAULT_SERVICE_CHARGE_RATE",
            defaults.default_service_charge_rate,
        ),
        default_currency=os.getenv("DEFAULT_CURRENCY", defaults.default_currency),
        sla_poll_interval_seconds=_env_float(
            "SLA_POLL_INTERVAL_SECONDS",
            defaults.sla_poll_interval_seconds,
        ),
        email_api_url=os.getenv("EMAIL_API_URL", defaults.email_api_url),
        email_api_key=_env_optional("EMAIL_API_KEY"),
        email_sender=os.getenv("EMAIL_SENDER", defaults.email_sender),
        demo_hotel_id=os.getenv("DEMO_HOTEL_ID", defaults.demo_hotel_id),
    )
