"""Domain-level validation rules for billing and staffing configuration."""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class BillingRates:
    gst_rate: float
    service_charge_rate: float


def validate_billing_rates(rates: BillingRates) -> None:
    if not 0.0 <= rates.gst_rate <= 100.0:
        raise ValueError("gst_rate must be between 0 and 100")
    if not 0.0 <= rates.service_charge_rate <= 100.0:
        raise ValueError("service_charge_rate must be between 0 and 100")


def validate_discount(kind: str, value: float, subtotal: float) -> None:
    if kind not in {"percent", "amount"}:
        raise ValueError("discount kind must be 'percent' or 'amount'")
    if value < 0:
        raise ValueError("discount must be >= 0")
    if kind == "percent" and value > 100:
        raise ValueError("percent discount must be <= 100")
    if kind == "amount" and value > subtotal:
        raise ValueError("discount amount cannot exceed the subtotal")


def validate_shift_times(start_time: str, end_time: str, pattern: str) -> None:
    compiled = re.compile(pattern)
    for label, value in (("start_time", start_time), ("end_time", end_time)):
        if compiled.fullmatch(value) is None:
            raise ValueError(f"{label} must follow HH:MM 24-hour format")
    if start_time == end_time:
        raise ValueError("shift start and end time must differ")


def validate_sla_minutes(time_limit_minutes: int) -> None:
    if time_limit_minutes <= 0:
        raise ValueError("time_limit_minutes must be > 0")
