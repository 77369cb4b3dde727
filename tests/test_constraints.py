"""Tests for billing and staffing validation rules."""

from __future__ import annotations

import pytest

from hotelops.domain.constraints import (
    BillingRates,
    validate_billing_rates,
    validate_discount,
    validate_shift_times,
    validate_sla_minutes,
)
from hotelops.utils.config import Settings


SHIFT_PATTERN = Settings().shift_time_regex


# --- billing rates ---

def test_valid_rates_pass() -> None:
    validate_billing_rates(BillingRates(gst_rate=18.0, service_charge_rate=10.0))


def test_zero_rates_pass() -> None:
    validate_billing_rates(BillingRates(gst_rate=0.0, service_charge_rate=0.0))


def test_negative_gst_rate_raises() -> None:
    with pytest.raises(ValueError):
        validate_billing_rates(BillingRates(gst_rate=-1.0, service_charge_rate=10.0))


def test_service_charge_above_hundred_raises() -> None:
    with pytest.raises(ValueError):
        validate_billing_rates(BillingRates(gst_rate=18.0, service_charge_rate=100.5))


# --- discounts ---

def test_percent_discount_above_hundred_raises() -> None:
    with pytest.raises(ValueError):
        validate_discount("percent", 120.0, subtotal=1000.0)


def test_amount_discount_above_subtotal_raises() -> None:
    with pytest.raises(ValueError):
        validate_discount("amount", 1500.0, subtotal=1000.0)


def test_unknown_discount_kind_raises() -> None:
    with pytest.raises(ValueError):
        validate_discount("voucher", 10.0, subtotal=1000.0)


# --- shifts and SLA ---

@pytest.mark.parametrize("start,end", [("06:00", "14:00"), ("22:00", "06:00"), ("00:00", "23:59")])
def test_valid_shift_times_pass(start: str, end: str) -> None:
    validate_shift_times(start, end, SHIFT_PATTERN)


@pytest.mark.parametrize("start,end", [("6:00", "14:00"), ("24:00", "06:00"), ("09:60", "10:00")])
def test_malformed_shift_times_raise(start: str, end: str) -> None:
    with pytest.raises(ValueError):
        validate_shift_times(start, end, SHIFT_PATTERN)


def test_identical_shift_times_raise() -> None:
    with pytest.raises(ValueError):
        validate_shift_times("09:00", "09:00", SHIFT_PATTERN)


def test_sla_minutes_must_be_positive() -> None:
    validate_sla_minutes(1)
    with pytest.raises(ValueError):
        validate_sla_minutes(0)
