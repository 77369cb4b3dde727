"""Tests for folio arithmetic and stay grouping."""

from __future__ import annotations

from datetime import datetime

import pytest

from hotelops.domain.documents import ServiceRequest, Stay
from hotelops.domain.folio import Discount, compute_folio, group_stays, nights, stay_room_total


def _charge(service: str, price: float) -> ServiceRequest:
    return ServiceRequest(
        id=service.lower().replace(" ", "-"),
        room_number="101",
        service=service,
        price=price,
        creation_time=datetime(2026, 3, 10, 9),
    )


def test_reference_bill_matches_expected_breakdown() -> None:
    folio = compute_folio(
        room_total=1000.0,
        service_charges=[],
        service_charge_rate=10.0,
        gst_rate=18.0,
        paid_amount=200.0,
    )

    assert folio.subtotal == pytest.approx(1000.0)
    assert folio.service_charge_amount == pytest.approx(100.0)
    assert folio.gst_amount == pytest.approx(180.0)
    assert folio.total == pytest.approx(1280.0)
    assert folio.balance == pytest.approx(1080.0)


def test_zero_rates_make_total_equal_subtotal() -> None:
    folio = compute_folio(
        room_total=2400.0,
        service_charges=[_charge("Laundry", 150.0), _charge("Club Sandwich (x2)", 500.0)],
        service_charge_rate=0.0,
        gst_rate=0.0,
    )
    assert folio.services_total == pytest.approx(650.0)
    assert folio.subtotal == pytest.approx(3050.0)
    assert folio.total == pytest.approx(folio.subtotal)


def test_gst_is_not_charged_on_service_charge() -> None:
    folio = compute_folio(room_total=100.0, service_charges=[], service_charge_rate=50.0, gst_rate=10.0)
    assert folio.gst_amount == pytest.approx(10.0)
    assert folio.total == pytest.approx(160.0)


def test_overpayment_gives_negative_balance() -> None:
    folio = compute_folio(room_total=100.0, service_charges=[], service_charge_rate=0.0, gst_rate=0.0, paid_amount=150.0)
    assert folio.balance == pytest.approx(-50.0)


def test_percent_discount_applies_before_taxes() -> None:
    folio = compute_folio(
        room_total=1000.0,
        service_charges=[],
        service_charge_rate=10.0,
        gst_rate=18.0,
        discount=Discount(kind="percent", value=10.0),
    )
    assert folio.discount_amount == pytest.approx(100.0)
    assert folio.service_charge_amount == pytest.approx(90.0)
    assert folio.gst_amount == pytest.approx(162.0)
    assert folio.total == pytest.approx(1152.0)


def test_amount_discount_is_taken_verbatim() -> None:
    folio = compute_folio(
        room_total=1000.0,
        service_charges=[],
        service_charge_rate=0.0,
        gst_rate=0.0,
        discount=Discount(kind="amount", value=250.0),
    )
    assert folio.total == pytest.approx(750.0)


@pytest.mark.parametrize(
    "check_in,check_out,expected",
    [
        (datetime(2026, 3, 1, 14), datetime(2026, 3, 4, 11), 3),
        (datetime(2026, 3, 1, 9), datetime(2026, 3, 1, 20), 1),
        (datetime(2026, 3, 1, 23), datetime(2026, 3, 2, 1), 1),
        (None, datetime(2026, 3, 2), 1),
    ],
)
def test_nights_counts_calendar_days_with_minimum_one(check_in, check_out, expected) -> None:
    assert nights(check_in, check_out) == expected


def test_room_total_multiplies_nightly_rate() -> None:
    stays = [
        Stay(stay_id="a", guest_name="A", room_charge=2000.0, check_in_date=datetime(2026, 3, 1), check_out_date=datetime(2026, 3, 3)),
        Stay(stay_id="b", guest_name="B", room_charge=1500.0, check_in_date=datetime(2026, 3, 1), check_out_date=datetime(2026, 3, 1)),
    ]
    assert stay_room_total(stays) == pytest.approx(5500.0)


def test_group_stays_collects_clubbed_members_only() -> None:
    master = "GROUP-ABCD1234"
    first = Stay(stay_id="101-A", guest_name="A", is_group_booking=True, group_master_stay_id=master)
    second = Stay(stay_id="102-B", guest_name="B", is_group_booking=True, group_master_stay_id=master)
    other = Stay(stay_id="103-C", guest_name="C")

    assert {stay.stay_id for stay in group_stays(first, [first, second, other])} == {"101-A", "102-B"}
    assert group_stays(other, [first, second, other]) == [other]
