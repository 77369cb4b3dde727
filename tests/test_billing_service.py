from __future__ import annotations

from dataclasses import replace
from datetime import datetime

import pytest

from hotelops.domain.models import BilledOrderStatus, ServiceRequestStatus
from hotelops.repository.hotel_repository import HotelRepository
from hotelops.services.billing_service import (
    BilledOrderNotFoundError,
    BillingService,
    BillingValidationError,
    ClientNotFoundError,
    ServiceRequestNotFoundError,
    outstanding_balance,
)
from hotelops.services.room_service import RoomOperationsService
from hotelops.utils.config import get_settings


HOTEL_ID = "hotel-billing"
NOW = datetime(2026, 3, 15, 10, 0)


@pytest.fixture()
def billing(tmp_path):
    get_settings.cache_clear()
    settings = replace(get_settings(), database_path=tmp_path / "billing.db")
    repository = HotelRepository(settings)
    repository.initialize_database()
    repository.seed_demo_hotel(HOTEL_ID)
    rooms = RoomOperationsService(repository=repository, settings=settings)
    return BillingService(repository=repository, settings=settings, room_service=rooms), rooms


def test_rates_update_and_validation(billing) -> None:
    service, _ = billing
    assert service.get_rates(HOTEL_ID).gst_rate == pytest.approx(18.0)

    updated = service.update_rates(HOTEL_ID, gst_rate=12.0, service_charge_rate=5.0)
    assert (updated.gst_rate, updated.service_charge_rate) == (12.0, 5.0)
    assert service.get_rates(HOTEL_ID).legal_name == "Demo Hotel Pvt Ltd"

    with pytest.raises(BillingValidationError):
        service.update_rates(HOTEL_ID, gst_rate=-1.0, service_charge_rate=5.0)


def test_client_crud(billing) -> None:
    service, _ = billing
    client = service.add_client(HOTEL_ID, "Globex", address="Pune", contact_person="H. Simpson", gst_number="27AAAAA0000A1Z5")
    assert client.id

    renamed = service.update_client(HOTEL_ID, client.id, {"name": "Globex Corp"})
    assert renamed.name == "Globex Corp"
    with pytest.raises(BillingValidationError):
        service.update_client(HOTEL_ID, client.id, {"billed_orders": []})

    service.delete_client(HOTEL_ID, client.id)
    with pytest.raises(ClientNotFoundError):
        service.get_client(HOTEL_ID, client.id)


def test_client_requires_name(billing) -> None:
    service, _ = billing
    with pytest.raises(BillingValidationError):
        service.add_client(HOTEL_ID, "  ")


def test_billed_order_status_transitions_stamp_paid_date(billing) -> None:
    service, _ = billing
    order = service.add_billed_order(
        HOTEL_ID,
        "acme",
        stay_id="101-ABCDEF",
        guest_name="Meera",
        room_number="101",
        amount=1500.0,
        now=NOW,
    )
    assert order.paid_date is None
    assert outstanding_balance(service.get_client(HOTEL_ID, "acme")) == pytest.approx(1500.0)

    paid = service.update_billed_order(HOTEL_ID, "acme", order.id, status=BilledOrderStatus.PAID, now=NOW)
    assert paid.paid_date == NOW
    assert outstanding_balance(service.get_client(HOTEL_ID, "acme")) == 0.0

    reopened = service.update_billed_order(HOTEL_ID, "acme", order.id, status=BilledOrderStatus.PENDING)
    assert reopened.paid_date is None

    service.delete_billed_order(HOTEL_ID, "acme", order.id)
    assert service.get_client(HOTEL_ID, "acme").billed_orders == []
    with pytest.raises(BilledOrderNotFoundError):
        service.delete_billed_order(HOTEL_ID, "acme", order.id)


def test_paid_order_created_with_paid_date(billing) -> None:
    service, _ = billing
    order = service.add_billed_order(
        HOTEL_ID,
        "acme",
        stay_id="101-ABCDEF",
        guest_name="Meera",
        room_number="101",
        amount=900.0,
        status=BilledOrderStatus.PAID,
        now=NOW,
    )
    assert order.paid_date == NOW


def test_billed_order_amount_must_be_positive(billing) -> None:
    service, _ = billing
    with pytest.raises(BillingValidationError):
        service.add_billed_order(HOTEL_ID, "acme", stay_id="s", guest_name="g", room_number="101", amount=0)


def test_bill_to_company_moves_balance_off_the_guest(billing) -> None:
    service, rooms = billing
    stay = rooms.add_stay(
        HOTEL_ID,
        "room-102",
        guest_name="Ravi",
        check_in_date=datetime(2026, 3, 14, 14),
        check_out_date=datetime(2026, 3, 15, 11),
        room_charge=2000.0,
    )

    order = service.bill_to_company(HOTEL_ID, "room-102", stay.stay_id, "acme", 2000.0, now=NOW)

    _, billed_stay = rooms.get_stay(HOTEL_ID, "room-102", stay.stay_id)
    assert billed_stay.is_billed_to_company
    assert billed_stay.paid_amount == pytest.approx(2000.0)
    client = service.get_client(HOTEL_ID, "acme")
    assert [item.id for item in client.billed_orders] == [order.id]
    assert client.billed_orders[0].room_number == "102"


def test_bill_to_unknown_client_changes_nothing(billing) -> None:
    service, rooms = billing
    stay = rooms.add_stay(
        HOTEL_ID,
        "room-102",
        guest_name="Ravi",
        check_in_date=datetime(2026, 3, 14),
        check_out_date=datetime(2026, 3, 15),
        room_charge=2000.0,
    )
    with pytest.raises(ClientNotFoundError):
        service.bill_to_company(HOTEL_ID, "room-102", stay.stay_id, "nobody", 500.0)

    _, unchanged = rooms.get_stay(HOTEL_ID, "room-102", stay.stay_id)
    assert not unchanged.is_billed_to_company


def test_service_request_lifecycle(billing) -> None:
    service, _ = billing
    request = service.create_service_request(
        HOTEL_ID,
        room_number="103",
        service="Club Sandwich (x2)",
        price=500.0,
        category="In-Room Dining",
        stay_id="103-XYZ123",
        quantity=2,
        now=NOW,
    )
    assert request.status == ServiceRequestStatus.PENDING
    assert [item.id for item in service.list_service_requests(HOTEL_ID, stay_id="103-XYZ123")] == [request.id]

    done = service.update_service_request_status(
        HOTEL_ID,
        request.id,
        ServiceRequestStatus.COMPLETED,
        assigned_to="member-asha",
        now=NOW,
    )
    assert done.completion_time == NOW
    assert done.assigned_to == "member-asha"

    service.delete_service_request(HOTEL_ID, request.id)
    with pytest.raises(ServiceRequestNotFoundError):
        service.delete_service_request(HOTEL_ID, request.id)


@pytest.mark.parametrize("fields", [{"service": " "}, {"price": -1.0}, {"quantity": 0}])
def test_service_request_validation(billing, fields) -> None:
    service, _ = billing
    payload = {"room_number": "101", "service": "Towels", **fields}
    with pytest.raises(BillingValidationError):
        service.create_service_request(HOTEL_ID, **payload)
