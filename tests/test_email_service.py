from __future__ import annotations

from dataclasses import replace
from datetime import datetime

import pytest
import requests

from hotelops.domain.documents import CheckedOutStay, FinalBill, HotelSettings, RoomCharges, ServiceRequest
from hotelops.repository.hotel_repository import CHECKOUT_HISTORY, HotelRepository
from hotelops.services.email_service import InvoiceEmailService, InvoiceNotFoundError, render_invoice_html
from hotelops.utils.config import get_settings


HOTEL_ID = "hotel-mail"
STAY_ID = "101-INV001"


class _FakeResponse:
    def __init__(self, status_code: int) -> None:
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Client Error")


class _FakeSession:
    def __init__(self, status_code: int = 200, error: Exception | None = None) -> None:
        self.status_code = status_code
        self.error = error
        self.calls: list[dict] = []

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return _FakeResponse(self.status_code)


def _build(tmp_path, session: _FakeSession, api_key: str | None = "re_test_key") -> InvoiceEmailService:
    get_settings.cache_clear()
    settings = replace(get_settings(), database_path=tmp_path / "mail.db", email_api_key=api_key)
    repository = HotelRepository(settings)
    repository.initialize_database()
    repository.seed_demo_hotel(HOTEL_ID)
    repository.save_document(
        HOTEL_ID,
        CHECKOUT_HISTORY,
        CheckedOutStay(
            id=STAY_ID,
            stay_id=STAY_ID,
            room_number="101",
            room_type="Deluxe",
            guest_name="Meera Nair",
            check_in_date=datetime(2026, 3, 10, 14),
            check_out_date=datetime(2026, 3, 12, 10),
            final_bill=FinalBill(
                room_charges=RoomCharges(label="Deluxe (2 nights)", amount=2000.0),
                subtotal=2000.0,
                service_charge_amount=200.0,
                gst_amount=360.0,
                paid_amount=2560.0,
                total=2560.0,
                payment_method="Card/Cash",
            ),
        ),
    )
    return InvoiceEmailService(repository=repository, settings=settings, session=session)


def test_invoice_is_posted_once_with_bearer_key(tmp_path) -> None:
    session = _FakeSession()
    service = _build(tmp_path, session)

    result = service.send_invoice_email(HOTEL_ID, STAY_ID, "meera@example.com")

    assert result.ok
    assert len(session.calls) == 1
    call = session.calls[0]
    assert call["headers"] == {"Authorization": "Bearer re_test_key"}
    assert call["json"]["to"] == ["meera@example.com"]
    assert "Demo Hotel Pvt Ltd" in call["json"]["html"]
    assert "INR 2560.00" in call["json"]["html"]


def test_http_failure_is_reported_not_retried(tmp_path) -> None:
    session = _FakeSession(status_code=500)
    service = _build(tmp_path, session)

    result = service.send_invoice_email(HOTEL_ID, STAY_ID, "meera@example.com")

    assert result.status == "error"
    assert len(session.calls) == 1


def test_connection_error_is_reported(tmp_path) -> None:
    session = _FakeSession(error=requests.exceptions.ConnectionError("unreachable"))
    service = _build(tmp_path, session)

    assert not service.send_invoice_email(HOTEL_ID, STAY_ID, "meera@example.com").ok


def test_missing_api_key_skips_the_request(tmp_path) -> None:
    session = _FakeSession()
    service = _build(tmp_path, session, api_key=None)

    result = service.send_invoice_email(HOTEL_ID, STAY_ID, "meera@example.com")

    assert result.to_dict() == {"status": "error", "message": "Email delivery is not configured."}
    assert session.calls == []


def test_invalid_recipient_is_rejected(tmp_path) -> None:
    session = _FakeSession()
    service = _build(tmp_path, session)
    assert service.send_invoice_email(HOTEL_ID, STAY_ID, "not-an-address").status == "error"
    assert session.calls == []


def test_unknown_stay_raises(tmp_path) -> None:
    service = _build(tmp_path, _FakeSession())
    with pytest.raises(InvoiceNotFoundError):
        service.send_invoice_email(HOTEL_ID, "999-NOPE00", "meera@example.com")


def test_invoice_html_escapes_guest_supplied_text() -> None:
    stay = CheckedOutStay(
        id=STAY_ID,
        stay_id=STAY_ID,
        room_number="101",
        room_type="Deluxe",
        guest_name="<script>alert(1)</script>",
        check_in_date=datetime(2026, 3, 10, 14),
        check_out_date=datetime(2026, 3, 12, 10),
        final_bill=FinalBill(
            service_charges=[
                ServiceRequest(
                    id="svc-1",
                    room_number="101",
                    service='<img src=x onerror="steal()">',
                    price=150.0,
                    creation_time=datetime(2026, 3, 11, 9),
                )
            ],
            total=150.0,
        ),
    )

    html = render_invoice_html(stay, HotelSettings(legal_name="Tom & Jerry's Inn"))

    assert "<script>" not in html
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html
    assert "<img" not in html
    assert "Tom &amp; Jerry&#x27;s Inn" in html
