from __future__ import annotations

from dataclasses import replace
from datetime import datetime

import pytest

from hotelops.repository.hotel_repository import HotelRepository
from hotelops.services.access_service import AccessRequestNotFoundError, AccessService, DelegateNotFoundError
from hotelops.services.auth_service import (
    AdminTokenNotConfiguredError,
    AuthService,
    GuestLoginError,
    InvalidAdminTokenError,
)
from hotelops.services.room_service import RoomOperationsService
from hotelops.utils.config import get_settings


HOTEL_ID = "hotel-access"
NOW = datetime(2026, 3, 20, 9, 0)


def _build(tmp_path, admin_token: str | None = "secret-admin-token"):
    get_settings.cache_clear()
    settings = replace(get_settings(), database_path=tmp_path / "access.db", admin_token=admin_token)
    repository = HotelRepository(settings)
    repository.initialize_database()
    repository.seed_demo_hotel(HOTEL_ID)
    return settings, repository


def test_approve_moves_request_to_delegates(tmp_path) -> None:
    settings, repository = _build(tmp_path)
    access = AccessService(repository=repository, settings=settings)
    access.submit_request(HOTEL_ID, "uid-42", "night.manager@example.com", now=NOW)
    assert [item.id for item in access.list_requests(HOTEL_ID)] == ["uid-42"]

    delegate = access.approve_request(HOTEL_ID, "uid-42", now=NOW)

    assert delegate.granted_at == NOW
    assert access.list_requests(HOTEL_ID) == []
    assert [(item.id, item.requester_email) for item in access.list_delegates(HOTEL_ID)] == [
        ("uid-42", "night.manager@example.com")
    ]

    access.revoke_delegate(HOTEL_ID, "uid-42")
    assert access.list_delegates(HOTEL_ID) == []
    with pytest.raises(DelegateNotFoundError):
        access.revoke_delegate(HOTEL_ID, "uid-42")


def test_deny_discards_request(tmp_path) -> None:
    settings, repository = _build(tmp_path)
    access = AccessService(repository=repository, settings=settings)
    access.submit_request(HOTEL_ID, "uid-7", "temp@example.com")

    access.deny_request(HOTEL_ID, "uid-7")

    assert access.list_requests(HOTEL_ID) == []
    assert access.list_delegates(HOTEL_ID) == []
    with pytest.raises(AccessRequestNotFoundError):
        access.approve_request(HOTEL_ID, "uid-7")


def test_admin_login_issues_session_token(tmp_path) -> None:
    settings, repository = _build(tmp_path)
    auth = AuthService(settings=settings, repository=repository)

    with pytest.raises(InvalidAdminTokenError):
        auth.validate_bearer_token("anything")
    with pytest.raises(InvalidAdminTokenError):
        auth.login("wrong-token")

    token = auth.login("secret-admin-token")
    auth.validate_bearer_token(token)
    with pytest.raises(InvalidAdminTokenError):
        auth.validate_bearer_token("stale")


def test_login_without_configured_token_fails(tmp_path) -> None:
    settings, repository = _build(tmp_path, admin_token=None)
    auth = AuthService(settings=settings, repository=repository)

    assert not auth.auth_enabled
    auth.validate_bearer_token("ignored")
    with pytest.raises(AdminTokenNotConfiguredError):
        auth.login("anything")


def test_guest_login_requires_checked_in_stay_at_the_hotel(tmp_path) -> None:
    settings, repository = _build(tmp_path)
    rooms = RoomOperationsService(repository=repository, settings=settings)
    auth = AuthService(settings=settings, repository=repository)
    stay = rooms.add_stay(
        HOTEL_ID,
        "room-106",
        guest_name="Lena",
        check_in_date=datetime(2026, 3, 20, 14),
        check_out_date=datetime(2026, 3, 22, 11),
        room_charge=5000.0,
    )

    with pytest.raises(GuestLoginError):
        auth.guest_login(HOTEL_ID, stay.stay_id)

    rooms.check_in_stay(HOTEL_ID, "room-106", stay.stay_id)
    session = auth.guest_login(HOTEL_ID, f"  {stay.stay_id} ")

    assert session.to_dict() == {
        "hotel_id": HOTEL_ID,
        "stay_id": stay.stay_id,
        "room_id": "room-106",
        "room_number": "106",
    }
    with pytest.raises(GuestLoginError):
        auth.guest_login("other-hotel", stay.stay_id)
    with pytest.raises(GuestLoginError):
        auth.guest_login(HOTEL_ID, "   ")
