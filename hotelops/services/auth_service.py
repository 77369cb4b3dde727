"""Admin token authentication and guest portal login."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Optional

from hotelops.repository.hotel_repository import HotelRepository
from hotelops.utils.config import Settings, get_settings
from hotelops.utils.logger import get_logger


logger = get_logger(__name__)


class AuthenticationError(Exception):
    """Base authentication failure."""


class AdminTokenNotConfiguredError(AuthenticationError):
    """Raised when ADMIN_TOKEN is missing."""


class InvalidAdminTokenError(AuthenticationError):
    """Raised when provided token is invalid."""


class GuestLoginError(AuthenticationError):
    """Raised when a stay id does not match an active stay at the hotel."""


@dataclass(frozen=True)
class GuestSession:
    hotel_id: str
    stay_id: str
    room_id: str
    room_number: str

    def to_dict(self) -> dict[str, str]:
        return {
            "hotel_id": self.hotel_id,
            "stay_id": self.stay_id,
            "room_id": self.room_id,
            "room_number": self.room_number,
        }


class AuthService:
    """Validates login credentials, bearer tokens and guest stay ids."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        repository: Optional[HotelRepository] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or HotelRepository(self._settings)
        self._session_token: str | None = None

    @property
    def auth_enabled(self) -> bool:
        return bool(self._settings.admin_token)

    def _expected_token(self) -> str:
        if not self._settings.admin_token:
            raise AdminTokenNotConfiguredError(
                "ADMIN_TOKEN is not configured. Set ADMIN_TOKEN in environment variables."
            )
        return self._settings.admin_token

    def login(self, provided_admin_token: str) -> str:
        expected = self._expected_token()
        if not secrets.compare_digest(provided_admin_token, expected):
            raise InvalidAdminTokenError("Invalid admin token")
        self._session_token = secrets.token_urlsafe(32)
        return self._session_token

    def validate_bearer_token(self, bearer_token: str) -> None:
        if not self.auth_enabled:
            return
        if self._session_token is None:
            raise InvalidAdminTokenError("No active session. Login first.")
        if not secrets.compare_digest(bearer_token, self._session_token):
            raise InvalidAdminTokenError("Invalid bearer token")

    def guest_login(self, hotel_id: str, stay_id: str) -> GuestSession:
        """A guest is identified by the stay id printed on their key card."""
        cleaned = stay_id.strip()
        if not cleaned:
            raise GuestLoginError("Stay ID is required")
        active = self._repository.get_active_stay(cleaned)
        if active is None or active.hotel_id != hotel_id:
            logger.info("Rejected guest login for stay %s at %s", cleaned, hotel_id)
            raise GuestLoginError("Invalid Stay ID. Please check your booking and try again.")
        return GuestSession(
            hotel_id=hotel_id,
            stay_id=cleaned,
            room_id=active.room_id,
            room_number=active.room_number,
        )
