"""Delegated staff access: pending requests and granted delegates."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from hotelops.domain.documents import AccessRequest, Delegate
from hotelops.repository.hotel_repository import ACCESS_REQUESTS, DELEGATES, HotelRepository
from hotelops.utils.config import Settings, get_settings
from hotelops.utils.logger import get_logger


logger = get_logger(__name__)


class AccessServiceError(Exception):
    """Base exception for access management."""


class AccessRequestNotFoundError(AccessServiceError):
    """Raised when no pending request exists for the uid."""


class DelegateNotFoundError(AccessServiceError):
    """Raised when revoking a uid that holds no delegation."""


class AccessService:
    def __init__(
        self,
        repository: Optional[HotelRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or HotelRepository(self._settings)

    def list_requests(self, hotel_id: str) -> list[AccessRequest]:
        return self._repository.list_access_requests(hotel_id)

    def list_delegates(self, hotel_id: str) -> list[Delegate]:
        return self._repository.list_delegates(hotel_id)

    def submit_request(
        self,
        hotel_id: str,
        requester_uid: str,
        requester_email: str,
        now: Optional[datetime] = None,
    ) -> AccessRequest:
        request = AccessRequest(
            id=requester_uid,
            requester_uid=requester_uid,
            requester_email=requester_email,
            request_date=now or datetime.now(),
        )
        self._repository.save_document(hotel_id, ACCESS_REQUESTS, request)
        return request

    def _get_request(self, hotel_id: str, requester_uid: str) -> AccessRequest:
        request = self._repository.get_document(hotel_id, ACCESS_REQUESTS, requester_uid, AccessRequest)
        if request is None:
            raise AccessRequestNotFoundError(f"No pending access request for {requester_uid}")
        return request

    def approve_request(self, hotel_id: str, requester_uid: str, now: Optional[datetime] = None) -> Delegate:
        """Grant delegation and clear the request together."""
        request = self._get_request(hotel_id, requester_uid)
        delegate = Delegate(
            id=requester_uid,
            granted_at=now or datetime.now(),
            requester_email=request.requester_email,
        )
        batch = self._repository.batch()
        batch.set(self._repository.collection_path(hotel_id, DELEGATES), requester_uid, delegate.to_document())
        batch.delete(self._repository.collection_path(hotel_id, ACCESS_REQUESTS), requester_uid)
        batch.commit()
        logger.info("Granted delegated access to %s", request.requester_email)
        return delegate

    def deny_request(self, hotel_id: str, requester_uid: str) -> None:
        self._get_request(hotel_id, requester_uid)
        self._repository.delete_document(hotel_id, ACCESS_REQUESTS, requester_uid)

    def revoke_delegate(self, hotel_id: str, requester_uid: str) -> None:
        delegate = self._repository.get_document(hotel_id, DELEGATES, requester_uid, Delegate)
        if delegate is None:
            raise DelegateNotFoundError(f"{requester_uid} does not hold delegated access")
        self._repository.delete_document(hotel_id, DELEGATES, requester_uid)
        logger.info("Revoked delegated access for %s", delegate.requester_email)
