"""Corporate accounts, billed orders, chargeable service requests and tax rates."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from hotelops.domain.constraints import BillingRates, validate_billing_rates
from hotelops.domain.documents import BilledOrder, CorporateClient, HotelSettings, ServiceRequest
from hotelops.domain.models import BilledOrderStatus, ServiceRequestStatus, StayStatus
from hotelops.repository.document_store import new_document_id
from hotelops.repository.hotel_repository import CORPORATE_CLIENTS, ROOMS, SERVICE_REQUESTS, HotelRepository
from hotelops.services.room_service import RoomOperationsService, StayFolio
from hotelops.utils.config import Settings, get_settings
from hotelops.utils.logger import get_logger


logger = get_logger(__name__)


class BillingServiceError(Exception):
    """Base exception for billing workflows."""


class BillingValidationError(BillingServiceError):
    """Raised when billing input is invalid."""


class ClientNotFoundError(BillingServiceError):
    """Raised when a corporate client does not exist."""


class BilledOrderNotFoundError(BillingServiceError):
    """Raised when a billed order id is not on the client."""


class ServiceRequestNotFoundError(BillingServiceError):
    """Raised when a service request id does not exist."""


def outstanding_balance(client: CorporateClient) -> float:
    return sum(
        order.amount
        for order in client.billed_orders
        if order.status == BilledOrderStatus.PENDING
    )


@dataclass(frozen=True)
class OpenBalance:
    room_id: str
    room_number: str
    stay_id: str
    guest_name: str
    is_group: bool
    folio: StayFolio

    def to_dict(self) -> dict[str, Any]:
        return {
            "room_id": self.room_id,
            "room_number": self.room_number,
            "stay_id": self.stay_id,
            "guest_name": self.guest_name,
            "is_group": self.is_group,
            "folio": self.folio.to_dict(),
        }


class BillingService:
    def __init__(
        self,
        repository: Optional[HotelRepository] = None,
        settings: Optional[Settings] = None,
        room_service: Optional[RoomOperationsService] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or HotelRepository(self._settings)
        self._rooms = room_service or RoomOperationsService(self._repository, self._settings)

    def get_rates(self, hotel_id: str) -> HotelSettings:
        return self._repository.get_hotel_settings(hotel_id)

    def update_rates(self, hotel_id: str, gst_rate: float, service_charge_rate: float) -> HotelSettings:
        try:
            validate_billing_rates(BillingRates(gst_rate=gst_rate, service_charge_rate=service_charge_rate))
        except ValueError as exc:
            raise BillingValidationError(str(exc)) from exc
        updated = self._repository.get_hotel_settings(hotel_id).model_copy(
            update={"gst_rate": gst_rate, "service_charge_rate": service_charge_rate}
        )
        self._repository.save_hotel_settings(hotel_id, updated)
        logger.info("Updated billing rates for %s: gst=%s service=%s", hotel_id, gst_rate, service_charge_rate)
        return updated

    def open_balances(self, hotel_id: str) -> list[OpenBalance]:
        """Checked-in stays with their folio; clubbed groups appear once, on the primary room."""
        balances: list[OpenBalance] = []
        seen_groups: set[str] = set()
        for room in self._repository.list_rooms(hotel_id):
            for stay in room.stays:
                if stay.status != StayStatus.CHECKED_IN:
                    continue
                master_id = stay.group_master_stay_id if stay.is_group_booking else None
                if master_id:
                    if master_id in seen_groups:
                        continue
                    seen_groups.add(master_id)
                folio = self._rooms.stay_folio(hotel_id, room.id, stay.stay_id, include_group=bool(master_id))
                balances.append(
                    OpenBalance(
                        room_id=room.id,
                        room_number=room.number,
                        stay_id=stay.stay_id,
                        guest_name=stay.guest_name,
                        is_group=bool(master_id),
                        folio=folio,
                    )
                )
        return balances

    def list_clients(self, hotel_id: str) -> list[CorporateClient]:
        return self._repository.list_corporate_clients(hotel_id)

    def get_client(self, hotel_id: str, client_id: str) -> CorporateClient:
        client = self._repository.get_corporate_client(hotel_id, client_id)
        if client is None:
            raise ClientNotFoundError(f"Corporate client {client_id} was not found")
        return client

    def add_client(
        self,
        hotel_id: str,
        name: str,
        address: str = "",
        contact_person: str = "",
        gst_number: str = "",
    ) -> CorporateClient:
        if not name.strip():
            raise BillingValidationError("Client name is required")
        client = CorporateClient(
            name=name.strip(),
            address=address,
            contact_person=contact_person,
            gst_number=gst_number,
        )
        return self._repository.add_document(hotel_id, CORPORATE_CLIENTS, client)

    def update_client(self, hotel_id: str, client_id: str, updates: dict[str, Any]) -> CorporateClient:
        allowed = {"name", "address", "contact_person", "gst_number"}
        unknown = set(updates) - allowed
        if unknown:
            raise BillingValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")
        if "name" in updates and not str(updates["name"]).strip():
            raise BillingValidationError("Client name is required")
        client = self.get_client(hotel_id, client_id)
        updated = client.model_copy(update=updates)
        self._repository.save_document(hotel_id, CORPORATE_CLIENTS, updated)
        return updated

    def delete_client(self, hotel_id: str, client_id: str) -> None:
        self.get_client(hotel_id, client_id)
        self._repository.delete_document(hotel_id, CORPORATE_CLIENTS, client_id)

    def add_billed_order(
        self,
        hotel_id: str,
        client_id: str,
        *,
        stay_id: str,
        guest_name: str,
        room_number: str,
        amount: float,
        status: BilledOrderStatus = BilledOrderStatus.PENDING,
        now: Optional[datetime] = None,
    ) -> BilledOrder:
        if amount <= 0:
            raise BillingValidationError("Billed amount must be > 0")
        timestamp = now or datetime.now()
        client = self.get_client(hotel_id, client_id)
        order = BilledOrder(
            id=new_document_id(),
            stay_id=stay_id,
            guest_name=guest_name,
            room_number=room_number,
            amount=amount,
            status=status,
            date=timestamp,
            paid_date=timestamp if status == BilledOrderStatus.PAID else None,
        )
        updated = client.model_copy(update={"billed_orders": [*client.billed_orders, order]})
        self._repository.save_document(hotel_id, CORPORATE_CLIENTS, updated)
        return order

    def update_billed_order(
        self,
        hotel_id: str,
        client_id: str,
        order_id: str,
        *,
        status: Optional[BilledOrderStatus] = None,
        amount: Optional[float] = None,
        paid_date: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> BilledOrder:
        client = self.get_client(hotel_id, client_id)
        order = next((item for item in client.billed_orders if item.id == order_id), None)
        if order is None:
            raise BilledOrderNotFoundError(f"Billed order {order_id} was not found")
        if amount is not None and amount <= 0:
            raise BillingValidationError("Billed amount must be > 0")

        updates: dict[str, Any] = {}
        if amount is not None:
            updates["amount"] = amount
        if status is not None:
            updates["status"] = status
        if paid_date is not None:
            updates["paid_date"] = paid_date
        new_status = status or order.status
        if new_status == BilledOrderStatus.PAID and paid_date is None and order.paid_date is None:
            updates["paid_date"] = now or datetime.now()
        elif new_status == BilledOrderStatus.PENDING:
            updates["paid_date"] = None

        updated_order = order.model_copy(update=updates)
        orders = [updated_order if item.id == order_id else item for item in client.billed_orders]
        self._repository.save_document(
            hotel_id,
            CORPORATE_CLIENTS,
            client.model_copy(update={"billed_orders": orders}),
        )
        return updated_order

    def delete_billed_order(self, hotel_id: str, client_id: str, order_id: str) -> None:
        client = self.get_client(hotel_id, client_id)
        orders = [item for item in client.billed_orders if item.id != order_id]
        if len(orders) == len(client.billed_orders):
            raise BilledOrderNotFoundError(f"Billed order {order_id} was not found")
        self._repository.save_document(
            hotel_id,
            CORPORATE_CLIENTS,
            client.model_copy(update={"billed_orders": orders}),
        )

    def bill_to_company(
        self,
        hotel_id: str,
        room_id: str,
        stay_id: str,
        client_id: str,
        amount: float,
        status: BilledOrderStatus = BilledOrderStatus.PENDING,
        now: Optional[datetime] = None,
    ) -> BilledOrder:
        """Move part of a stay's balance onto a corporate account.

        The stay is flagged as company-billed and the amount counts as paid
        from the guest's point of view.
        """
        if amount <= 0:
            raise BillingValidationError("Billed amount must be > 0")
        timestamp = now or datetime.now()
        room, stay = self._rooms.get_stay(hotel_id, room_id, stay_id)
        client = self.get_client(hotel_id, client_id)

        order = BilledOrder(
            id=new_document_id(),
            stay_id=stay.stay_id,
            guest_name=stay.guest_name,
            room_number=room.number,
            amount=amount,
            status=status,
            date=timestamp,
            paid_date=timestamp if status == BilledOrderStatus.PAID else None,
        )
        billed_stay = stay.model_copy(
            update={"is_billed_to_company": True, "paid_amount": stay.paid_amount + amount}
        )
        other_stays = [item for item in room.stays if item.stay_id != stay_id]

        batch = self._repository.batch()
        batch.set(
            self._repository.collection_path(hotel_id, CORPORATE_CLIENTS),
            client.id,
            client.model_copy(update={"billed_orders": [*client.billed_orders, order]}).to_document(),
        )
        batch.set(
            self._repository.collection_path(hotel_id, ROOMS),
            room.id,
            room.model_copy(update={"stays": [*other_stays, billed_stay]}).to_document(),
        )
        batch.commit()
        logger.info("Billed %.2f of stay %s to %s", amount, stay_id, client.name)
        return order

    def list_service_requests(self, hotel_id: str, stay_id: Optional[str] = None) -> list[ServiceRequest]:
        requests = self._repository.list_service_requests(hotel_id)
        if stay_id is not None:
            requests = [request for request in requests if request.stay_id == stay_id]
        return requests

    def create_service_request(
        self,
        hotel_id: str,
        *,
        room_number: str,
        service: str,
        price: float = 0.0,
        category: Optional[str] = None,
        stay_id: Optional[str] = None,
        quantity: Optional[int] = None,
        restaurant_id: Optional[str] = None,
        staff: Optional[str] = None,
        created_by: Optional[str] = None,
        is_manual_charge: bool = False,
        is_emergency: bool = False,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ServiceRequest:
        if not service.strip():
            raise BillingValidationError("Service name is required")
        if price < 0:
            raise BillingValidationError("price must be >= 0")
        if quantity is not None and quantity <= 0:
            raise BillingValidationError("quantity must be > 0")
        request = ServiceRequest(
            stay_id=stay_id,
            room_number=room_number,
            service=service.strip(),
            status=ServiceRequestStatus.PENDING,
            creation_time=now or datetime.now(),
            staff=staff,
            created_by=created_by,
            is_manual_charge=is_manual_charge,
            price=price,
            category=category,
            restaurant_id=restaurant_id,
            quantity=quantity,
            is_emergency=is_emergency,
            notes=notes,
        )
        created = self._repository.add_document(hotel_id, SERVICE_REQUESTS, request)
        if is_emergency:
            logger.warning("Emergency request raised from room %s", room_number)
        return created

    def update_service_request_status(
        self,
        hotel_id: str,
        request_id: str,
        status: ServiceRequestStatus,
        assigned_to: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ServiceRequest:
        request = self._repository.get_document(hotel_id, SERVICE_REQUESTS, request_id, ServiceRequest)
        if request is None:
            raise ServiceRequestNotFoundError(f"Service request {request_id} was not found")
        updates: dict[str, Any] = {"status": status}
        if assigned_to is not None:
            updates["assigned_to"] = assigned_to
        if status == ServiceRequestStatus.COMPLETED:
            updates["completion_time"] = now or datetime.now()
        updated = request.model_copy(update=updates)
        self._repository.save_document(hotel_id, SERVICE_REQUESTS, updated)
        return updated

    def delete_service_request(self, hotel_id: str, request_id: str) -> None:
        request = self._repository.get_document(hotel_id, SERVICE_REQUESTS, request_id, ServiceRequest)
        if request is None:
            raise ServiceRequestNotFoundError(f"Service request {request_id} was not found")
        self._repository.delete_document(hotel_id, SERVICE_REQUESTS, request_id)
