"""Room inventory and stay lifecycle (booking, check-in, cancellation)."""

from __future__ import annotations

import secrets
import string
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Sequence

from hotelops.domain.constraints import validate_discount
from hotelops.domain.documents import (
    ActiveStay,
    BilledOrder,
    CheckedOutStay,
    FinalBill,
    OutOfOrderBlock,
    Room,
    RoomCategory,
    RoomCharges,
    ServiceRequest,
    Stay,
)
from hotelops.domain.folio import Discount, compute_folio, group_stays, nights, stay_room_total
from hotelops.domain.models import (
    BilledOrderStatus,
    FolioSummary,
    Movement,
    RoomStatus,
    ServiceRequestStatus,
    StayStatus,
)
from hotelops.domain.room_status import resolve_display_status, todays_movements
from hotelops.repository.document_store import new_document_id
from hotelops.repository.hotel_repository import (
    ACTIVE_STAYS,
    CHECKOUT_HISTORY,
    CORPORATE_CLIENTS,
    ROOM_CATEGORIES,
    ROOMS,
    SERVICE_REQUESTS,
    HotelRepository,
)
from hotelops.utils.config import Settings, get_settings
from hotelops.utils.logger import get_logger


logger = get_logger(__name__)

_SHORT_ID_ALPHABET = string.ascii_uppercase + string.digits
EDITABLE_STAY_FIELDS = frozenset(
    {
        "guest_name",
        "guest_number",
        "check_in_date",
        "check_out_date",
        "room_charge",
        "paid_amount",
        "is_billed_to_company",
    }
)


class RoomServiceError(Exception):
    """Base exception for room and stay operations."""


class RoomValidationError(RoomServiceError):
    """Raised when room or stay input is invalid."""


class RoomNotFoundError(RoomServiceError):
    """Raised when a room id does not exist for the hotel."""


class StayNotFoundError(RoomServiceError):
    """Raised when a stay id is not attached to the room."""


class StayAlreadyCheckedOutError(RoomServiceError):
    """Raised when checkout targets a stay that is no longer on the room."""


class OutstandingBalanceError(RoomServiceError):
    """Raised when a guest-paid stay still owes money at checkout."""

    def __init__(self, balance: float) -> None:
        super().__init__(f"Outstanding balance of {balance:.2f} must be settled before checkout")
        self.balance = balance


class CategoryInUseError(RoomServiceError):
    """Raised when deleting a room category that rooms still reference."""


def short_id(length: int = 6) -> str:
    return "".join(secrets.choice(_SHORT_ID_ALPHABET) for _ in range(length))


@dataclass(frozen=True)
class RoomView:
    room: Room
    display_status: RoomStatus

    def to_dict(self) -> dict[str, Any]:
        payload = self.room.model_dump(mode="json", by_alias=True)
        payload["displayStatus"] = self.display_status.value
        return payload


@dataclass(frozen=True)
class StayFolio:
    stay_ids: tuple[str, ...]
    room_label: str
    service_charges: tuple[ServiceRequest, ...]
    summary: FolioSummary

    def to_dict(self) -> dict[str, Any]:
        return {
            "stay_ids": list(self.stay_ids),
            "room_label": self.room_label,
            "service_charges": [charge.model_dump(mode="json", by_alias=True) for charge in self.service_charges],
            **self.summary.to_dict(),
        }


@dataclass(frozen=True)
class CheckoutResult:
    stay_id: str
    room_number: str
    final_bill: FinalBill
    archived: bool
    cleaning_request_id: str
    billed_order_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "stay_id": self.stay_id,
            "room_number": self.room_number,
            "final_bill": self.final_bill.model_dump(mode="json", by_alias=True),
            "archived": self.archived,
            "cleaning_request_id": self.cleaning_request_id,
            "billed_order_id": self.billed_order_id,
        }


@dataclass(frozen=True)
class GroupAssignment:
    room_id: str
    guest_name: str
    room_charge: float
    guest_number: Optional[str] = None


class RoomOperationsService:
    """Reads rooms with derived status and applies stay lifecycle writes."""

    def __init__(
        self,
        repository: Optional[HotelRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or HotelRepository(self._settings)

    def _rooms_path(self, hotel_id: str) -> str:
        return self._repository.collection_path(hotel_id, ROOMS)

    def get_room(self, hotel_id: str, room_id: str) -> Room:
        room = self._repository.get_room(hotel_id, room_id)
        if room is None:
            raise RoomNotFoundError(f"Room {room_id} was not found")
        return room

    def get_stay(self, hotel_id: str, room_id: str, stay_id: str) -> tuple[Room, Stay]:
        room = self.get_room(hotel_id, room_id)
        stay = room.find_stay(stay_id)
        if stay is None:
            raise StayNotFoundError(f"Stay {stay_id} is not attached to room {room.number}")
        return room, stay

    def locate_stay(self, hotel_id: str, stay_id: str) -> tuple[Room, Stay]:
        for room in self._repository.list_rooms(hotel_id):
            stay = room.find_stay(stay_id)
            if stay is not None:
                return room, stay
        raise StayNotFoundError(f"Stay {stay_id} was not found")

    def list_rooms(self, hotel_id: str, now: Optional[datetime] = None) -> list[RoomView]:
        reference = now or datetime.now()
        return [
            RoomView(room=room, display_status=resolve_display_status(room, reference))
            for room in self._repository.list_rooms(hotel_id)
        ]

    def list_movements(
        self,
        hotel_id: str,
        now: Optional[datetime] = None,
    ) -> tuple[list[Movement], list[Movement]]:
        return todays_movements(self._repository.list_rooms(hotel_id), now or datetime.now())

    def add_rooms(self, hotel_id: str, rooms: Sequence[tuple[str, str]]) -> list[Room]:
        """Add (number, category) pairs as Available rooms in one batch."""
        if not rooms:
            raise RoomValidationError("At least one room is required")
        existing_numbers = {room.number for room in self._repository.list_rooms(hotel_id)}
        batch = self._repository.batch()
        created: list[Room] = []
        for number, category in rooms:
            number = number.strip()
            if not number or not category.strip():
                raise RoomValidationError("Room number and category are required")
            if number in existing_numbers:
                raise RoomValidationError(f"Room {number} already exists")
            existing_numbers.add(number)
            room = Room(id=f"room-{number}-{short_id(4).lower()}", number=number, type=category.strip())
            batch.set(self._rooms_path(hotel_id), room.id, room.to_document())
            created.append(room)
        batch.commit()
        logger.info("Added %s room(s) to hotel %s", len(created), hotel_id)
        return created

    def delete_room(self, hotel_id: str, room_id: str) -> None:
        self.get_room(hotel_id, room_id)
        self._repository.delete_document(hotel_id, ROOMS, room_id)

    def update_room(self, hotel_id: str, room_id: str, *, number: Optional[str] = None, category: Optional[str] = None) -> Room:
        room = self.get_room(hotel_id, room_id)
        updates: dict[str, Any] = {}
        if number is not None:
            if not number.strip():
                raise RoomValidationError("Room number cannot be empty")
            updates["number"] = number.strip()
        if category is not None:
            updates["type"] = category.strip()
        updated = room.model_copy(update=updates)
        self._repository.save_document(hotel_id, ROOMS, updated)
        return updated

    def set_out_of_order(self, hotel_id: str, room_id: str, date_from: datetime, date_to: datetime) -> Room:
        if date_to.date() < date_from.date():
            raise RoomValidationError("Out-of-order end date must not precede the start date")
        room = self.get_room(hotel_id, room_id)
        block = OutOfOrderBlock(from_date=date_from, to_date=date_to)
        updated = room.model_copy(update={"out_of_order_blocks": [*room.out_of_order_blocks, block]})
        self._repository.save_document(hotel_id, ROOMS, updated)
        logger.info("Room %s blocked from %s to %s", room.number, date_from.date(), date_to.date())
        return updated

    def clear_out_of_order(self, hotel_id: str, room_id: str) -> Room:
        room = self.get_room(hotel_id, room_id)
        updated = room.model_copy(update={"out_of_order_blocks": []})
        self._repository.save_document(hotel_id, ROOMS, updated)
        return updated

    def _validate_stay_dates(self, check_in: datetime, check_out: datetime) -> None:
        if check_out.date() < check_in.date():
            raise RoomValidationError("check_out_date must not precede check_in_date")

    def add_stay(
        self,
        hotel_id: str,
        room_id: str,
        *,
        guest_name: str,
        check_in_date: datetime,
        check_out_date: datetime,
        room_charge: float,
        paid_amount: float = 0.0,
        guest_number: Optional[str] = None,
        is_billed_to_company: bool = False,
    ) -> Stay:
        if not guest_name.strip():
            raise RoomValidationError("guest_name is required")
        if room_charge < 0 or paid_amount < 0:
            raise RoomValidationError("room_charge and paid_amount must be >= 0")
        self._validate_stay_dates(check_in_date, check_out_date)

        room = self.get_room(hotel_id, room_id)
        stay = Stay(
            stay_id=f"{room.number}-{short_id()}",
            guest_name=guest_name.strip(),
            guest_number=guest_number or None,
            check_in_date=check_in_date,
            check_out_date=check_out_date,
            room_charge=room_charge,
            paid_amount=paid_amount,
            is_billed_to_company=is_billed_to_company,
            status=StayStatus.BOOKED,
        )
        self._repository.save_document(
            hotel_id,
            ROOMS,
            room.model_copy(update={"stays": [*room.stays, stay]}),
        )
        logger.info("Booked stay %s in room %s", stay.stay_id, room.number)
        return stay

    def add_group_booking(
        self,
        hotel_id: str,
        assignments: Sequence[GroupAssignment],
        *,
        check_in_date: datetime,
        check_out_date: datetime,
        is_clubbed: bool,
        primary_room_id: Optional[str] = None,
        primary_guest_number: Optional[str] = None,
    ) -> tuple[Optional[str], list[Stay]]:
        """Book several rooms at once; clubbed groups share one master stay id."""
        if not assignments:
            raise RoomValidationError("A group booking needs at least one room")
        self._validate_stay_dates(check_in_date, check_out_date)

        master_stay_id = f"GROUP-{short_id(8)}" if is_clubbed else None
        batch = self._repository.batch()
        stays: list[Stay] = []
        for assignment in assignments:
            room = self.get_room(hotel_id, assignment.room_id)
            stay = Stay(
                stay_id=f"{room.number}-{short_id()}",
                guest_name=assignment.guest_name,
                guest_number=assignment.guest_number or primary_guest_number,
                check_in_date=check_in_date,
                check_out_date=check_out_date,
                room_charge=assignment.room_charge,
                status=StayStatus.BOOKED,
                is_group_booking=True,
                is_primary_in_group=bool(is_clubbed and primary_room_id == room.id),
                group_master_stay_id=master_stay_id,
            )
            updated = room.model_copy(update={"stays": [*room.stays, stay]})
            batch.set(self._rooms_path(hotel_id), room.id, updated.to_document())
            stays.append(stay)
        batch.commit()
        return master_stay_id, stays

    def update_stay(self, hotel_id: str, room_id: str, stay_id: str, updates: dict[str, Any]) -> Stay:
        unknown = set(updates) - EDITABLE_STAY_FIELDS
        if unknown:
            raise RoomValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")
        room, stay = self.get_stay(hotel_id, room_id, stay_id)
        updated_stay = Stay.model_validate({**stay.model_dump(), **updates})
        if updated_stay.check_in_date and updated_stay.check_out_date:
            self._validate_stay_dates(updated_stay.check_in_date, updated_stay.check_out_date)
        self._save_stay(hotel_id, room, updated_stay)
        return updated_stay

    def _save_stay(self, hotel_id: str, room: Room, stay: Stay) -> None:
        other_stays = [item for item in room.stays if item.stay_id != stay.stay_id]
        self._repository.save_document(
            hotel_id,
            ROOMS,
            room.model_copy(update={"stays": [*other_stays, stay]}),
        )

    def remove_stay(self, hotel_id: str, room_id: str, stay_id: str) -> None:
        """Cancel a booking and drop its guest-portal lookup."""
        room, _ = self.get_stay(hotel_id, room_id, stay_id)
        updated = room.model_copy(
            update={
                "stays": [item for item in room.stays if item.stay_id != stay_id],
                "guest_name": None,
                "stay_id": None,
                "check_in_date": None,
            }
        )
        batch = self._repository.batch()
        batch.set(self._rooms_path(hotel_id), room.id, updated.to_document())
        batch.delete(ACTIVE_STAYS, stay_id)
        batch.commit()
        logger.info("Cancelled stay %s in room %s", stay_id, room.number)

    def check_in_stay(self, hotel_id: str, room_id: str, stay_id: str) -> Room:
        room, stay = self.get_stay(hotel_id, room_id, stay_id)
        checked_in = stay.model_copy(update={"status": StayStatus.CHECKED_IN})
        other_stays = [item for item in room.stays if item.stay_id != stay_id]
        updated = room.model_copy(
            update={
                "stays": [*other_stays, checked_in],
                "guest_name": checked_in.guest_name,
                "stay_id": checked_in.stay_id,
                "check_in_date": checked_in.check_in_date,
                "check_out_date": checked_in.check_out_date,
                "status": RoomStatus.OCCUPIED,
            }
        )
        active_stay = ActiveStay(hotel_id=hotel_id, room_number=room.number, room_id=room.id)

        batch = self._repository.batch()
        batch.set(self._rooms_path(hotel_id), room.id, updated.to_document())
        batch.set(ACTIVE_STAYS, stay_id, active_stay.to_document(), merge=True)
        batch.commit()
        logger.info("Checked in %s to room %s", checked_in.guest_name, room.number)
        return updated

    def record_payment(self, hotel_id: str, room_id: str, stay_id: str, amount: float) -> Stay:
        if amount <= 0:
            raise RoomValidationError("Payment amount must be > 0")
        room, stay = self.get_stay(hotel_id, room_id, stay_id)
        paid = stay.model_copy(update={"paid_amount": stay.paid_amount + amount})
        self._save_stay(hotel_id, room, paid)
        logger.info("Recorded payment of %.2f for stay %s", amount, stay_id)
        return paid

    def _build_discount(self, kind: Optional[str], value: Optional[float], subtotal: float) -> Optional[Discount]:
        if kind is None or not value:
            return None
        try:
            validate_discount(kind, value, subtotal)
        except ValueError as exc:
            raise RoomValidationError(str(exc)) from exc
        return Discount(kind=kind, value=value)  # type: ignore[arg-type]

    def stay_folio(
        self,
        hotel_id: str,
        room_id: str,
        stay_id: str,
        *,
        include_group: bool = False,
        discount_kind: Optional[str] = None,
        discount_value: Optional[float] = None,
    ) -> StayFolio:
        """Running bill for one stay, or for its whole clubbed group."""
        room, stay = self.get_stay(hotel_id, room_id, stay_id)
        stays = [stay]
        if include_group:
            all_stays = [item for other in self._repository.list_rooms(hotel_id) for item in other.stays]
            stays = group_stays(stay, all_stays)
        return self._folio_for(hotel_id, room, stays, discount_kind, discount_value)

    def _folio_for(
        self,
        hotel_id: str,
        room: Room,
        stays: Sequence[Stay],
        discount_kind: Optional[str],
        discount_value: Optional[float],
    ) -> StayFolio:
        stay_ids = tuple(stay.stay_id for stay in stays)
        charges = tuple(
            request
            for request in self._repository.list_service_requests(hotel_id)
            if request.stay_id and request.stay_id in stay_ids
        )
        rates = self._repository.get_hotel_settings(hotel_id)
        room_total = stay_room_total(stays)
        subtotal = room_total + sum(charge.price or 0.0 for charge in charges)
        summary = compute_folio(
            room_total=room_total,
            service_charges=charges,
            service_charge_rate=rates.service_charge_rate,
            gst_rate=rates.gst_rate,
            paid_amount=sum(stay.paid_amount for stay in stays),
            discount=self._build_discount(discount_kind, discount_value, subtotal),
        )
        if len(stays) == 1:
            first = stays[0]
            label = f"{room.type} ({nights(first.check_in_date, first.check_out_date)} nights)"
        else:
            label = f"Group booking ({len(stays)} rooms)"
        return StayFolio(stay_ids=stay_ids, room_label=label, service_charges=charges, summary=summary)

    def checkout_stay(
        self,
        hotel_id: str,
        room_id: str,
        stay_id: str,
        *,
        corporate_client_id: Optional[str] = None,
        discount_kind: Optional[str] = None,
        discount_value: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> CheckoutResult:
        """Finalize the bill, archive the stay and release the room for cleaning.

        Every write lands in one batch: the archived record (when billable), the
        cleaning request, the billed order (company stays with a client), the
        active-stay removal and the room update.
        """
        checkout_time = now or datetime.now()
        room = self.get_room(hotel_id, room_id)
        stay = room.find_stay(stay_id)
        if stay is None:
            raise StayAlreadyCheckedOutError(f"Stay {stay_id} has already been checked out")

        folio = self._folio_for(hotel_id, room, [stay], discount_kind, discount_value)
        summary = folio.summary
        if summary.balance > 0 and not stay.is_billed_to_company:
            raise OutstandingBalanceError(summary.balance)

        client = None
        if corporate_client_id:
            client = self._repository.get_corporate_client(hotel_id, corporate_client_id)
            if client is None:
                raise RoomValidationError(f"Corporate client {corporate_client_id} was not found")
        elif stay.is_billed_to_company and summary.balance > 0:
            raise RoomValidationError("A corporate client is required to bill the open balance to a company")
        if stay.is_billed_to_company:
            payment_method = f"Billed to {client.name if client else 'Company'}"
        else:
            payment_method = "Card/Cash"

        final_bill = FinalBill(
            room_charges=RoomCharges(label=folio.room_label, amount=summary.room_total),
            service_charges=list(folio.service_charges),
            subtotal=summary.subtotal,
            service_charge_amount=summary.service_charge_amount,
            gst_amount=summary.gst_amount,
            paid_amount=summary.paid_amount,
            discount=summary.discount_amount,
            total=summary.total,
            payment_method=payment_method,
        )

        batch = self._repository.batch()
        archived = summary.total > 0 or (summary.total == 0 and stay.is_billed_to_company)
        if archived:
            record = CheckedOutStay(
                stay_id=stay.stay_id,
                room_number=room.number,
                room_type=room.type,
                guest_name=stay.guest_name,
                check_in_date=stay.check_in_date or checkout_time,
                check_out_date=checkout_time,
                final_bill=final_bill,
            )
            batch.set(
                self._repository.collection_path(hotel_id, CHECKOUT_HISTORY),
                stay.stay_id,
                record.to_document(),
            )

        billed_order_id = None
        if client is not None and stay.is_billed_to_company and summary.balance > 0:
            order = BilledOrder(
                id=new_document_id(),
                stay_id=stay.stay_id,
                guest_name=stay.guest_name,
                room_number=room.number,
                amount=summary.balance,
                status=BilledOrderStatus.PENDING,
                date=checkout_time,
            )
            billed_order_id = order.id
            updated_client = client.model_copy(update={"billed_orders": [*client.billed_orders, order]})
            batch.set(
                self._repository.collection_path(hotel_id, CORPORATE_CLIENTS),
                client.id,
                updated_client.to_document(),
            )

        cleaning = ServiceRequest(
            stay_id=stay.stay_id,
            room_number=room.number,
            service=self._settings.post_checkout_cleaning_service,
            status=ServiceRequestStatus.PENDING,
            creation_time=checkout_time,
            staff="Housekeeping",
            created_by="system",
            is_manual_charge=True,
            price=0.0,
            category=self._settings.post_checkout_cleaning_category,
        )
        cleaning_id = new_document_id()
        batch.set(
            self._repository.collection_path(hotel_id, SERVICE_REQUESTS),
            cleaning_id,
            cleaning.to_document(),
        )

        batch.delete(ACTIVE_STAYS, stay.stay_id)
        released = room.model_copy(
            update={
                "stays": [item for item in room.stays if item.stay_id != stay.stay_id],
                "guest_name": None,
                "stay_id": None,
                "check_in_date": None,
                "status": RoomStatus.CLEANING,
                "check_out_date": checkout_time,
            }
        )
        batch.set(self._rooms_path(hotel_id), room.id, released.to_document())
        batch.commit()

        logger.info(
            "Checked out stay %s from room %s (total=%.2f archived=%s)",
            stay.stay_id,
            room.number,
            summary.total,
            archived,
        )
        return CheckoutResult(
            stay_id=stay.stay_id,
            room_number=room.number,
            final_bill=final_bill,
            archived=archived,
            cleaning_request_id=cleaning_id,
            billed_order_id=billed_order_id,
        )

    def list_categories(self, hotel_id: str) -> list[RoomCategory]:
        return self._repository.list_room_categories(hotel_id)

    def add_category(self, hotel_id: str, name: str, base_price: float, description: str = "") -> RoomCategory:
        if not name.strip():
            raise RoomValidationError("Category name is required")
        return self._repository.add_document(
            hotel_id,
            ROOM_CATEGORIES,
            RoomCategory(name=name.strip(), base_price=base_price, description=description),
        )

    def rename_category(self, hotel_id: str, category_id: str, new_name: str) -> RoomCategory:
        """Rename a category and every room that references it by name."""
        category = self._repository.get_document(hotel_id, ROOM_CATEGORIES, category_id, RoomCategory)
        if category is None:
            raise RoomValidationError(f"Category {category_id} was not found")
        if not new_name.strip():
            raise RoomValidationError("Category name is required")
        renamed = category.model_copy(update={"name": new_name.strip()})
        batch = self._repository.batch()
        for room in self._repository.list_rooms(hotel_id):
            if room.type == category.name:
                batch.update(self._rooms_path(hotel_id), room.id, {"type": renamed.name})
        batch.set(
            self._repository.collection_path(hotel_id, ROOM_CATEGORIES),
            category.id,
            renamed.to_document(),
        )
        batch.commit()
        return renamed

    def delete_category(self, hotel_id: str, category_id: str) -> None:
        category = self._repository.get_document(hotel_id, ROOM_CATEGORIES, category_id, RoomCategory)
        if category is None:
            raise RoomValidationError(f"Category {category_id} was not found")
        in_use = [room for room in self._repository.list_rooms(hotel_id) if room.type == category.name]
        if in_use:
            raise CategoryInUseError(
                f'Cannot delete "{category.name}". {len(in_use)} room(s) are still assigned to this category.'
            )
        self._repository.delete_document(hotel_id, ROOM_CATEGORIES, category_id)
