"""Typed, hotel-scoped access to the document store."""

from __future__ import annotations

from typing import Any, Optional, Type, TypeVar

from pydantic import ValidationError

from hotelops.domain.documents import (
    AccessRequest,
    ActiveStay,
    CheckedOutStay,
    CorporateClient,
    Delegate,
    Department,
    HotelSettings,
    Restaurant,
    Room,
    RoomCategory,
    ServiceRequest,
    Shift,
    SlaRule,
    StoreDocument,
    TeamMember,
)
from hotelops.repository.document_store import DocumentStore, WriteBatch, join_path
from hotelops.utils.config import Settings, get_settings
from hotelops.utils.logger import get_logger


logger = get_logger(__name__)

DocumentT = TypeVar("DocumentT", bound=StoreDocument)

ROOMS = "rooms"
ROOM_CATEGORIES = "roomCategories"
SERVICE_REQUESTS = "serviceRequests"
CHECKOUT_HISTORY = "checkoutHistory"
CORPORATE_CLIENTS = "corporateClients"
TEAM_MEMBERS = "teamMembers"
DEPARTMENTS = "departments"
SHIFTS = "shifts"
SLA_RULES = "slaRules"
RESTAURANTS = "restaurants"
ACCESS_REQUESTS = "accessRequests"
DELEGATES = "delegates"
CONFIG = "config"
SETTINGS_DOC_ID = "settings"
ACTIVE_STAYS = "activeStays"


class InvalidDocumentError(ValueError):
    """Raised when a stored document does not match its schema."""


class HotelRepository:
    """Reads parse through pydantic schemas; writes serialize through them."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[DocumentStore] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._store = store or DocumentStore(self._settings)

    @property
    def store(self) -> DocumentStore:
        return self._store

    def initialize_database(self) -> None:
        self._store.initialize()

    @staticmethod
    def collection_path(hotel_id: str, collection: str) -> str:
        return join_path("hotels", hotel_id, collection)

    def batch(self) -> WriteBatch:
        return self._store.batch()

    def _parse(self, model: Type[DocumentT], doc_id: str, data: dict[str, Any]) -> DocumentT:
        try:
            return model.model_validate({**data, "id": doc_id})
        except ValidationError as exc:
            raise InvalidDocumentError(
                f"{model.__name__} {doc_id} failed validation: {exc.error_count()} error(s)"
            ) from exc

    def list_documents(self, hotel_id: str, collection: str, model: Type[DocumentT]) -> list[DocumentT]:
        """Parse every document; malformed ones are logged and left out of the view."""
        documents: list[DocumentT] = []
        for doc_id, data in self._store.list_collection(self.collection_path(hotel_id, collection)):
            try:
                documents.append(self._parse(model, doc_id, data))
            except InvalidDocumentError as exc:
                logger.warning("Skipping malformed document in %s: %s", collection, exc)
        return documents

    def get_document(
        self,
        hotel_id: str,
        collection: str,
        doc_id: str,
        model: Type[DocumentT],
    ) -> Optional[DocumentT]:
        data = self._store.get(self.collection_path(hotel_id, collection), doc_id)
        if data is None:
            return None
        return self._parse(model, doc_id, data)

    def add_document(self, hotel_id: str, collection: str, document: DocumentT) -> DocumentT:
        doc_id = self._store.add(self.collection_path(hotel_id, collection), document.to_document())
        return document.model_copy(update={"id": doc_id})

    def save_document(self, hotel_id: str, collection: str, document: StoreDocument) -> None:
        if not document.id:
            raise ValueError("Cannot save a document without an id")
        self._store.set(self.collection_path(hotel_id, collection), document.id, document.to_document())

    def delete_document(self, hotel_id: str, collection: str, doc_id: str) -> None:
        self._store.delete(self.collection_path(hotel_id, collection), doc_id)

    def count_documents(self, hotel_id: str, collection: str) -> int:
        return self._store.count(self.collection_path(hotel_id, collection))

    def list_rooms(self, hotel_id: str) -> list[Room]:
        return self.list_documents(hotel_id, ROOMS, Room)

    def get_room(self, hotel_id: str, room_id: str) -> Optional[Room]:
        return self.get_document(hotel_id, ROOMS, room_id, Room)

    def list_room_categories(self, hotel_id: str) -> list[RoomCategory]:
        return self.list_documents(hotel_id, ROOM_CATEGORIES, RoomCategory)

    def list_service_requests(self, hotel_id: str) -> list[ServiceRequest]:
        return self.list_documents(hotel_id, SERVICE_REQUESTS, ServiceRequest)

    def list_checkout_history(self, hotel_id: str) -> list[CheckedOutStay]:
        return self.list_documents(hotel_id, CHECKOUT_HISTORY, CheckedOutStay)

    def list_corporate_clients(self, hotel_id: str) -> list[CorporateClient]:
        return self.list_documents(hotel_id, CORPORATE_CLIENTS, CorporateClient)

    def get_corporate_client(self, hotel_id: str, client_id: str) -> Optional[CorporateClient]:
        return self.get_document(hotel_id, CORPORATE_CLIENTS, client_id, CorporateClient)

    def list_team_members(self, hotel_id: str) -> list[TeamMember]:
        return self.list_documents(hotel_id, TEAM_MEMBERS, TeamMember)

    def list_departments(self, hotel_id: str) -> list[Department]:
        return self.list_documents(hotel_id, DEPARTMENTS, Department)

    def list_shifts(self, hotel_id: str) -> list[Shift]:
        return self.list_documents(hotel_id, SHIFTS, Shift)

    def list_sla_rules(self, hotel_id: str) -> list[SlaRule]:
        return self.list_documents(hotel_id, SLA_RULES, SlaRule)

    def list_restaurants(self, hotel_id: str) -> list[Restaurant]:
        return self.list_documents(hotel_id, RESTAURANTS, Restaurant)

    def list_access_requests(self, hotel_id: str) -> list[AccessRequest]:
        return self.list_documents(hotel_id, ACCESS_REQUESTS, AccessRequest)

    def list_delegates(self, hotel_id: str) -> list[Delegate]:
        return self.list_documents(hotel_id, DELEGATES, Delegate)

    def get_hotel_settings(self, hotel_id: str) -> HotelSettings:
        """Stored settings merged over configured defaults."""
        defaults = HotelSettings(
            currency=self._settings.default_currency,
            gst_rate=self._settings.default_gst_rate,
            service_charge_rate=self._settings.default_service_charge_rate,
        )
        stored = self._store.get(self.collection_path(hotel_id, CONFIG), SETTINGS_DOC_ID)
        if not stored:
            return defaults
        try:
            return HotelSettings.model_validate({**defaults.to_document(), **stored})
        except ValidationError as exc:
            raise InvalidDocumentError(f"Hotel settings for {hotel_id} are invalid") from exc

    def save_hotel_settings(self, hotel_id: str, settings: HotelSettings) -> None:
        self._store.set(
            self.collection_path(hotel_id, CONFIG),
            SETTINGS_DOC_ID,
            settings.to_document(),
            merge=True,
        )

    def get_active_stay(self, stay_id: str) -> Optional[ActiveStay]:
        data = self._store.get(ACTIVE_STAYS, stay_id)
        if data is None:
            return None
        return self._parse(ActiveStay, stay_id, data)

    def seed_demo_hotel(self, hotel_id: Optional[str] = None) -> None:
        """Seed a small demo property only when it has no rooms yet."""
        target = hotel_id or self._settings.demo_hotel_id
        if self.count_documents(target, ROOMS) > 0:
            logger.info("Demo hotel %s already seeded; skipping", target)
            return

        categories = [
            RoomCategory(name="Deluxe", description="King bed, city view", base_price=4500.0),
            RoomCategory(name="Suite", description="Separate living area", base_price=8000.0),
        ]
        rooms = [
            Room(number=str(number), type="Deluxe" if number < 105 else "Suite")
            for number in range(101, 109)
        ]
        departments = [
            Department(name="Reception", manages=[]),
            Department(name="Housekeeping", manages=["Housekeeping Services", "Laundry"]),
            Department(name="F&B", manages=["In-Room Dining"]),
            Department(name="Maintenance", manages=["Maintenance"]),
        ]
        shifts = [
            Shift(name="Morning", start_time="06:00", end_time="14:00"),
            Shift(name="Evening", start_time="14:00", end_time="22:00"),
            Shift(name="Night", start_time="22:00", end_time="06:00"),
        ]
        sla_rules = [
            SlaRule(service_name="Housekeeping Services", time_limit_minutes=45),
            SlaRule(service_name="In-Room Dining", time_limit_minutes=30),
            SlaRule(service_name="Maintenance", time_limit_minutes=60),
        ]

        batch = self.batch()
        for category in categories:
            batch.set(self.collection_path(target, ROOM_CATEGORIES), _slug(category.name), category.to_document())
        for room in rooms:
            batch.set(self.collection_path(target, ROOMS), f"room-{room.number}", room.to_document())
        for department in departments:
            batch.set(self.collection_path(target, DEPARTMENTS), _slug(department.name), department.to_document())
        for shift in shifts:
            batch.set(self.collection_path(target, SHIFTS), _slug(shift.name), shift.to_document())
        for rule in sla_rules:
            batch.set(self.collection_path(target, SLA_RULES), _slug(rule.service_name), rule.to_document())
        batch.set(
            self.collection_path(target, RESTAURANTS),
            "main-kitchen",
            Restaurant(name="Main Kitchen", categories=["Breakfast", "Mains"]).to_document(),
        )
        batch.set(
            self.collection_path(target, TEAM_MEMBERS),
            "member-asha",
            TeamMember(name="Asha", email="asha@example.com", department="Housekeeping", shift_id="morning").to_document(),
        )
        batch.set(
            self.collection_path(target, CORPORATE_CLIENTS),
            "acme",
            CorporateClient(name="Acme Travels", contact_person="R. Iyer").to_document(),
        )
        batch.set(
            self.collection_path(target, CONFIG),
            SETTINGS_DOC_ID,
            HotelSettings(
                currency=self._settings.default_currency,
                gst_rate=self._settings.default_gst_rate,
                service_charge_rate=self._settings.default_service_charge_rate,
                legal_name="Demo Hotel Pvt Ltd",
            ).to_document(),
        )
        batch.commit()
        logger.info("Seeded demo hotel %s with %s rooms", target, len(rooms))


def _slug(value: str) -> str:
    return "".join(char if char.isalnum() else "-" for char in value.lower()).strip("-")
