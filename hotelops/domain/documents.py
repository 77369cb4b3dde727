"""Schemas for documents crossing from the store into application logic.

Stored documents use camelCase keys and ISO-8601 date strings. Every read goes
through one of these models so services never touch raw dictionaries, and
every write goes back through ``to_document`` so the stored shape stays stable.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from hotelops.domain.models import (
    BilledOrderStatus,
    RoomStatus,
    ServiceRequestStatus,
    StayStatus,
)
from hotelops.utils.dates import as_naive


StoreDateTime = Annotated[datetime, AfterValidator(as_naive)]


class StoreModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude={"id"})


class StoreDocument(StoreModel):
    """Top-level document; ``id`` is the document key, not a stored field."""

    id: str = ""


class Stay(StoreModel):
    stay_id: str
    guest_name: str
    guest_number: Optional[str] = None
    check_in_date: Optional[StoreDateTime] = None
    check_out_date: Optional[StoreDateTime] = None
    room_charge: float = 0.0
    paid_amount: float = 0.0
    is_billed_to_company: bool = False
    status: StayStatus = StayStatus.BOOKED
    is_group_booking: bool = False
    group_master_stay_id: Optional[str] = None
    is_primary_in_group: bool = False


class OutOfOrderBlock(StoreModel):
    from_date: StoreDateTime = Field(alias="from")
    to_date: StoreDateTime = Field(alias="to")


class Room(StoreDocument):
    number: str
    type: str
    status: RoomStatus = RoomStatus.AVAILABLE
    stays: list[Stay] = Field(default_factory=list)
    out_of_order_blocks: list[OutOfOrderBlock] = Field(default_factory=list)
    guest_name: Optional[str] = None
    stay_id: Optional[str] = None
    check_in_date: Optional[StoreDateTime] = None
    check_out_date: Optional[StoreDateTime] = None

    def find_stay(self, stay_id: str) -> Optional[Stay]:
        return next((stay for stay in self.stays if stay.stay_id == stay_id), None)


class RoomCategory(StoreDocument):
    name: str
    description: str = ""
    base_price: float = 0.0


class ServiceRequest(StoreDocument):
    stay_id: Optional[str] = None
    room_number: str
    service: str
    status: ServiceRequestStatus = ServiceRequestStatus.PENDING
    time: str = "Now"
    creation_time: StoreDateTime
    completion_time: Optional[StoreDateTime] = None
    staff: Optional[str] = None
    assigned_to: Optional[str] = None
    created_by: Optional[str] = None
    is_manual_charge: bool = False
    price: float = 0.0
    category: Optional[str] = None
    service_id: Optional[str] = None
    restaurant_id: Optional[str] = None
    quantity: Optional[int] = None
    is_emergency: bool = False
    notes: Optional[str] = None


class RoomCharges(StoreModel):
    label: str = "Room Charge"
    amount: float = 0.0


class FinalBill(StoreModel):
    room_charges: RoomCharges = Field(default_factory=RoomCharges)
    service_charges: list[ServiceRequest] = Field(default_factory=list)
    subtotal: float = 0.0
    service_charge_amount: float = 0.0
    gst_amount: float = 0.0
    paid_amount: float = 0.0
    discount: float = 0.0
    total: float = 0.0
    payment_method: str = "Unknown"


class CheckedOutStay(StoreDocument):
    stay_id: str
    room_number: str
    room_type: str
    guest_name: str
    check_in_date: StoreDateTime
    check_out_date: StoreDateTime
    final_bill: FinalBill


class BilledOrder(StoreModel):
    id: str
    stay_id: str
    guest_name: str
    room_number: str
    amount: float
    status: BilledOrderStatus = BilledOrderStatus.PENDING
    date: StoreDateTime
    paid_date: Optional[StoreDateTime] = None


class CorporateClient(StoreDocument):
    name: str
    address: str = ""
    contact_person: str = ""
    gst_number: str = ""
    billed_orders: list[BilledOrder] = Field(default_factory=list)


class TeamMember(StoreDocument):
    name: str
    email: str = ""
    department: str
    role: str = "Member"
    shift_id: Optional[str] = None
    attendance_status: str = "Clocked Out"
    restaurant_id: Optional[str] = None


class Shift(StoreDocument):
    name: str
    start_time: str
    end_time: str


class Department(StoreDocument):
    name: str
    manages: list[str] = Field(default_factory=list)


class SlaRule(StoreDocument):
    service_name: str
    time_limit_minutes: int = Field(gt=0)


class Restaurant(StoreDocument):
    name: str
    categories: list[str] = Field(default_factory=list)
    sla_minutes: Optional[int] = None


class HotelSettings(StoreModel):
    country: str = ""
    currency: str = "INR"
    legal_name: str = ""
    address: str = ""
    gst_number: str = ""
    gst_rate: float = 18.0
    service_charge_rate: float = 10.0


class AccessRequest(StoreDocument):
    requester_uid: str
    requester_email: str
    request_date: Optional[StoreDateTime] = None


class Delegate(StoreDocument):
    granted_at: StoreDateTime
    requester_email: str


class ActiveStay(StoreDocument):
    hotel_id: str
    room_number: str
    room_id: str
