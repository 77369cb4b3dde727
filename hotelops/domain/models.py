"""Domain enums and derived-view result types."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Optional


class RoomStatus(str, Enum):
    AVAILABLE = "Available"
    OCCUPIED = "Occupied"
    CLEANING = "Cleaning"
    OUT_OF_ORDER = "Out of Order"
    WAITING_FOR_CHECK_IN = "Waiting for Check-in"
    RESERVED = "Reserved"


class StayStatus(str, Enum):
    BOOKED = "Booked"
    CHECKED_IN = "Checked In"
    CHECKED_OUT = "Checked Out"
    MASTER = "Master"


class ServiceRequestStatus(str, Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class BilledOrderStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"


class NotificationType(str, Enum):
    SOS = "sos"
    SLA = "sla"


@dataclass(frozen=True)
class FolioSummary:
    room_total: float
    services_total: float
    subtotal: float
    discount_amount: float
    service_charge_amount: float
    gst_amount: float
    total: float
    paid_amount: float
    balance: float

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class RevenuePoint:
    date: str
    revenue: float


@dataclass(frozen=True)
class RevenueAnalytics:
    total_revenue: float
    room_revenue: float
    service_revenue: float
    corporate_revenue: float
    adr: float
    chart_data: list[RevenuePoint]
    filter_label: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ServiceAnalyticsRow:
    name: str
    requests: int
    revenue: float
    category: str


@dataclass(frozen=True)
class CategoryRevenue:
    name: str
    revenue: float


@dataclass(frozen=True)
class ServiceAnalytics:
    total_service_revenue: float
    most_requested_service: Optional[ServiceAnalyticsRow]
    top_revenue_service: Optional[ServiceAnalyticsRow]
    service_analytics: list[ServiceAnalyticsRow]
    category_analytics: list[CategoryRevenue]
    filter_label: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class OccupancyPoint:
    date: str
    occupancy: float


@dataclass(frozen=True)
class Notification:
    id: str
    type: NotificationType
    message: str
    details: str
    request_id: str
    room_number: str
    overdue_minutes: int = 0

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["type"] = self.type.value
        return payload


@dataclass(frozen=True)
class Movement:
    room_id: str
    room_number: str
    stay_id: str
    guest_name: str


@dataclass(frozen=True)
class MemberPerformance:
    id: str
    name: str
    department: str
    tasks_completed: int
    avg_completion_minutes: float
    sla_breaches: int


@dataclass(frozen=True)
class TopPerformer:
    name: str
    tasks_completed: int


@dataclass(frozen=True)
class DepartmentPerformance:
    name: str
    tasks_completed: int
    top_performer: Optional[TopPerformer]


@dataclass(frozen=True)
class TeamAnalytics:
    member_stats: list[MemberPerformance]
    department_stats: list[DepartmentPerformance]
    total_completed_tasks: int
    total_sla_breaches: int
    avg_completion_minutes: float
    filter_label: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
