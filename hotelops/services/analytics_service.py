"""Hotel-scoped analytics over stored history, requests and rooms."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from hotelops.domain.analytics import (
    compute_occupancy_series,
    compute_revenue_analytics,
    compute_service_analytics,
    compute_team_analytics,
)
from hotelops.domain.models import OccupancyPoint, RevenueAnalytics, ServiceAnalytics, TeamAnalytics
from hotelops.repository.hotel_repository import HotelRepository
from hotelops.utils.config import Settings, get_settings


class AnalyticsValidationError(Exception):
    """Raised when an analytics date range is invalid."""


class AnalyticsService:
    def __init__(
        self,
        repository: Optional[HotelRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or HotelRepository(self._settings)

    @staticmethod
    def _check_range(date_from: datetime, date_to: Optional[datetime]) -> None:
        if date_to is not None and date_to.date() < date_from.date():
            raise AnalyticsValidationError("date_to must not precede date_from")

    def revenue(self, hotel_id: str, date_from: datetime, date_to: Optional[datetime] = None) -> RevenueAnalytics:
        self._check_range(date_from, date_to)
        return compute_revenue_analytics(
            self._repository.list_checkout_history(hotel_id),
            self._repository.list_corporate_clients(hotel_id),
            date_from,
            date_to,
        )

    def services(self, hotel_id: str, date_from: datetime, date_to: Optional[datetime] = None) -> ServiceAnalytics:
        self._check_range(date_from, date_to)
        return compute_service_analytics(
            self._repository.list_service_requests(hotel_id),
            self._repository.list_checkout_history(hotel_id),
            self._repository.list_restaurants(hotel_id),
            date_from,
            date_to,
        )

    def team(self, hotel_id: str, date_from: datetime, date_to: Optional[datetime] = None) -> TeamAnalytics:
        self._check_range(date_from, date_to)
        return compute_team_analytics(
            self._repository.list_service_requests(hotel_id),
            self._repository.list_team_members(hotel_id),
            self._repository.list_departments(hotel_id),
            self._repository.list_sla_rules(hotel_id),
            date_from,
            date_to,
        )

    def occupancy(
        self,
        hotel_id: str,
        date_from: datetime,
        date_to: Optional[datetime] = None,
    ) -> list[OccupancyPoint]:
        self._check_range(date_from, date_to)
        return compute_occupancy_series(self._repository.list_rooms(hotel_id), date_from, date_to)
