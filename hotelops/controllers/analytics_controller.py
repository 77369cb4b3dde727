"""Controller layer for analytics and live notifications."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from hotelops.controllers.dependencies import (
    get_analytics_service,
    get_notification_service,
    require_admin,
)
from hotelops.services.analytics_service import AnalyticsService, AnalyticsValidationError
from hotelops.services.notification_service import NotificationService
from hotelops.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/hotels/{hotel_id}", tags=["analytics"], dependencies=[Depends(require_admin)])


class RevenuePointRow(BaseModel):
    date: str
    revenue: float


class RevenueResponse(BaseModel):
    total_revenue: float
    room_revenue: float
    service_revenue: float
    corporate_revenue: float
    adr: float
    chart_data: list[RevenuePointRow]
    filter_label: str


class ServiceRow(BaseModel):
    name: str
    requests: int
    revenue: float
    category: str


class CategoryRow(BaseModel):
    name: str
    revenue: float


class ServiceAnalyticsResponse(BaseModel):
    total_service_revenue: float
    most_requested_service: Optional[ServiceRow] = None
    top_revenue_service: Optional[ServiceRow] = None
    service_analytics: list[ServiceRow]
    category_analytics: list[CategoryRow]
    filter_label: str


class MemberPerformanceRow(BaseModel):
    id: str
    name: str
    department: str
    tasks_completed: int
    avg_completion_minutes: float
    sla_breaches: int


class TopPerformerRow(BaseModel):
    name: str
    tasks_completed: int


class DepartmentPerformanceRow(BaseModel):
    name: str
    tasks_completed: int
    top_performer: Optional[TopPerformerRow] = None


class TeamAnalyticsResponse(BaseModel):
    member_stats: list[MemberPerformanceRow]
    department_stats: list[DepartmentPerformanceRow]
    total_completed_tasks: int
    total_sla_breaches: int
    avg_completion_minutes: float
    filter_label: str


class OccupancyRow(BaseModel):
    date: str
    occupancy: float


class NotificationRow(BaseModel):
    id: str
    type: str
    message: str
    details: str
    request_id: str
    room_number: str
    overdue_minutes: int


def _range(date_from: date, date_to: Optional[date]) -> tuple[datetime, Optional[datetime]]:
    start = datetime.combine(date_from, datetime.min.time())
    end = datetime.combine(date_to, datetime.min.time()) if date_to is not None else None
    return start, end


@router.get("/analytics/revenue", response_model=RevenueResponse, status_code=status.HTTP_200_OK)
async def revenue(
    hotel_id: str,
    date_from: date = Query(...),
    date_to: Optional[date] = Query(default=None),
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> RevenueResponse:
    try:
        result = analytics_service.revenue(hotel_id, *_range(date_from, date_to))
        return RevenueResponse(**result.to_dict())
    except AnalyticsValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected revenue analytics failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute revenue analytics",
        ) from exc


@router.get("/analytics/services", response_model=ServiceAnalyticsResponse, status_code=status.HTTP_200_OK)
async def services(
    hotel_id: str,
    date_from: date = Query(...),
    date_to: Optional[date] = Query(default=None),
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> ServiceAnalyticsResponse:
    try:
        result = analytics_service.services(hotel_id, *_range(date_from, date_to))
        return ServiceAnalyticsResponse(**result.to_dict())
    except AnalyticsValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected service analytics failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute service analytics",
        ) from exc


@router.get("/analytics/team", response_model=TeamAnalyticsResponse, status_code=status.HTTP_200_OK)
async def team(
    hotel_id: str,
    date_from: date = Query(...),
    date_to: Optional[date] = Query(default=None),
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> TeamAnalyticsResponse:
    try:
        result = analytics_service.team(hotel_id, *_range(date_from, date_to))
        return TeamAnalyticsResponse(**result.to_dict())
    except AnalyticsValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected team analytics failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute team analytics",
        ) from exc


@router.get("/analytics/occupancy", response_model=list[OccupancyRow], status_code=status.HTTP_200_OK)
async def occupancy(
    hotel_id: str,
    date_from: date = Query(...),
    date_to: Optional[date] = Query(default=None),
    analytics_service: AnalyticsService = Depends(get_analytics_service),
) -> list[OccupancyRow]:
    try:
        points = analytics_service.occupancy(hotel_id, *_range(date_from, date_to))
        return [OccupancyRow(date=point.date, occupancy=point.occupancy) for point in points]
    except AnalyticsValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected occupancy analytics failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute occupancy",
        ) from exc


@router.get("/notifications", response_model=list[NotificationRow], status_code=status.HTTP_200_OK)
async def notifications(
    hotel_id: str,
    notification_service: NotificationService = Depends(get_notification_service),
) -> list[NotificationRow]:
    try:
        current = notification_service.current(hotel_id)
        return [NotificationRow(**item.to_dict()) for item in current]
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected notification failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load notifications",
        ) from exc
