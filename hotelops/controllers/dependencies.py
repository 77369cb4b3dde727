"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from typing import Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hotelops.services.access_service import AccessService
from hotelops.services.analytics_service import AnalyticsService
from hotelops.services.auth_service import (
    AdminTokenNotConfiguredError,
    AuthService,
    InvalidAdminTokenError,
)
from hotelops.services.billing_service import BillingService
from hotelops.services.email_service import InvoiceEmailService
from hotelops.services.notification_service import NotificationService
from hotelops.services.room_service import RoomOperationsService
from hotelops.services.team_service import TeamService


bearer_scheme = HTTPBearer(auto_error=False)


def _state_service(request: Request, name: str, label: str) -> Any:
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} is not initialized",
        )
    return service


def get_auth_service(request: Request) -> AuthService:
    return _state_service(request, "auth_service", "Auth service")


def get_room_service(request: Request) -> RoomOperationsService:
    return _state_service(request, "room_service", "Room service")


def get_billing_service(request: Request) -> BillingService:
    return _state_service(request, "billing_service", "Billing service")


def get_analytics_service(request: Request) -> AnalyticsService:
    return _state_service(request, "analytics_service", "Analytics service")


def get_notification_service(request: Request) -> NotificationService:
    return _state_service(request, "notification_service", "Notification service")


def get_team_service(request: Request) -> TeamService:
    return _state_service(request, "team_service", "Team service")


def get_access_service(request: Request) -> AccessService:
    return _state_service(request, "access_service", "Access service")


def get_email_service(request: Request) -> InvoiceEmailService:
    return _state_service(request, "email_service", "Email service")


async def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> None:
    if not auth_service.auth_enabled:
        return
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header with Bearer token is required",
        )
    try:
        auth_service.validate_bearer_token(credentials.credentials)
    except (AdminTokenNotConfiguredError, InvalidAdminTokenError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
