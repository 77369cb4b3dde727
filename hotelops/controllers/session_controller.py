"""Controller layer for admin login and guest portal login."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from hotelops.controllers.dependencies import get_auth_service
from hotelops.services.auth_service import (
    AdminTokenNotConfiguredError,
    AuthService,
    GuestLoginError,
    InvalidAdminTokenError,
)
from hotelops.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["session"])


class LoginRequest(BaseModel):
    admin_token: str = Field(min_length=1)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class GuestLoginRequest(BaseModel):
    hotel_id: str = Field(min_length=1)
    stay_id: str = Field(min_length=1)


class GuestLoginResponse(BaseModel):
    hotel_id: str
    stay_id: str
    room_id: str
    room_number: str


@router.post("/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
async def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    try:
        bearer = auth_service.login(payload.admin_token)
        return LoginResponse(access_token=bearer)
    except (AdminTokenNotConfiguredError, InvalidAdminTokenError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected login failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to login",
        ) from exc


@router.post("/guest_login", response_model=GuestLoginResponse, status_code=status.HTTP_200_OK)
async def guest_login(
    payload: GuestLoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> GuestLoginResponse:
    try:
        session = auth_service.guest_login(payload.hotel_id, payload.stay_id)
        return GuestLoginResponse(**session.to_dict())
    except GuestLoginError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected guest login failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to verify stay",
        ) from exc
