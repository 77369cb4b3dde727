"""Controller layer for rooms, stays, folios and checkout."""

from __future__ import annotations

from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator

from hotelops.controllers.dependencies import get_room_service, require_admin
from hotelops.domain.documents import StoreDateTime
from hotelops.services.room_service import (
    CategoryInUseError,
    GroupAssignment,
    OutstandingBalanceError,
    RoomNotFoundError,
    RoomOperationsService,
    RoomServiceError,
    RoomValidationError,
    StayAlreadyCheckedOutError,
    StayNotFoundError,
)
from hotelops.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/hotels/{hotel_id}", tags=["rooms"], dependencies=[Depends(require_admin)])


def _to_http(exc: RoomServiceError) -> HTTPException:
    if isinstance(exc, RoomValidationError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, (RoomNotFoundError, StayNotFoundError)):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, (StayAlreadyCheckedOutError, OutstandingBalanceError, CategoryInUseError)):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=str(exc))


def _unexpected(action: str, exc: Exception) -> HTTPException:
    logger.exception("Unexpected failure while trying to %s", action)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}",
    )


class NewRoom(BaseModel):
    number: str = Field(min_length=1)
    category: str = Field(min_length=1)


class AddRoomsRequest(BaseModel):
    rooms: list[NewRoom] = Field(min_length=1)


class UpdateRoomRequest(BaseModel):
    number: Optional[str] = None
    category: Optional[str] = None


class OutOfOrderRequest(BaseModel):
    date_from: StoreDateTime
    date_to: StoreDateTime


class StayRequest(BaseModel):
    guest_name: str = Field(min_length=1)
    guest_number: Optional[str] = None
    check_in_date: StoreDateTime
    check_out_date: StoreDateTime
    room_charge: float = Field(ge=0.0)
    paid_amount: float = Field(default=0.0, ge=0.0)
    is_billed_to_company: bool = False


class StayUpdateRequest(BaseModel):
    guest_name: Optional[str] = None
    guest_number: Optional[str] = None
    check_in_date: Optional[StoreDateTime] = None
    check_out_date: Optional[StoreDateTime] = None
    room_charge: Optional[float] = Field(default=None, ge=0.0)
    paid_amount: Optional[float] = Field(default=None, ge=0.0)
    is_billed_to_company: Optional[bool] = None


class GroupRoomAssignment(BaseModel):
    room_id: str = Field(min_length=1)
    guest_name: str = Field(min_length=1)
    room_charge: float = Field(ge=0.0)
    guest_number: Optional[str] = None


class GroupBookingRequest(BaseModel):
    assignments: list[GroupRoomAssignment] = Field(min_length=1)
    check_in_date: StoreDateTime
    check_out_date: StoreDateTime
    is_clubbed: bool = False
    primary_room_id: Optional[str] = None
    primary_guest_number: Optional[str] = None


class GroupBookingResponse(BaseModel):
    group_master_stay_id: Optional[str]
    stay_ids: list[str]


class PaymentRequest(BaseModel):
    amount: float = Field(gt=0.0)


class CheckoutRequest(BaseModel):
    corporate_client_id: Optional[str] = None
    discount_kind: Optional[Literal["percent", "amount"]] = None
    discount_value: Optional[float] = Field(default=None, ge=0.0)


class CategoryRequest(BaseModel):
    name: str = Field(min_length=1)
    base_price: float = Field(default=0.0, ge=0.0)
    description: str = ""


class RenameCategoryRequest(BaseModel):
    name: str = Field(min_length=1)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be blank")
        return value.strip()


class FolioResponse(BaseModel):
    stay_ids: list[str]
    room_label: str
    service_charges: list[dict[str, Any]]
    room_total: float
    services_total: float
    subtotal: float
    discount_amount: float
    service_charge_amount: float
    gst_amount: float
    total: float
    paid_amount: float
    balance: float


class CheckoutResponse(BaseModel):
    stay_id: str
    room_number: str
    final_bill: dict[str, Any]
    archived: bool
    cleaning_request_id: str
    billed_order_id: Optional[str] = None


class MovementRow(BaseModel):
    room_id: str
    room_number: str
    stay_id: str
    guest_name: str


class MovementsResponse(BaseModel):
    arrivals: list[MovementRow]
    departures: list[MovementRow]


@router.get("/rooms", status_code=status.HTTP_200_OK)
async def list_rooms(
    hotel_id: str,
    room_service: RoomOperationsService = Depends(get_room_service),
) -> list[dict[str, Any]]:
    try:
        return [view.to_dict() for view in room_service.list_rooms(hotel_id)]
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("list rooms", exc) from exc


@router.post("/rooms", status_code=status.HTTP_201_CREATED)
async def add_rooms(
    hotel_id: str,
    payload: AddRoomsRequest,
    room_service: RoomOperationsService = Depends(get_room_service),
) -> list[dict[str, Any]]:
    try:
        rooms = room_service.add_rooms(hotel_id, [(item.number, item.category) for item in payload.rooms])
        return [room.model_dump(mode="json", by_alias=True) for room in rooms]
    except RoomServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("add rooms", exc) from exc


@router.patch("/rooms/{room_id}", status_code=status.HTTP_200_OK)
async def update_room(
    hotel_id: str,
    room_id: str,
    payload: UpdateRoomRequest,
    room_service: RoomOperationsService = Depends(get_room_service),
) -> dict[str, Any]:
    try:
        room = room_service.update_room(hotel_id, room_id, number=payload.number, category=payload.category)
        return room.model_dump(mode="json", by_alias=True)
    except RoomServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("update room", exc) from exc


@router.delete("/rooms/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room(
    hotel_id: str,
    room_id: str,
    room_service: RoomOperationsService = Depends(get_room_service),
) -> None:
    try:
        room_service.delete_room(hotel_id, room_id)
    except RoomServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("delete room", exc) from exc


@router.post("/rooms/{room_id}/out_of_order", status_code=status.HTTP_200_OK)
async def set_out_of_order(
    hotel_id: str,
    room_id: str,
    payload: OutOfOrderRequest,
    room_service: RoomOperationsService = Depends(get_room_service),
) -> dict[str, Any]:
    try:
        room = room_service.set_out_of_order(hotel_id, room_id, payload.date_from, payload.date_to)
        return room.model_dump(mode="json", by_alias=True)
    except RoomServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("block room", exc) from exc


@router.delete("/rooms/{room_id}/out_of_order", status_code=status.HTTP_200_OK)
async def clear_out_of_order(
    hotel_id: str,
    room_id: str,
    room_service: RoomOperationsService = Depends(get_room_service),
) -> dict[str, Any]:
    try:
        return room_service.clear_out_of_order(hotel_id, room_id).model_dump(mode="json", by_alias=True)
    except RoomServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("unblock room", exc) from exc


@router.get("/movements", response_model=MovementsResponse, status_code=status.HTTP_200_OK)
async def todays_movements(
    hotel_id: str,
    room_service: RoomOperationsService = Depends(get_room_service),
) -> MovementsResponse:
    try:
        arrivals, departures = room_service.list_movements(hotel_id)
        return MovementsResponse(
            arrivals=[MovementRow(**vars(item)) for item in arrivals],
            departures=[MovementRow(**vars(item)) for item in departures],
        )
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("list movements", exc) from exc


@router.post("/rooms/{room_id}/stays", status_code=status.HTTP_201_CREATED)
async def add_stay(
    hotel_id: str,
    room_id: str,
    payload: StayRequest,
    room_service: RoomOperationsService = Depends(get_room_service),
) -> dict[str, Any]:
    try:
        stay = room_service.add_stay(hotel_id, room_id, **payload.model_dump())
        return stay.model_dump(mode="json", by_alias=True)
    except RoomServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("add stay", exc) from exc


@router.post("/group_bookings", response_model=GroupBookingResponse, status_code=status.HTTP_201_CREATED)
async def add_group_booking(
    hotel_id: str,
    payload: GroupBookingRequest,
    room_service: RoomOperationsService = Depends(get_room_service),
) -> GroupBookingResponse:
    try:
        master_id, stays = room_service.add_group_booking(
            hotel_id,
            [GroupAssignment(**item.model_dump()) for item in payload.assignments],
            check_in_date=payload.check_in_date,
            check_out_date=payload.check_out_date,
            is_clubbed=payload.is_clubbed,
            primary_room_id=payload.primary_room_id,
            primary_guest_number=payload.primary_guest_number,
        )
        return GroupBookingResponse(group_master_stay_id=master_id, stay_ids=[stay.stay_id for stay in stays])
    except RoomServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("add group booking", exc) from exc


@router.patch("/rooms/{room_id}/stays/{stay_id}", status_code=status.HTTP_200_OK)
async def update_stay(
    hotel_id: str,
    room_id: str,
    stay_id: str,
    payload: StayUpdateRequest,
    room_service: RoomOperationsService = Depends(get_room_service),
) -> dict[str, Any]:
    try:
        stay = room_service.update_stay(hotel_id, room_id, stay_id, payload.model_dump(exclude_none=True))
        return stay.model_dump(mode="json", by_alias=True)
    except RoomServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("update stay", exc) from exc


@router.delete("/rooms/{room_id}/stays/{stay_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_stay(
    hotel_id: str,
    room_id: str,
    stay_id: str,
    room_service: RoomOperationsService = Depends(get_room_service),
) -> None:
    try:
        room_service.remove_stay(hotel_id, room_id, stay_id)
    except RoomServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("cancel stay", exc) from exc


@router.post("/rooms/{room_id}/stays/{stay_id}/check_in", status_code=status.HTTP_200_OK)
async def check_in(
    hotel_id: str,
    room_id: str,
    stay_id: str,
    room_service: RoomOperationsService = Depends(get_room_service),
) -> dict[str, Any]:
    try:
        return room_service.check_in_stay(hotel_id, room_id, stay_id).model_dump(mode="json", by_alias=True)
    except RoomServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("check in", exc) from exc


@router.post("/rooms/{room_id}/stays/{stay_id}/payments", status_code=status.HTTP_200_OK)
async def record_payment(
    hotel_id: str,
    room_id: str,
    stay_id: str,
    payload: PaymentRequest,
    room_service: RoomOperationsService = Depends(get_room_service),
) -> dict[str, Any]:
    try:
        stay = room_service.record_payment(hotel_id, room_id, stay_id, payload.amount)
        return stay.model_dump(mode="json", by_alias=True)
    except RoomServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("record payment", exc) from exc


@router.post(
    "/rooms/{room_id}/stays/{stay_id}/checkout",
    response_model=CheckoutResponse,
    status_code=status.HTTP_200_OK,
)
async def checkout(
    hotel_id: str,
    room_id: str,
    stay_id: str,
    payload: CheckoutRequest,
    room_service: RoomOperationsService = Depends(get_room_service),
) -> CheckoutResponse:
    try:
        result = room_service.checkout_stay(
            hotel_id,
            room_id,
            stay_id,
            corporate_client_id=payload.corporate_client_id,
            discount_kind=payload.discount_kind,
            discount_value=payload.discount_value,
        )
        return CheckoutResponse(**result.to_dict())
    except RoomServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("check out", exc) from exc


@router.get("/folio/{stay_id}", response_model=FolioResponse, status_code=status.HTTP_200_OK)
async def folio(
    hotel_id: str,
    stay_id: str,
    include_group: bool = Query(default=False),
    discount_kind: Optional[Literal["percent", "amount"]] = Query(default=None),
    discount_value: Optional[float] = Query(default=None, ge=0.0),
    room_service: RoomOperationsService = Depends(get_room_service),
) -> FolioResponse:
    try:
        room, _ = room_service.locate_stay(hotel_id, stay_id)
        result = room_service.stay_folio(
            hotel_id,
            room.id,
            stay_id,
            include_group=include_group,
            discount_kind=discount_kind,
            discount_value=discount_value,
        )
        return FolioResponse(**result.to_dict())
    except RoomServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("compute folio", exc) from exc


@router.get("/room_categories", status_code=status.HTTP_200_OK)
async def list_categories(
    hotel_id: str,
    room_service: RoomOperationsService = Depends(get_room_service),
) -> list[dict[str, Any]]:
    try:
        return [item.model_dump(mode="json", by_alias=True) for item in room_service.list_categories(hotel_id)]
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("list room categories", exc) from exc


@router.post("/room_categories", status_code=status.HTTP_201_CREATED)
async def add_category(
    hotel_id: str,
    payload: CategoryRequest,
    room_service: RoomOperationsService = Depends(get_room_service),
) -> dict[str, Any]:
    try:
        category = room_service.add_category(hotel_id, payload.name, payload.base_price, payload.description)
        return category.model_dump(mode="json", by_alias=True)
    except RoomServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("add room category", exc) from exc


@router.patch("/room_categories/{category_id}", status_code=status.HTTP_200_OK)
async def rename_category(
    hotel_id: str,
    category_id: str,
    payload: RenameCategoryRequest,
    room_service: RoomOperationsService = Depends(get_room_service),
) -> dict[str, Any]:
    try:
        category = room_service.rename_category(hotel_id, category_id, payload.name)
        return category.model_dump(mode="json", by_alias=True)
    except RoomServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("rename room category", exc) from exc


@router.delete("/room_categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    hotel_id: str,
    category_id: str,
    room_service: RoomOperationsService = Depends(get_room_service),
) -> None:
    try:
        room_service.delete_category(hotel_id, category_id)
    except RoomServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("delete room category", exc) from exc
