"""Controller layer for corporate billing, service requests and invoices."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from hotelops.controllers.dependencies import get_billing_service, get_email_service, require_admin
from hotelops.domain.documents import StoreDateTime
from hotelops.domain.models import BilledOrderStatus, ServiceRequestStatus
from hotelops.services.billing_service import (
    BilledOrderNotFoundError,
    BillingService,
    BillingServiceError,
    BillingValidationError,
    ClientNotFoundError,
    ServiceRequestNotFoundError,
    outstanding_balance,
)
from hotelops.services.email_service import InvoiceEmailService, InvoiceNotFoundError
from hotelops.services.room_service import RoomNotFoundError, RoomServiceError, StayNotFoundError
from hotelops.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/hotels/{hotel_id}", tags=["billing"], dependencies=[Depends(require_admin)])


def _to_http(exc: Exception) -> HTTPException:
    if isinstance(exc, BillingValidationError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(
        exc,
        (
            ClientNotFoundError,
            BilledOrderNotFoundError,
            ServiceRequestNotFoundError,
            RoomNotFoundError,
            StayNotFoundError,
            InvoiceNotFoundError,
        ),
    ):
        code = status.HTTP_404_NOT_FOUND
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=str(exc))


def _unexpected(action: str, exc: Exception) -> HTTPException:
    logger.exception("Unexpected failure while trying to %s", action)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}",
    )


class RatesRequest(BaseModel):
    gst_rate: float = Field(ge=0.0, le=100.0)
    service_charge_rate: float = Field(ge=0.0, le=100.0)


class RatesResponse(BaseModel):
    currency: str
    gst_rate: float
    service_charge_rate: float


class ClientRequest(BaseModel):
    name: str = Field(min_length=1)
    address: str = ""
    contact_person: str = ""
    gst_number: str = ""


class ClientUpdateRequest(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    contact_person: Optional[str] = None
    gst_number: Optional[str] = None


class BilledOrderRequest(BaseModel):
    stay_id: str = Field(min_length=1)
    guest_name: str = Field(min_length=1)
    room_number: str = Field(min_length=1)
    amount: float = Field(gt=0.0)
    status: BilledOrderStatus = BilledOrderStatus.PENDING


class BilledOrderUpdateRequest(BaseModel):
    status: Optional[BilledOrderStatus] = None
    amount: Optional[float] = Field(default=None, gt=0.0)
    paid_date: Optional[StoreDateTime] = None


class BillToCompanyRequest(BaseModel):
    room_id: str = Field(min_length=1)
    stay_id: str = Field(min_length=1)
    client_id: str = Field(min_length=1)
    amount: float = Field(gt=0.0)
    status: BilledOrderStatus = BilledOrderStatus.PENDING


class ServiceRequestCreate(BaseModel):
    room_number: str = Field(min_length=1)
    service: str = Field(min_length=1)
    price: float = Field(default=0.0, ge=0.0)
    category: Optional[str] = None
    stay_id: Optional[str] = None
    quantity: Optional[int] = Field(default=None, gt=0)
    restaurant_id: Optional[str] = None
    staff: Optional[str] = None
    created_by: Optional[str] = None
    is_manual_charge: bool = False
    is_emergency: bool = False
    notes: Optional[str] = None


class ServiceRequestStatusUpdate(BaseModel):
    status: ServiceRequestStatus
    assigned_to: Optional[str] = None


class InvoiceEmailRequest(BaseModel):
    stay_id: str = Field(min_length=1)
    recipient: str = Field(min_length=3)


class InvoiceEmailResponse(BaseModel):
    status: str
    message: str


def _client_payload(client: Any) -> dict[str, Any]:
    payload = client.model_dump(mode="json", by_alias=True)
    payload["outstandingBalance"] = outstanding_balance(client)
    return payload


@router.get("/billing/rates", response_model=RatesResponse, status_code=status.HTTP_200_OK)
async def get_rates(
    hotel_id: str,
    billing_service: BillingService = Depends(get_billing_service),
) -> RatesResponse:
    try:
        settings = billing_service.get_rates(hotel_id)
        return RatesResponse(
            currency=settings.currency,
            gst_rate=settings.gst_rate,
            service_charge_rate=settings.service_charge_rate,
        )
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("load billing rates", exc) from exc


@router.put("/billing/rates", response_model=RatesResponse, status_code=status.HTTP_200_OK)
async def update_rates(
    hotel_id: str,
    payload: RatesRequest,
    billing_service: BillingService = Depends(get_billing_service),
) -> RatesResponse:
    try:
        settings = billing_service.update_rates(hotel_id, payload.gst_rate, payload.service_charge_rate)
        return RatesResponse(
            currency=settings.currency,
            gst_rate=settings.gst_rate,
            service_charge_rate=settings.service_charge_rate,
        )
    except BillingServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("update billing rates", exc) from exc


@router.get("/billing/open_balances", status_code=status.HTTP_200_OK)
async def open_balances(
    hotel_id: str,
    billing_service: BillingService = Depends(get_billing_service),
) -> list[dict[str, Any]]:
    try:
        return [row.to_dict() for row in billing_service.open_balances(hotel_id)]
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("list open balances", exc) from exc


@router.post("/billing/bill_to_company", status_code=status.HTTP_201_CREATED)
async def bill_to_company(
    hotel_id: str,
    payload: BillToCompanyRequest,
    billing_service: BillingService = Depends(get_billing_service),
) -> dict[str, Any]:
    try:
        order = billing_service.bill_to_company(
            hotel_id,
            payload.room_id,
            payload.stay_id,
            payload.client_id,
            payload.amount,
            payload.status,
        )
        return order.model_dump(mode="json", by_alias=True)
    except (BillingServiceError, RoomServiceError) as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("bill stay to company", exc) from exc


@router.get("/corporate_clients", status_code=status.HTTP_200_OK)
async def list_clients(
    hotel_id: str,
    billing_service: BillingService = Depends(get_billing_service),
) -> list[dict[str, Any]]:
    try:
        return [_client_payload(client) for client in billing_service.list_clients(hotel_id)]
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("list corporate clients", exc) from exc


@router.post("/corporate_clients", status_code=status.HTTP_201_CREATED)
async def add_client(
    hotel_id: str,
    payload: ClientRequest,
    billing_service: BillingService = Depends(get_billing_service),
) -> dict[str, Any]:
    try:
        return _client_payload(billing_service.add_client(hotel_id, **payload.model_dump()))
    except BillingServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("add corporate client", exc) from exc


@router.patch("/corporate_clients/{client_id}", status_code=status.HTTP_200_OK)
async def update_client(
    hotel_id: str,
    client_id: str,
    payload: ClientUpdateRequest,
    billing_service: BillingService = Depends(get_billing_service),
) -> dict[str, Any]:
    try:
        client = billing_service.update_client(hotel_id, client_id, payload.model_dump(exclude_none=True))
        return _client_payload(client)
    except BillingServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("update corporate client", exc) from exc


@router.delete("/corporate_clients/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(
    hotel_id: str,
    client_id: str,
    billing_service: BillingService = Depends(get_billing_service),
) -> None:
    try:
        billing_service.delete_client(hotel_id, client_id)
    except BillingServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("delete corporate client", exc) from exc


@router.post("/corporate_clients/{client_id}/billed_orders", status_code=status.HTTP_201_CREATED)
async def add_billed_order(
    hotel_id: str,
    client_id: str,
    payload: BilledOrderRequest,
    billing_service: BillingService = Depends(get_billing_service),
) -> dict[str, Any]:
    try:
        order = billing_service.add_billed_order(hotel_id, client_id, **payload.model_dump())
        return order.model_dump(mode="json", by_alias=True)
    except BillingServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("add billed order", exc) from exc


@router.patch("/corporate_clients/{client_id}/billed_orders/{order_id}", status_code=status.HTTP_200_OK)
async def update_billed_order(
    hotel_id: str,
    client_id: str,
    order_id: str,
    payload: BilledOrderUpdateRequest,
    billing_service: BillingService = Depends(get_billing_service),
) -> dict[str, Any]:
    try:
        order = billing_service.update_billed_order(
            hotel_id,
            client_id,
            order_id,
            status=payload.status,
            amount=payload.amount,
            paid_date=payload.paid_date,
        )
        return order.model_dump(mode="json", by_alias=True)
    except BillingServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("update billed order", exc) from exc


@router.delete("/corporate_clients/{client_id}/billed_orders/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_billed_order(
    hotel_id: str,
    client_id: str,
    order_id: str,
    billing_service: BillingService = Depends(get_billing_service),
) -> None:
    try:
        billing_service.delete_billed_order(hotel_id, client_id, order_id)
    except BillingServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("delete billed order", exc) from exc


@router.get("/service_requests", status_code=status.HTTP_200_OK)
async def list_service_requests(
    hotel_id: str,
    stay_id: Optional[str] = Query(default=None),
    billing_service: BillingService = Depends(get_billing_service),
) -> list[dict[str, Any]]:
    try:
        requests = billing_service.list_service_requests(hotel_id, stay_id)
        return [request.model_dump(mode="json", by_alias=True) for request in requests]
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("list service requests", exc) from exc


@router.post("/service_requests", status_code=status.HTTP_201_CREATED)
async def create_service_request(
    hotel_id: str,
    payload: ServiceRequestCreate,
    billing_service: BillingService = Depends(get_billing_service),
) -> dict[str, Any]:
    try:
        request = billing_service.create_service_request(hotel_id, **payload.model_dump())
        return request.model_dump(mode="json", by_alias=True)
    except BillingServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("create service request", exc) from exc


@router.patch("/service_requests/{request_id}", status_code=status.HTTP_200_OK)
async def update_service_request(
    hotel_id: str,
    request_id: str,
    payload: ServiceRequestStatusUpdate,
    billing_service: BillingService = Depends(get_billing_service),
) -> dict[str, Any]:
    try:
        request = billing_service.update_service_request_status(
            hotel_id,
            request_id,
            payload.status,
            assigned_to=payload.assigned_to,
        )
        return request.model_dump(mode="json", by_alias=True)
    except BillingServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("update service request", exc) from exc


@router.delete("/service_requests/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service_request(
    hotel_id: str,
    request_id: str,
    billing_service: BillingService = Depends(get_billing_service),
) -> None:
    try:
        billing_service.delete_service_request(hotel_id, request_id)
    except BillingServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("delete service request", exc) from exc


@router.post("/invoices/email", response_model=InvoiceEmailResponse, status_code=status.HTTP_200_OK)
def email_invoice(
    hotel_id: str,
    payload: InvoiceEmailRequest,
    email_service: InvoiceEmailService = Depends(get_email_service),
) -> InvoiceEmailResponse:
    try:
        result = email_service.send_invoice_email(hotel_id, payload.stay_id, payload.recipient)
        return InvoiceEmailResponse(**result.to_dict())
    except InvoiceNotFoundError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("send invoice email", exc) from exc
