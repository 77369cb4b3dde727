"""Controller layer for team governance and delegated access."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from hotelops.controllers.dependencies import get_access_service, get_team_service, require_admin
from hotelops.domain.documents import TeamMember
from hotelops.services.access_service import AccessService, AccessServiceError
from hotelops.services.team_service import (
    DepartmentInUseError,
    TeamRecordNotFoundError,
    TeamService,
    TeamServiceError,
)
from hotelops.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/hotels/{hotel_id}", tags=["team"], dependencies=[Depends(require_admin)])


def _to_http(exc: Exception) -> HTTPException:
    if isinstance(exc, DepartmentInUseError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": str(exc), "member_count": exc.member_count},
        )
    if isinstance(exc, (TeamRecordNotFoundError, AccessServiceError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _unexpected(action: str, exc: Exception) -> HTTPException:
    logger.exception("Unexpected failure while trying to %s", action)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}",
    )


def _dump(document: Any) -> dict[str, Any]:
    return document.model_dump(mode="json", by_alias=True)


class DepartmentRequest(BaseModel):
    name: str = Field(min_length=1)
    manages: list[str] = Field(default_factory=list)


class DepartmentUpdateRequest(BaseModel):
    name: Optional[str] = None
    manages: Optional[list[str]] = None


class ReassignRequest(BaseModel):
    old_name: str = Field(min_length=1)
    new_name: str = Field(min_length=1)


class ReassignResponse(BaseModel):
    moved_members: int


class ShiftRequest(BaseModel):
    name: str = Field(min_length=1)
    start_time: str
    end_time: str


class ShiftUpdateRequest(BaseModel):
    name: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class SlaRuleRequest(BaseModel):
    service_name: str = Field(min_length=1)
    time_limit_minutes: int = Field(gt=0)


class SlaRuleUpdateRequest(BaseModel):
    time_limit_minutes: int = Field(gt=0)


class MemberRequest(BaseModel):
    name: str = Field(min_length=1)
    email: str = ""
    department: str = Field(min_length=1)
    role: str = "Member"
    shift_id: Optional[str] = None
    restaurant_id: Optional[str] = None


class AttendanceRequest(BaseModel):
    attendance_status: str


class AccessRequestCreate(BaseModel):
    requester_uid: str = Field(min_length=1)
    requester_email: str = Field(min_length=3)


@router.get("/departments", status_code=status.HTTP_200_OK)
async def list_departments(
    hotel_id: str,
    team_service: TeamService = Depends(get_team_service),
) -> list[dict[str, Any]]:
    try:
        return [_dump(item) for item in team_service.list_departments(hotel_id)]
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("list departments", exc) from exc


@router.post("/departments", status_code=status.HTTP_201_CREATED)
async def add_department(
    hotel_id: str,
    payload: DepartmentRequest,
    team_service: TeamService = Depends(get_team_service),
) -> dict[str, Any]:
    try:
        return _dump(team_service.add_department(hotel_id, payload.name, payload.manages))
    except TeamServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("add department", exc) from exc


@router.patch("/departments/{department_id}", status_code=status.HTTP_200_OK)
async def update_department(
    hotel_id: str,
    department_id: str,
    payload: DepartmentUpdateRequest,
    team_service: TeamService = Depends(get_team_service),
) -> dict[str, Any]:
    try:
        department = team_service.update_department(hotel_id, department_id, payload.model_dump(exclude_none=True))
        return _dump(department)
    except TeamServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("update department", exc) from exc


@router.delete("/departments/{department_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_department(
    hotel_id: str,
    department_id: str,
    team_service: TeamService = Depends(get_team_service),
) -> None:
    try:
        team_service.delete_department(hotel_id, department_id)
    except TeamServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("delete department", exc) from exc


@router.post("/departments/reassign", response_model=ReassignResponse, status_code=status.HTTP_200_OK)
async def reassign_department(
    hotel_id: str,
    payload: ReassignRequest,
    team_service: TeamService = Depends(get_team_service),
) -> ReassignResponse:
    try:
        moved = team_service.reassign_and_delete_department(hotel_id, payload.old_name, payload.new_name)
        return ReassignResponse(moved_members=moved)
    except TeamServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("reassign department", exc) from exc


@router.get("/shifts", status_code=status.HTTP_200_OK)
async def list_shifts(
    hotel_id: str,
    team_service: TeamService = Depends(get_team_service),
) -> list[dict[str, Any]]:
    try:
        return [_dump(item) for item in team_service.list_shifts(hotel_id)]
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("list shifts", exc) from exc


@router.post("/shifts", status_code=status.HTTP_201_CREATED)
async def add_shift(
    hotel_id: str,
    payload: ShiftRequest,
    team_service: TeamService = Depends(get_team_service),
) -> dict[str, Any]:
    try:
        return _dump(team_service.add_shift(hotel_id, payload.name, payload.start_time, payload.end_time))
    except TeamServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("add shift", exc) from exc


@router.patch("/shifts/{shift_id}", status_code=status.HTTP_200_OK)
async def update_shift(
    hotel_id: str,
    shift_id: str,
    payload: ShiftUpdateRequest,
    team_service: TeamService = Depends(get_team_service),
) -> dict[str, Any]:
    try:
        return _dump(team_service.update_shift(hotel_id, shift_id, payload.model_dump(exclude_none=True)))
    except TeamServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("update shift", exc) from exc


@router.delete("/shifts/{shift_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_shift(
    hotel_id: str,
    shift_id: str,
    team_service: TeamService = Depends(get_team_service),
) -> None:
    try:
        team_service.delete_shift(hotel_id, shift_id)
    except TeamServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("delete shift", exc) from exc


@router.get("/sla_rules", status_code=status.HTTP_200_OK)
async def list_sla_rules(
    hotel_id: str,
    team_service: TeamService = Depends(get_team_service),
) -> list[dict[str, Any]]:
    try:
        return [_dump(item) for item in team_service.list_sla_rules(hotel_id)]
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("list SLA rules", exc) from exc


@router.post("/sla_rules", status_code=status.HTTP_201_CREATED)
async def add_sla_rule(
    hotel_id: str,
    payload: SlaRuleRequest,
    team_service: TeamService = Depends(get_team_service),
) -> dict[str, Any]:
    try:
        return _dump(team_service.add_sla_rule(hotel_id, payload.service_name, payload.time_limit_minutes))
    except TeamServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("add SLA rule", exc) from exc


@router.patch("/sla_rules/{rule_id}", status_code=status.HTTP_200_OK)
async def update_sla_rule(
    hotel_id: str,
    rule_id: str,
    payload: SlaRuleUpdateRequest,
    team_service: TeamService = Depends(get_team_service),
) -> dict[str, Any]:
    try:
        return _dump(team_service.update_sla_rule(hotel_id, rule_id, payload.time_limit_minutes))
    except TeamServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("update SLA rule", exc) from exc


@router.delete("/sla_rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_sla_rule(
    hotel_id: str,
    rule_id: str,
    team_service: TeamService = Depends(get_team_service),
) -> None:
    try:
        team_service.delete_sla_rule(hotel_id, rule_id)
    except TeamServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("delete SLA rule", exc) from exc


@router.get("/team_members", status_code=status.HTTP_200_OK)
async def list_members(
    hotel_id: str,
    team_service: TeamService = Depends(get_team_service),
) -> list[dict[str, Any]]:
    try:
        return [_dump(item) for item in team_service.list_members(hotel_id)]
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("list team members", exc) from exc


@router.post("/team_members", status_code=status.HTTP_201_CREATED)
async def add_member(
    hotel_id: str,
    payload: MemberRequest,
    team_service: TeamService = Depends(get_team_service),
) -> dict[str, Any]:
    try:
        return _dump(team_service.save_member(hotel_id, TeamMember(**payload.model_dump())))
    except TeamServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("add team member", exc) from exc


@router.put("/team_members/{member_id}", status_code=status.HTTP_200_OK)
async def update_member(
    hotel_id: str,
    member_id: str,
    payload: MemberRequest,
    team_service: TeamService = Depends(get_team_service),
) -> dict[str, Any]:
    try:
        member = TeamMember(id=member_id, **payload.model_dump())
        return _dump(team_service.save_member(hotel_id, member))
    except TeamServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("update team member", exc) from exc


@router.post("/team_members/{member_id}/attendance", status_code=status.HTTP_200_OK)
async def set_attendance(
    hotel_id: str,
    member_id: str,
    payload: AttendanceRequest,
    team_service: TeamService = Depends(get_team_service),
) -> dict[str, Any]:
    try:
        return _dump(team_service.set_attendance(hotel_id, member_id, payload.attendance_status))
    except TeamServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("update attendance", exc) from exc


@router.delete("/team_members/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_member(
    hotel_id: str,
    member_id: str,
    team_service: TeamService = Depends(get_team_service),
) -> None:
    try:
        team_service.delete_member(hotel_id, member_id)
    except TeamServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("delete team member", exc) from exc


@router.get("/access_requests", status_code=status.HTTP_200_OK)
async def list_access_requests(
    hotel_id: str,
    access_service: AccessService = Depends(get_access_service),
) -> list[dict[str, Any]]:
    try:
        return [_dump(item) for item in access_service.list_requests(hotel_id)]
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("list access requests", exc) from exc


@router.post("/access_requests", status_code=status.HTTP_201_CREATED)
async def submit_access_request(
    hotel_id: str,
    payload: AccessRequestCreate,
    access_service: AccessService = Depends(get_access_service),
) -> dict[str, Any]:
    try:
        return _dump(access_service.submit_request(hotel_id, payload.requester_uid, payload.requester_email))
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("submit access request", exc) from exc


@router.post("/access_requests/{requester_uid}/approve", status_code=status.HTTP_200_OK)
async def approve_access_request(
    hotel_id: str,
    requester_uid: str,
    access_service: AccessService = Depends(get_access_service),
) -> dict[str, Any]:
    try:
        return _dump(access_service.approve_request(hotel_id, requester_uid))
    except AccessServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("approve access request", exc) from exc


@router.delete("/access_requests/{requester_uid}", status_code=status.HTTP_204_NO_CONTENT)
async def deny_access_request(
    hotel_id: str,
    requester_uid: str,
    access_service: AccessService = Depends(get_access_service),
) -> None:
    try:
        access_service.deny_request(hotel_id, requester_uid)
    except AccessServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("deny access request", exc) from exc


@router.get("/delegates", status_code=status.HTTP_200_OK)
async def list_delegates(
    hotel_id: str,
    access_service: AccessService = Depends(get_access_service),
) -> list[dict[str, Any]]:
    try:
        return [_dump(item) for item in access_service.list_delegates(hotel_id)]
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("list delegates", exc) from exc


@router.delete("/delegates/{requester_uid}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_delegate(
    hotel_id: str,
    requester_uid: str,
    access_service: AccessService = Depends(get_access_service),
) -> None:
    try:
        access_service.revoke_delegate(hotel_id, requester_uid)
    except AccessServiceError as exc:
        raise _to_http(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("revoke delegate", exc) from exc
