"""Departments, shifts, SLA rules and team members."""

from __future__ import annotations

from typing import Any, Optional

from hotelops.domain.constraints import validate_shift_times, validate_sla_minutes
from hotelops.domain.documents import Department, Shift, SlaRule, TeamMember
from hotelops.repository.document_store import new_document_id
from hotelops.repository.hotel_repository import (
    DEPARTMENTS,
    SHIFTS,
    SLA_RULES,
    TEAM_MEMBERS,
    HotelRepository,
)
from hotelops.utils.config import Settings, get_settings
from hotelops.utils.logger import get_logger


logger = get_logger(__name__)

ATTENDANCE_STATUSES = ("Clocked In", "Clocked Out", "On Break")


class TeamServiceError(Exception):
    """Base exception for team governance."""


class TeamValidationError(TeamServiceError):
    """Raised when team configuration input is invalid."""


class TeamRecordNotFoundError(TeamServiceError):
    """Raised when a department, shift, rule or member id does not exist."""


class DepartmentInUseError(TeamServiceError):
    """Raised when a department still has members assigned."""

    def __init__(self, department_name: str, member_count: int) -> None:
        super().__init__(
            f'"{department_name}" still has {member_count} member(s); reassign them before deleting'
        )
        self.department_name = department_name
        self.member_count = member_count


class TeamService:
    def __init__(
        self,
        repository: Optional[HotelRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or HotelRepository(self._settings)

    def _require(self, hotel_id: str, collection: str, doc_id: str, model):
        document = self._repository.get_document(hotel_id, collection, doc_id, model)
        if document is None:
            raise TeamRecordNotFoundError(f"{model.__name__} {doc_id} was not found")
        return document

    # Departments

    def list_departments(self, hotel_id: str) -> list[Department]:
        return self._repository.list_departments(hotel_id)

    def _name_taken(self, hotel_id: str, name: str, exclude_id: Optional[str] = None) -> bool:
        wanted = name.strip().lower()
        return any(
            department.name.strip().lower() == wanted and department.id != exclude_id
            for department in self._repository.list_departments(hotel_id)
        )

    def add_department(self, hotel_id: str, name: str, manages: Optional[list[str]] = None) -> Department:
        if not name.strip():
            raise TeamValidationError("Department name is required")
        if self._name_taken(hotel_id, name):
            raise TeamValidationError(f'A department named "{name.strip()}" already exists')
        return self._repository.add_document(
            hotel_id,
            DEPARTMENTS,
            Department(name=name.strip(), manages=list(manages or [])),
        )

    def update_department(self, hotel_id: str, department_id: str, updates: dict[str, Any]) -> Department:
        department = self._require(hotel_id, DEPARTMENTS, department_id, Department)
        unknown = set(updates) - {"name", "manages"}
        if unknown:
            raise TeamValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")
        if "name" in updates:
            name = str(updates["name"]).strip()
            if not name:
                raise TeamValidationError("Department name is required")
            if self._name_taken(hotel_id, name, exclude_id=department_id):
                raise TeamValidationError(f'A department named "{name}" already exists')
            updates = {**updates, "name": name}
        updated = department.model_copy(update=updates)
        self._repository.save_document(hotel_id, DEPARTMENTS, updated)
        return updated

    def delete_department(self, hotel_id: str, department_id: str) -> None:
        department = self._require(hotel_id, DEPARTMENTS, department_id, Department)
        members = [
            member
            for member in self._repository.list_team_members(hotel_id)
            if member.department == department.name
        ]
        if members:
            raise DepartmentInUseError(department.name, len(members))
        self._repository.delete_document(hotel_id, DEPARTMENTS, department_id)
        logger.info("Deleted department %s", department.name)

    def reassign_and_delete_department(self, hotel_id: str, old_name: str, new_name: str) -> int:
        """Move every member of ``old_name`` to ``new_name`` and delete ``old_name``.

        ``new_name`` is created (managing nothing) when no department has that
        exact name. Returns the number of members moved.
        """
        new_name = new_name.strip()
        if not new_name:
            raise TeamValidationError("Target department name is required")
        if new_name == old_name:
            raise TeamValidationError("Target department must differ from the one being deleted")

        departments = self._repository.list_departments(hotel_id)
        old_department = next((item for item in departments if item.name == old_name), None)
        if old_department is None:
            raise TeamRecordNotFoundError(f'Department "{old_name}" was not found')

        target_exists = any(item.name == new_name for item in departments)
        if not target_exists and any(
            item.name.strip().lower() == new_name.lower() for item in departments if item.id != old_department.id
        ):
            raise TeamValidationError(f'A department named "{new_name}" already exists with different casing')

        members = [m for m in self._repository.list_team_members(hotel_id) if m.department == old_name]
        members_path = self._repository.collection_path(hotel_id, TEAM_MEMBERS)
        departments_path = self._repository.collection_path(hotel_id, DEPARTMENTS)

        batch = self._repository.batch()
        for member in members:
            batch.update(members_path, member.id, {"department": new_name})
        if not target_exists:
            batch.set(departments_path, new_document_id(), Department(name=new_name, manages=[]).to_document())
        batch.delete(departments_path, old_department.id)
        batch.commit()
        logger.info("Moved %s member(s) from %s to %s", len(members), old_name, new_name)
        return len(members)

    # Shifts

    def list_shifts(self, hotel_id: str) -> list[Shift]:
        return self._repository.list_shifts(hotel_id)

    def _check_shift(self, start_time: str, end_time: str) -> None:
        try:
            validate_shift_times(start_time, end_time, self._settings.shift_time_regex)
        except ValueError as exc:
            raise TeamValidationError(str(exc)) from exc

    def add_shift(self, hotel_id: str, name: str, start_time: str, end_time: str) -> Shift:
        if not name.strip():
            raise TeamValidationError("Shift name is required")
        self._check_shift(start_time, end_time)
        return self._repository.add_document(
            hotel_id,
            SHIFTS,
            Shift(name=name.strip(), start_time=start_time, end_time=end_time),
        )

    def update_shift(self, hotel_id: str, shift_id: str, updates: dict[str, Any]) -> Shift:
        shift = self._require(hotel_id, SHIFTS, shift_id, Shift)
        updated = shift.model_copy(update={k: v for k, v in updates.items() if k in {"name", "start_time", "end_time"}})
        self._check_shift(updated.start_time, updated.end_time)
        self._repository.save_document(hotel_id, SHIFTS, updated)
        return updated

    def delete_shift(self, hotel_id: str, shift_id: str) -> None:
        self._require(hotel_id, SHIFTS, shift_id, Shift)
        self._repository.delete_document(hotel_id, SHIFTS, shift_id)

    # SLA rules

    def list_sla_rules(self, hotel_id: str) -> list[SlaRule]:
        return self._repository.list_sla_rules(hotel_id)

    def add_sla_rule(self, hotel_id: str, service_name: str, time_limit_minutes: int) -> SlaRule:
        if not service_name.strip():
            raise TeamValidationError("service_name is required")
        try:
            validate_sla_minutes(time_limit_minutes)
        except ValueError as exc:
            raise TeamValidationError(str(exc)) from exc
        return self._repository.add_document(
            hotel_id,
            SLA_RULES,
            SlaRule(service_name=service_name.strip(), time_limit_minutes=time_limit_minutes),
        )

    def update_sla_rule(self, hotel_id: str, rule_id: str, time_limit_minutes: int) -> SlaRule:
        rule = self._require(hotel_id, SLA_RULES, rule_id, SlaRule)
        try:
            validate_sla_minutes(time_limit_minutes)
        except ValueError as exc:
            raise TeamValidationError(str(exc)) from exc
        updated = rule.model_copy(update={"time_limit_minutes": time_limit_minutes})
        self._repository.save_document(hotel_id, SLA_RULES, updated)
        return updated

    def delete_sla_rule(self, hotel_id: str, rule_id: str) -> None:
        self._require(hotel_id, SLA_RULES, rule_id, SlaRule)
        self._repository.delete_document(hotel_id, SLA_RULES, rule_id)

    # Team members

    def list_members(self, hotel_id: str) -> list[TeamMember]:
        return self._repository.list_team_members(hotel_id)

    def save_member(self, hotel_id: str, member: TeamMember) -> TeamMember:
        if not member.name.strip():
            raise TeamValidationError("Member name is required")
        if not any(item.name == member.department for item in self._repository.list_departments(hotel_id)):
            raise TeamValidationError(f'Department "{member.department}" does not exist')
        if member.id:
            self._repository.save_document(hotel_id, TEAM_MEMBERS, member)
            return member
        return self._repository.add_document(hotel_id, TEAM_MEMBERS, member)

    def delete_member(self, hotel_id: str, member_id: str) -> None:
        self._require(hotel_id, TEAM_MEMBERS, member_id, TeamMember)
        self._repository.delete_document(hotel_id, TEAM_MEMBERS, member_id)

    def set_attendance(self, hotel_id: str, member_id: str, attendance_status: str) -> TeamMember:
        if attendance_status not in ATTENDANCE_STATUSES:
            raise TeamValidationError(f"attendance_status must be one of {', '.join(ATTENDANCE_STATUSES)}")
        member = self._require(hotel_id, TEAM_MEMBERS, member_id, TeamMember)
        updated = member.model_copy(update={"attendance_status": attendance_status})
        self._repository.save_document(hotel_id, TEAM_MEMBERS, updated)
        return updated
