from __future__ import annotations

from dataclasses import replace

import pytest

from hotelops.domain.documents import TeamMember
from hotelops.repository.hotel_repository import HotelRepository
from hotelops.services.team_service import (
    DepartmentInUseError,
    TeamRecordNotFoundError,
    TeamService,
    TeamValidationError,
)
from hotelops.utils.config import get_settings


HOTEL_ID = "hotel-team"


@pytest.fixture()
def team(tmp_path) -> TeamService:
    get_settings.cache_clear()
    settings = replace(get_settings(), database_path=tmp_path / "team.db")
    repository = HotelRepository(settings)
    repository.initialize_database()
    repository.seed_demo_hotel(HOTEL_ID)
    return TeamService(repository=repository, settings=settings)


def _department_names(team: TeamService) -> set[str]:
    return {department.name for department in team.list_departments(HOTEL_ID)}


def test_department_names_are_unique_ignoring_case(team) -> None:
    with pytest.raises(TeamValidationError):
        team.add_department(HOTEL_ID, "housekeeping")

    created = team.add_department(HOTEL_ID, "Spa", manages=["Wellness"])
    assert created.manages == ["Wellness"]
    with pytest.raises(TeamValidationError):
        team.update_department(HOTEL_ID, created.id, {"name": "RECEPTION"})


def test_department_with_members_cannot_be_deleted(team) -> None:
    with pytest.raises(DepartmentInUseError) as excinfo:
        team.delete_department(HOTEL_ID, "housekeeping")

    assert excinfo.value.member_count == 1
    assert "Housekeeping" in _department_names(team)


def test_empty_department_is_deleted(team) -> None:
    team.delete_department(HOTEL_ID, "reception")
    assert "Reception" not in _department_names(team)


def test_reassign_moves_members_into_new_department(team) -> None:
    moved = team.reassign_and_delete_department(HOTEL_ID, "Housekeeping", "Rooms Division")

    assert moved == 1
    assert "Housekeeping" not in _department_names(team)
    assert "Rooms Division" in _department_names(team)
    new_department = next(item for item in team.list_departments(HOTEL_ID) if item.name == "Rooms Division")
    assert new_department.manages == []
    assert [member.department for member in team.list_members(HOTEL_ID)] == ["Rooms Division"]


def test_reassign_into_existing_department(team) -> None:
    team.reassign_and_delete_department(HOTEL_ID, "Housekeeping", "Reception")
    assert _department_names(team) == {"Reception", "F&B", "Maintenance"}
    assert team.list_members(HOTEL_ID)[0].department == "Reception"


def test_reassign_rejects_case_variant_of_existing_name(team) -> None:
    with pytest.raises(TeamValidationError):
        team.reassign_and_delete_department(HOTEL_ID, "Housekeeping", "reception")


def test_reassign_requires_known_source(team) -> None:
    with pytest.raises(TeamRecordNotFoundError):
        team.reassign_and_delete_department(HOTEL_ID, "Concierge", "Reception")


def test_shift_times_are_validated(team) -> None:
    shift = team.add_shift(HOTEL_ID, "Split", "10:00", "18:00")
    updated = team.update_shift(HOTEL_ID, shift.id, {"end_time": "19:30"})
    assert updated.end_time == "19:30"

    with pytest.raises(TeamValidationError):
        team.add_shift(HOTEL_ID, "Broken", "25:00", "18:00")
    with pytest.raises(TeamValidationError):
        team.update_shift(HOTEL_ID, shift.id, {"start_time": "19:30"})

    team.delete_shift(HOTEL_ID, shift.id)
    with pytest.raises(TeamRecordNotFoundError):
        team.delete_shift(HOTEL_ID, shift.id)


def test_sla_rule_limits_must_be_positive(team) -> None:
    rule = team.add_sla_rule(HOTEL_ID, "Laundry", 120)
    assert team.update_sla_rule(HOTEL_ID, rule.id, 90).time_limit_minutes == 90

    with pytest.raises(TeamValidationError):
        team.add_sla_rule(HOTEL_ID, "Laundry", 0)
    with pytest.raises(TeamValidationError):
        team.update_sla_rule(HOTEL_ID, rule.id, -5)


def test_member_save_requires_existing_department(team) -> None:
    with pytest.raises(TeamValidationError):
        team.save_member(HOTEL_ID, TeamMember(name="Kiran", department="Concierge"))

    created = team.save_member(HOTEL_ID, TeamMember(name="Kiran", department="Reception"))
    assert created.id

    edited = team.save_member(HOTEL_ID, created.model_copy(update={"role": "Lead"}))
    assert edited.role == "Lead"
    assert len(team.list_members(HOTEL_ID)) == 2

    team.delete_member(HOTEL_ID, created.id)
    assert len(team.list_members(HOTEL_ID)) == 1


def test_attendance_status_is_checked(team) -> None:
    assert team.set_attendance(HOTEL_ID, "member-asha", "Clocked In").attendance_status == "Clocked In"
    with pytest.raises(TeamValidationError):
        team.set_attendance(HOTEL_ID, "member-asha", "Asleep")
