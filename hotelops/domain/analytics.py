"""Revenue, service, team and occupancy reducers over a day-truncated date range."""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

import pandas as pd

from hotelops.domain.alerts import elapsed_minutes
from hotelops.domain.documents import (
    CheckedOutStay,
    CorporateClient,
    Department,
    Restaurant,
    Room,
    ServiceRequest,
    SlaRule,
    TeamMember,
)
from hotelops.domain.folio import nights
from hotelops.domain.models import (
    BilledOrderStatus,
    CategoryRevenue,
    DepartmentPerformance,
    MemberPerformance,
    OccupancyPoint,
    RevenueAnalytics,
    RevenuePoint,
    ServiceAnalytics,
    ServiceAnalyticsRow,
    ServiceRequestStatus,
    TeamAnalytics,
    TopPerformer,
)
from hotelops.domain.room_status import is_out_of_order
from hotelops.utils.dates import day_key, day_range, each_day, is_within_interval, start_of_day


QUANTITY_SUFFIX = re.compile(r" \(x(\d+)\)$")
CLEANING_SERVICE_NAME = "Post-Checkout Cleaning"
UNASSIGNED_MEMBER_ID = "system"


@dataclass(frozen=True)
class DateWindow:
    start: datetime
    end: datetime

    @classmethod
    def from_range(cls, date_from: datetime, date_to: Optional[datetime] = None) -> "DateWindow":
        start, end = day_range(date_from, date_to)
        return cls(start=start, end=end)

    def contains(self, value: Optional[datetime]) -> bool:
        return value is not None and is_within_interval(value, self.start, self.end)


def filter_label(date_from: Optional[datetime], date_to: Optional[datetime] = None) -> str:
    if date_from is None:
        return "Select a date range"
    if date_to is not None:
        last_day = calendar.monthrange(date_from.year, date_from.month)[1]
        if (
            date_from.day == 1
            and date_to.date() == date_from.date().replace(day=last_day)
        ):
            return date_from.strftime("%B %Y")
        return f"{date_from.strftime('%b %d, %Y')} - {date_to.strftime('%b %d, %Y')}"
    return date_from.strftime("%b %d, %Y")


def normalize_service_name(name: str) -> tuple[str, Optional[int]]:
    """Strip a trailing order-quantity suffix like ' (x3)'."""
    match = QUANTITY_SUFFIX.search(name)
    if match is None:
        return name.strip(), None
    return name[: match.start()].strip(), int(match.group(1))


def _daily_series(
    entries: Sequence[tuple[str, float]],
    window: DateWindow,
) -> list[RevenuePoint]:
    days = pd.date_range(start=window.start.date(), end=window.end.date(), freq="D")
    keys = [day.strftime("%Y-%m-%d") for day in days]
    if entries:
        frame = pd.DataFrame(list(entries), columns=["date", "revenue"])
        totals = frame.groupby("date")["revenue"].sum()
    else:
        totals = pd.Series(dtype="float64")
    series = totals.reindex(keys, fill_value=0.0)
    return [RevenuePoint(date=str(key), revenue=float(value)) for key, value in series.items()]


def paid_corporate_orders(
    clients: Iterable[CorporateClient],
    window: DateWindow,
) -> list[tuple[datetime, float]]:
    return [
        (order.paid_date, order.amount)
        for client in clients
        for order in client.billed_orders
        if order.status == BilledOrderStatus.PAID and window.contains(order.paid_date)
    ]


def compute_revenue_analytics(
    checkout_history: Iterable[CheckedOutStay],
    corporate_clients: Iterable[CorporateClient],
    date_from: datetime,
    date_to: Optional[datetime] = None,
) -> RevenueAnalytics:
    """Roll up archived checkouts and paid corporate orders.

    Zero-value checkouts are excluded entirely, including from ADR nights.
    """
    window = DateWindow.from_range(date_from, date_to)

    relevant_stays = [
        stay
        for stay in checkout_history
        if window.contains(stay.check_out_date) and stay.final_bill.total > 0
    ]
    corporate = paid_corporate_orders(corporate_clients, window)

    room_revenue = sum(stay.final_bill.room_charges.amount for stay in relevant_stays)
    service_revenue = sum(
        charge.price or 0.0
        for stay in relevant_stays
        for charge in stay.final_bill.service_charges
    )
    corporate_revenue = sum(amount for _, amount in corporate)

    nights_sold = sum(nights(stay.check_in_date, stay.check_out_date) for stay in relevant_stays)
    adr = room_revenue / nights_sold if nights_sold > 0 else 0.0

    entries = [(day_key(stay.check_out_date), stay.final_bill.total) for stay in relevant_stays]
    entries.extend((day_key(paid_date), amount) for paid_date, amount in corporate)

    return RevenueAnalytics(
        total_revenue=room_revenue + service_revenue + corporate_revenue,
        room_revenue=room_revenue,
        service_revenue=service_revenue,
        corporate_revenue=corporate_revenue,
        adr=adr,
        chart_data=_daily_series(entries, window),
        filter_label=filter_label(date_from, date_to),
    )


def _display_category(service: ServiceRequest, restaurants_by_id: dict[str, Restaurant]) -> str:
    if service.restaurant_id:
        restaurant = restaurants_by_id.get(service.restaurant_id)
        if restaurant is not None:
            return restaurant.name
    return service.category or "Other"


def compute_service_analytics(
    service_requests: Iterable[ServiceRequest],
    checkout_history: Iterable[CheckedOutStay],
    restaurants: Iterable[Restaurant],
    date_from: datetime,
    date_to: Optional[datetime] = None,
) -> ServiceAnalytics:
    window = DateWindow.from_range(date_from, date_to)
    restaurants_by_id = {restaurant.id: restaurant for restaurant in restaurants}

    services_in_range: list[ServiceRequest] = [
        charge
        for stay in checkout_history
        if window.contains(stay.check_out_date)
        for charge in stay.final_bill.service_charges
    ]
    services_in_range.extend(
        request for request in service_requests if window.contains(request.creation_time)
    )

    rows: dict[str, dict[str, object]] = {}
    for service in services_in_range:
        name, suffix_quantity = normalize_service_name(service.service)
        quantity = service.quantity or suffix_quantity or 1
        price = service.price or 0.0
        existing = rows.get(name)
        if existing is None:
            rows[name] = {
                "requests": quantity,
                "revenue": price,
                "category": _display_category(service, restaurants_by_id),
            }
        else:
            existing["requests"] = int(existing["requests"]) + quantity
            existing["revenue"] = float(existing["revenue"]) + price

    service_rows = sorted(
        (
            ServiceAnalyticsRow(
                name=name,
                requests=int(data["requests"]),
                revenue=float(data["revenue"]),
                category=str(data["category"]),
            )
            for name, data in rows.items()
        ),
        key=lambda row: row.revenue,
        reverse=True,
    )

    category_totals: dict[str, float] = {}
    for row in service_rows:
        category = row.category or "Other"
        category_totals[category] = category_totals.get(category, 0.0) + row.revenue
    category_rows = sorted(
        (CategoryRevenue(name=name, revenue=revenue) for name, revenue in category_totals.items()),
        key=lambda row: row.revenue,
        reverse=True,
    )

    user_facing = [row for row in service_rows if row.name != CLEANING_SERVICE_NAME]
    most_requested = max(user_facing, key=lambda row: row.requests, default=None)

    return ServiceAnalytics(
        total_service_revenue=sum(row.revenue for row in service_rows),
        most_requested_service=most_requested,
        top_revenue_service=user_facing[0] if user_facing else None,
        service_analytics=service_rows,
        category_analytics=category_rows,
        filter_label=filter_label(date_from, date_to),
    )


def _completion_minutes(task: ServiceRequest) -> int:
    return elapsed_minutes(task.creation_time, task.completion_time)


def _breached(task: ServiceRequest, sla_rules: Sequence[SlaRule]) -> bool:
    rule = next((rule for rule in sla_rules if rule.service_name == task.category), None)
    return rule is not None and _completion_minutes(task) > rule.time_limit_minutes


def _average_minutes(tasks: Sequence[ServiceRequest]) -> float:
    if not tasks:
        return 0.0
    return sum(_completion_minutes(task) for task in tasks) / len(tasks)


def compute_team_analytics(
    service_requests: Iterable[ServiceRequest],
    members: Iterable[TeamMember],
    departments: Iterable[Department],
    sla_rules: Iterable[SlaRule],
    date_from: datetime,
    date_to: Optional[datetime] = None,
) -> TeamAnalytics:
    """Per-member and per-department throughput for completed tasks created in range.

    Tasks are credited to ``assigned_to``, else ``created_by``. Ids that match no
    team member are credited to an Admin row; tasks with neither field go to a
    single System row under the task's ``staff`` department.
    """
    window = DateWindow.from_range(date_from, date_to)
    rules = list(sla_rules)
    members_by_id = {member.id: member for member in members}

    tasks = [
        request
        for request in service_requests
        if request.status == ServiceRequestStatus.COMPLETED
        and request.completion_time is not None
        and window.contains(request.creation_time)
    ]

    grouped: dict[str, dict[str, object]] = {}
    for task in tasks:
        member_id = task.assigned_to or task.created_by
        if member_id:
            member = members_by_id.get(member_id)
            name, department = (member.name, member.department) if member else ("Admin", "Admin")
        else:
            member_id = UNASSIGNED_MEMBER_ID
            name, department = "System", task.staff or "System"
        entry = grouped.setdefault(member_id, {"name": name, "department": department, "tasks": []})
        entry["tasks"].append(task)

    member_stats = [
        MemberPerformance(
            id=member_id,
            name=str(entry["name"]),
            department=str(entry["department"]),
            tasks_completed=len(entry["tasks"]),
            avg_completion_minutes=_average_minutes(entry["tasks"]),
            sla_breaches=sum(1 for task in entry["tasks"] if _breached(task, rules)),
        )
        for member_id, entry in grouped.items()
    ]

    department_stats = []
    for department in departments:
        department_members = [stat for stat in member_stats if stat.department == department.name]
        top = max(department_members, key=lambda stat: stat.tasks_completed, default=None)
        department_stats.append(
            DepartmentPerformance(
                name=department.name,
                tasks_completed=sum(1 for task in tasks if task.staff == department.name),
                top_performer=TopPerformer(name=top.name, tasks_completed=top.tasks_completed) if top else None,
            )
        )

    return TeamAnalytics(
        member_stats=member_stats,
        department_stats=department_stats,
        total_completed_tasks=len(tasks),
        total_sla_breaches=sum(1 for task in tasks if _breached(task, rules)),
        avg_completion_minutes=_average_minutes(tasks),
        filter_label=filter_label(date_from, date_to),
    )


def compute_occupancy_series(
    rooms: Sequence[Room],
    date_from: datetime,
    date_to: Optional[datetime] = None,
) -> list[OccupancyPoint]:
    """Percentage of rooms booked or blocked on each day of the range."""
    start = start_of_day(date_from)
    end = start_of_day(date_to or date_from)
    points: list[OccupancyPoint] = []
    for day in each_day(start, end):
        calculation_date = start_of_day(datetime.combine(day, datetime.min.time()))
        if not rooms:
            points.append(OccupancyPoint(date=day_key(day), occupancy=0.0))
            continue
        occupied = sum(
            1
            for room in rooms
            if _is_booked_on(room, calculation_date) or is_out_of_order(room, calculation_date)
        )
        points.append(
            OccupancyPoint(date=day_key(day), occupancy=(occupied / len(rooms)) * 100)
        )
    return points


def _is_booked_on(room: Room, day: datetime) -> bool:
    for stay in room.stays:
        if stay.check_in_date is None or stay.check_out_date is None:
            continue
        first_night = start_of_day(stay.check_in_date)
        last_night = start_of_day(stay.check_out_date) - timedelta(days=1)
        if is_within_interval(day, first_night, last_night):
            return True
    return False
