"""Tests for revenue, service, team and occupancy analytics reducers."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from hotelops.domain.analytics import (
    compute_occupancy_series,
    compute_revenue_analytics,
    compute_service_analytics,
    compute_team_analytics,
    filter_label,
    normalize_service_name,
)
from hotelops.domain.documents import (
    BilledOrder,
    CheckedOutStay,
    CorporateClient,
    Department,
    FinalBill,
    OutOfOrderBlock,
    Restaurant,
    Room,
    RoomCharges,
    ServiceRequest,
    SlaRule,
    Stay,
    TeamMember,
)
from hotelops.domain.models import BilledOrderStatus, ServiceRequestStatus


def _service(service: str, price: float, created: datetime, **extra) -> ServiceRequest:
    return ServiceRequest(
        id=extra.pop("id", service),
        room_number="101",
        service=service,
        price=price,
        creation_time=created,
        **extra,
    )


def _checkout(
    stay_id: str,
    check_in: datetime,
    check_out: datetime,
    room_amount: float,
    services: list[ServiceRequest] | None = None,
    total: float | None = None,
) -> CheckedOutStay:
    charges = services or []
    subtotal = room_amount + sum(item.price for item in charges)
    return CheckedOutStay(
        id=stay_id,
        stay_id=stay_id,
        room_number="101",
        room_type="Deluxe",
        guest_name="Guest",
        check_in_date=check_in,
        check_out_date=check_out,
        final_bill=FinalBill(
            room_charges=RoomCharges(label="Deluxe", amount=room_amount),
            service_charges=charges,
            subtotal=subtotal,
            total=subtotal if total is None else total,
        ),
    )


def _client(*orders: BilledOrder) -> CorporateClient:
    return CorporateClient(id="acme", name="Acme", billed_orders=list(orders))


def _order(order_id: str, amount: float, status: BilledOrderStatus, paid: datetime | None) -> BilledOrder:
    return BilledOrder(
        id=order_id,
        stay_id="s",
        guest_name="g",
        room_number="101",
        amount=amount,
        status=status,
        date=datetime(2026, 3, 1),
        paid_date=paid,
    )


# --- revenue ---

def test_revenue_rolls_up_checkouts_and_paid_corporate_orders() -> None:
    history = [
        _checkout(
            "101-AAA",
            datetime(2026, 3, 1, 14),
            datetime(2026, 3, 3, 11),
            room_amount=4000.0,
            services=[_service("Laundry", 300.0, datetime(2026, 3, 2))],
        ),
        _checkout("102-BBB", datetime(2026, 3, 2), datetime(2026, 3, 3), room_amount=2000.0),
        _checkout("103-CCC", datetime(2026, 3, 3), datetime(2026, 3, 4), room_amount=0.0, total=0.0),
        _checkout("104-DDD", datetime(2026, 2, 1), datetime(2026, 2, 2), room_amount=9999.0),
    ]
    clients = [
        _client(
            _order("o1", 500.0, BilledOrderStatus.PAID, datetime(2026, 3, 2, 10)),
            _order("o2", 800.0, BilledOrderStatus.PENDING, None),
        )
    ]

    result = compute_revenue_analytics(history, clients, datetime(2026, 3, 1), datetime(2026, 3, 4))

    assert result.room_revenue == pytest.approx(6000.0)
    assert result.service_revenue == pytest.approx(300.0)
    assert result.corporate_revenue == pytest.approx(500.0)
    assert result.total_revenue == pytest.approx(6800.0)
    # 2 nights + 1 night; the zero-value checkout is excluded from ADR too.
    assert result.adr == pytest.approx(2000.0)

    by_day = {point.date: point.revenue for point in result.chart_data}
    assert list(by_day) == ["2026-03-01", "2026-03-02", "2026-03-03", "2026-03-04"]
    assert by_day["2026-03-02"] == pytest.approx(500.0)
    assert by_day["2026-03-03"] == pytest.approx(6300.0)
    assert by_day["2026-03-01"] == 0.0


def test_empty_range_yields_zero_filled_series() -> None:
    result = compute_revenue_analytics([], [], datetime(2026, 4, 1), datetime(2026, 4, 3))

    assert result.total_revenue == 0.0
    assert result.adr == 0.0
    assert [point.date for point in result.chart_data] == ["2026-04-01", "2026-04-02", "2026-04-03"]
    assert all(point.revenue == 0.0 for point in result.chart_data)


def test_single_day_range_when_date_to_missing() -> None:
    result = compute_revenue_analytics([], [], datetime(2026, 4, 1, 18, 0))
    assert [point.date for point in result.chart_data] == ["2026-04-01"]
    assert result.filter_label == "Apr 01, 2026"


def test_filter_label_formats() -> None:
    assert filter_label(datetime(2026, 3, 1), datetime(2026, 3, 31)) == "March 2026"
    assert filter_label(datetime(2026, 3, 2), datetime(2026, 3, 9)) == "Mar 02, 2026 - Mar 09, 2026"
    assert filter_label(None) == "Select a date range"


# --- services ---

def test_normalize_service_name_strips_quantity_suffix() -> None:
    assert normalize_service_name("Club Sandwich (x3)") == ("Club Sandwich", 3)
    assert normalize_service_name("Laundry") == ("Laundry", None)


def test_quantity_suffixes_merge_into_one_row() -> None:
    requests = [
        _service("Club Sandwich (x3)", 750.0, datetime(2026, 3, 5, 12), id="r1", category="In-Room Dining"),
        _service("Club Sandwich (x2)", 500.0, datetime(2026, 3, 6, 12), id="r2", category="In-Room Dining"),
    ]

    result = compute_service_analytics(requests, [], [], datetime(2026, 3, 1), datetime(2026, 3, 31))

    assert len(result.service_analytics) == 1
    row = result.service_analytics[0]
    assert row.name == "Club Sandwich"
    assert row.requests == 5
    assert row.revenue == pytest.approx(1250.0)
    assert result.total_service_revenue == pytest.approx(1250.0)


def test_restaurant_name_replaces_category() -> None:
    requests = [
        _service("Masala Dosa", 220.0, datetime(2026, 3, 5), id="r1", category="Breakfast", restaurant_id="main-kitchen"),
    ]
    restaurants = [Restaurant(id="main-kitchen", name="Main Kitchen")]

    result = compute_service_analytics(requests, [], restaurants, datetime(2026, 3, 5))

    assert result.service_analytics[0].category == "Main Kitchen"
    assert [item.name for item in result.category_analytics] == ["Main Kitchen"]


def test_post_checkout_cleaning_is_not_a_headline_service() -> None:
    requests = [
        _service("Post-Checkout Cleaning", 0.0, datetime(2026, 3, 5), id="c1", category="Housekeeping Services"),
        _service("Post-Checkout Cleaning", 0.0, datetime(2026, 3, 6), id="c2", category="Housekeeping Services"),
        _service("Spa Massage", 2500.0, datetime(2026, 3, 6), id="s1", category="Wellness"),
    ]

    result = compute_service_analytics(requests, [], [], datetime(2026, 3, 1), datetime(2026, 3, 31))

    names = [row.name for row in result.service_analytics]
    assert "Post-Checkout Cleaning" in names
    assert result.most_requested_service is not None
    assert result.most_requested_service.name == "Spa Massage"
    assert result.top_revenue_service is not None
    assert result.top_revenue_service.name == "Spa Massage"


def test_checkout_snapshots_count_towards_service_analytics() -> None:
    archived = _checkout(
        "101-AAA",
        datetime(2026, 3, 1),
        datetime(2026, 3, 2),
        room_amount=1000.0,
        services=[_service("Laundry", 300.0, datetime(2026, 2, 28), id="l1", category="Laundry")],
    )

    result = compute_service_analytics([], [archived], [], datetime(2026, 3, 2))

    assert [(row.name, row.requests) for row in result.service_analytics] == [("Laundry", 1)]


def test_no_services_leaves_headlines_empty() -> None:
    result = compute_service_analytics([], [], [], datetime(2026, 3, 1))
    assert result.most_requested_service is None
    assert result.top_revenue_service is None
    assert result.total_service_revenue == 0.0


# --- occupancy ---

def test_occupancy_counts_booked_nights_and_blocks() -> None:
    rooms = [
        Room(
            id="room-101",
            number="101",
            type="Deluxe",
            stays=[
                Stay(
                    stay_id="101-A",
                    guest_name="A",
                    check_in_date=datetime(2026, 3, 1, 14),
                    check_out_date=datetime(2026, 3, 3, 11),
                )
            ],
        ),
        Room(
            id="room-102",
            number="102",
            type="Deluxe",
            out_of_order_blocks=[OutOfOrderBlock(from_date=datetime(2026, 3, 3), to_date=datetime(2026, 3, 3))],
        ),
    ]

    series = compute_occupancy_series(rooms, datetime(2026, 3, 1), datetime(2026, 3, 4))

    assert [(point.date, point.occupancy) for point in series] == [
        ("2026-03-01", 50.0),
        ("2026-03-02", 50.0),
        ("2026-03-03", 50.0),
        ("2026-03-04", 0.0),
    ]


def test_occupancy_without_rooms_is_zero() -> None:
    series = compute_occupancy_series([], datetime(2026, 3, 1), datetime(2026, 3, 2))
    assert [point.occupancy for point in series] == [0.0, 0.0]


def _completed(task_id: str, created: datetime, minutes: int, **extra) -> ServiceRequest:
    return ServiceRequest(
        id=task_id,
        room_number="101",
        service="Task",
        status=ServiceRequestStatus.COMPLETED,
        creation_time=created,
        completion_time=created + timedelta(minutes=minutes),
        **extra,
    )


def test_team_analytics_counts_breaches_and_picks_top_performer() -> None:
    created = datetime(2026, 4, 10, 9, 0)
    members = [
        TeamMember(id="m-asha", name="Asha", department="Housekeeping"),
        TeamMember(id="m-ravi", name="Ravi", department="Housekeeping"),
    ]
    departments = [Department(id="housekeeping", name="Housekeeping"), Department(id="fnb", name="F&B")]
    rules = [SlaRule(id="hk", service_name="Housekeeping Services", time_limit_minutes=45)]
    requests = [
        _completed("t1", created, 50, assigned_to="m-asha", staff="Housekeeping", category="Housekeeping Services"),
        _completed("t2", created, 30, assigned_to="m-asha", staff="Housekeeping", category="Housekeeping Services"),
        _completed("t3", created, 45, created_by="m-ravi", staff="Housekeeping", category="Housekeeping Services"),
        _completed("t4", created, 20, staff="F&B", category="In-Room Dining"),
        _completed("old", datetime(2026, 3, 1, 9), 90, assigned_to="m-asha", category="Housekeeping Services"),
        ServiceRequest(id="open", room_number="102", service="Towels", creation_time=created, assigned_to="m-ravi"),
    ]

    result = compute_team_analytics(requests, members, departments, rules, datetime(2026, 4, 1), datetime(2026, 4, 30))

    assert result.total_completed_tasks == 4
    assert result.total_sla_breaches == 1
    assert result.avg_completion_minutes == pytest.approx(36.25)
    stats = {stat.id: stat for stat in result.member_stats}
    assert stats["m-asha"].tasks_completed == 2
    assert stats["m-asha"].sla_breaches == 1
    assert stats["m-asha"].avg_completion_minutes == pytest.approx(40.0)
    assert stats["m-ravi"].sla_breaches == 0
    assert (stats["system"].name, stats["system"].department) == ("System", "F&B")
    by_department = {stat.name: stat for stat in result.department_stats}
    assert by_department["Housekeeping"].tasks_completed == 3
    assert by_department["Housekeeping"].top_performer.name == "Asha"
    assert by_department["F&B"].top_performer.name == "System"
    assert result.filter_label == "April 2026"


def test_team_analytics_credits_unknown_ids_to_admin() -> None:
    created = datetime(2026, 4, 10, 9, 0)
    requests = [_completed("t1", created, 10, created_by="owner-uid", staff="Reception")]

    result = compute_team_analytics(requests, [], [Department(id="reception", name="Reception")], [], created)

    assert [(stat.name, stat.department) for stat in result.member_stats] == [("Admin", "Admin")]
    assert result.department_stats[0].tasks_completed == 1
    assert result.department_stats[0].top_performer is None
