"""Emergency and SLA-breach notifications derived from open service requests."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Sequence

from hotelops.domain.documents import ServiceRequest, SlaRule
from hotelops.domain.models import Notification, NotificationType, ServiceRequestStatus


OPEN_STATUSES = frozenset({ServiceRequestStatus.PENDING, ServiceRequestStatus.IN_PROGRESS})


def elapsed_minutes(start: datetime, now: datetime) -> int:
    """Whole minutes elapsed, truncated toward zero."""
    return int((now - start).total_seconds() / 60)


def _sos_notification(request: ServiceRequest) -> Notification:
    return Notification(
        id=f"sos-{request.id}",
        type=NotificationType.SOS,
        message=f"SOS: {request.service.replace('SOS: ', '')}",
        details=f"Room {request.room_number} triggered an emergency alert.",
        request_id=request.id,
        room_number=request.room_number,
    )


def _sla_notification(request: ServiceRequest, overdue: int) -> Notification:
    return Notification(
        id=f"sla-{request.id}",
        type=NotificationType.SLA,
        message=f"SLA Breach: Room {request.room_number}",
        details=f'"{request.service}" is overdue by {overdue} mins.',
        request_id=request.id,
        room_number=request.room_number,
        overdue_minutes=overdue,
    )


def compute_notifications(
    requests: Sequence[ServiceRequest],
    sla_rules: Iterable[SlaRule],
    now: datetime,
) -> list[Notification]:
    """Emergencies first, then SLA breaches.

    Emergency requests never go through SLA matching. Rules match a request's
    category by exact name.
    """
    rules = list(sla_rules)
    alerts = [
        _sos_notification(request)
        for request in requests
        if request.is_emergency and request.status == ServiceRequestStatus.PENDING
    ]

    for request in requests:
        if request.is_emergency or request.status not in OPEN_STATUSES:
            continue
        rule = next((rule for rule in rules if rule.service_name == request.category), None)
        if rule is None:
            continue
        elapsed = elapsed_minutes(request.creation_time, now)
        if elapsed > rule.time_limit_minutes:
            alerts.append(_sla_notification(request, elapsed - rule.time_limit_minutes))

    return alerts
