"""Display status resolution for rooms.

The stored ``Room.status`` is only a fallback. What the front desk sees is
derived on every read from the room's stays, out-of-order blocks and the
reference instant, in this priority order (first match wins):

1. today falls inside an out-of-order block        -> Out of Order
2. a Checked In stay covers today [check-in, out)  -> Occupied
3. the room's cached checkOutDate is today         -> Cleaning
4. a stay arrives today and is not checked in      -> Waiting for Check-in
5. a stay arrives after today                      -> Reserved
6. otherwise                                       -> stored status

Rule 3 is a date comparison only. A room cleaned earlier on its checkout day
still reads as Cleaning until midnight.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from hotelops.domain.documents import Room, Stay
from hotelops.domain.models import Movement, RoomStatus, StayStatus
from hotelops.utils.dates import is_same_day, is_within_interval, start_of_day


def is_out_of_order(room: Room, day: datetime) -> bool:
    today = start_of_day(day)
    return any(
        is_within_interval(today, start_of_day(block.from_date), start_of_day(block.to_date))
        for block in room.out_of_order_blocks
    )


def _is_active_stay(stay: Stay, today: datetime) -> bool:
    if stay.check_in_date is None or stay.check_out_date is None:
        return False
    check_in = start_of_day(stay.check_in_date)
    check_out = start_of_day(stay.check_out_date)
    return stay.status == StayStatus.CHECKED_IN and check_in <= today < check_out


def _arrives_today(stay: Stay, now: datetime) -> bool:
    if stay.check_in_date is None:
        return False
    return is_same_day(stay.check_in_date, now) and stay.status != StayStatus.CHECKED_IN


def _arrives_later(stay: Stay, today: datetime) -> bool:
    if stay.check_in_date is None:
        return False
    return today < start_of_day(stay.check_in_date)


def resolve_display_status(room: Room, now: datetime) -> RoomStatus:
    today = start_of_day(now)

    if is_out_of_order(room, today):
        return RoomStatus.OUT_OF_ORDER

    if any(_is_active_stay(stay, today) for stay in room.stays):
        return RoomStatus.OCCUPIED

    if room.check_out_date is not None and is_same_day(room.check_out_date, now):
        return RoomStatus.CLEANING

    if any(_arrives_today(stay, now) for stay in room.stays):
        return RoomStatus.WAITING_FOR_CHECK_IN

    if any(_arrives_later(stay, today) for stay in room.stays):
        return RoomStatus.RESERVED

    return room.status


def todays_movements(
    rooms: Iterable[Room],
    now: datetime,
) -> tuple[list[Movement], list[Movement]]:
    """Return (arrivals, departures) for the calendar day of ``now``."""
    arrivals: list[Movement] = []
    departures: list[Movement] = []
    for room in rooms:
        for stay in room.stays:
            movement = Movement(
                room_id=room.id,
                room_number=room.number,
                stay_id=stay.stay_id,
                guest_name=stay.guest_name,
            )
            if _arrives_today(stay, now):
                arrivals.append(movement)
            if (
                stay.check_out_date is not None
                and is_same_day(stay.check_out_date, now)
                and room.status == RoomStatus.OCCUPIED
                and stay.status == StayStatus.CHECKED_IN
            ):
                departures.append(movement)
    return arrivals, departures
