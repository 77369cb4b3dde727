"""Folio (running bill) computation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Literal, Optional, Sequence

from hotelops.domain.documents import ServiceRequest, Stay
from hotelops.domain.models import FolioSummary
from hotelops.utils.dates import calendar_days_between


DiscountType = Literal["percent", "amount"]


@dataclass(frozen=True)
class Discount:
    kind: DiscountType
    value: float

    def amount_for(self, subtotal: float) -> float:
        if self.kind == "percent":
            return subtotal * (self.value / 100)
        return self.value


def nights(check_in: Optional[datetime], check_out: Optional[datetime]) -> int:
    """Calendar nights of a stay; same-day and undated stays count as one."""
    if check_in is None or check_out is None:
        return 1
    return calendar_days_between(check_in, check_out) or 1


def stay_room_total(stays: Iterable[Stay]) -> float:
    return sum(
        stay.room_charge * nights(stay.check_in_date, stay.check_out_date)
        for stay in stays
    )


def services_total(service_charges: Iterable[ServiceRequest]) -> float:
    return sum(charge.price or 0.0 for charge in service_charges)


def compute_folio(
    *,
    room_total: float,
    service_charges: Sequence[ServiceRequest],
    service_charge_rate: float,
    gst_rate: float,
    paid_amount: float = 0.0,
    discount: Optional[Discount] = None,
) -> FolioSummary:
    """Compose the bill.

    Service charge and GST are both taken on the (discounted) subtotal; GST is
    never charged on the service charge.
    """
    charges_total = services_total(service_charges)
    subtotal = room_total + charges_total
    discount_amount = discount.amount_for(subtotal) if discount is not None else 0.0
    taxable = subtotal - discount_amount
    service_charge_amount = (taxable * service_charge_rate) / 100
    gst_amount = (taxable * gst_rate) / 100
    total = taxable + service_charge_amount + gst_amount
    return FolioSummary(
        room_total=room_total,
        services_total=charges_total,
        subtotal=subtotal,
        discount_amount=discount_amount,
        service_charge_amount=service_charge_amount,
        gst_amount=gst_amount,
        total=total,
        paid_amount=paid_amount,
        balance=total - paid_amount,
    )


def group_stays(stay: Stay, all_stays: Iterable[Stay]) -> list[Stay]:
    """Stays billed together with ``stay``: the whole clubbed group, or just itself."""
    if stay.is_group_booking and stay.group_master_stay_id:
        return [
            other
            for other in all_stays
            if other.group_master_stay_id == stay.group_master_stay_id
        ]
    return [stay]
