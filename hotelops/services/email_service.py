"""Invoice delivery through a transactional email HTTP API."""

from __future__ import annotations

from dataclasses import dataclass
from html import escape
from typing import Any, Optional

import requests

from hotelops.domain.documents import CheckedOutStay, HotelSettings
from hotelops.repository.hotel_repository import CHECKOUT_HISTORY, HotelRepository
from hotelops.utils.config import Settings, get_settings
from hotelops.utils.logger import get_logger


logger = get_logger(__name__)


class InvoiceNotFoundError(Exception):
    """Raised when no archived checkout exists for the stay."""


@dataclass(frozen=True)
class EmailResult:
    status: str  # "success" | "error"
    message: str

    @property
    def ok(self) -> bool:
        return self.status == "success"

    def to_dict(self) -> dict[str, str]:
        return {"status": self.status, "message": self.message}


def render_invoice_html(stay: CheckedOutStay, hotel: HotelSettings) -> str:
    bill = stay.final_bill
    currency = escape(hotel.currency)
    lines = [
        f"<tr><td>{escape(bill.room_charges.label)}</td><td>{currency} {bill.room_charges.amount:.2f}</td></tr>",
        *(
            f"<tr><td>{escape(charge.service)}</td><td>{currency} {charge.price:.2f}</td></tr>"
            for charge in bill.service_charges
        ),
    ]
    if bill.discount:
        lines.append(f"<tr><td>Discount</td><td>-{currency} {bill.discount:.2f}</td></tr>")
    lines.extend(
        [
            f"<tr><td>Service charge</td><td>{currency} {bill.service_charge_amount:.2f}</td></tr>",
            f"<tr><td>GST</td><td>{currency} {bill.gst_amount:.2f}</td></tr>",
            f"<tr><th>Total</th><th>{currency} {bill.total:.2f}</th></tr>",
            f"<tr><td>Paid ({escape(bill.payment_method)})</td><td>{currency} {bill.paid_amount:.2f}</td></tr>",
        ]
    )
    return (
        f"<h2>{escape(hotel.legal_name or 'Invoice')}</h2>"
        f"<p>Guest: {escape(stay.guest_name)}<br>Room {escape(stay.room_number)} ({escape(stay.room_type)})<br>"
        f"{stay.check_in_date:%d %b %Y} to {stay.check_out_date:%d %b %Y}</p>"
        f"<table>{''.join(lines)}</table>"
    )


class InvoiceEmailService:
    def __init__(
        self,
        repository: Optional[HotelRepository] = None,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or HotelRepository(self._settings)
        self._session = session or requests.Session()

    def build_payload(self, stay: CheckedOutStay, hotel: HotelSettings, recipient: str) -> dict[str, Any]:
        return {
            "from": self._settings.email_sender,
            "to": [recipient],
            "subject": f"Your invoice for stay {stay.stay_id}",
            "html": render_invoice_html(stay, hotel),
        }

    def send_invoice_email(self, hotel_id: str, stay_id: str, recipient: str) -> EmailResult:
        """One POST per call; failures are reported, never retried."""
        if not recipient or "@" not in recipient:
            return EmailResult(status="error", message="A valid recipient email is required.")
        if not self._settings.email_api_key:
            logger.warning("Invoice email requested for %s but EMAIL_API_KEY is not set", stay_id)
            return EmailResult(status="error", message="Email delivery is not configured.")

        stay = self._repository.get_document(hotel_id, CHECKOUT_HISTORY, stay_id, CheckedOutStay)
        if stay is None:
            raise InvoiceNotFoundError(f"No archived invoice for stay {stay_id}")
        hotel = self._repository.get_hotel_settings(hotel_id)

        try:
            response = self._session.post(
                self._settings.email_api_url,
                json=self.build_payload(stay, hotel, recipient),
                headers={"Authorization": f"Bearer {self._settings.email_api_key}"},
                timeout=self._settings.email_timeout_seconds,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as exc:
            logger.error("Invoice email for %s failed: %s", stay_id, exc)
            return EmailResult(status="error", message=f"Failed to send invoice: {exc}")

        logger.info("Invoice for %s sent to %s", stay_id, recipient)
        return EmailResult(status="success", message=f"Invoice sent to {recipient}.")
