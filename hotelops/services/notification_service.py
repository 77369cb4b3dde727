"""SOS and SLA-breach notifications, with a polling monitor.

Notifications are recomputed from the current service requests every time;
nothing about an alert is stored. ``SlaMonitor`` re-evaluates on a fixed
interval and whenever a watched collection changes, and calls its listeners
only when the set of alerts for a hotel differs from the previous run.
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Callable, Iterable, Optional

from hotelops.domain.alerts import compute_notifications
from hotelops.domain.models import Notification
from hotelops.repository.document_store import ChangeEvent, Subscription
from hotelops.repository.hotel_repository import SERVICE_REQUESTS, SLA_RULES, HotelRepository
from hotelops.utils.config import Settings, get_settings
from hotelops.utils.logger import get_logger


logger = get_logger(__name__)

NotificationListener = Callable[[str, list[Notification]], None]


class NotificationService:
    def __init__(
        self,
        repository: Optional[HotelRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or HotelRepository(self._settings)

    @property
    def repository(self) -> HotelRepository:
        return self._repository

    def current(self, hotel_id: str, now: Optional[datetime] = None) -> list[Notification]:
        return compute_notifications(
            self._repository.list_service_requests(hotel_id),
            self._repository.list_sla_rules(hotel_id),
            now or datetime.now(),
        )


class SlaMonitor:
    """Background re-evaluation of notifications for a fixed set of hotels."""

    def __init__(
        self,
        notification_service: NotificationService,
        hotel_ids: Iterable[str],
        interval_seconds: Optional[float] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._settings = settings or get_settings()
        self._service = notification_service
        self._hotel_ids = list(hotel_ids)
        self._interval = interval_seconds or self._settings.sla_poll_interval_seconds
        self._clock = clock
        self._listeners: list[NotificationListener] = []
        self._latest: dict[str, list[Notification]] = {}
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._subscriptions: list[Subscription] = []

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def add_listener(self, listener: NotificationListener) -> Callable[[], None]:
        """Register ``listener``; the returned callable removes it again."""
        with self._lock:
            self._listeners.append(listener)

        def remove() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return remove

    def latest(self, hotel_id: str) -> list[Notification]:
        with self._lock:
            return list(self._latest.get(hotel_id, []))

    def evaluate(self, now: Optional[datetime] = None) -> dict[str, list[Notification]]:
        results: dict[str, list[Notification]] = {}
        for hotel_id in self._hotel_ids:
            results[hotel_id] = self._evaluate_hotel(hotel_id, now or self._clock())
        return results

    def _evaluate_hotel(self, hotel_id: str, now: datetime) -> list[Notification]:
        notifications = self._service.current(hotel_id, now)
        with self._lock:
            previous_ids = {item.id for item in self._latest.get(hotel_id, [])}
            self._latest[hotel_id] = notifications
            listeners = list(self._listeners)

        current_ids = {item.id for item in notifications}
        for item in notifications:
            if item.id not in previous_ids:
                logger.warning("%s: %s", item.message, item.details)
        if current_ids != previous_ids:
            for listener in listeners:
                try:
                    listener(hotel_id, notifications)
                except Exception:
                    logger.exception("Notification listener failed for hotel %s", hotel_id)
        return notifications

    def _on_change(self, event: ChangeEvent) -> None:
        # Collection paths look like hotels/{hotelId}/{collection}.
        parts = event.collection_path.split("/")
        if len(parts) == 3 and parts[1] in self._hotel_ids:
            self._evaluate_hotel(parts[1], self._clock())

    def start(self) -> None:
        if self.running:
            return
        store = self._service.repository.store
        for hotel_id in self._hotel_ids:
            for collection in (SERVICE_REQUESTS, SLA_RULES):
                path = HotelRepository.collection_path(hotel_id, collection)
                self._subscriptions.append(store.subscribe(path, self._on_change))

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="sla-monitor", daemon=True)
        self._thread.start()
        logger.info("SLA monitor started (interval=%ss, hotels=%s)", self._interval, self._hotel_ids)

    def stop(self, timeout: float = 5.0) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions.clear()
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
            logger.info("SLA monitor stopped")

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.evaluate()
            except Exception:
                logger.exception("SLA evaluation failed")
            self._stop_event.wait(self._interval)
