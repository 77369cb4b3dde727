"""Hierarchical JSON document store on SQLite.

Documents are addressed by a slash-separated collection path plus a document
id, e.g. ``hotels/h1/rooms`` + ``r-101``. Writes are last-write-wins; a
``WriteBatch`` applies several writes in one SQLite transaction. Change
listeners are explicit ``Subscription`` objects that the owner must
``unsubscribe()``.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Iterator, Optional

from hotelops.utils.config import Settings, get_settings
from hotelops.utils.logger import get_logger


logger = get_logger(__name__)


class DocumentNotFoundError(LookupError):
    """Raised when an update targets a document that does not exist."""


@dataclass(frozen=True)
class ChangeEvent:
    collection_path: str
    doc_id: str
    kind: str  # "set" | "update" | "delete"


ChangeListener = Callable[[ChangeEvent], None]


def join_path(*segments: str) -> str:
    cleaned = [str(segment).strip("/") for segment in segments]
    if any(not segment for segment in cleaned):
        raise ValueError(f"Empty path segment in {segments!r}")
    return "/".join(cleaned)


def new_document_id() -> str:
    return uuid.uuid4().hex[:20]


class Subscription:
    """Handle returned by ``DocumentStore.subscribe``."""

    def __init__(self, store: "DocumentStore", collection_path: str, listener: ChangeListener) -> None:
        self._store = store
        self.collection_path = collection_path
        self.listener = listener
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if self._active:
            self._store._remove_subscription(self)
            self._active = False


class WriteBatch:
    """Queued writes committed atomically."""

    def __init__(self, store: "DocumentStore") -> None:
        self._store = store
        self._operations: list[tuple[str, str, str, Optional[dict[str, Any]]]] = []
        self._committed = False

    def __len__(self) -> int:
        return len(self._operations)

    def set(
        self,
        collection_path: str,
        doc_id: str,
        data: dict[str, Any],
        merge: bool = False,
    ) -> "WriteBatch":
        kind = "merge" if merge else "set"
        self._operations.append((kind, collection_path, doc_id, dict(data)))
        return self

    def update(self, collection_path: str, doc_id: str, updates: dict[str, Any]) -> "WriteBatch":
        self._operations.append(("update", collection_path, doc_id, dict(updates)))
        return self

    def delete(self, collection_path: str, doc_id: str) -> "WriteBatch":
        self._operations.append(("delete", collection_path, doc_id, None))
        return self

    def commit(self) -> None:
        if self._committed:
            raise RuntimeError("WriteBatch already committed")
        self._store._apply(self._operations)
        self._committed = True


class DocumentStore:
    """Encapsulates SQLite access for path-addressed JSON documents."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._subscriptions: list[Subscription] = []
        self._subscription_lock = RLock()

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._db_path)
        connection.row_factory = sqlite3.Row
        return connection

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        connection = self._connect()
        try:
            with connection:
                yield connection
        finally:
            connection.close()

    def initialize(self) -> None:
        """Create the document table before API startup."""
        try:
            with self._session() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Documents (
                        path TEXT PRIMARY KEY,
                        collection_path TEXT NOT NULL,
                        doc_id TEXT NOT NULL,
                        data TEXT NOT NULL,
                        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_documents_collection
                    ON Documents(collection_path);
                    """
                )
            logger.info("Document store initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Document store initialization failed: {exc}") from exc

    def get(self, collection_path: str, doc_id: str) -> Optional[dict[str, Any]]:
        try:
            with self._session() as conn:
                row = conn.execute(
                    "SELECT data FROM Documents WHERE path = ?;",
                    (join_path(collection_path, doc_id),),
                ).fetchone()
        except sqlite3.Error as exc:
            raise RuntimeError(f"Failed to read document {join_path(collection_path, doc_id)}: {exc}") from exc
        if row is None:
            return None
        return json.loads(row["data"])

    def list_collection(self, collection_path: str) -> list[tuple[str, dict[str, Any]]]:
        """Return (doc_id, data) pairs in insertion order."""
        try:
            with self._session() as conn:
                rows = conn.execute(
                    """
                    SELECT doc_id, data
                    FROM Documents
                    WHERE collection_path = ?
                    ORDER BY rowid ASC;
                    """,
                    (collection_path,),
                ).fetchall()
        except sqlite3.Error as exc:
            raise RuntimeError(f"Failed to list {collection_path}: {exc}") from exc
        return [(str(row["doc_id"]), json.loads(row["data"])) for row in rows]

    def count(self, collection_path: str) -> int:
        try:
            with self._session() as conn:
                row = conn.execute(
                    "SELECT COUNT(*) AS count FROM Documents WHERE collection_path = ?;",
                    (collection_path,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise RuntimeError(f"Failed to count {collection_path}: {exc}") from exc
        return int(row["count"])

    def add(self, collection_path: str, data: dict[str, Any]) -> str:
        doc_id = new_document_id()
        self.set(collection_path, doc_id, data)
        return doc_id

    def set(self, collection_path: str, doc_id: str, data: dict[str, Any], merge: bool = False) -> None:
        self.batch().set(collection_path, doc_id, data, merge=merge).commit()

    def update(self, collection_path: str, doc_id: str, updates: dict[str, Any]) -> None:
        self.batch().update(collection_path, doc_id, updates).commit()

    def delete(self, collection_path: str, doc_id: str) -> None:
        self.batch().delete(collection_path, doc_id).commit()

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    @contextmanager
    def batched(self) -> Iterator[WriteBatch]:
        """Commit the yielded batch on normal exit, discard it on error."""
        batch = self.batch()
        yield batch
        if len(batch):
            batch.commit()

    def subscribe(self, collection_path: str, listener: ChangeListener) -> Subscription:
        subscription = Subscription(self, collection_path, listener)
        with self._subscription_lock:
            self._subscriptions.append(subscription)
        return subscription

    def _remove_subscription(self, subscription: Subscription) -> None:
        with self._subscription_lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def _apply(self, operations: list[tuple[str, str, str, Optional[dict[str, Any]]]]) -> None:
        if not operations:
            return
        events: list[ChangeEvent] = []
        try:
            with self._session() as conn:
                for kind, collection_path, doc_id, payload in operations:
                    path = join_path(collection_path, doc_id)
                    if kind == "delete":
                        conn.execute("DELETE FROM Documents WHERE path = ?;", (path,))
                        events.append(ChangeEvent(collection_path, doc_id, "delete"))
                        continue

                    data = payload or {}
                    if kind in {"update", "merge"}:
                        row = conn.execute(
                            "SELECT data FROM Documents WHERE path = ?;",
                            (path,),
                        ).fetchone()
                        if row is None and kind == "update":
                            raise DocumentNotFoundError(f"No document at {path}")
                        current = json.loads(row["data"]) if row is not None else {}
                        current.update(data)
                        data = current

                    conn.execute(
                        """
                        INSERT INTO Documents (path, collection_path, doc_id, data)
                        VALUES (?, ?, ?, ?)
                        ON CONFLICT(path) DO UPDATE SET
                            data = excluded.data,
                            updated_at = CURRENT_TIMESTAMP;
                        """,
                        (path, collection_path, doc_id, json.dumps(data)),
                    )
                    events.append(
                        ChangeEvent(collection_path, doc_id, "update" if kind == "update" else "set")
                    )
        except sqlite3.Error as exc:
            raise RuntimeError(f"Document write failed: {exc}") from exc
        self._notify(events)

    def _notify(self, events: list[ChangeEvent]) -> None:
        with self._subscription_lock:
            subscriptions = list(self._subscriptions)
        for event in events:
            for subscription in subscriptions:
                if subscription.collection_path != event.collection_path:
                    continue
                try:
                    subscription.listener(event)
                except Exception:
                    logger.exception(
                        "Change listener failed for %s/%s",
                        event.collection_path,
                        event.doc_id,
                    )
