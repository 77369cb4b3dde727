from __future__ import annotations

from dataclasses import replace

import pytest

from hotelops.repository.document_store import DocumentNotFoundError, DocumentStore, join_path
from hotelops.repository.hotel_repository import HotelRepository, InvalidDocumentError
from hotelops.utils.config import get_settings


def _build_store(tmp_path) -> DocumentStore:
    get_settings.cache_clear()
    settings = replace(get_settings(), database_path=tmp_path / "store.db")
    store = DocumentStore(settings)
    store.initialize()
    return store


def test_set_get_and_merge(tmp_path) -> None:
    store = _build_store(tmp_path)
    store.set("hotels/h1/rooms", "r1", {"number": "101", "type": "Deluxe"})
    store.set("hotels/h1/rooms", "r1", {"status": "Cleaning"}, merge=True)

    assert store.get("hotels/h1/rooms", "r1") == {"number": "101", "type": "Deluxe", "status": "Cleaning"}
    assert store.get("hotels/h1/rooms", "missing") is None


def test_list_collection_keeps_insertion_order_and_scope(tmp_path) -> None:
    store = _build_store(tmp_path)
    store.set("hotels/h1/rooms", "b", {"n": 2})
    store.set("hotels/h1/rooms", "a", {"n": 1})
    store.set("hotels/h2/rooms", "c", {"n": 3})

    assert [doc_id for doc_id, _ in store.list_collection("hotels/h1/rooms")] == ["b", "a"]
    assert store.count("hotels/h2/rooms") == 1


def test_update_of_missing_document_raises(tmp_path) -> None:
    store = _build_store(tmp_path)
    with pytest.raises(DocumentNotFoundError):
        store.update("hotels/h1/rooms", "ghost", {"status": "Available"})


def test_failed_batch_leaves_no_partial_writes(tmp_path) -> None:
    store = _build_store(tmp_path)
    batch = store.batch()
    batch.set("hotels/h1/rooms", "r1", {"number": "101"})
    batch.update("hotels/h1/rooms", "ghost", {"status": "Available"})

    with pytest.raises(DocumentNotFoundError):
        batch.commit()

    assert store.get("hotels/h1/rooms", "r1") is None


def test_batch_cannot_commit_twice(tmp_path) -> None:
    store = _build_store(tmp_path)
    batch = store.batch().set("activeStays", "s1", {"hotelId": "h1"})
    batch.commit()
    with pytest.raises(RuntimeError):
        batch.commit()


def test_subscribers_see_changes_in_their_collection_only(tmp_path) -> None:
    store = _build_store(tmp_path)
    events = []
    subscription = store.subscribe("hotels/h1/serviceRequests", events.append)

    store.set("hotels/h1/serviceRequests", "q1", {"service": "Towels"})
    store.set("hotels/h1/rooms", "r1", {"number": "101"})
    store.delete("hotels/h1/serviceRequests", "q1")
    subscription.unsubscribe()
    store.set("hotels/h1/serviceRequests", "q2", {"service": "Water"})

    assert [(event.doc_id, event.kind) for event in events] == [("q1", "set"), ("q1", "delete")]
    assert not subscription.active


def test_join_path_rejects_empty_segments() -> None:
    assert join_path("hotels", "h1", "rooms") == "hotels/h1/rooms"
    with pytest.raises(ValueError):
        join_path("hotels", "", "rooms")


def test_repository_skips_malformed_documents_in_lists(tmp_path) -> None:
    store = _build_store(tmp_path)
    repository = HotelRepository(store=store)
    store.set("hotels/h1/rooms", "good", {"number": "101", "type": "Deluxe"})
    store.set("hotels/h1/rooms", "bad", {"number": "102"})

    assert [room.id for room in repository.list_rooms("h1")] == ["good"]
    with pytest.raises(InvalidDocumentError):
        repository.get_room("h1", "bad")


def test_hotel_settings_fall_back_to_configured_rates(tmp_path) -> None:
    store = _build_store(tmp_path)
    repository = HotelRepository(store=store)
    assert repository.get_hotel_settings("h1").gst_rate == pytest.approx(18.0)

    store.set("hotels/h1/config", "settings", {"gstRate": 12})
    settings = repository.get_hotel_settings("h1")
    assert settings.gst_rate == pytest.approx(12.0)
    assert settings.service_charge_rate == pytest.approx(10.0)


def test_seed_is_idempotent(tmp_path) -> None:
    store = _build_store(tmp_path)
    repository = HotelRepository(store=store)
    repository.seed_demo_hotel("h1")
    repository.seed_demo_hotel("h1")

    assert len(repository.list_rooms("h1")) == 8
    assert {client.id for client in repository.list_corporate_clients("h1")} == {"acme"}


def test_reads_before_initialize_raise_runtime_error(tmp_path) -> None:
    get_settings.cache_clear()
    store = DocumentStore(replace(get_settings(), database_path=tmp_path / "uninitialized.db"))

    with pytest.raises(RuntimeError):
        store.get("hotels/h1/rooms", "r1")
    with pytest.raises(RuntimeError):
        store.list_collection("hotels/h1/rooms")
    with pytest.raises(RuntimeError):
        store.count("hotels/h1/rooms")
