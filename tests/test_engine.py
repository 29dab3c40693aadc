"""Engine aggregate: persistence, crash recovery, edits, feedback, history and events."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from engine_app.engine import WardrobeEngine
from engine_app.events import EventKind
from memory.feedback_store import FeedbackStore
from models.color_theory import Color
from models.jobs import JobStatus, ProcessingJob
from models.outfit import Outfit
from tools import state_codec
from tools.kv_store import InMemoryKeyValueStore, SQLiteKeyValueStore


@pytest.fixture()
def engine(memory_store) -> WardrobeEngine:
    return WardrobeEngine(memory_store)


def _add_lunch_catalog(engine: WardrobeEngine, make_item) -> None:
    engine.add_item(make_item("Black T-shirt", "Black", "#101010", item_id="tee"))
    engine.add_item(make_item("Blue Jeans", "Blue", "#1E3CC8", item_id="jeans"))
    engine.add_item(make_item("White Sneakers", "White", "#FAFAFA", item_id="sneakers"))


def test_processing_jobs_are_requeued_on_reload(memory_store) -> None:
    interrupted = ProcessingJob.create(b"image-a")
    interrupted.status = JobStatus.PROCESSING
    finished = ProcessingJob.create(b"image-b")
    finished.status = JobStatus.DONE
    memory_store.set("jobs", state_codec.encode_jobs([interrupted, finished]))

    engine = WardrobeEngine(memory_store)

    statuses = {job.job_id: job.status for job in engine.jobs()}
    assert statuses == {interrupted.job_id: JobStatus.QUEUED, finished.job_id: JobStatus.DONE}
    persisted = state_codec.decode_jobs(memory_store.get("jobs"))
    assert [job.status for job in persisted] == [JobStatus.QUEUED, JobStatus.DONE]


def test_corrupt_key_does_not_block_other_state(memory_store, make_item) -> None:
    feedback = FeedbackStore()
    feedback.record_like("a", "b")
    memory_store.set("catalog", b"garbage")
    memory_store.set("jobs", state_codec.encode_jobs([ProcessingJob.create(b"image")]))
    memory_store.set("feedback", state_codec.encode_feedback(feedback))
    memory_store.set("history", b'{"unexpected": true}')

    engine = WardrobeEngine(memory_store)

    assert engine.items() == []
    assert engine.history() == []
    assert len(engine.jobs()) == 1
    assert engine.feedback_score("a", "b") > 0


def test_state_survives_restart(tmp_path: Path, make_item) -> None:
    path = tmp_path / "state.db"
    first = WardrobeEngine(SQLiteKeyValueStore(path))
    _add_lunch_catalog(first, make_item)
    first.record_like("tee", "jeans")
    outfit = first.recommend("casual lunch", seed=3)

    second = WardrobeEngine(SQLiteKeyValueStore(path))

    assert [item.item_id for item in second.items()] == ["tee", "jeans", "sneakers"]
    assert second.feedback_score("jeans", "tee") == first.feedback_score("tee", "jeans")
    assert [entry.top_id for entry in second.history()] == [outfit.top.item_id]


def test_clear_finished_jobs_removes_only_done_and_failed(engine) -> None:
    jobs = [engine.enqueue_image(f"image-{index}".encode()) for index in range(4)]
    done = engine.claim_next_job()
    engine.complete_job(done.job_id, "item-1")
    failed = engine.claim_next_job()
    engine.fail_job(failed.job_id, "boom")
    in_flight = engine.claim_next_job()

    removed = engine.clear_finished_jobs()

    assert removed == 2
    remaining = {job.job_id: job.status for job in engine.jobs()}
    assert remaining == {in_flight.job_id: JobStatus.PROCESSING, jobs[3].job_id: JobStatus.QUEUED}
    assert engine.clear_finished_jobs() == 0


def test_jobs_are_claimed_in_fifo_order(engine) -> None:
    queued = [engine.enqueue_image(f"image-{index}".encode()).job_id for index in range(3)]

    claimed = [engine.claim_next_job().job_id for _ in range(3)]

    assert claimed == queued
    assert engine.claim_next_job() is None


def test_cancel_only_applies_to_queued_jobs(engine) -> None:
    first = engine.enqueue_image(b"first")
    second = engine.enqueue_image(b"second")
    engine.claim_next_job()

    assert not engine.cancel_job(first.job_id)
    assert engine.cancel_job(second.job_id)
    assert not engine.cancel_job(second.job_id)
    assert [job.job_id for job in engine.jobs()] == [first.job_id]


def test_enqueue_rejects_empty_payload_and_tolerates_unreadable_images(engine) -> None:
    with pytest.raises(ValueError):
        engine.enqueue_image(b"")

    job = engine.enqueue_image(b"not an image")

    assert job.thumbnail == b""
    assert job.status is JobStatus.QUEUED


def test_enqueue_builds_jpeg_thumbnail(engine, image_bytes) -> None:
    job = engine.enqueue_image(image_bytes(size=(400, 300)))

    assert job.thumbnail.startswith(b"\xff\xd8")


def test_item_edits(engine, make_item) -> None:
    _add_lunch_catalog(engine, make_item)

    edited = engine.update_description("jeans", "  Slim Chinos ", "   ")
    recolored = engine.update_color("tee", "Red", Color(220, 20, 20))

    assert edited.category == "Slim Chinos"
    assert edited.text is None
    assert recolored.color_hex == "#DC1414"
    with pytest.raises(ValueError):
        engine.update_description("jeans", "  ")
    with pytest.raises(KeyError):
        engine.update_description("missing", "Shirt")
    with pytest.raises(ValueError):
        engine.add_item(make_item("Another", item_id="tee"))


def test_delete_item(engine, make_item) -> None:
    _add_lunch_catalog(engine, make_item)

    engine.delete_item("sneakers")

    assert engine.get_item("sneakers") is None
    assert not engine.set_item_embedding("sneakers", [1.0])
    with pytest.raises(KeyError):
        engine.delete_item("sneakers")


def test_history_is_capped_with_latest_first(engine, make_item) -> None:
    tops = [make_item(f"Shirt {index}", item_id=f"top-{index}") for index in range(150)]
    bottom = make_item("Jeans", item_id="bottom")

    for top in tops:
        engine.add_to_history(Outfit(top=top, bottom=bottom))
        assert len(engine.history()) <= 100

    history = engine.history()
    assert len(history) == 100
    assert history[0].top_id == "top-149"
    assert history[-1].top_id == "top-50"


def test_recommend_records_history_and_outfit_feedback(engine, make_item) -> None:
    _add_lunch_catalog(engine, make_item)

    outfit = engine.recommend("casual lunch", seed=1)
    pairs = engine.like_outfit(outfit)

    assert outfit.slot_ids == ("tee", "jeans", None, "sneakers")
    assert engine.history()[0].shoes_id == "sneakers"
    assert pairs == 3
    assert engine.feedback_score("tee", "sneakers") > 0
    assert engine.dislike_outfit(Outfit(top=outfit.top)) == 0


def test_recommend_without_viable_catalog_returns_none(engine, make_item) -> None:
    engine.add_item(make_item("Shirt"))

    assert engine.recommend("casual lunch") is None
    assert engine.history() == []
    assert engine.recommend_candidates("casual lunch") == []


def test_events_are_published_and_unsubscribable(engine, make_item) -> None:
    received = []
    unsubscribe = engine.subscribe(received.append)

    engine.add_item(make_item("Shirt", item_id="shirt"))
    engine.enqueue_image(b"payload")
    engine.record_dislike("shirt", "other")
    unsubscribe()
    engine.delete_item("shirt")

    assert [event.kind for event in received] == [
        EventKind.CATALOG_CHANGED,
        EventKind.JOBS_CHANGED,
        EventKind.FEEDBACK_CHANGED,
    ]
    assert received[0].payload == {"action": "added", "item_id": "shirt"}


def test_failing_subscriber_does_not_break_mutations(engine, make_item) -> None:
    def explode(event):
        raise RuntimeError("subscriber bug")

    engine.subscribe(explode)

    engine.add_item(make_item("Shirt", item_id="shirt"))

    assert engine.get_item("shirt") is not None


def test_zero_top_k_is_clamped_to_one(engine, make_item) -> None:
    for index in range(3):
        engine.add_item(make_item(f"Shirt {index}"))
        engine.add_item(make_item(f"Jeans {index}"))

    assert len(engine.recommend_candidates("weekend", top_k=0, seed=1)) == 1
    assert len(engine.recommend_candidates("weekend", seed=1)) == 3


def test_catalog_reads_are_snapshots(engine, make_item, memory_store) -> None:
    original = make_item("Shirt", item_id="shirt")
    engine.add_item(original)

    engine.items()[0].category = "Renamed Jeans"
    engine.get_item("shirt").text = "edited"
    original.category = "Trousers"

    assert engine.get_item("shirt").category == "Shirt"
    assert engine.get_item("shirt").text is None
    [persisted] = state_codec.decode_catalog(memory_store.get("catalog"))
    assert persisted.category == "Shirt"


class _UnreadableStore(InMemoryKeyValueStore):
    def get(self, key):
        if key == "catalog":
            raise sqlite3.DatabaseError("file is not a database")
        return super().get(key)


def test_unreadable_key_loads_as_empty(make_item) -> None:
    store = _UnreadableStore()
    store.set("jobs", state_codec.encode_jobs([ProcessingJob.create(b"image")]))

    engine = WardrobeEngine(store)

    assert engine.items() == []
    assert len(engine.jobs()) == 1
    engine.add_item(make_item("Shirt"))
    assert len(engine.items()) == 1
