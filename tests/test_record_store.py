from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from identify.datalake.storage import FileSystemRecordStore, IdentificationRecord, load_record

_BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _record(user_id: str, label: str, minutes: int) -> IdentificationRecord:
    return IdentificationRecord.create(
        label=label,
        file_name=f"{label}.jpg",
        media_type="image/jpeg",
        user_id=user_id,
        model="gemini-2.5-flash",
        api_version="v1beta",
        created_at=_BASE_TIME + timedelta(minutes=minutes),
    )


def test_save_writes_json_under_date_directory(tmp_path) -> None:
    store = FileSystemRecordStore(root=tmp_path)
    record = store.save(_record("alice@example.com", "This is an animal: Cat", 0))

    path = tmp_path / "2024" / "05" / "01" / f"{record.record_id}.json"
    assert path.exists()
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["label"] == "This is an animal: Cat"
    assert payload["user_id"] == "alice@example.com"
    assert payload["created_at"] == "2024-05-01T12:00:00+00:00"
    assert load_record(path) == record


def test_record_id_uses_sanitized_user_slug(tmp_path) -> None:
    record = _record("Alice@Example.com", "label", 0)

    slug, timestamp, suffix = record.record_id.split("_")
    assert slug == "alice-example-com"
    assert timestamp == "20240501T120000000000Z"
    assert len(suffix) == 8


def test_find_all_returns_newest_first(tmp_path) -> None:
    store = FileSystemRecordStore(root=tmp_path)
    store.save(_record("alice", "first", 0))
    store.save(_record("bob", "second", 5))
    store.save(_record("alice", "third", 10))

    labels = [record.label for record in store.find_all()]

    assert labels == ["third", "second", "first"]
    assert [record.label for record in store.find_all(limit=2)] == ["third", "second"]


def test_find_by_user_filters_and_orders(tmp_path) -> None:
    store = FileSystemRecordStore(root=tmp_path)
    store.save(_record("alice", "old", 0))
    store.save(_record("bob", "bob-only", 3))
    store.save(_record("alice", "new", 60 * 24 * 40))

    alice = store.find_by_user("alice")

    assert [record.label for record in alice] == ["new", "old"]
    assert store.find_by_user("carol") == []
    assert store.find_by_user("alice", limit=0) == []


def test_unreadable_files_are_skipped(tmp_path) -> None:
    store = FileSystemRecordStore(root=tmp_path)
    store.save(_record("alice", "kept", 0))
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "partial.json").write_text(json.dumps({"label": "no owner"}), encoding="utf-8")

    assert [record.label for record in store.find_all()] == ["kept"]


def test_saving_same_record_twice_is_rejected(tmp_path) -> None:
    store = FileSystemRecordStore(root=tmp_path)
    record = store.save(_record("alice", "once", 0))

    with pytest.raises(FileExistsError):
        store.save(record)
