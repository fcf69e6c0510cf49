"""Tests for diary persistence."""

import json
from datetime import datetime

import pytest

from trigoal.diary.models import DiaryEntry, Goal, SleepSession
from trigoal.storage.backends import FileStore, MemoryStore, SQLiteStore, create_store
from trigoal.storage.repository import STORAGE_KEYS, DiaryStorage


def test_get_entry_default_is_not_persisted(storage, store):
    entry = storage.get_entry("2024-01-01")

    assert entry.date == "2024-01-01"
    assert entry.content == ""
    assert entry.goals == {}
    assert entry.bed_time is None
    assert "2024-01-01" not in storage.load_entries()
    assert store.get(STORAGE_KEYS["entries"]) is None


def test_save_entry_upserts_by_date(storage):
    storage.save_entry(DiaryEntry(date="2024-01-01", content="first"))
    storage.save_entry(DiaryEntry(date="2024-01-02", content="second"))
    storage.save_entry(DiaryEntry(date="2024-01-01", content="rewritten", goals={"g1": 2}))

    entries = storage.load_entries()
    assert set(entries) == {"2024-01-01", "2024-01-02"}
    assert entries["2024-01-01"].content == "rewritten"
    assert entries["2024-01-01"].goals == {"g1": 2}


def test_save_entry_is_idempotent(storage, store):
    entry = DiaryEntry(
        date="2024-01-01",
        content="hello",
        bed_time=datetime(2024, 1, 1, 23, 30),
        goals={"g1": 1},
    )
    storage.save_entry(entry)
    once = store.get(STORAGE_KEYS["entries"])
    storage.save_entry(entry)

    assert store.get(STORAGE_KEYS["entries"]) == once


def test_entries_are_stored_in_camel_case_layout(storage, store):
    storage.save_entry(
        DiaryEntry(
            date="2024-01-01",
            bed_time=datetime(2024, 1, 1, 23, 30),
            ai_reflection="nice",
        )
    )

    raw = json.loads(store.get(STORAGE_KEYS["entries"]))
    assert raw["2024-01-01"]["bedTime"] == "2024-01-01T23:30:00"
    assert raw["2024-01-01"]["aiReflection"] == "nice"
    assert "sleepHours" not in raw["2024-01-01"]


def test_legacy_entries_load(store):
    store.set(
        STORAGE_KEYS["entries"],
        json.dumps(
            {
                "2023-05-01": {
                    "date": "2023-05-01",
                    "content": "old",
                    "sleepHours": 7.5,
                    "goals": {"1700000000000": 1},
                }
            }
        ),
    )

    entry = DiaryStorage(store).get_entry("2023-05-01")
    assert entry.sleep_hours == 7.5
    assert entry.goals == {"1700000000000": 1}


@pytest.mark.parametrize("raw", ["{not json", "[1, 2, 3]", '{"2024-01-01": {"content": 5}}'])
def test_corrupt_entries_load_as_empty(store, raw, caplog):
    store.set(STORAGE_KEYS["entries"], raw)

    assert DiaryStorage(store).load_entries() == {}
    assert "Failed to load" in caplog.text


def test_goals_round_trip_and_corrupt_default(storage, store, goals):
    assert storage.load_goals() == []

    storage.save_goals(goals)
    assert storage.load_goals() == goals

    raw = json.loads(store.get(STORAGE_KEYS["goals"]))
    assert raw[0]["targetEasy"] == 10
    assert raw[0]["type"] == "accumulation"

    store.set(STORAGE_KEYS["goals"], '{"oops": true}')
    assert storage.load_goals() == []


def test_inverted_goal_targets_still_load(storage):
    storage.save_goals([Goal(id="x", title="Odd", target_easy=100, target_hard=50, target_insane=10)])
    assert storage.load_goals()[0].target_easy == 100


def test_sleep_session_defaults_and_round_trip(storage, store):
    assert storage.load_sleep_session() == SleepSession(start_time=0, is_active=False)

    storage.save_sleep_session(SleepSession(start_time=1700000000000, is_active=True))
    assert json.loads(store.get(STORAGE_KEYS["sleep_session"])) == {
        "startTime": 1700000000000,
        "isActive": True,
    }
    assert storage.load_sleep_session().is_active

    store.set(STORAGE_KEYS["sleep_session"], "garbage")
    assert storage.load_sleep_session() == SleepSession()


@pytest.mark.parametrize("backend", ["file", "sqlite"])
def test_disk_backends_persist_across_instances(tmp_path, backend):
    first = DiaryStorage(create_store(backend, str(tmp_path)))
    first.save_entry(DiaryEntry(date="2024-01-01", content="kept"))

    second = DiaryStorage(create_store(backend, str(tmp_path)))
    assert second.get_entry("2024-01-01").content == "kept"


def test_backends_return_none_for_missing_keys(tmp_path):
    for store in (MemoryStore(), FileStore(str(tmp_path / "files")), SQLiteStore(str(tmp_path / "kv.db"))):
        assert store.get("missing") is None
        store.set("key", "one")
        store.set("key", "two")
        assert store.get("key") == "two"


def test_unknown_backend():
    with pytest.raises(ValueError):
        create_store("cloud", "data")


def test_undecodable_file_loads_as_empty(tmp_path, caplog):
    store = FileStore(str(tmp_path))
    (tmp_path / f"{STORAGE_KEYS['entries']}.json").write_bytes(b'{"\xff\xfe": 1}')
    storage = DiaryStorage(store)

    assert storage.load_entries() == {}
    assert storage.get_entry("2024-01-01").content == ""
    assert "Failed to load" in caplog.text


def test_corrupt_sqlite_file_loads_as_empty(tmp_path):
    store = SQLiteStore(str(tmp_path / "diary.db"))
    (tmp_path / "diary.db").write_bytes(b"this is not a database" * 100)
    storage = DiaryStorage(store)

    assert storage.load_entries() == {}
    assert storage.load_goals() == []
    assert storage.load_sleep_session() == SleepSession()


def test_bad_entry_does_not_hide_or_erase_the_rest(storage, store, caplog):
    store.set(
        STORAGE_KEYS["entries"],
        json.dumps(
            {
                "2024-01-01": {"date": "2024-01-01", "content": "keep me", "goals": {"g1": 3}},
                "2024-01-02": {"date": "2024-01-02", "content": "", "goals": {}, "bedTime": ""},
                "2024-01-04": "not an entry",
            }
        ),
    )

    entries = storage.load_entries()
    assert list(entries) == ["2024-01-01"]
    assert entries["2024-01-01"].content == "keep me"
    assert "Failed to load entry 2024-01-02" in caplog.text

    storage.save_entry(DiaryEntry(date="2024-01-03"))

    raw = json.loads(store.get(STORAGE_KEYS["entries"]))
    assert set(raw) == {"2024-01-01", "2024-01-02", "2024-01-03", "2024-01-04"}
    assert raw["2024-01-01"]["content"] == "keep me"
    assert raw["2024-01-02"]["bedTime"] == ""
    assert set(storage.load_entries()) == {"2024-01-01", "2024-01-03"}


def test_entry_without_date_field_takes_its_key(storage, store):
    store.set(STORAGE_KEYS["entries"], json.dumps({"2024-01-01": {"content": "old", "goals": {}}}))

    assert storage.get_entry("2024-01-01").date == "2024-01-01"
    assert storage.get_entry("2024-01-01").content == "old"


def test_bad_goal_is_skipped(storage, store, goals):
    records = [goal.to_storage() for goal in goals]
    records.insert(1, {"title": "no id"})
    store.set(STORAGE_KEYS["goals"], json.dumps(records))

    assert storage.load_goals() == goals
