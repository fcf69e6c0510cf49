"""Diary persistence on top of a key-value store.

Each record is read and written whole. Reads never raise: absent or
unreadable data comes back as the empty default and a warning is logged.
Entries and goals are validated one by one, so a single bad record is
skipped instead of hiding the rest.
"""

import json
import logging
import sqlite3
from typing import Any, Optional, Sequence

from pydantic import ValidationError

from ..diary.models import DiaryEntry, Goal, SleepSession
from .backends import KeyValueStore

logger = logging.getLogger(__name__)

STORAGE_KEYS = {
    "entries": "trilevel_diary_entries",
    "goals": "trilevel_diary_goals",
    "sleep_session": "trilevel_diary_sleep_session",
}


class DiaryStorage:
    """Loads and saves goals, diary entries and the sleep session."""

    def __init__(self, store: KeyValueStore):
        """Initialize with a key-value store."""
        self.store = store

    def _read(self, key: str) -> Optional[Any]:
        """
        Read and decode the JSON stored under key.

        Returns:
            Decoded value, or None if absent or unreadable
        """
        try:
            raw = self.store.get(key)
            if raw is None:
                return None
            return json.loads(raw)
        except (ValueError, sqlite3.DatabaseError) as e:
            # ValueError covers both JSONDecodeError and UnicodeDecodeError
            logger.warning(f"Failed to load {key}, using empty default: {e}")
            return None

    def _save(self, key: str, data):
        self.store.set(key, json.dumps(data, ensure_ascii=False))

    def _read_entries_raw(self) -> dict:
        data = self._read(STORAGE_KEYS["entries"])
        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Failed to load {STORAGE_KEYS['entries']}, expected an object")
            return {}
        return data

    # Entries

    def load_entries(self) -> dict[str, DiaryEntry]:
        """Load every readable entry keyed by diary date."""
        entries = {}
        for date, record in self._read_entries_raw().items():
            if not isinstance(record, dict):
                logger.warning(f"Failed to load entry {date}, skipping: not an object")
                continue
            try:
                entries[date] = DiaryEntry.model_validate({"date": date, **record})
            except ValidationError as e:
                logger.warning(f"Failed to load entry {date}, skipping: {e}")
        return entries

    def save_entry(self, entry: DiaryEntry):
        """
        Upsert one entry by its date and write the full map back.

        Stored records that fail validation are written back untouched.
        """
        entries = self._read_entries_raw()
        entries[entry.date] = entry.to_storage()
        self._save(STORAGE_KEYS["entries"], entries)
        logger.debug(f"Saved entry for {entry.date}")

    def get_entry(self, date: str) -> DiaryEntry:
        """
        Get the entry for a diary date.

        A date with no stored entry gets a fresh default that is not written
        until the caller saves it.
        """
        entries = self.load_entries()
        if date in entries:
            return entries[date]
        return DiaryEntry(date=date, content="", goals={})

    # Goals

    def load_goals(self) -> list[Goal]:
        data = self._read(STORAGE_KEYS["goals"])
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning(f"Failed to load {STORAGE_KEYS['goals']}, expected a list")
            return []

        goals = []
        for record in data:
            try:
                goals.append(Goal.model_validate(record))
            except ValidationError as e:
                logger.warning(f"Failed to load goal, skipping: {e}")
        return goals

    def save_goals(self, goals: Sequence[Goal]):
        self._save(STORAGE_KEYS["goals"], [goal.to_storage() for goal in goals])
        logger.debug(f"Saved {len(goals)} goals")

    # Sleep session

    def load_sleep_session(self) -> SleepSession:
        data = self._read(STORAGE_KEYS["sleep_session"])
        if data is None:
            return SleepSession()

        try:
            return SleepSession.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Failed to load {STORAGE_KEYS['sleep_session']}, using empty default: {e}")
            return SleepSession()

    def save_sleep_session(self, session: SleepSession):
        self._save(STORAGE_KEYS["sleep_session"], session.to_storage())
