"""Shared fixtures."""

from datetime import datetime

import pytest

from trigoal.dashboard.renderer import DashboardRenderer
from trigoal.diary.editor import DiaryEditor
from trigoal.diary.models import Goal, GoalType
from trigoal.storage.backends import MemoryStore
from trigoal.storage.repository import DiaryStorage


class FixedClock:
    """Clock that returns a settable local time."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def storage(store):
    return DiaryStorage(store)


@pytest.fixture
def clock():
    # 23:10 on Jan 2, 2024 is diary-day 2024-01-02
    return FixedClock(datetime(2024, 1, 2, 23, 10))


@pytest.fixture
def goals():
    return [
        Goal(
            id="g1",
            title="Write",
            type=GoalType.ACCUMULATION,
            target_easy=10,
            target_hard=50,
            target_insane=100,
            unit="words",
        ),
        Goal(id="g2", title="Run", type=GoalType.CHECK_IN, target_easy=2, target_hard=4, target_insane=6),
    ]


@pytest.fixture
def editor(storage, clock):
    return DiaryEditor(storage, autosave_delay=0.05, clock=clock)


@pytest.fixture
def renderer(tmp_path):
    return DashboardRenderer(str(tmp_path / "images"))
