"""Data models for goals, diary entries and derived stats."""

from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

Number = Union[int, float]


class StoredModel(BaseModel):
    """Base for records persisted with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_storage(self) -> dict:
        """Dump with camelCase keys, omitting unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class GoalType(str, Enum):
    """How a goal is logged each day."""

    CHECK_IN = "check-in"
    ACCUMULATION = "accumulation"


class Goal(StoredModel):
    """A user-defined tracked habit.

    Target ordering is not enforced here so that stored goals with inverted
    tiers still load.
    """

    id: str
    title: str
    type: GoalType = GoalType.CHECK_IN
    target_easy: Number = 10
    target_hard: Number = 50
    target_insane: Number = 100
    unit: Optional[str] = None  # e.g. "words", "km"


class GoalCreate(StoredModel):
    """Request body for creating a goal."""

    title: str = Field(min_length=1)
    type: GoalType = GoalType.CHECK_IN
    target_easy: Number = 10
    target_hard: Number = 50
    target_insane: Number = 100
    unit: Optional[str] = None

    @model_validator(mode="after")
    def check_targets(self) -> "GoalCreate":
        if not (self.target_easy <= self.target_hard <= self.target_insane):
            raise ValueError("targets must satisfy easy <= hard <= insane")
        return self


class DiaryEntry(StoredModel):
    """One record per diary-day."""

    date: str  # YYYY-MM-DD of the diary-day, not the calendar day
    content: str = ""
    bed_time: Optional[datetime] = None
    goals: dict[str, Number] = Field(default_factory=dict)
    ai_reflection: Optional[str] = None
    sleep_hours: Optional[float] = None  # legacy, read-only


class EntryBody(StoredModel):
    """Whole entry sent for a date given elsewhere, e.g. in the URL."""

    content: str = ""
    bed_time: Optional[datetime] = None
    goals: dict[str, Number] = Field(default_factory=dict)
    ai_reflection: Optional[str] = None
    sleep_hours: Optional[float] = None

    def for_date(self, date: str) -> DiaryEntry:
        return DiaryEntry(date=date, **self.model_dump())


class EntryUpdate(StoredModel):
    """Partial edit of the entry being edited."""

    content: Optional[str] = None
    goals: Optional[dict[str, Number]] = None
    ai_reflection: Optional[str] = None


class SleepSession(StoredModel):
    """Sleep timer state kept alongside the diary."""

    start_time: int = 0  # epoch milliseconds
    is_active: bool = False


class Tier(str, Enum):
    """Band a goal's cumulative progress falls into."""

    EASY = "easy"
    HARD = "hard"
    INSANE = "insane"


TIER_COLORS = {
    Tier.EASY: "green",
    Tier.HARD: "amber",
    Tier.INSANE: "red",
}


class GoalProgress(BaseModel):
    """Cumulative progress of one goal, ready for display."""

    goal_id: str
    title: str
    unit: Optional[str] = None
    current: Number = 0
    target_easy: Number
    target_hard: Number
    target_insane: Number
    tier: Tier
    color: str
    fill: float
    easy_marker: float
    hard_marker: float


class BedtimePoint(BaseModel):
    """One day on the bedtime trend line."""

    date: str
    label: str  # MM-DD
    value: Optional[float] = None  # hours since midnight, folded past 24
    display_time: str = ""  # HH:MM


class Stats(BaseModel):
    """Derived views over every stored entry."""

    progress: dict[str, Number] = Field(default_factory=dict)
    goals: list[GoalProgress] = Field(default_factory=list)
    bedtime_series: list[BedtimePoint] = Field(default_factory=list)

    @property
    def has_bedtimes(self) -> bool:
        return any(point.value is not None for point in self.bedtime_series)


class DateSelection(BaseModel):
    """Navigate the editor to a date or by a number of days."""

    date: Optional[str] = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    days: Optional[int] = None


class BedtimeUpdate(BaseModel):
    """Manual bedtime as a time of day."""

    time: str = Field(pattern=r"^\d{1,2}:\d{2}$")
