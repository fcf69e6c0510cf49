"""Application state for the diary screen, with debounced autosave."""

import asyncio
import logging
import time as time_module
from datetime import datetime, time
from functools import partial
from typing import Callable, Optional, Sequence, Union

from ..storage.repository import DiaryStorage
from .dates import current_diary_date, parse_date, resolve_manual_bedtime, shift_date
from .models import DiaryEntry, Goal, GoalCreate, GoalType, Number, Stats
from .reflection import DisabledReflectionGenerator, ReflectionGenerator
from .stats import DEFAULT_HISTORY_DAYS, StatsCalculator

logger = logging.getLogger(__name__)

DEFAULT_AUTOSAVE_DELAY = 1.0


class DiaryEditor:
    """Holds the selected diary date, goal list, editable entry and cached stats.

    Edits are buffered and written one autosave delay after the last change.
    Bedtime actions write immediately.
    """

    def __init__(
        self,
        storage: DiaryStorage,
        reflection: Optional[ReflectionGenerator] = None,
        autosave_delay: float = DEFAULT_AUTOSAVE_DELAY,
        history_days: int = DEFAULT_HISTORY_DAYS,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize editor on today's diary date.

        Args:
            storage: Diary persistence
            reflection: Reflection collaborator, disabled by default
            autosave_delay: Seconds of idle time before buffered edits are saved
            history_days: Entries kept on the bedtime trend line
            clock: Source of the current local time
        """
        self.storage = storage
        self.reflection = reflection or DisabledReflectionGenerator()
        self.autosave_delay = autosave_delay
        self.calculator = StatsCalculator(history_days)
        self.clock = clock

        self.goals: list[Goal] = storage.load_goals()
        self.date = current_diary_date(self.clock())
        self.entry = storage.get_entry(self.date)

        self._pending: Optional[asyncio.TimerHandle] = None
        self._pending_date: Optional[str] = None
        self._stats: Optional[Stats] = None

    # Navigation

    @property
    def today(self) -> str:
        return current_diary_date(self.clock())

    @property
    def is_today(self) -> bool:
        return self.date == self.today

    @property
    def has_pending_save(self) -> bool:
        return self._pending is not None

    def select_date(self, date: str) -> DiaryEntry:
        """
        Switch to another diary date.

        Pending edits for the date being left are written first.

        Raises:
            ValueError: If date is not YYYY-MM-DD
        """
        parse_date(date)
        self.flush()
        self.date = date
        self.entry = self.storage.get_entry(date)
        logger.info(f"Selected diary date {date}")
        return self.entry

    def shift_date(self, days: int) -> DiaryEntry:
        return self.select_date(shift_date(self.date, days))

    # Buffered edits

    def update_entry(
        self,
        content: Optional[str] = None,
        goals: Optional[dict[str, Number]] = None,
        ai_reflection: Optional[str] = None,
    ) -> DiaryEntry:
        """Apply an edit to the current entry and reschedule the autosave.

        Called without a running event loop, the edit is saved immediately.
        """
        updates = {}
        if content is not None:
            updates["content"] = content
        if goals is not None:
            updates["goals"] = {**self.entry.goals, **goals}
        if ai_reflection is not None:
            updates["ai_reflection"] = ai_reflection

        self.entry = self.entry.model_copy(update=updates)
        self._schedule_autosave()
        return self.entry

    def set_goal_value(self, goal_id: str, value: Number) -> DiaryEntry:
        return self.update_entry(goals={goal_id: value})

    def toggle_check_in(self, goal_id: str) -> DiaryEntry:
        """Flip a check-in goal between 0 and 1 for the current date."""
        value = 0 if self.entry.goals.get(goal_id) else 1
        return self.set_goal_value(goal_id, value)

    def _schedule_autosave(self):
        """
        Schedule the autosave on the running event loop.

        Outside an event loop there is nothing to run a timer, so the edit is
        saved immediately.
        """
        self._cancel_pending()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._save()
            return

        self._pending_date = self.date
        self._pending = loop.call_later(
            self.autosave_delay, partial(self._autosave, self.date)
        )

    def _autosave(self, date: str):
        self._pending = None
        self._pending_date = None
        if self.entry.date != date:
            logger.warning(f"Dropping autosave for {date}, editor moved to {self.entry.date}")
            return
        self._save()

    def _cancel_pending(self):
        if self._pending is not None:
            self._pending.cancel()
        self._pending = None
        self._pending_date = None

    def flush(self) -> bool:
        """
        Write pending edits now.

        Returns:
            True if there was something to write
        """
        if self._pending is None:
            return False

        date = self._pending_date
        self._cancel_pending()
        if self.entry.date == date:
            self._save()
        return True

    def close(self):
        self.flush()

    def _save(self):
        self.storage.save_entry(self.entry)
        self._stats = None
        logger.debug(f"Autosaved entry for {self.entry.date}")

    # Immediate edits

    def replace_entry(self, entry: DiaryEntry) -> DiaryEntry:
        """Save a whole entry for any date, replacing the buffered one if it is the current date."""
        if entry.date == self.date:
            self._cancel_pending()
            self.entry = entry
        self.storage.save_entry(entry)
        self._stats = None
        return entry

    def sleep_now(self) -> DiaryEntry:
        """Record the current moment as bedtime and save immediately."""
        return self._set_bed_time(self.clock())

    def set_bedtime(self, time_of_day: Union[str, time]) -> DiaryEntry:
        """
        Record a bedtime picked as a time of day and save immediately.

        Raises:
            ValueError: If the time cannot be parsed
        """
        return self._set_bed_time(resolve_manual_bedtime(self.date, time_of_day))

    def _set_bed_time(self, bed_time: datetime) -> DiaryEntry:
        self._cancel_pending()
        self.entry = self.entry.model_copy(update={"bed_time": bed_time})
        self._save()
        logger.info(f"Bedtime for {self.date} set to {bed_time.isoformat()}")
        return self.entry

    async def generate_reflection(self) -> Optional[str]:
        """Ask the reflection collaborator for text; keeps the entry unchanged on None."""
        text = await self.reflection.generate(self.entry.content, self.stats.progress)
        if text:
            self.update_entry(ai_reflection=text)
        return text

    # Goals

    def set_goals(self, goals: Sequence[Goal]):
        self.goals = list(goals)
        self.storage.save_goals(self.goals)
        self._stats = None

    def add_goal(self, new_goal: GoalCreate) -> Goal:
        """Create a goal with a fresh id and persist the goal list."""
        goal_id = str(time_module.time_ns() // 1_000_000)
        while any(goal.id == goal_id for goal in self.goals):
            goal_id = str(int(goal_id) + 1)

        goal = Goal(
            id=goal_id,
            title=new_goal.title,
            type=new_goal.type,
            target_easy=new_goal.target_easy,
            target_hard=new_goal.target_hard,
            target_insane=new_goal.target_insane,
            unit=new_goal.unit if new_goal.type == GoalType.ACCUMULATION else None,
        )
        self.set_goals([*self.goals, goal])
        logger.info(f"Added goal: {goal.title} ({goal.id})")
        return goal

    def delete_goal(self, goal_id: str) -> bool:
        """
        Remove a goal from the list.

        Values already logged under its id stay in the stored entries.

        Returns:
            False if no goal has that id
        """
        remaining = [goal for goal in self.goals if goal.id != goal_id]
        if len(remaining) == len(self.goals):
            return False

        self.set_goals(remaining)
        logger.info(f"Deleted goal {goal_id}")
        return True

    # Derived views

    @property
    def stats(self) -> Stats:
        if self._stats is None:
            self._stats = self.calculator.calculate(self.storage.load_entries(), self.goals)
        return self._stats

    def invalidate_stats(self):
        self._stats = None
