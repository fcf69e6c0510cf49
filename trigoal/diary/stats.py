"""Progress aggregation and bedtime trend calculation."""

import logging
from typing import Mapping, Sequence

from .dates import DAY_START_HOUR, to_local
from .models import (
    TIER_COLORS,
    BedtimePoint,
    DiaryEntry,
    Goal,
    GoalProgress,
    Number,
    Stats,
    Tier,
)

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_DAYS = 14


class StatsCalculator:
    """Derives goal progress and the bedtime series from stored entries."""

    def __init__(self, history_days: int = DEFAULT_HISTORY_DAYS):
        """
        Initialize calculator.

        Args:
            history_days: Number of most recent entries kept on the trend line
        """
        self.history_days = history_days

    def calculate(
        self, entries: Mapping[str, DiaryEntry], goals: Sequence[Goal]
    ) -> Stats:
        """
        Compute stats over every entry.

        Nothing is cached; the full entry set is walked on each call.

        Args:
            entries: Mapping of diary date to entry
            goals: Currently defined goals

        Returns:
            Stats with per-goal progress and the bedtime series
        """
        progress = self._sum_progress(entries, goals)

        goal_progress = [
            self._goal_progress(goal, progress[goal.id]) for goal in goals
        ]
        series = self._bedtime_series(entries)

        logger.debug(
            f"Computed stats for {len(goals)} goals over {len(entries)} entries"
        )
        return Stats(progress=progress, goals=goal_progress, bedtime_series=series)

    def _sum_progress(
        self, entries: Mapping[str, DiaryEntry], goals: Sequence[Goal]
    ) -> dict[str, Number]:
        """
        Sum each goal's daily values across all entries.

        Values recorded under ids with no current goal are ignored.
        """
        progress: dict[str, Number] = {goal.id: 0 for goal in goals}

        for entry in entries.values():
            for goal_id, value in entry.goals.items():
                if goal_id in progress:
                    progress[goal_id] += value

        return progress

    def _goal_progress(self, goal: Goal, current: Number) -> GoalProgress:
        tier = classify_tier(current, goal.target_easy, goal.target_hard)
        return GoalProgress(
            goal_id=goal.id,
            title=goal.title,
            unit=goal.unit,
            current=current,
            target_easy=goal.target_easy,
            target_hard=goal.target_hard,
            target_insane=goal.target_insane,
            tier=tier,
            color=TIER_COLORS[tier],
            fill=fill_fraction(current, goal.target_insane),
            easy_marker=marker_position(goal.target_easy, goal.target_insane),
            hard_marker=marker_position(goal.target_hard, goal.target_insane),
        )

    def _bedtime_series(self, entries: Mapping[str, DiaryEntry]) -> list[BedtimePoint]:
        """
        Build the trend line for the most recent entries.

        Entries without a bedtime stay in the series as gaps so dates remain
        evenly spaced.
        """
        points = []

        # YYYY-MM-DD sorts chronologically as text
        for entry_date in sorted(entries):
            entry = entries[entry_date]
            value = None
            display_time = ""

            if entry.bed_time is not None:
                local = to_local(entry.bed_time)
                value = bedtime_value(local.hour, local.minute)
                display_time = local.strftime("%H:%M")

            points.append(
                BedtimePoint(
                    date=entry_date,
                    label=entry_date[5:],
                    value=value,
                    display_time=display_time,
                )
            )

        if self.history_days <= 0:
            return []
        return points[-self.history_days:]


def compute_stats(
    entries: Mapping[str, DiaryEntry],
    goals: Sequence[Goal],
    history_days: int = DEFAULT_HISTORY_DAYS,
) -> Stats:
    """Compute stats with a one-off calculator."""
    return StatsCalculator(history_days).calculate(entries, goals)


def bedtime_value(hour: int, minute: int) -> float:
    """
    Convert a clock time to a continuous night scale.

    Example:
        23:30 -> 23.5
        01:15 -> 25.25 (folded past midnight)
    """
    value = hour + minute / 60
    if value < DAY_START_HOUR:
        value += 24
    return value


def format_bedtime_axis(value: float) -> str:
    """Label a night-scale value as the whole clock hour, e.g. 26.0 -> "02:00"."""
    hour = int(value)
    if hour >= 24:
        hour -= 24
    return f"{hour:02d}:00"


def classify_tier(current: Number, target_easy: Number, target_hard: Number) -> Tier:
    """
    Determine which band cumulative progress falls into.

    Args:
        current: Cumulative progress
        target_easy: Easy threshold
        target_hard: Hard threshold

    Returns:
        Tier.EASY below easy, Tier.HARD from easy up to hard, Tier.INSANE from hard
    """
    if current >= target_hard:
        return Tier.INSANE
    if current >= target_easy:
        return Tier.HARD
    return Tier.EASY


def fill_fraction(current: Number, target_insane: Number) -> float:
    """Bar fill as a fraction of the insane target, clamped to [0, 1]."""
    if target_insane <= 0:
        return 1.0 if current > 0 else 0.0
    return max(0.0, min(current / target_insane, 1.0))


def marker_position(target: Number, target_insane: Number) -> float:
    """Where a tier threshold sits along the bar."""
    if target_insane <= 0:
        return 1.0
    return max(0.0, min(target / target_insane, 1.0))
