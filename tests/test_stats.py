"""Tests for progress aggregation, bedtime scaling and tiering."""

from datetime import datetime, timedelta

import pytest

from trigoal.diary.models import DiaryEntry, Goal, Tier
from trigoal.diary.stats import (
    StatsCalculator,
    bedtime_value,
    classify_tier,
    compute_stats,
    fill_fraction,
    format_bedtime_axis,
)


def _entries(*entries):
    return {entry.date: entry for entry in entries}


def test_progress_sums_across_entries(goals):
    entries = _entries(
        DiaryEntry(date="2024-01-01", goals={"g1": 3}),
        DiaryEntry(date="2024-01-02", goals={"g1": 4}),
    )

    stats = compute_stats(entries, goals)

    assert stats.progress["g1"] == 7
    assert stats.progress["g2"] == 0


def test_orphaned_goal_values_are_ignored(goals):
    entries = _entries(DiaryEntry(date="2024-01-01", goals={"g1": 1, "deleted": 99}))

    stats = compute_stats(entries, goals)

    assert set(stats.progress) == {"g1", "g2"}
    assert [progress.goal_id for progress in stats.goals] == ["g1", "g2"]


def test_goal_progress_carries_display_fields(goals):
    entries = _entries(DiaryEntry(date="2024-01-01", goals={"g1": 60}))

    progress = compute_stats(entries, goals).goals[0]

    assert progress.current == 60
    assert progress.tier == Tier.INSANE
    assert progress.color == "red"
    assert progress.fill == pytest.approx(0.6)
    assert progress.easy_marker == pytest.approx(0.1)
    assert progress.hard_marker == pytest.approx(0.5)
    assert progress.unit == "words"


@pytest.mark.parametrize(
    "hour,minute,expected",
    [(23, 30, 23.5), (1, 15, 25.25), (0, 0, 24.0), (3, 59, 27 + 59 / 60), (4, 0, 4.0), (20, 0, 20.0)],
)
def test_bedtime_value(hour, minute, expected):
    assert bedtime_value(hour, minute) == pytest.approx(expected)


def test_bedtime_series_keeps_gaps_and_order():
    entries = _entries(
        DiaryEntry(date="2024-01-03", bed_time=datetime(2024, 1, 4, 1, 15)),
        DiaryEntry(date="2024-01-01", bed_time=datetime(2024, 1, 1, 23, 30)),
        DiaryEntry(date="2024-01-02", content="no bedtime"),
    )

    series = compute_stats(entries, []).bedtime_series

    assert [point.date for point in series] == ["2024-01-01", "2024-01-02", "2024-01-03"]
    assert [point.value for point in series] == [23.5, None, 25.25]
    assert [point.display_time for point in series] == ["23:30", "", "01:15"]
    assert series[0].label == "01-01"


def test_bedtime_series_keeps_most_recent_fourteen():
    start = datetime(2024, 1, 1, 22, 0)
    entries = _entries(
        *(
            DiaryEntry(
                date=(start + timedelta(days=offset)).strftime("%Y-%m-%d"),
                bed_time=start + timedelta(days=offset),
            )
            for offset in range(20)
        )
    )

    series = compute_stats(entries, []).bedtime_series

    assert len(series) == 14
    assert series[0].date == "2024-01-07"
    assert series[-1].date == "2024-01-20"


def test_history_length_is_configurable():
    entries = _entries(*(DiaryEntry(date=f"2024-01-0{day}") for day in range(1, 6)))

    assert len(StatsCalculator(history_days=3).calculate(entries, []).bedtime_series) == 3
    assert StatsCalculator(history_days=0).calculate(entries, []).bedtime_series == []


def test_has_bedtimes():
    entries = _entries(DiaryEntry(date="2024-01-01"))
    assert not compute_stats(entries, []).has_bedtimes

    entries = _entries(DiaryEntry(date="2024-01-01", bed_time=datetime(2024, 1, 1, 22, 0)))
    assert compute_stats(entries, []).has_bedtimes


@pytest.mark.parametrize(
    "current,tier,fill",
    [
        (0, Tier.EASY, 0.0),
        (9, Tier.EASY, 0.09),
        (10, Tier.HARD, 0.1),
        (49, Tier.HARD, 0.49),
        (50, Tier.INSANE, 0.5),
        (100, Tier.INSANE, 1.0),
        (150, Tier.INSANE, 1.0),
    ],
)
def test_tiering(current, tier, fill):
    assert classify_tier(current, 10, 50) == tier
    assert fill_fraction(current, 100) == pytest.approx(fill)


def test_equal_targets_reach_every_tier_at_once():
    goal = Goal(id="x", title="Flat", target_easy=5, target_hard=5, target_insane=5)
    progress = compute_stats(_entries(DiaryEntry(date="2024-01-01", goals={"x": 5})), [goal]).goals[0]

    assert progress.fill == 1.0
    assert progress.tier == Tier.INSANE


def test_inverted_and_degenerate_targets_do_not_crash():
    assert classify_tier(30, 50, 10) == Tier.INSANE
    assert fill_fraction(5, 0) == 1.0
    assert fill_fraction(0, 0) == 0.0
    assert fill_fraction(-5, 100) == 0.0


@pytest.mark.parametrize("value,label", [(18.0, "18:00"), (23.5, "23:00"), (24.0, "00:00"), (26.0, "02:00")])
def test_format_bedtime_axis(value, label):
    assert format_bedtime_axis(value) == label
