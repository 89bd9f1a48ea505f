from datetime import date, datetime, timedelta, timezone

import pytest

from habitlog.aggregation import (
    MonthTotals,
    build_dashboard_stats,
    classify_change,
    collect_dashboard_stats,
    day_percentage,
    effective_goal,
    fill_daily_buckets,
    month_bounds,
    previous_month_bounds,
    rolling_window,
    round_half_up,
    weekly_progress,
)
from habitlog.sync.records import ActivityTemplateRecord


def test_month_bounds():
    assert month_bounds(date(2026, 2, 10)) == (date(2026, 2, 1), date(2026, 2, 28))
    assert month_bounds(date(2024, 2, 29)) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds(date(2026, 12, 31)) == (date(2026, 12, 1), date(2026, 12, 31))


def test_previous_month_wraps_year():
    assert previous_month_bounds(date(2026, 1, 15)) == (date(2025, 12, 1), date(2025, 12, 31))
    assert previous_month_bounds(date(2026, 3, 31)) == (date(2026, 2, 1), date(2026, 2, 28))


def test_rolling_window_is_today_first():
    window = rolling_window(date(2026, 3, 2))
    assert len(window) == 7
    assert window[0] == date(2026, 3, 2)
    assert window[-1] == date(2026, 2, 24)


def test_classify_change():
    assert classify_change(3) == "increase"
    assert classify_change(-1) == "decrease"
    assert classify_change(0) == "neutral"


def test_goal_never_below_one():
    assert effective_goal(0) == 1
    assert effective_goal(4) == 4


def test_day_percentage_is_capped():
    assert day_percentage(1, 4) == 25
    assert day_percentage(6, 4) == 100
    assert day_percentage(2, 0) == 100
    assert day_percentage(0, 3) == 0


def test_round_half_up():
    assert round_half_up(12.5) == 13
    assert round_half_up(33.3333) == 33
    assert round_half_up(66.6667) == 67


def test_weekly_progress_averages_daily_percentages():
    # 100 + 50 + 0 * 5 over seven days
    assert weekly_progress([2, 1, 0, 0, 0, 0, 0], 2) == 21
    assert weekly_progress([], 2) == 0


def test_buckets_are_zero_filled():
    today = date(2026, 3, 14)
    buckets = fill_daily_buckets(
        today,
        {today: 3, today - timedelta(days=6): 1},
        {today - timedelta(days=1): 1},
        goal=2,
    )
    assert [b.workouts for b in buckets] == [3, 0, 0, 0, 0, 0, 1]
    assert [b.activities for b in buckets] == [0, 1, 0, 0, 0, 0, 0]
    assert buckets[1].percentage == 50


def test_build_dashboard_stats():
    today = date(2026, 3, 14)
    stats = build_dashboard_stats(
        today,
        current=MonthTotals(workouts=10, activities=4),
        previous=MonthTotals(workouts=12, activities=4),
        workouts_by_day={today: 5},
        activities_by_day={today: 1},
        active_templates=0,
    )
    assert stats.changes.workouts == -2
    assert stats.changes.workouts_direction == "decrease"
    assert stats.changes.activities_direction == "neutral"
    assert stats.weekly.total_workouts == 5
    assert stats.weekly.total_activities == 1
    # goal falls back to one: 100% today, 0% the other six days
    assert stats.weekly.progress == 14
    assert stats.daily_goal == 0


@pytest.mark.asyncio
async def test_collect_dashboard_stats(gateway):
    owner = 5
    today = date(2026, 3, 14)
    gateway.rows[(owner, 1, "chest", 1, today)] = (50, 8)
    gateway.rows[(owner, 1, "chest", 2, today)] = (55, 6)
    gateway.rows[(owner, 1, "chest", 1, date(2026, 3, 1))] = (50, 8)
    gateway.rows[(owner, 3, "legs", 1, date(2026, 2, 20))] = (80, 5)
    gateway.rows[(99, 3, "legs", 1, today)] = (80, 5)
    gateway.templates = {1: ActivityTemplateRecord(id=1, name="Walk"), 2: ActivityTemplateRecord(id=2, name="Read")}
    gateway.completions[(owner, 1, today)] = True
    gateway.completions[(owner, 2, today)] = True
    gateway.completions[(owner, 1, date(2026, 3, 13))] = True
    gateway.completions[(owner, 2, date(2026, 3, 13))] = False

    stats = await collect_dashboard_stats(gateway, owner, now=datetime(2026, 3, 14, 18, 0, tzinfo=timezone.utc))

    assert stats.current_month == MonthTotals(workouts=3, activities=3)
    assert stats.previous_month == MonthTotals(workouts=1, activities=0)
    assert stats.changes.workouts_direction == "increase"
    assert stats.daily_goal == 2
    assert stats.daily_breakdown[0].date == today
    assert stats.daily_breakdown[0].workouts == 2
    assert stats.daily_breakdown[0].percentage == 100
    assert stats.daily_breakdown[1].percentage == 50
    # (100 + 50) / 7
    assert stats.weekly.progress == 21


@pytest.mark.asyncio
async def test_collect_rejects_naive_now(gateway):
    with pytest.raises(ValueError):
        await collect_dashboard_stats(gateway, 1, now=datetime(2026, 3, 14))


def test_partial_goal_rounds_to_whole_percent():
    assert round_half_up(day_percentage(2, 3)) == 67
    assert day_percentage(5, 3) == 100


def test_month_change_against_previous():
    stats = build_dashboard_stats(
        date(2026, 5, 3),
        current=MonthTotals(workouts=10, activities=0),
        previous=MonthTotals(workouts=7, activities=2),
        workouts_by_day={},
        activities_by_day={},
        active_templates=3,
    )
    assert (stats.changes.workouts, stats.changes.workouts_direction) == (3, "increase")
    assert (stats.changes.activities, stats.changes.activities_direction) == (-2, "decrease")


def test_empty_counts_still_give_seven_buckets():
    buckets = fill_daily_buckets(date(2026, 5, 3), {}, {})
    assert len(buckets) == 7
    assert all(b.workouts == 0 and b.activities == 0 and b.percentage == 0 for b in buckets)
