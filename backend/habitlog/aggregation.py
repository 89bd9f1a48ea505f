"""Dashboard statistics.

Everything here is a pure function of explicit dates and counts, except
`collect_dashboard_stats`, which fetches each metric once for its whole
window and hands the results to the pure functions. Day boundaries come
from the reference timezone in `habitlog.clock`.
"""
from __future__ import annotations
import asyncio
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Literal, Mapping

from habitlog import clock
from habitlog.gateway import PersistenceGateway

WINDOW_DAYS = 7

Direction = Literal["increase", "decrease", "neutral"]


@dataclass(frozen=True, slots=True)
class MonthTotals:
    workouts: int
    activities: int


@dataclass(frozen=True, slots=True)
class MonthChange:
    workouts: int
    activities: int
    workouts_direction: Direction
    activities_direction: Direction


@dataclass(frozen=True, slots=True)
class DayBucket:
    date: date
    workouts: int
    activities: int
    percentage: int


@dataclass(frozen=True, slots=True)
class WeeklySummary:
    total_workouts: int
    total_activities: int
    progress: int


@dataclass(frozen=True, slots=True)
class DashboardStats:
    current_month: MonthTotals
    previous_month: MonthTotals
    changes: MonthChange
    daily_breakdown: tuple[DayBucket, ...]
    weekly: WeeklySummary
    daily_goal: int


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


# DATE RANGES
def month_bounds(day: date) -> tuple[date, date]:
    """First and last calendar day of the month containing `day`."""
    start = day.replace(day=1)
    next_month = (start + timedelta(days=32)).replace(day=1)
    return start, next_month - timedelta(days=1)


def previous_month_bounds(day: date) -> tuple[date, date]:
    start, _ = month_bounds(day)
    return month_bounds(start - timedelta(days=1))


def rolling_window(today: date, days: int = WINDOW_DAYS) -> list[date]:
    """`today - (days-1) .. today`, today first."""
    return [today - timedelta(days=i) for i in range(days)]


# CHANGES
def classify_change(delta: int) -> Direction:
    if delta > 0:
        return "increase"
    if delta < 0:
        return "decrease"
    return "neutral"


def month_change(current: MonthTotals, previous: MonthTotals) -> MonthChange:
    workouts = current.workouts - previous.workouts
    activities = current.activities - previous.activities
    return MonthChange(
        workouts=workouts,
        activities=activities,
        workouts_direction=classify_change(workouts),
        activities_direction=classify_change(activities),
    )


# GOALS
def effective_goal(active_templates: int) -> int:
    # a user without templates still has a goal of one
    return max(active_templates, 1)


def day_percentage(activities: int, goal: int) -> float:
    """Share of the daily goal reached, capped to [0, 100]."""
    pct = max(activities, 0) / effective_goal(goal) * 100
    return min(pct, 100.0)


def weekly_progress(activity_counts: list[int], goal: int) -> int:
    if not activity_counts:
        return 0
    daily = [day_percentage(count, goal) for count in activity_counts]
    return round_half_up(sum(daily) / len(daily))


# BUCKETS
def fill_daily_buckets(
    today: date,
    workouts_by_day: Mapping[date, int],
    activities_by_day: Mapping[date, int],
    *,
    goal: int = 1,
    days: int = WINDOW_DAYS,
) -> tuple[DayBucket, ...]:
    """One bucket per day of the window, zero-filled, today first."""
    buckets = []
    for day in rolling_window(today, days):
        activities = activities_by_day.get(day, 0)
        buckets.append(
            DayBucket(
                date=day,
                workouts=workouts_by_day.get(day, 0),
                activities=activities,
                percentage=round_half_up(day_percentage(activities, goal)),
            )
        )
    return tuple(buckets)


def build_dashboard_stats(
    today: date,
    *,
    current: MonthTotals,
    previous: MonthTotals,
    workouts_by_day: Mapping[date, int],
    activities_by_day: Mapping[date, int],
    active_templates: int,
) -> DashboardStats:
    buckets = fill_daily_buckets(today, workouts_by_day, activities_by_day, goal=active_templates)
    weekly = WeeklySummary(
        total_workouts=sum(b.workouts for b in buckets),
        total_activities=sum(b.activities for b in buckets),
        progress=weekly_progress([b.activities for b in buckets], active_templates),
    )
    return DashboardStats(
        current_month=current,
        previous_month=previous,
        changes=month_change(current, previous),
        daily_breakdown=buckets,
        weekly=weekly,
        daily_goal=active_templates,
    )


async def collect_dashboard_stats(
    gateway: PersistenceGateway,
    owner_id: int,
    now: datetime | None = None,
) -> DashboardStats:
    today = clock.to_reference_date(now) if now is not None else clock.today()
    cur_start, cur_end = month_bounds(today)
    prev_start, prev_end = previous_month_bounds(today)
    window = rolling_window(today)
    week_start, week_end = window[-1], window[0]

    (
        cur_workouts,
        prev_workouts,
        cur_activities,
        prev_activities,
        workouts_by_day,
        activities_by_day,
        active_templates,
    ) = await asyncio.gather(
        gateway.count_workout_events(owner_id, cur_start, cur_end),
        gateway.count_workout_events(owner_id, prev_start, prev_end),
        gateway.count_completed_activities(owner_id, cur_start, cur_end),
        gateway.count_completed_activities(owner_id, prev_start, prev_end),
        gateway.group_event_counts_by_day(owner_id, week_start, week_end, "workout"),
        gateway.group_event_counts_by_day(owner_id, week_start, week_end, "activity"),
        gateway.count_active_templates(owner_id),
    )
    return build_dashboard_stats(
        today,
        current=MonthTotals(workouts=cur_workouts, activities=cur_activities),
        previous=MonthTotals(workouts=prev_workouts, activities=prev_activities),
        workouts_by_day=workouts_by_day,
        activities_by_day=activities_by_day,
        active_templates=active_templates,
    )
