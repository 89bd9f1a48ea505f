from datetime import date
from typing import Literal
from pydantic import BaseModel

Direction = Literal["increase", "decrease", "neutral"]

class MonthTotalsRead(BaseModel):
    workouts: int
    activities: int

    model_config = {"from_attributes": True}

class MonthChangeRead(BaseModel):
    workouts: int
    activities: int
    workouts_direction: Direction
    activities_direction: Direction

    model_config = {"from_attributes": True}

class DayBucketRead(BaseModel):
    date: date
    workouts: int
    activities: int
    percentage: int

    model_config = {"from_attributes": True}

class WeeklySummaryRead(BaseModel):
    total_workouts: int
    total_activities: int
    progress: int

    model_config = {"from_attributes": True}

class DashboardStatsRead(BaseModel):
    current_month: MonthTotalsRead
    previous_month: MonthTotalsRead
    changes: MonthChangeRead
    daily_breakdown: list[DayBucketRead]
    weekly: WeeklySummaryRead
    daily_goal: int

    model_config = {"from_attributes": True}
