from habitlog.models.user import User
from habitlog.models.exercise import MuscleGroup, Exercise
from habitlog.models.workout_log import ExercisePlan, WorkoutLog
from habitlog.models.activity import ActivityStatus, ActivityTemplate, DailyActivity

__all__ = [
    "User",
    "MuscleGroup",
    "Exercise",
    "ExercisePlan",
    "WorkoutLog",
    "ActivityStatus",
    "ActivityTemplate",
    "DailyActivity",
]
