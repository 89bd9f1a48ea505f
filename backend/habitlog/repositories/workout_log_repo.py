from __future__ import annotations
from datetime import date
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from habitlog.models import Exercise, ExercisePlan, MuscleGroup, WorkoutLog
from habitlog.repositories.base import BaseRepository

class WorkoutLogRepository(BaseRepository[WorkoutLog]):
    model = WorkoutLog

    # READS
    def get_group(self, name: str) -> Optional[MuscleGroup]:
        return self.db.execute(select(MuscleGroup).where(MuscleGroup.name == name)).scalar_one_or_none()

    def find_plan(self, user_id: int, exercise_id: int, group_id: int) -> Optional[ExercisePlan]:
        stmt = select(ExercisePlan).where(
            ExercisePlan.user_id == user_id,
            ExercisePlan.exercise_id == exercise_id,
            ExercisePlan.muscle_group_id == group_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def find_log(self, plan_id: int, user_id: int, set_no: int, day: date) -> Optional[WorkoutLog]:
        stmt = select(WorkoutLog).where(
            WorkoutLog.plan_id == plan_id,
            WorkoutLog.user_id == user_id,
            WorkoutLog.set_no == set_no,
            WorkoutLog.date == day,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def list_for_date(self, user_id: int, day: date) -> list[tuple[WorkoutLog, Exercise, MuscleGroup]]:
        stmt = (
            select(WorkoutLog, Exercise, MuscleGroup)
            .join(ExercisePlan, WorkoutLog.plan_id == ExercisePlan.id)
            .join(Exercise, ExercisePlan.exercise_id == Exercise.id)
            .join(MuscleGroup, ExercisePlan.muscle_group_id == MuscleGroup.id)
            .where(WorkoutLog.user_id == user_id, WorkoutLog.date == day)
            .order_by(MuscleGroup.id.asc(), Exercise.id.asc(), WorkoutLog.set_no.asc())
        )
        return [tuple(row) for row in self.db.execute(stmt).all()]

    def count_between(self, user_id: int, start: date, end: date) -> int:
        stmt = select(func.count()).select_from(WorkoutLog).where(
            WorkoutLog.user_id == user_id,
            WorkoutLog.date >= start,
            WorkoutLog.date <= end,
        )
        return self.db.execute(stmt).scalar_one()

    def counts_by_day(self, user_id: int, start: date, end: date) -> dict[date, int]:
        # One grouped query for the whole window
        stmt = (
            select(WorkoutLog.date, func.count())
            .where(WorkoutLog.user_id == user_id, WorkoutLog.date >= start, WorkoutLog.date <= end)
            .group_by(WorkoutLog.date)
        )
        return {day: count for day, count in self.db.execute(stmt).all()}

    # WRITES
    def get_or_create_plan(self, user_id: int, exercise_id: int, group_name: str) -> ExercisePlan:
        group = self.get_group(group_name)
        if not group:
            raise ValueError("muscle_group_not_found")
        plan = self.find_plan(user_id, exercise_id, group.id)
        if plan:
            return plan
        if not self.db.get(Exercise, exercise_id):
            raise ValueError("exercise_not_found")
        try:
            return self.add_and_commit(ExercisePlan(user_id=user_id, exercise_id=exercise_id, muscle_group_id=group.id))
        except IntegrityError:
            self.db.rollback()
            raise ValueError("invalid_exercise_or_group")

    def upsert(
        self,
        user_id: int,
        *,
        exercise_id: int,
        group_name: str,
        set_no: int,
        weight: float | None,
        reps: int | None,
        day: date,
    ) -> WorkoutLog:
        plan = self.get_or_create_plan(user_id, exercise_id, group_name)
        log = self.find_log(plan.id, user_id, set_no, day)
        if log is None:
            log = WorkoutLog(plan_id=plan.id, user_id=user_id, set_no=set_no, date=day)
            self.db.add(log)
        log.weight = weight
        log.reps = reps
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ValueError("invalid_exercise_or_group")
        self.db.refresh(log)
        return log

    def delete(self, user_id: int, *, exercise_id: int, group_name: str, set_no: int, day: date) -> bool:
        """Returns False when there was nothing to delete."""
        group = self.get_group(group_name)
        if not group:
            raise ValueError("muscle_group_not_found")
        plan = self.find_plan(user_id, exercise_id, group.id)
        if not plan:
            return False
        log = self.find_log(plan.id, user_id, set_no, day)
        if not log:
            return False
        self.db.delete(log)
        self.db.commit()
        return True
