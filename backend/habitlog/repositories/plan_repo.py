from __future__ import annotations
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from habitlog.models import Exercise, ExercisePlan, MuscleGroup
from habitlog.repositories.base import BaseRepository

class PlanRepository(BaseRepository[ExercisePlan]):
    """Exercises a user tracks, per muscle group."""
    model = ExercisePlan

    # READS
    def get_group(self, name: str) -> Optional[MuscleGroup]:
        return self.db.execute(select(MuscleGroup).where(MuscleGroup.name == name)).scalar_one_or_none()

    def get_owned(self, user_id: int, plan_id: int) -> Optional[ExercisePlan]:
        plan = self.db.get(ExercisePlan, plan_id)
        if plan is None or plan.user_id != user_id:
            return None
        return plan

    def list_for_user(self, user_id: int, group_name: str | None = None) -> list[tuple[ExercisePlan, Exercise, MuscleGroup]]:
        stmt = (
            select(ExercisePlan, Exercise, MuscleGroup)
            .join(Exercise, ExercisePlan.exercise_id == Exercise.id)
            .join(MuscleGroup, ExercisePlan.muscle_group_id == MuscleGroup.id)
            .where(ExercisePlan.user_id == user_id)
            .order_by(MuscleGroup.id.asc(), Exercise.name.asc())
        )
        if group_name is not None:
            stmt = stmt.where(MuscleGroup.name == group_name)
        return [tuple(row) for row in self.db.execute(stmt).all()]

    def list_available(self, user_id: int, group_name: str) -> list[Exercise]:
        """Exercises of the group the user has not planned yet."""
        group = self.get_group(group_name)
        if not group:
            raise ValueError("muscle_group_not_found")
        planned = select(ExercisePlan.exercise_id).where(
            ExercisePlan.user_id == user_id, ExercisePlan.muscle_group_id == group.id
        )
        stmt = (
            select(Exercise)
            .where(Exercise.muscle_group_id == group.id, Exercise.id.not_in(planned))
            .order_by(Exercise.name.asc())
        )
        return list(self.db.execute(stmt).scalars().all())

    # WRITES
    def add(self, user_id: int, *, exercise_id: int, group_name: str) -> ExercisePlan:
        group = self.get_group(group_name)
        if not group:
            raise ValueError("muscle_group_not_found")
        if not self.db.get(Exercise, exercise_id):
            raise ValueError("exercise_not_found")
        try:
            return self.add_and_commit(ExercisePlan(user_id=user_id, exercise_id=exercise_id, muscle_group_id=group.id))
        except IntegrityError:
            self.db.rollback()
            raise ValueError("exercise_already_planned")

    def delete(self, user_id: int, plan_id: int) -> ExercisePlan:
        """Logged sets of the plan go with it (cascade)."""
        plan = self.get_owned(user_id, plan_id)
        if not plan:
            raise ValueError("plan_not_found")
        self.db.delete(plan)
        self.db.commit()
        return plan
