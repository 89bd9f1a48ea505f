"""Persistence gateway used by the sync layer.

`PersistenceGateway` is the narrow async interface the session store, the
activity tracker and the dashboard depend on. `SqlGateway` implements it on
top of the SQLAlchemy repositories, running each call in a worker thread
with its own ORM session so the event loop never blocks on the database.
"""
from __future__ import annotations
import asyncio
import logging
from datetime import date
from typing import Callable, Literal, Protocol, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from habitlog.db import SessionLocal
from habitlog.models import ActivityStatus
from habitlog.errors import ConstraintViolation, GatewayError, MissingRecord, OwnerNotFound, TransientIO
from habitlog.repositories.activity_repo import ActivityRepository
from habitlog.repositories.plan_repo import PlanRepository
from habitlog.repositories.user_repo import UserRepository
from habitlog.repositories.workout_log_repo import WorkoutLogRepository
from habitlog.sync.records import ActivityCompletion, ActivityTemplateRecord, LoggedSet, PlanEntry

log = logging.getLogger(__name__)

T = TypeVar("T")
EventKind = Literal["workout", "activity"]

# repository markers -> user-facing messages
_MARKERS = {
    "muscle_group_not_found": "Muscle group not found",
    "exercise_not_found": "Exercise not found",
    "invalid_exercise_or_group": "Invalid exercise or muscle group",
    "invalid_activity_template": "Invalid activity template",
    "exercise_already_planned": "This exercise is already in your plan for this muscle group",
}

# markers for rows that are absent or not the owner's
_MISSING = {
    "template_not_found": "Activity template not found or unauthorized",
    "plan_not_found": "Exercise plan not found",
}


class PersistenceGateway(Protocol):
    async def fetch_logged_sets_for_date(self, owner_id: int, day: date) -> list[LoggedSet]: ...

    async def save_logged_set(
        self,
        owner_id: int,
        exercise_id: int,
        group_id: str,
        set_number: int,
        weight: float | None,
        reps: int | None,
        day: date,
    ) -> int: ...

    async def delete_logged_set(self, owner_id: int, exercise_id: int, group_id: str, set_number: int, day: date) -> None: ...

    async def fetch_activity_completions(self, owner_id: int, day: date) -> list[ActivityCompletion]: ...

    async def set_activity_completion(self, owner_id: int, template_id: int, day: date, completed: bool) -> None: ...

    async def count_workout_events(self, owner_id: int, start: date, end: date) -> int: ...

    async def count_completed_activities(self, owner_id: int, start: date, end: date) -> int: ...

    async def group_event_counts_by_day(self, owner_id: int, start: date, end: date, kind: EventKind) -> dict[date, int]: ...

    async def count_active_templates(self, owner_id: int) -> int: ...

    async def list_activity_templates(self, owner_id: int) -> list[ActivityTemplateRecord]: ...

    async def create_activity_template(self, owner_id: int, name: str, description: str, icon: str) -> ActivityTemplateRecord: ...

    async def update_activity_template(self, owner_id: int, template_id: int, name: str, description: str, icon: str) -> None: ...

    async def delete_activity_template(self, owner_id: int, template_id: int) -> None: ...

    async def list_exercises(self, owner_id: int, group_name: str) -> list[dict]: ...

    async def list_plan(self, owner_id: int, group_name: str | None = None) -> list[PlanEntry]: ...

    async def add_to_plan(self, owner_id: int, exercise_id: int, group_name: str) -> PlanEntry: ...

    async def remove_from_plan(self, owner_id: int, plan_id: int) -> None: ...


def _template_record(tpl) -> ActivityTemplateRecord:
    return ActivityTemplateRecord(
        id=tpl.id, name=tpl.name, description=tpl.description, icon=tpl.icon, is_active=tpl.is_active
    )


def _plan_entry(plan, exercise, group) -> PlanEntry:
    return PlanEntry(
        id=plan.id, exercise_id=exercise.id, exercise_name=exercise.name, group_id=group.name, image=exercise.image
    )


class SqlGateway:
    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory

    async def _run(self, owner_id: int | None, work: Callable[[Session], T]) -> T:
        return await asyncio.to_thread(self._run_sync, owner_id, work)

    def _run_sync(self, owner_id: int | None, work: Callable[[Session], T]) -> T:
        try:
            with self._session_factory() as db:
                if owner_id is not None and UserRepository(db).get(owner_id) is None:
                    raise OwnerNotFound()
                return work(db)
        except GatewayError:
            raise
        except ValueError as e:
            if str(e) in _MISSING:
                raise MissingRecord(_MISSING[str(e)]) from e
            if str(e) not in _MARKERS:
                raise
            raise ConstraintViolation(_MARKERS[str(e)]) from e
        except IntegrityError as e:
            raise ConstraintViolation("Conflicting record") from e
        except SQLAlchemyError as e:
            log.warning("store unavailable: %s", e)
            raise TransientIO("Could not reach the database") from e

    # WORKOUT SETS
    async def fetch_logged_sets_for_date(self, owner_id: int, day: date) -> list[LoggedSet]:
        def work(db: Session) -> list[LoggedSet]:
            rows = WorkoutLogRepository(db).list_for_date(owner_id, day)
            return [
                LoggedSet(
                    id=f"set-{row.id}",
                    exercise_id=exercise.id,
                    exercise_name=exercise.name,
                    group_id=group.name,
                    set_number=row.set_no,
                    weight=float(row.weight) if row.weight is not None else None,
                    reps=row.reps,
                )
                for row, exercise, group in rows
            ]
        return await self._run(owner_id, work)

    async def save_logged_set(self, owner_id, exercise_id, group_id, set_number, weight, reps, day) -> int:
        def work(db: Session) -> int:
            row = WorkoutLogRepository(db).upsert(
                owner_id,
                exercise_id=exercise_id,
                group_name=group_id,
                set_no=set_number,
                weight=weight,
                reps=reps,
                day=day,
            )
            return row.id
        return await self._run(owner_id, work)

    async def delete_logged_set(self, owner_id, exercise_id, group_id, set_number, day) -> None:
        def work(db: Session) -> None:
            deleted = WorkoutLogRepository(db).delete(
                owner_id, exercise_id=exercise_id, group_name=group_id, set_no=set_number, day=day
            )
            if not deleted:
                # sets that never got a value were never written
                log.debug("no stored row for set %s/%s #%s on %s", exercise_id, group_id, set_number, day)
        await self._run(owner_id, work)

    # ACTIVITIES
    async def fetch_activity_completions(self, owner_id: int, day: date) -> list[ActivityCompletion]:
        def work(db: Session) -> list[ActivityCompletion]:
            return [
                ActivityCompletion(template_id=row.template_id, date=row.date, completed=row.status == ActivityStatus.completed)
                for row in ActivityRepository(db).list_for_date(owner_id, day)
            ]
        return await self._run(owner_id, work)

    async def set_activity_completion(self, owner_id: int, template_id: int, day: date, completed: bool) -> None:
        await self._run(owner_id, lambda db: ActivityRepository(db).set_status(owner_id, template_id, day, completed=completed))

    async def list_activity_templates(self, owner_id: int) -> list[ActivityTemplateRecord]:
        return await self._run(owner_id, lambda db: [_template_record(t) for t in ActivityRepository(db).list_active(owner_id)])

    async def create_activity_template(self, owner_id: int, name: str, description: str, icon: str) -> ActivityTemplateRecord:
        def work(db: Session) -> ActivityTemplateRecord:
            tpl = ActivityRepository(db).create_template(owner_id, name=name, description=description, icon=icon)
            return _template_record(tpl)
        return await self._run(owner_id, work)

    async def update_activity_template(self, owner_id: int, template_id: int, name: str, description: str, icon: str) -> None:
        def work(db: Session) -> None:
            tpl = ActivityRepository(db).update_template(owner_id, template_id, name=name, description=description, icon=icon)
            if tpl is None:
                raise ValueError("template_not_found")
        await self._run(owner_id, work)

    async def delete_activity_template(self, owner_id: int, template_id: int) -> None:
        def work(db: Session) -> None:
            if not ActivityRepository(db).delete_template(owner_id, template_id):
                raise ValueError("template_not_found")
        await self._run(owner_id, work)

    # COUNTS
    async def count_workout_events(self, owner_id: int, start: date, end: date) -> int:
        return await self._run(owner_id, lambda db: WorkoutLogRepository(db).count_between(owner_id, start, end))

    async def count_completed_activities(self, owner_id: int, start: date, end: date) -> int:
        return await self._run(owner_id, lambda db: ActivityRepository(db).count_completed_between(owner_id, start, end))

    async def group_event_counts_by_day(self, owner_id: int, start: date, end: date, kind: EventKind) -> dict[date, int]:
        if kind == "workout":
            return await self._run(owner_id, lambda db: WorkoutLogRepository(db).counts_by_day(owner_id, start, end))
        if kind == "activity":
            return await self._run(owner_id, lambda db: ActivityRepository(db).completed_by_day(owner_id, start, end))
        raise ValueError(f"unknown event kind: {kind!r}")

    async def count_active_templates(self, owner_id: int) -> int:
        return await self._run(owner_id, lambda db: ActivityRepository(db).count_active(owner_id))

    # PLAN
    async def list_exercises(self, owner_id: int, group_name: str) -> list[dict]:
        """Exercises of the group that are not in the owner's plan yet."""
        def work(db: Session) -> list[dict]:
            return [
                {"id": e.id, "name": e.name, "image": e.image}
                for e in PlanRepository(db).list_available(owner_id, group_name)
            ]
        return await self._run(owner_id, work)

    async def list_plan(self, owner_id: int, group_name: str | None = None) -> list[PlanEntry]:
        def work(db: Session) -> list[PlanEntry]:
            rows = PlanRepository(db).list_for_user(owner_id, group_name)
            return [_plan_entry(plan, exercise, group) for plan, exercise, group in rows]
        return await self._run(owner_id, work)

    async def add_to_plan(self, owner_id: int, exercise_id: int, group_name: str) -> PlanEntry:
        def work(db: Session) -> PlanEntry:
            repo = PlanRepository(db)
            plan = repo.add(owner_id, exercise_id=exercise_id, group_name=group_name)
            return _plan_entry(plan, plan.exercise, plan.muscle_group)
        return await self._run(owner_id, work)

    async def remove_from_plan(self, owner_id: int, plan_id: int) -> None:
        await self._run(owner_id, lambda db: PlanRepository(db).delete(owner_id, plan_id))
