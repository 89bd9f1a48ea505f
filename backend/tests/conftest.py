"""
Point the app at a throwaway SQLite file and a short save window before any
habitlog module reads its settings, then create and seed the tables.
"""
import asyncio
import os
import tempfile
import uuid
from datetime import date

import pytest

_DB_DIR = tempfile.mkdtemp(prefix="habitlog-tests-")
os.environ["DB_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["SAVE_DEBOUNCE_SECONDS"] = "0.05"
os.environ["REFERENCE_TIMEZONE"] = "UTC"

from habitlog.db import Base, SessionLocal, engine  # noqa: E402
from habitlog import models  # noqa: E402,F401
from habitlog.models import Exercise, MuscleGroup  # noqa: E402
from habitlog.repositories.user_repo import UserRepository  # noqa: E402
from habitlog.security import create_access_token  # noqa: E402
from habitlog.sync.records import ActivityCompletion, ActivityTemplateRecord, LoggedSet, PlanEntry  # noqa: E402

CATALOGUE = {
    "chest": ["Bench Press", "Push Up"],
    "legs": ["Squat", "Lunge"],
}

Base.metadata.create_all(bind=engine)
with SessionLocal() as _db:
    for _group_name, _names in CATALOGUE.items():
        _group = MuscleGroup(name=_group_name)
        _db.add(_group)
        _db.flush()
        for _name in _names:
            _db.add(Exercise(name=_name, muscle_group_id=_group.id))
    _db.commit()


@pytest.fixture(scope="session")
def exercise_ids() -> dict[str, int]:
    with SessionLocal() as db:
        return {e.name: e.id for e in db.query(Exercise).all()}


@pytest.fixture
def user():
    with SessionLocal() as db:
        return UserRepository(db).create(email=f"u_{uuid.uuid4().hex[:10]}@example.com", name="Tester")


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}


class FakeGateway:
    """In-memory gateway. Failures and holds are armed per method name."""

    def __init__(self):
        self.rows: dict[tuple, tuple] = {}
        self.templates: dict[int, ActivityTemplateRecord] = {}
        self.completions: dict[tuple, bool] = {}
        self.plan: dict[int, PlanEntry] = {}
        self.calls: list[tuple] = []
        self.fail: dict[str, list[Exception]] = {}
        self.hold: dict[str, asyncio.Event] = {}
        self._next_template = 1

    def calls_to(self, name: str) -> list[tuple]:
        return [args for called, args in self.calls if called == name]

    async def _enter(self, name: str, *args) -> None:
        self.calls.append((name, args))
        errors = self.fail.get(name)
        error = errors.pop(0) if errors else None
        gate = self.hold.get(name)
        if gate is not None:
            await gate.wait()
        if error is not None:
            raise error

    # WORKOUT SETS
    async def fetch_logged_sets_for_date(self, owner_id, day):
        await self._enter("fetch_logged_sets_for_date", owner_id, day)
        return [
            LoggedSet(id=f"set-{i}", exercise_id=k[1], exercise_name="", group_id=k[2], set_number=k[3], weight=v[0], reps=v[1])
            for i, (k, v) in enumerate(sorted(self.rows.items()), start=1)
            if k[0] == owner_id and k[4] == day
        ]

    async def save_logged_set(self, owner_id, exercise_id, group_id, set_number, weight, reps, day):
        await self._enter("save_logged_set", owner_id, exercise_id, group_id, set_number, weight, reps, day)
        self.rows[(owner_id, exercise_id, group_id, set_number, day)] = (weight, reps)
        return len(self.rows)

    async def delete_logged_set(self, owner_id, exercise_id, group_id, set_number, day):
        await self._enter("delete_logged_set", owner_id, exercise_id, group_id, set_number, day)
        self.rows.pop((owner_id, exercise_id, group_id, set_number, day), None)

    # ACTIVITIES
    async def fetch_activity_completions(self, owner_id, day):
        await self._enter("fetch_activity_completions", owner_id, day)
        return [
            ActivityCompletion(template_id=k[1], date=day, completed=v)
            for k, v in self.completions.items()
            if k[0] == owner_id and k[2] == day
        ]

    async def set_activity_completion(self, owner_id, template_id, day, completed):
        await self._enter("set_activity_completion", owner_id, template_id, day, completed)
        self.completions[(owner_id, template_id, day)] = completed

    async def list_activity_templates(self, owner_id):
        await self._enter("list_activity_templates", owner_id)
        return list(self.templates.values())

    async def create_activity_template(self, owner_id, name, description, icon):
        await self._enter("create_activity_template", owner_id, name)
        tpl = ActivityTemplateRecord(id=self._next_template, name=name, description=description, icon=icon)
        self._next_template += 1
        self.templates[tpl.id] = tpl
        return tpl

    async def update_activity_template(self, owner_id, template_id, name, description, icon):
        await self._enter("update_activity_template", owner_id, template_id, name)
        self.templates[template_id] = ActivityTemplateRecord(id=template_id, name=name, description=description, icon=icon)

    async def delete_activity_template(self, owner_id, template_id):
        await self._enter("delete_activity_template", owner_id, template_id)
        self.templates.pop(template_id, None)

    # COUNTS
    async def count_workout_events(self, owner_id, start, end):
        await self._enter("count_workout_events", owner_id, start, end)
        return sum(1 for k in self.rows if k[0] == owner_id and start <= k[4] <= end)

    async def count_completed_activities(self, owner_id, start, end):
        await self._enter("count_completed_activities", owner_id, start, end)
        return sum(1 for k, v in self.completions.items() if v and k[0] == owner_id and start <= k[2] <= end)

    async def group_event_counts_by_day(self, owner_id, start, end, kind):
        await self._enter("group_event_counts_by_day", owner_id, start, end, kind)
        counts: dict[date, int] = {}
        if kind == "workout":
            days = [k[4] for k in self.rows if k[0] == owner_id]
        else:
            days = [k[2] for k, v in self.completions.items() if v and k[0] == owner_id]
        for day in days:
            if start <= day <= end:
                counts[day] = counts.get(day, 0) + 1
        return counts

    async def count_active_templates(self, owner_id):
        await self._enter("count_active_templates", owner_id)
        return sum(1 for t in self.templates.values() if t.is_active)

    # PLAN
    async def list_exercises(self, owner_id, group_name):
        await self._enter("list_exercises", owner_id, group_name)
        planned = {p.exercise_id for p in self.plan.values() if p.group_id == group_name}
        return [
            {"id": i, "name": n, "image": None}
            for i, n in enumerate(CATALOGUE.get(group_name, []), start=1)
            if i not in planned
        ]

    async def list_plan(self, owner_id, group_name=None):
        await self._enter("list_plan", owner_id, group_name)
        return [p for p in self.plan.values() if group_name is None or p.group_id == group_name]

    async def add_to_plan(self, owner_id, exercise_id, group_name):
        await self._enter("add_to_plan", owner_id, exercise_id, group_name)
        entry = PlanEntry(id=len(self.plan) + 1, exercise_id=exercise_id, exercise_name="", group_id=group_name)
        self.plan[entry.id] = entry
        return entry

    async def remove_from_plan(self, owner_id, plan_id):
        await self._enter("remove_from_plan", owner_id, plan_id)
        entry = self.plan.pop(plan_id)
        for key in [k for k in self.rows if k[:3] == (owner_id, entry.exercise_id, entry.group_id)]:
            del self.rows[key]


@pytest.fixture
def gateway():
    return FakeGateway()
