"""Today's editable workout session.

The store applies every mutation locally first and lets the save
coordinator persist it. Rollbacks restore the last snapshot the gateway
accepted for a set (or the state it was created in, if it was never saved).
"""
from __future__ import annotations
import asyncio
import logging
import uuid
from dataclasses import replace
from datetime import date
from functools import partial
from typing import Any, Awaitable, Callable, Iterable

from habitlog import clock
from habitlog.errors import GatewayError, SessionInactive, UnknownEntity
from habitlog.gateway import PersistenceGateway
from habitlog.sync.coordinator import SaveCoordinator
from habitlog.sync.notifications import NotificationChannel
from habitlog.sync.records import LoggedSet, PlanEntry, WorkoutSession, by_set_number

log = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({"weight", "reps"})


class SessionStore:
    def __init__(
        self,
        gateway: PersistenceGateway,
        owner_id: int,
        coordinator: SaveCoordinator,
        *,
        notifications: NotificationChannel | None = None,
        today: Callable[[], date] = clock.today,
    ):
        self._gateway = gateway
        self.owner_id = owner_id
        self._coordinator = coordinator
        self.notifications = notifications if notifications is not None else NotificationChannel()
        self._today = today
        self.session = WorkoutSession(id=uuid.uuid4().hex, date=today())
        self.is_active = False
        self.is_loading = False
        self._loaded = False
        self._load_failed = False
        # last value the gateway accepted per set id, with the revision that carried it
        self._confirmed: dict[str, tuple[LoggedSet, int]] = {}
        # sets removed locally whose delete has not come back yet
        self._removing: dict[str, LoggedSet] = {}

    # READS
    @property
    def saving_ids(self) -> frozenset:
        return self._coordinator.saving_ids & {s.id for s in self.session.sets}

    def get(self, set_id: str) -> LoggedSet:
        for s in self.session.sets:
            if s.id == set_id:
                return s
        raise UnknownEntity(set_id)

    def sets_for(self, exercise_id: int, group_id: str) -> list[LoggedSet]:
        return [s for s in self.session.sets if s.exercise_id == exercise_id and s.group_id == group_id]

    # LIFECYCLE
    @property
    def loaded(self) -> bool:
        return self._loaded

    async def load(self) -> WorkoutSession:
        """Hydrate from today's stored sets. Retried on the next call until a fetch succeeds."""
        if self._loaded or self.is_loading:
            return self.session
        self.is_loading = True
        try:
            existing = await self._gateway.fetch_logged_sets_for_date(self.owner_id, self.session.date)
        except GatewayError as exc:
            log.warning("could not load sets for owner=%s: %s", self.owner_id, exc.message)
            self._load_failed = True
            self.notifications.publish("Failed to load today's workout")
            return self.session
        finally:
            self.is_loading = False
        self._loaded = True
        self._load_failed = False
        self.hydrate(existing)
        return self.session

    def hydrate(self, existing: Iterable[LoggedSet]) -> WorkoutSession:
        ordered = by_set_number(existing)
        self.session = replace(self.session, sets=ordered)
        self._confirmed = {s.id: (s, 0) for s in ordered}
        self.is_active = bool(ordered)
        return self.session

    def start(self) -> WorkoutSession:
        if self.is_active:
            return self.session
        if self._load_failed:
            # stored sets would be renumbered from 1 and overwritten
            raise SessionInactive("today's workout has not been loaded")
        self.session = WorkoutSession(id=uuid.uuid4().hex, date=self._today())
        self._confirmed.clear()
        self.is_active = True
        return self.session

    def close(self) -> None:
        """Teardown: pending saves are dropped, nothing new is written."""
        for s in self.session.sets:
            self._coordinator.forget(s.id)

    # MUTATIONS
    def add_set(self, exercise_id: int, group_id: str, *, exercise_name: str = "") -> LoggedSet:
        if not self.is_active:
            raise SessionInactive("start a workout first")
        taken = [
            s.set_number
            for s in (*self.session.sets, *self._removing.values())
            if s.exercise_id == exercise_id and s.group_id == group_id
        ]
        new_set = LoggedSet(
            id=uuid.uuid4().hex,
            exercise_id=exercise_id,
            exercise_name=exercise_name,
            group_id=group_id,
            set_number=max(taken, default=0) + 1,
        )
        # empty sets are not written until a value is entered
        self.session = replace(self.session, sets=(*self.session.sets, new_set))
        self._confirmed[new_set.id] = (new_set, 0)
        return new_set

    def update_set(self, set_id: str, **fields) -> LoggedSet:
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"not editable: {', '.join(sorted(unknown))}")
        merged = replace(self.get(set_id), **fields)
        self._put(merged)
        self._schedule(merged)
        return merged

    async def remove_set(self, set_id: str) -> None:
        """Delete at once; the set comes back if the store refuses."""
        target = self.get(set_id)
        await self._remove(
            [target],
            lambda: self._gateway.delete_logged_set(
                self.owner_id, target.exercise_id, target.group_id, target.set_number, self.session.date
            ),
        )

    async def remove_exercise(self, plan: PlanEntry) -> None:
        """Take an exercise out of the plan; its stored sets go with it."""
        targets = self.sets_for(plan.exercise_id, plan.group_id)
        await self._remove(targets, lambda: self._gateway.remove_from_plan(self.owner_id, plan.id))

    async def _remove(self, targets: list[LoggedSet], delete: Callable[[], Awaitable[Any]]) -> None:
        ids = {s.id for s in targets}
        self.session = replace(self.session, sets=tuple(s for s in self.session.sets if s.id not in ids))
        for s in targets:
            self._removing[s.id] = s
        try:
            # cancel, not forget: the revision has to outlive a failed delete
            inflight = [task for sid in ids for task in self._coordinator.cancel(sid)]
            if inflight:
                # let earlier saves land first so they cannot recreate the rows
                await asyncio.wait(inflight)
            await delete()
        except GatewayError as exc:
            log.warning("delete of %s set(s) failed: %s", len(targets), exc.message)
            self.session = replace(self.session, sets=by_set_number((*self.session.sets, *targets)))
            for s in targets:
                confirmed = self._confirmed.get(s.id)
                if confirmed is None or confirmed[0] != s:
                    self._schedule(s)
            raise
        else:
            for sid in ids:
                self._coordinator.forget(sid)
                self._confirmed.pop(sid, None)
        finally:
            for sid in ids:
                self._removing.pop(sid, None)

    # INTERNALS
    def _put(self, updated: LoggedSet) -> None:
        self.session = replace(
            self.session, sets=tuple(updated if s.id == updated.id else s for s in self.session.sets)
        )

    def _schedule(self, snapshot: LoggedSet) -> None:
        self._coordinator.schedule(
            snapshot.id,
            snapshot,
            partial(self._save, self.session.date),
            on_success=self._saved,
            on_failure=self._save_failed,
        )

    async def _save(self, day: date, snapshot: LoggedSet) -> int:
        return await self._gateway.save_logged_set(
            self.owner_id,
            snapshot.exercise_id,
            snapshot.group_id,
            snapshot.set_number,
            snapshot.weight,
            snapshot.reps,
            day,
        )

    def _saved(self, snapshot: LoggedSet, revision: int) -> None:
        previous = self._confirmed.get(snapshot.id)
        if previous is None or previous[1] <= revision:
            self._confirmed[snapshot.id] = (snapshot, revision)

    def _save_failed(self, snapshot: LoggedSet, exc: GatewayError) -> None:
        confirmed = self._confirmed.get(snapshot.id)
        if confirmed is not None and any(s.id == snapshot.id for s in self.session.sets):
            self._put(confirmed[0])
            self._coordinator.bump(snapshot.id)
        self.notifications.publish(exc.message, entity_id=snapshot.id)
