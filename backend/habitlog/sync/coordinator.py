"""Debounced, per-entity save scheduling.

Each entity id has at most one pending timer. Scheduling again before the
timer fires replaces the captured snapshot and restarts the timer, so a burst
of edits produces one write carrying the last snapshot. Calls already in
flight keep running; a later call for the same id may overlap an earlier one.

Every local mutation bumps the entity's revision. A failure is handed to the
caller's rollback only while its revision is still the current one, so a
late failure from an older call never undoes a newer value. Revisions come
from one counter shared by all ids, and an id is dropped from the revision map
once it has no timer and no call outstanding.
"""
from __future__ import annotations
import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Hashable, TypeVar

from habitlog.errors import GatewayError, TransientIO

log = logging.getLogger(__name__)

S = TypeVar("S")

Persist = Callable[[S], Awaitable[Any]]
OnSuccess = Callable[[S, int], None]
OnFailure = Callable[[S, GatewayError], None]


@dataclass(slots=True)
class _Pending(Generic[S]):
    handle: asyncio.TimerHandle
    snapshot: S
    revision: int
    persist: Persist
    on_success: OnSuccess | None
    on_failure: OnFailure | None


class SaveCoordinator:
    def __init__(self, delay: float = 1.0):
        self.delay = delay
        self._pending: dict[Hashable, _Pending] = {}
        self._inflight: dict[Hashable, set[asyncio.Task]] = {}
        self._revisions: dict[Hashable, int] = {}
        # one counter for every id, so a revision is never handed out twice
        self._counter = itertools.count(1)

    # STATE
    @property
    def saving_ids(self) -> frozenset:
        """Ids with a timer waiting or a call outstanding."""
        return frozenset(self._pending) | frozenset(self._inflight)

    def revision(self, entity_id: Hashable) -> int:
        return self._revisions.get(entity_id, 0)

    def is_current(self, entity_id: Hashable, revision: int) -> bool:
        return entity_id in self._revisions and self._revisions[entity_id] == revision

    def has_pending(self, entity_id: Hashable) -> bool:
        return entity_id in self._pending

    def bump(self, entity_id: Hashable) -> int:
        """Record a local mutation that is not persisted itself."""
        rev = next(self._counter)
        self._revisions[entity_id] = rev
        return rev

    # SCHEDULING
    def schedule(
        self,
        entity_id: Hashable,
        snapshot: S,
        persist: Persist,
        *,
        on_success: OnSuccess | None = None,
        on_failure: OnFailure | None = None,
    ) -> int:
        loop = asyncio.get_running_loop()
        previous = self._pending.pop(entity_id, None)
        if previous is not None:
            previous.handle.cancel()
            log.debug("coalesced save for %s (rev %s superseded)", entity_id, previous.revision)
        revision = self.bump(entity_id)
        handle = loop.call_later(self.delay, self._fire, entity_id)
        self._pending[entity_id] = _Pending(handle, snapshot, revision, persist, on_success, on_failure)
        return revision

    def flush(self, entity_id: Hashable | None = None) -> list[asyncio.Task]:
        """Fire pending timers now instead of waiting for the window."""
        ids = [entity_id] if entity_id is not None else list(self._pending)
        tasks = []
        for eid in ids:
            pending = self._pending.get(eid)
            if pending is None:
                continue
            pending.handle.cancel()
            tasks.append(self._fire(eid))
        return tasks

    def cancel(self, entity_id: Hashable) -> list[asyncio.Task]:
        """Drop the pending timer. Returns calls still in flight for the id."""
        pending = self._pending.pop(entity_id, None)
        if pending is not None:
            pending.handle.cancel()
            log.debug("cancelled pending save for %s", entity_id)
        return list(self._inflight.get(entity_id, ()))

    def forget(self, entity_id: Hashable) -> list[asyncio.Task]:
        """Cancel and stop tracking the id; late results for it are ignored."""
        tasks = self.cancel(entity_id)
        self._revisions.pop(entity_id, None)
        return tasks

    def close(self) -> None:
        for entity_id in list(self._pending):
            self.cancel(entity_id)

    async def wait_idle(self) -> None:
        while self._pending or self._inflight:
            tasks = [t for group in self._inflight.values() for t in group]
            if tasks:
                await asyncio.wait(tasks)
            else:
                await asyncio.sleep(self.delay)

    # INTERNALS
    def _fire(self, entity_id: Hashable) -> asyncio.Task:
        pending = self._pending.pop(entity_id)
        task = asyncio.get_running_loop().create_task(self._persist(entity_id, pending))
        self._inflight.setdefault(entity_id, set()).add(task)
        return task

    async def _persist(self, entity_id: Hashable, pending: _Pending) -> None:
        try:
            await pending.persist(pending.snapshot)
        except Exception as exc:
            if not isinstance(exc, GatewayError):
                log.exception("unexpected error saving %s", entity_id)
                exc = TransientIO("Failed to save changes")
            if not self.is_current(entity_id, pending.revision):
                log.debug("ignoring failure of stale save for %s (rev %s)", entity_id, pending.revision)
            else:
                log.warning("save for %s failed: %s", entity_id, exc.message)
                if pending.on_failure is not None:
                    pending.on_failure(pending.snapshot, exc)
        else:
            if pending.on_success is not None and entity_id in self._revisions:
                pending.on_success(pending.snapshot, pending.revision)
        finally:
            group = self._inflight.get(entity_id)
            if group is not None:
                group.discard(asyncio.current_task())
                if not group:
                    del self._inflight[entity_id]
            if entity_id not in self._pending and entity_id not in self._inflight:
                # idle: nothing left that could be judged stale
                self._revisions.pop(entity_id, None)
