"""One live session bundle per owner, kept in process memory.

A bundle belongs to one calendar day in the reference timezone. The first
request after midnight gets a fresh bundle; the old one flushes its pending
saves under the old date and is dropped. Bundles from earlier days with
nothing left to save are pruned whenever a new bundle is opened.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable

from habitlog import clock
from habitlog.gateway import PersistenceGateway
from habitlog.settings import get_settings
from habitlog.sync.activity_tracker import ActivityTracker
from habitlog.sync.coordinator import SaveCoordinator
from habitlog.sync.notifications import NotificationChannel
from habitlog.sync.selection import WorkoutSelection
from habitlog.sync.session_store import SessionStore

log = logging.getLogger(__name__)


@dataclass
class LiveSession:
    owner_id: int
    coordinator: SaveCoordinator
    notifications: NotificationChannel
    store: SessionStore
    activities: ActivityTracker
    selection: WorkoutSelection = field(default_factory=WorkoutSelection)

    @property
    def saving_ids(self) -> frozenset:
        return self.coordinator.saving_ids

    def belongs_to(self, day: date) -> bool:
        return self.store.session.date == day and self.activities.date == day

    def close(self) -> None:
        self.store.close()
        self.activities.close()
        self.coordinator.close()


class LiveSessions:
    def __init__(
        self,
        gateway: PersistenceGateway,
        *,
        delay: float | None = None,
        backlog: int | None = None,
        today: Callable[[], date] = clock.today,
    ):
        s = get_settings()
        self.gateway = gateway
        self.delay = s.SAVE_DEBOUNCE_SECONDS if delay is None else delay
        self.backlog = s.NOTIFICATION_BACKLOG if backlog is None else backlog
        self._today = today
        self._live: dict[int, LiveSession] = {}

    def __len__(self) -> int:
        return len(self._live)

    def get(self, owner_id: int) -> LiveSession:
        day = self._today()
        live = self._live.get(owner_id)
        if live is not None and not live.belongs_to(day):
            log.info("day rolled over for owner=%s, reopening live session", owner_id)
            self._retire(owner_id)
            notifications = live.notifications
            live = None
        else:
            notifications = None
        if live is None:
            self._prune(day)
            live = self._open(owner_id, notifications or NotificationChannel(self.backlog))
        return live

    def _open(self, owner_id: int, notifications: NotificationChannel) -> LiveSession:
        coordinator = SaveCoordinator(self.delay)
        live = LiveSession(
            owner_id=owner_id,
            coordinator=coordinator,
            notifications=notifications,
            store=SessionStore(self.gateway, owner_id, coordinator, notifications=notifications, today=self._today),
            activities=ActivityTracker(self.gateway, owner_id, coordinator, notifications=notifications, today=self._today),
        )
        self._live[owner_id] = live
        log.info("live session opened owner=%s", owner_id)
        return live

    def _retire(self, owner_id: int) -> None:
        live = self._live.pop(owner_id)
        # yesterday's edits still land under yesterday's date
        live.coordinator.flush()

    def _prune(self, day: date) -> None:
        stale = [
            owner_id
            for owner_id, live in self._live.items()
            if not live.belongs_to(day) and not live.saving_ids
        ]
        for owner_id in stale:
            self.close(owner_id)

    def close(self, owner_id: int) -> bool:
        live = self._live.pop(owner_id, None)
        if live is None:
            return False
        live.close()
        log.info("live session closed owner=%s", owner_id)
        return True

    def close_all(self) -> None:
        for owner_id in list(self._live):
            self.close(owner_id)
