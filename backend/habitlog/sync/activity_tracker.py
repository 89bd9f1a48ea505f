from __future__ import annotations
import logging
from dataclasses import replace
from datetime import date
from typing import Callable

from habitlog import clock
from habitlog.errors import GatewayError, UnknownEntity
from habitlog.gateway import PersistenceGateway
from habitlog.sync.coordinator import SaveCoordinator
from habitlog.sync.notifications import NotificationChannel
from habitlog.sync.records import ActivityCompletion, ActivityTemplateRecord

log = logging.getLogger(__name__)


def entity_id(template_id: int) -> str:
    return f"activity-{template_id}"


class ActivityTracker:
    """Today's completion flags per activity template, plus the templates."""

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
        self.date = today()
        self.templates: tuple[ActivityTemplateRecord, ...] = ()
        self.progress: dict[int, bool] = {}
        self._confirmed: dict[int, tuple[bool, int]] = {}
        self._loaded = False

    @property
    def daily_goal(self) -> int:
        return sum(1 for t in self.templates if t.is_active)

    @property
    def saving_ids(self) -> frozenset:
        return self._coordinator.saving_ids & {entity_id(t.id) for t in self.templates}

    def is_completed(self, template_id: int) -> bool:
        return self.progress.get(template_id, False)

    async def load(self) -> None:
        if self._loaded:
            return
        # nothing is kept unless both reads succeed; the next call retries
        templates = await self._gateway.list_activity_templates(self.owner_id)
        completions = await self._gateway.fetch_activity_completions(self.owner_id, self.date)
        self._loaded = True
        self.templates = tuple(templates)
        self.progress = {c.template_id: c.completed for c in completions}
        self._confirmed = {c.template_id: (c.completed, 0) for c in completions}

    def _template(self, template_id: int) -> ActivityTemplateRecord:
        for t in self.templates:
            if t.id == template_id:
                return t
        raise UnknownEntity(template_id)

    # COMPLETIONS
    def toggle(self, template_id: int) -> bool:
        self._template(template_id)
        completed = not self.progress.get(template_id, False)
        self.progress[template_id] = completed
        self._schedule(template_id, completed)
        return completed

    def _schedule(self, template_id: int, completed: bool) -> None:
        snapshot = ActivityCompletion(template_id=template_id, date=self.date, completed=completed)
        self._coordinator.schedule(
            entity_id(template_id),
            snapshot,
            self._persist,
            on_success=self._saved,
            on_failure=self._toggle_failed,
        )

    async def _persist(self, snapshot: ActivityCompletion) -> None:
        await self._gateway.set_activity_completion(
            self.owner_id, snapshot.template_id, snapshot.date, snapshot.completed
        )

    def _saved(self, snapshot: ActivityCompletion, revision: int) -> None:
        previous = self._confirmed.get(snapshot.template_id)
        if previous is None or previous[1] <= revision:
            self._confirmed[snapshot.template_id] = (snapshot.completed, revision)

    def _toggle_failed(self, snapshot: ActivityCompletion, exc: GatewayError) -> None:
        tid = snapshot.template_id
        confirmed = self._confirmed.get(tid)
        if confirmed is None:
            # never stored: back to "no record"
            self.progress.pop(tid, None)
        else:
            self.progress[tid] = confirmed[0]
        self._coordinator.bump(entity_id(tid))
        self.notifications.publish(exc.message, entity_id=entity_id(tid))

    # TEMPLATES
    async def add_template(self, name: str, description: str = "", icon: str = "") -> ActivityTemplateRecord:
        created = await self._gateway.create_activity_template(self.owner_id, name, description, icon)
        self.templates = (*self.templates, created)
        return created

    async def update_template(self, template_id: int, *, name: str, description: str, icon: str) -> ActivityTemplateRecord:
        before = self.templates
        updated = replace(self._template(template_id), name=name, description=description, icon=icon)
        self.templates = tuple(updated if t.id == template_id else t for t in before)
        try:
            await self._gateway.update_activity_template(self.owner_id, template_id, name, description, icon)
        except GatewayError:
            self.templates = before
            raise
        return updated

    async def delete_template(self, template_id: int) -> None:
        before = self.templates
        self._template(template_id)
        had_progress = template_id in self.progress
        flag = self.progress.pop(template_id, None)
        self.templates = tuple(t for t in before if t.id != template_id)
        self._coordinator.forget(entity_id(template_id))
        try:
            await self._gateway.delete_activity_template(self.owner_id, template_id)
        except GatewayError as exc:
            log.warning("delete of activity template %s failed: %s", template_id, exc.message)
            self.templates = before
            if had_progress:
                self.progress[template_id] = flag
                confirmed = self._confirmed.get(template_id)
                if confirmed is None or confirmed[0] != flag:
                    self._schedule(template_id, flag)
            raise
        self._confirmed.pop(template_id, None)

    def close(self) -> None:
        for t in self.templates:
            self._coordinator.forget(entity_id(t.id))
