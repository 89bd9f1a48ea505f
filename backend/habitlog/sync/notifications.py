from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True, slots=True)
class Notification:
    message: str
    entity_id: str | None = None
    level: str = "error"
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class NotificationChannel:
    """Messages for the user, drained by whoever renders them."""

    def __init__(self, backlog: int = 50):
        self._items: deque[Notification] = deque(maxlen=backlog)

    def __len__(self) -> int:
        return len(self._items)

    def publish(self, message: str, *, entity_id: str | None = None, level: str = "error") -> Notification:
        note = Notification(message=message, entity_id=entity_id, level=level)
        self._items.append(note)
        return note

    def drain(self) -> list[Notification]:
        items = list(self._items)
        self._items.clear()
        return items
