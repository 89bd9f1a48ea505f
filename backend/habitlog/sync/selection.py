from __future__ import annotations
from dataclasses import dataclass

from habitlog.sync.records import LoggedSet
from habitlog.sync.session_store import SessionStore


@dataclass(frozen=True, slots=True)
class SelectedExercise:
    id: int
    name: str
    group_id: str


class WorkoutSelection:
    """Which muscle group and exercise the user is logging sets for."""

    def __init__(self):
        self.groups: list[str] = []
        self.exercise: SelectedExercise | None = None

    def toggle_group(self, group_id: str) -> list[str]:
        # single selection; picking the current group again changes nothing
        if group_id in self.groups:
            return self.groups
        self.exercise = None
        self.groups = [group_id]
        return self.groups

    def select_exercise(self, exercise_id: int, name: str, group_id: str) -> SelectedExercise:
        """Selecting does not add a set."""
        self.exercise = SelectedExercise(id=exercise_id, name=name, group_id=group_id)
        if group_id not in self.groups:
            self.groups = [group_id]
        return self.exercise

    def add_set(self, store: SessionStore) -> LoggedSet | None:
        if self.exercise is None:
            return None
        return store.add_set(self.exercise.id, self.exercise.group_id, exercise_name=self.exercise.name)

    def visible_sets(self, store: SessionStore) -> list[LoggedSet]:
        if self.exercise is None:
            return []
        return store.sets_for(self.exercise.id, self.exercise.group_id)
