from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date

@dataclass(frozen=True, slots=True)
class LoggedSet:
    id: str
    exercise_id: int
    exercise_name: str
    group_id: str
    set_number: int
    weight: float | None = None
    reps: int | None = None

@dataclass(frozen=True, slots=True)
class WorkoutSession:
    id: str
    date: date
    sets: tuple[LoggedSet, ...] = field(default_factory=tuple)

@dataclass(frozen=True, slots=True)
class ActivityCompletion:
    template_id: int
    date: date
    completed: bool

@dataclass(frozen=True, slots=True)
class ActivityTemplateRecord:
    id: int
    name: str
    description: str = ""
    icon: str = ""
    is_active: bool = True

def by_set_number(sets) -> tuple[LoggedSet, ...]:
    # stable: keeps the gateway's group/exercise order within a set number
    return tuple(sorted(sets, key=lambda s: s.set_number))

@dataclass(frozen=True, slots=True)
class PlanEntry:
    """An exercise the owner tracks under one muscle group."""
    id: int
    exercise_id: int
    exercise_name: str
    group_id: str
    image: str | None = None
