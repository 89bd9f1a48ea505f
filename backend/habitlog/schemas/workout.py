from typing import Annotated
from datetime import date
from pydantic import BaseModel, Field, field_validator

GroupStr = Annotated[str, Field(min_length=1, max_length=40)]
NonNegFloat = Annotated[float, Field(ge=0, le=1000)]
NonNegInt = Annotated[int, Field(ge=0, le=1000)]

class SetCreate(BaseModel):
    exercise_id: int
    group_id: GroupStr
    exercise_name: Annotated[str, Field(max_length=120)] = ""

    @field_validator("group_id")
    @classmethod
    def group_non_blank(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("group cannot be blank")
        return v2

class SetUpdate(BaseModel):
    weight: NonNegFloat | None = None
    reps: NonNegInt | None = None

class SetRead(BaseModel):
    id: str
    exercise_id: int
    exercise_name: str
    group_id: str
    set_number: int
    weight: float | None = None
    reps: int | None = None
    saving: bool = False

    model_config = {"from_attributes": True}

class SessionRead(BaseModel):
    id: str
    date: date
    active: bool
    loading: bool = False
    sets: list[SetRead]
    saving_ids: list[str]

class ExerciseRead(BaseModel):
    id: int
    name: str
    image: str | None = None

class PlanCreate(BaseModel):
    exercise_id: int
    group_id: GroupStr

class PlanRead(BaseModel):
    id: int
    exercise_id: int
    exercise_name: str
    group_id: str
    image: str | None = None

    model_config = {"from_attributes": True}
