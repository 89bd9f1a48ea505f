from typing import Annotated
from datetime import date
from pydantic import BaseModel, Field, StringConstraints

# trimmed before the length check
NameStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=120)]

class TemplateWrite(BaseModel):
    name: NameStr
    description: Annotated[str, Field(max_length=500)] = ""
    icon: Annotated[str, Field(max_length=60)] = ""

class TemplateRead(BaseModel):
    id: int
    name: str
    description: str
    icon: str
    completed: bool = False

    model_config = {"from_attributes": True}

class ActivityBoard(BaseModel):
    date: date
    daily_goal: int
    templates: list[TemplateRead]
    saving_ids: list[str]

class ToggleRead(BaseModel):
    template_id: int
    completed: bool
