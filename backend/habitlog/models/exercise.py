from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, ForeignKey, String
from habitlog.db import Base

class MuscleGroup(Base):
    __tablename__ = "muscle_groups"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)

    exercises = relationship("Exercise", back_populates="muscle_group")

class Exercise(Base):
    __tablename__ = "exercises"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    image: Mapped[str | None] = mapped_column(String(255), nullable=True)
    muscle_group_id: Mapped[int | None] = mapped_column(ForeignKey("muscle_groups.id"), index=True, nullable=True)

    muscle_group = relationship("MuscleGroup", back_populates="exercises")
