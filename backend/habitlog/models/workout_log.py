import datetime as dt

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, ForeignKey, Date, Numeric, UniqueConstraint
from habitlog.db import Base

class ExercisePlan(Base):
    """An exercise a user tracks under one muscle group."""
    __tablename__ = "exercise_plans"
    __table_args__ = (UniqueConstraint("user_id", "exercise_id", "muscle_group_id", name="uq_plan_user_exercise_group"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    exercise_id: Mapped[int] = mapped_column(ForeignKey("exercises.id", ondelete="CASCADE"), index=True)
    muscle_group_id: Mapped[int] = mapped_column(ForeignKey("muscle_groups.id"), index=True)

    user = relationship("User", back_populates="plans")
    exercise = relationship("Exercise")
    muscle_group = relationship("MuscleGroup")
    logs = relationship("WorkoutLog", back_populates="plan", cascade="all, delete-orphan")

class WorkoutLog(Base):
    """One persisted set. Counted as one workout event on the dashboard."""
    __tablename__ = "workout_logs"
    __table_args__ = (UniqueConstraint("plan_id", "set_no", "user_id", "date", name="uq_log_plan_set_user_date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    plan_id: Mapped[int] = mapped_column(ForeignKey("exercise_plans.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    set_no: Mapped[int] = mapped_column(Integer, nullable=False)
    weight: Mapped[float | None] = mapped_column(Numeric(10, 2), nullable=True)
    reps: Mapped[int | None] = mapped_column(Integer, nullable=True)
    date: Mapped[dt.date] = mapped_column(Date, index=True, nullable=False)

    plan = relationship("ExercisePlan", back_populates="logs")
