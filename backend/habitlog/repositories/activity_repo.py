from __future__ import annotations
from datetime import date
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from habitlog.models import ActivityStatus, ActivityTemplate, DailyActivity
from habitlog.repositories.base import BaseRepository

class ActivityRepository(BaseRepository[ActivityTemplate]):
    model = ActivityTemplate

    # TEMPLATES
    def get_template(self, user_id: int, template_id: int) -> Optional[ActivityTemplate]:
        tpl = self.db.get(ActivityTemplate, template_id)
        if tpl is None or tpl.user_id != user_id:
            return None
        return tpl

    def list_active(self, user_id: int) -> list[ActivityTemplate]:
        stmt = select(ActivityTemplate).where(
            ActivityTemplate.user_id == user_id, ActivityTemplate.is_active.is_(True)
        ).order_by(ActivityTemplate.created_at.asc(), ActivityTemplate.id.asc())
        return list(self.db.execute(stmt).scalars().all())

    def count_active(self, user_id: int) -> int:
        stmt = select(func.count()).select_from(ActivityTemplate).where(
            ActivityTemplate.user_id == user_id, ActivityTemplate.is_active.is_(True)
        )
        return self.db.execute(stmt).scalar_one()

    def create_template(self, user_id: int, *, name: str, description: str, icon: str) -> ActivityTemplate:
        return self.add_and_commit(
            ActivityTemplate(user_id=user_id, name=name, description=description, icon=icon, is_active=True)
        )

    def update_template(self, user_id: int, template_id: int, *, name: str, description: str, icon: str) -> Optional[ActivityTemplate]:
        tpl = self.get_template(user_id, template_id)
        if not tpl:
            return None
        tpl.name = name
        tpl.description = description
        tpl.icon = icon
        self.db.commit()
        self.db.refresh(tpl)
        return tpl

    def delete_template(self, user_id: int, template_id: int) -> bool:
        """Completions go with the template (cascade)."""
        tpl = self.get_template(user_id, template_id)
        if not tpl:
            return False
        self.db.delete(tpl)
        self.db.commit()
        return True

    # COMPLETIONS
    def list_for_date(self, user_id: int, day: date) -> list[DailyActivity]:
        stmt = (
            select(DailyActivity)
            .where(DailyActivity.user_id == user_id, DailyActivity.date == day)
            .order_by(DailyActivity.template_id.asc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def set_status(self, user_id: int, template_id: int, day: date, *, completed: bool) -> DailyActivity:
        if not self.get_template(user_id, template_id):
            raise ValueError("invalid_activity_template")
        status = ActivityStatus.completed if completed else ActivityStatus.pending
        stmt = select(DailyActivity).where(
            DailyActivity.template_id == template_id,
            DailyActivity.user_id == user_id,
            DailyActivity.date == day,
        )
        row = self.db.execute(stmt).scalar_one_or_none()
        if row is None:
            row = DailyActivity(template_id=template_id, user_id=user_id, date=day)
            self.db.add(row)
        row.status = status
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ValueError("invalid_activity_template")
        self.db.refresh(row)
        return row

    def count_completed_between(self, user_id: int, start: date, end: date) -> int:
        stmt = select(func.count()).select_from(DailyActivity).where(
            DailyActivity.user_id == user_id,
            DailyActivity.status == ActivityStatus.completed,
            DailyActivity.date >= start,
            DailyActivity.date <= end,
        )
        return self.db.execute(stmt).scalar_one()

    def completed_by_day(self, user_id: int, start: date, end: date) -> dict[date, int]:
        stmt = (
            select(DailyActivity.date, func.count())
            .where(
                DailyActivity.user_id == user_id,
                DailyActivity.status == ActivityStatus.completed,
                DailyActivity.date >= start,
                DailyActivity.date <= end,
            )
            .group_by(DailyActivity.date)
        )
        return {day: count for day, count in self.db.execute(stmt).all()}
