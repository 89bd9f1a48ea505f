# habitlog/repositories/user_repo.py
from __future__ import annotations
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from habitlog.models import User
from habitlog.repositories.base import BaseRepository

class UserRepository(BaseRepository[User]):
    model = User

    # READS
    def get(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(func.lower(User.email) == email.lower())
        return self.db.execute(stmt).scalar_one_or_none()

    # WRITES
    def create(self, *, email: str, name: str) -> User:
        user = User(email=email, name=name)
        try:
            return self.add_and_commit(user)
        except IntegrityError:
            self.db.rollback()
            # Re-raise a clean marker callers can map
            raise ValueError("email_already_exists")
