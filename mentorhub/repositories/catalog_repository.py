# mentorhub/repositories/catalog_repository.py
"""
Read-only lookups over catalog data owned by other parts of the platform:
platforms, recorded sessions and mentors.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from ..core.enums import RoleName
from ..models.booking import RecordedSession
from ..models.platform import Platform
from ..models.user import User
from .base_repository import BaseRepository


class PlatformRepository(BaseRepository[Platform]):
    def __init__(self, db: Session):
        super().__init__(db, Platform)

    def get_active(self, platform_id: str) -> Optional[Platform]:
        stmt = select(Platform).where(Platform.id == platform_id, Platform.is_active.is_(True))
        return self.db.execute(stmt).scalars().first()


class RecordedSessionRepository(BaseRepository[RecordedSession]):
    def __init__(self, db: Session):
        super().__init__(db, RecordedSession)

    def get_active(self, session_id: str) -> Optional[RecordedSession]:
        stmt = select(RecordedSession).where(
            RecordedSession.id == session_id, RecordedSession.is_active.is_(True)
        )
        return self.db.execute(stmt).scalars().first()


class UserRepository(BaseRepository[User]):
    def __init__(self, db: Session):
        super().__init__(db, User)

    def _mentors(self) -> Select:
        return select(User).where(
            User.is_mentor.is_(True),
            User.role == RoleName.ADMIN.value,
            User.mentor_rate.is_not(None),
        )

    def get_mentor(self, mentor_id: str) -> Optional[User]:
        return self.db.execute(self._mentors().where(User.id == mentor_id)).scalars().first()

    def get_default_mentor(self) -> Optional[User]:
        """The platform's mentor when a booking names none (single-mentor deployments)."""
        return self.db.execute(self._mentors().order_by(User.created_at, User.id)).scalars().first()

    def update_mentor_settings(self, user_id: str, rate: Decimal, bio: str) -> Optional[User]:
        return self.update(user_id, mentor_rate=rate, mentor_bio=bio, is_mentor=True)
