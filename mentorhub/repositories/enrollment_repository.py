# mentorhub/repositories/enrollment_repository.py
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.platform import Enrollment
from .base_repository import BaseRepository


class EnrollmentRepository(BaseRepository[Enrollment]):
    def __init__(self, db: Session):
        super().__init__(db, Enrollment)

    def find_for_user_platform(self, user_id: str, platform_id: str) -> Optional[Enrollment]:
        stmt = select(Enrollment).where(
            Enrollment.user_id == user_id, Enrollment.platform_id == platform_id
        )
        return self.db.execute(stmt).unique().scalars().first()

    def get_for_user(
        self, enrollment_id: str, user_id: str, *, for_update: bool = False
    ) -> Optional[Enrollment]:
        stmt = select(Enrollment).where(
            Enrollment.id == enrollment_id, Enrollment.user_id == user_id
        )
        if for_update:
            stmt = stmt.with_for_update(of=Enrollment)
        stmt = stmt.execution_options(populate_existing=True)
        return self.db.execute(stmt).unique().scalars().first()

    def list_for_user(self, user_id: str) -> List[Enrollment]:
        stmt = (
            select(Enrollment)
            .where(Enrollment.user_id == user_id)
            .order_by(Enrollment.created_at.desc(), Enrollment.id.desc())
        )
        return list(self.db.execute(stmt).unique().scalars())

    def extend_if_unchanged(
        self,
        enrollment_id: str,
        *,
        expected_expires_at: datetime,
        new_expires_at: datetime,
        renewed_at: datetime,
    ) -> bool:
        """
        Move ``expires_at`` forward only if nobody renewed since it was read.
        """
        stmt = (
            update(Enrollment)
            .where(
                Enrollment.id == enrollment_id,
                Enrollment.expires_at == expected_expires_at,
            )
            .values(expires_at=new_expires_at, last_renewal_at=renewed_at, is_active=True)
            .execution_options(synchronize_session=False)
        )
        try:
            return self.db.execute(stmt).rowcount == 1
        except SQLAlchemyError as e:
            self.logger.error(f"Error extending enrollment {enrollment_id}: {str(e)}")
            raise RepositoryException(f"Failed to extend enrollment: {str(e)}") from e
