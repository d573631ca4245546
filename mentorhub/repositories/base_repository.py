# mentorhub/repositories/base_repository.py
"""
Base Repository Pattern for MentorHub

Provides the foundation for all repository classes with:
- Common CRUD operations
- Type safety with generics
- Transaction support (managed by services)
- Dialect-aware insert-or-ignore for natural-key uniqueness

Repositories never commit; the service layer owns the unit of work.
"""

from abc import ABC, abstractmethod
import logging
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import ColumnElement, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException, UniqueViolation
from ..database.session_utils import get_dialect_name

# Type variable for generic model support
T = TypeVar("T")

logger = logging.getLogger(__name__)


class IRepository(ABC, Generic[T]):
    """
    Abstract repository interface defining core data access methods.
    """

    @abstractmethod
    def get_by_id(self, id: str, *, for_update: bool = False) -> Optional[T]:
        """Retrieve an entity by its primary key."""

    @abstractmethod
    def create(self, **kwargs: Any) -> T:
        """Create a new entity. Raises UniqueViolation on constraint conflicts."""

    @abstractmethod
    def update(self, id: str, **kwargs: Any) -> Optional[T]:
        """Update an existing entity; returns None if not found."""


class BaseRepository(IRepository[T]):
    """
    Concrete base repository implementation with common data access patterns.

    Attributes:
        db: SQLAlchemy session
        model: SQLAlchemy model class
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @property
    def dialect_name(self) -> str:
        return get_dialect_name(self.db)

    def get_by_id(self, id: str, *, for_update: bool = False) -> Optional[T]:
        """
        Retrieve an entity by its primary key, always re-reading the row.

        ``for_update`` takes a row lock where the dialect supports it
        (SQLite ignores FOR UPDATE and serializes writers instead).
        """
        try:
            stmt = select(self.model).where(self.model.id == id)  # type: ignore[attr-defined]
            if for_update:
                stmt = stmt.with_for_update(of=self.model)
            stmt = stmt.execution_options(populate_existing=True)
            return self.db.execute(stmt).unique().scalars().first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting {self.model.__name__} by id {id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve {self.model.__name__}: {str(e)}") from e

    def create(self, **kwargs: Any) -> T:
        """
        Create a new entity.

        Note: Does NOT commit - transaction management is handled by service layer.
        On a uniqueness conflict the session must be rolled back by the caller's
        unit of work.
        """
        entity = self.model(**kwargs)
        try:
            self.db.add(entity)
            self.db.flush()
            # Load server defaults and joined relationships while still in the unit of work.
            self.db.refresh(entity)
            return entity
        except IntegrityError as exc:
            self.logger.warning("Integrity error creating %s: %s", self.model.__name__, exc.orig)
            raise UniqueViolation(f"Integrity constraint violated: {exc.orig}") from exc
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating {self.model.__name__}: {str(e)}")
            raise RepositoryException(f"Failed to create {self.model.__name__}: {str(e)}") from e

    def update(self, id: str, **kwargs: Any) -> Optional[T]:
        """
        Update an existing entity.

        Only updates provided fields, preserves others.
        """
        try:
            entity = self.get_by_id(id)
            if not entity:
                return None

            for key, value in kwargs.items():
                if hasattr(entity, key):
                    setattr(entity, key, value)

            self.db.flush()
            return entity
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating {self.model.__name__} {id}: {str(e)}")
            raise RepositoryException(f"Failed to update {self.model.__name__}: {str(e)}") from e

    def insert_ignore(
        self,
        rows: Sequence[Dict[str, Any]],
        *,
        conflict_columns: Sequence[str],
        conflict_where: Optional[ColumnElement[bool]] = None,
    ) -> int:
        """
        Insert rows, silently skipping any that collide on the natural key.

        PostgreSQL uses ``ON CONFLICT DO NOTHING`` against the (partial) unique
        index; SQLite uses ``INSERT OR IGNORE``. Returns the number of rows
        actually inserted.
        """
        if not rows:
            return 0

        table = self.model.__table__  # type: ignore[attr-defined]
        try:
            if self.dialect_name == "postgresql":
                stmt = pg_insert(table).values(list(rows))
                stmt = stmt.on_conflict_do_nothing(
                    index_elements=list(conflict_columns), index_where=conflict_where
                )
            else:
                stmt = insert(table).values(list(rows)).prefix_with("OR IGNORE")
            result = self.db.execute(stmt)
            return int(result.rowcount or 0)
        except SQLAlchemyError as e:
            self.logger.error(f"Error bulk inserting {self.model.__name__}: {str(e)}")
            raise RepositoryException(
                f"Failed to insert {self.model.__name__} rows: {str(e)}"
            ) from e

    def list_page(self, stmt: Any, *, page: int, page_size: int) -> List[T]:
        """Apply offset pagination to a select statement."""
        try:
            offset = max(page - 1, 0) * page_size
            return list(self.db.execute(stmt.offset(offset).limit(page_size)).unique().scalars())
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing {self.model.__name__}: {str(e)}")
            raise RepositoryException(f"Failed to list {self.model.__name__}: {str(e)}") from e
