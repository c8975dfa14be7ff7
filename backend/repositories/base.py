"""
Base repository class providing common database operations.
"""

from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from repositories.database import Base

T = TypeVar("T", bound=Base)  # type: ignore[type-arg]


class BaseRepository(Generic[T]):
    """
    Base repository providing common CRUD operations.

    Mutating helpers come in two flavours: `create`/`delete` commit
    immediately, while `add`/`remove` only stage the change so a service can
    commit a mutation together with its audit row.
    """

    def __init__(self, model: type[T], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    def get_by_id(self, id: int) -> T | None:
        """
        Get entity by primary key.

        Args:
            id: Entity ID

        Returns:
            Entity if found, None otherwise
        """
        return self.db.get(self.model, id)

    def add(self, entity: T) -> None:
        """Stage an entity for insertion without committing."""
        self.db.add(entity)

    def remove(self, entity: T) -> None:
        """Stage an entity for deletion without committing."""
        self.db.delete(entity)

    def create(self, entity: T) -> T:
        """
        Insert an entity and commit.

        Args:
            entity: Entity to create

        Returns:
            Created entity, refreshed from the database
        """
        self.db.add(entity)
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def delete(self, entity: T) -> None:
        """Delete an entity and commit."""
        self.db.delete(entity)
        self.db.commit()

    def commit(self) -> None:
        """Commit the current transaction."""
        self.db.commit()

    def flush(self) -> None:
        """Flush pending changes without committing."""
        self.db.flush()

    def rollback(self) -> None:
        """Rollback the current transaction."""
        self.db.rollback()

    def refresh(self, entity: T) -> None:
        """Refresh entity from database."""
        self.db.refresh(entity)
