"""Base repository class with generic CRUD operations."""

from typing import TypeVar, Generic, List, Optional, Dict, Any, Type
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from contextlib import asynccontextmanager
from enum import Enum
import logging

# Type variable for model types
ModelType = TypeVar('ModelType')

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Tag carried by every repository error so callers never match on messages."""
    VALIDATION = "validation"
    CATEGORY = "category"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    TRANSPORT = "transport"


class RepositoryError(Exception):
    """Base repository exception."""
    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context


class ValidationError(RepositoryError):
    """Validation error in repository operations."""
    kind = ErrorKind.VALIDATION


class CategoryError(ValidationError):
    """Category name could not be resolved."""
    kind = ErrorKind.CATEGORY


class PermissionDeniedError(RepositoryError):
    """The acting user does not own the record."""
    kind = ErrorKind.PERMISSION


class NotFoundError(RepositoryError):
    """Entity not found error."""
    kind = ErrorKind.NOT_FOUND


class ConcurrencyError(RepositoryError):
    """A concurrent writer won a uniqueness race."""
    kind = ErrorKind.CONFLICT


class TransportError(RepositoryError):
    """The store could not be reached or rejected the statement."""
    kind = ErrorKind.TRANSPORT


class BaseRepository(Generic[ModelType]):
    """
    Base repository class providing generic CRUD operations with async support.

    Store failures surface as TransportError, unique index collisions as
    ConcurrencyError. Domain errors raised by subclasses pass through untouched.
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """
        Initialize repository with model and session.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    # CRUD Operations

    async def create(self, obj_data: Dict[str, Any], commit: bool = True) -> ModelType:
        """
        Create a new entity.

        Args:
            obj_data: Column values
            commit: Whether to commit the transaction

        Returns:
            Created entity

        Raises:
            ConcurrencyError: If a unique index rejects the row
            TransportError: If creation fails
        """
        try:
            db_obj = self.model(**obj_data)
            # A rejected insert only unwinds its own savepoint, not the caller's transaction
            async with self.session.begin_nested():
                self.session.add(db_obj)

            if commit:
                await self.session.commit()
            await self.session.refresh(db_obj)

            logger.debug(f"Created {self.model.__name__} with id: {getattr(db_obj, 'id', 'N/A')}")
            return db_obj

        except IntegrityError as e:
            logger.warning(f"Integrity error creating {self.model.__name__}: {str(e)}")
            raise ConcurrencyError(
                f"{self.model.__name__} already exists",
                model=self.model.__name__,
            )
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Error creating {self.model.__name__}: {str(e)}")
            raise TransportError(f"Failed to create {self.model.__name__}: {str(e)}")

    async def add_all(self, objs_data: List[Dict[str, Any]], commit: bool = True) -> List[ModelType]:
        """
        Insert several entities as one unit of work.

        Either every row is written or, on failure, none are.
        """
        try:
            db_objs = [self.model(**obj_data) for obj_data in objs_data]
            self.session.add_all(db_objs)

            if commit:
                await self.session.commit()
            else:
                await self.session.flush()

            logger.info(f"Bulk created {len(db_objs)} {self.model.__name__} entities")
            return db_objs

        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Error bulk creating {self.model.__name__}: {str(e)}")
            raise TransportError(f"Failed to bulk create {self.model.__name__}: {str(e)}")

    async def get(self, id: Any, raise_not_found: bool = False) -> Optional[ModelType]:
        """
        Get entity by ID.

        Args:
            id: Entity ID
            raise_not_found: Whether to raise exception if not found

        Returns:
            Entity or None

        Raises:
            NotFoundError: If entity not found and raise_not_found is True
        """
        try:
            result = await self.session.execute(select(self.model).where(self.model.id == id))
            obj = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error getting {self.model.__name__} with id {id}: {str(e)}")
            raise TransportError(f"Failed to get {self.model.__name__}: {str(e)}")

        if obj is None and raise_not_found:
            raise NotFoundError(f"{self.model.__name__} not found.", id=id)
        return obj

    async def update(
        self,
        db_obj: ModelType,
        update_data: Dict[str, Any],
        commit: bool = True
    ) -> ModelType:
        """
        Apply the given column values to an already loaded entity.

        Args:
            db_obj: Entity to update
            update_data: Column values to set
            commit: Whether to commit the transaction

        Returns:
            Updated entity
        """
        try:
            for field, value in update_data.items():
                if hasattr(db_obj, field):
                    setattr(db_obj, field, value)

            if commit:
                await self.session.commit()
            else:
                await self.session.flush()
            await self.session.refresh(db_obj)

            logger.debug(f"Updated {self.model.__name__} with id: {getattr(db_obj, 'id', 'N/A')}")
            return db_obj

        except IntegrityError as e:
            await self.session.rollback()
            logger.error(f"Integrity error updating {self.model.__name__}: {str(e)}")
            raise ValidationError(f"Data integrity violation: {str(e)}")
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Error updating {self.model.__name__}: {str(e)}")
            raise TransportError(f"Failed to update {self.model.__name__}: {str(e)}")

    async def delete(self, db_obj: ModelType, commit: bool = True) -> None:
        """Delete a loaded entity."""
        try:
            await self.session.delete(db_obj)

            if commit:
                await self.session.commit()

            logger.debug(f"Deleted {self.model.__name__} with id: {getattr(db_obj, 'id', 'N/A')}")

        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Error deleting {self.model.__name__}: {str(e)}")
            raise TransportError(f"Failed to delete {self.model.__name__}: {str(e)}")

    # Query Operations

    async def find_by(self, **filters) -> List[ModelType]:
        """
        Find entities by field values.

        Args:
            **filters: Field name and value pairs

        Returns:
            List of matching entities
        """
        query = select(self.model)
        for field, value in filters.items():
            if hasattr(self.model, field):
                query = query.where(getattr(self.model, field) == value)
        return await self.fetch_all(query)

    async def find_one_by(self, **filters) -> Optional[ModelType]:
        """Find one entity by field values, or None."""
        entities = await self.find_by(**filters)
        return entities[0] if entities else None

    async def fetch_all(self, query) -> List[ModelType]:
        """Execute a select and return the mapped entities."""
        try:
            result = await self.session.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error querying {self.model.__name__}: {str(e)}")
            raise TransportError(f"Failed to query {self.model.__name__}: {str(e)}")

    # Transaction Management

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Error committing {self.model.__name__} changes: {str(e)}")
            raise TransportError(f"Failed to commit: {str(e)}")

    @asynccontextmanager
    async def transaction(self):
        """Context manager for explicit transaction control."""
        try:
            yield self.session
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise ConcurrencyError(f"Conflicting write on {self.model.__name__}: {str(e)}")
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise TransportError(f"Transaction failed on {self.model.__name__}: {str(e)}")
        except Exception:
            await self.session.rollback()
            raise
