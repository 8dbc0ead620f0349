from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, col, select
from sqlmodel.ext.asyncio.session import AsyncSession
from rentory.core.config import settings
from rentory.core.database.transaction import in_transaction
from rentory.core.exceptions import errors
from rentory.core.logging import get_logger
from rentory.core.types import IDType

logger = get_logger(__name__)

ModelType = TypeVar("ModelType", bound=SQLModel)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


class BaseRepository(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """
    Base repository providing CRUD operations for SQLModel models.\n

    Automatically detects if operations are running within a transaction context
    and adjusts commit behavior accordingly: inside a transaction changes are
    only flushed, the outermost ``Transaction`` commits or rolls back.
    """

    not_found_error: type[errors.NotFoundError] = errors.NotFoundError

    def __init__(self, model: type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    async def _save_changes(self, refresh_obj=None):
        """
        Save changes to the database, respecting transaction context.

        Args:
            refresh_obj: Object to refresh after saving changes
        """
        try:
            if in_transaction():
                await self.session.flush()
            else:
                await self.session.commit()

            if refresh_obj is not None:
                await self.session.refresh(refresh_obj)
        except SQLAlchemyError as e:
            logger.exception(f"rentory.domain.repositories.base_repository._save_changes:: {self.model.__name__}: {e}")
            if not in_transaction():
                await self.session.rollback()
            raise

    def _database_error(self, operation: str, e: Exception, **metadata: Any) -> errors.DatabaseError:
        logger.exception(
            f"rentory.domain.repositories.{type(self).__name__}.{operation}:: error on {self.model.__name__}: {e}"
        )
        return errors.DatabaseError(
            message=f"Failed to {operation.replace('_', ' ')}",
            detail=f"An error occurred while accessing {self.model.__name__} records.",
            metadata=metadata,
        )

    def _lock(self, query):
        """
        Add ``FOR UPDATE`` to a query when row locking is enabled. Rows already
        in the session are overwritten with the locked values.
        """
        if settings.ALLOCATION_ROW_LOCKING:
            return query.with_for_update().execution_options(populate_existing=True)
        return query

    async def find_one_by_and_none(self, **kwargs: Any) -> ModelType | None:
        """
        Find a single record by field values (use AND condition).

        Args:
            **kwargs: Field names and values to filter by

        Returns:
            The found record or None
        """
        query = select(self.model)
        for field, value in kwargs.items():
            if hasattr(self.model, field):
                query = query.where(col(getattr(self.model, field)) == value)

        try:
            result = await self.session.exec(query)
            return result.one_or_none()
        except SQLAlchemyError as e:
            raise self._database_error("find_one_by_and_none", e, filters=kwargs) from e

    async def find_one_by(self, id: IDType, *, for_update: bool = False) -> ModelType | None:
        """
        Get a single record by ID.

        Args:
            id (IDType): The id of the record to retrieve
            for_update (bool): Lock the row until the end of the transaction

        Returns:
            ModelType | None: The found record or None
        """
        if not id:
            return None

        query = select(self.model).where(col(self.model.id) == id)  # type: ignore
        if for_update:
            query = self._lock(query)

        try:
            return (await self.session.exec(query)).one_or_none()
        except SQLAlchemyError as e:
            raise self._database_error("find_one_by", e, id=id) from e

    async def get_or_404(self, id: IDType, *, for_update: bool = False) -> ModelType:
        """
        Get a record by ID or raise the repository's not found error.

        Raises:
            NotFoundError: If the record is not found (subclass per repository)
        """
        obj = await self.find_one_by(id, for_update=for_update)
        if obj is None:
            raise self.not_found_error(detail=f"{self.model.__name__} {id} was not found", metadata={"id": id})
        return obj

    async def find_all(self, *order_by: Any, **filters: Any) -> Sequence[ModelType]:
        """
        Find every record matching the given field values.

        Args:
            *order_by: Columns or expressions to order by
            **filters: Field names and values to filter by (AND condition)
        """
        query = select(self.model)
        for field, value in filters.items():
            query = query.where(col(getattr(self.model, field)) == value)
        if order_by:
            query = query.order_by(*order_by)

        try:
            return (await self.session.exec(query)).all()
        except SQLAlchemyError as e:
            raise self._database_error("find_all", e, filters=filters) from e

    async def create(self, schema: CreateSchemaType | dict[str, Any]) -> ModelType:
        """
        Create a new record.

        Args:
            schema: The data to create the record with

        Returns:
            The created record
        """
        data = schema.model_dump() if isinstance(schema, BaseModel) else dict(schema)
        db_obj = self.model(**data)

        self.session.add(db_obj)
        await self._save_changes(refresh_obj=db_obj)
        return db_obj

    async def save(self, db_obj: ModelType) -> ModelType:
        """Persist changes made directly on a loaded record."""
        self.session.add(db_obj)
        await self._save_changes()
        return db_obj

    async def update(self, id: IDType, schema: UpdateSchemaType | dict[str, Any]) -> ModelType | None:
        """
        Update a record by ID.

        Args:
            id: The id of the record to update
            schema: The data to update the record with

        Returns:
            The updated record or None if not found
        """
        existing_entity = await self.find_one_by(id)

        if not existing_entity:
            return None

        if isinstance(schema, BaseModel):
            schema = schema.model_dump(exclude_unset=True)

        if not schema:
            return existing_entity

        existing_entity.sqlmodel_update(schema)
        self.session.add(existing_entity)
        await self._save_changes(refresh_obj=existing_entity)
        return existing_entity

    async def delete(self, id: IDType) -> bool:
        """
        Delete a record by ID.

        Returns:
            True if the record was deleted, False if not found
        """
        existing_entity = await self.find_one_by(id)

        if not existing_entity:
            return False

        await self.session.delete(existing_entity)
        await self._save_changes()
        return True

    async def exists(self, id: IDType) -> bool:
        """
        Check if a record exists by ID.
        """
        return await self.find_one_by(id) is not None
