from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, func, select
from sqlmodel.ext.asyncio.session import AsyncSession
from rentory.core.exceptions import errors
from rentory.core.logging import get_logger
from rentory.core.types import GUID, IDType
from rentory.domain.enums import MovementType
from rentory.domain.models import StockMovement
from rentory.domain.repositories.base_repository import BaseRepository
from rentory.domain.schemas import StockMovementCreate

logger = get_logger(__name__)


class StockMovementRepository(BaseRepository[StockMovement, StockMovementCreate, StockMovementCreate]):
    """
    Repository for the append-only stock ledger. Rows can be inserted and
    read, never updated or deleted.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(StockMovement, session)

    async def update(self, id: IDType, schema: Any) -> StockMovement | None:
        raise errors.LedgerInconsistencyError(detail="Stock movements are append-only and cannot be updated")

    async def delete(self, id: IDType) -> bool:
        raise errors.LedgerInconsistencyError(detail="Stock movements are append-only and cannot be deleted")

    async def _fetch(self, operation: str, query, **metadata: Any) -> Sequence[StockMovement]:
        try:
            return (await self.session.exec(query)).all()
        except SQLAlchemyError as e:
            logger.exception(
                f"rentory.domain.repositories.stock_movement_repository.{operation}:: error while reading stock movements: {e}"
            )
            raise errors.DatabaseError(
                message="Failed to retrieve stock movements",
                detail="An error occurred while retrieving stock movements.",
                metadata=metadata,
            ) from e

    def _newest_first(self):
        return select(StockMovement).order_by(col(StockMovement.created_datetime).desc())

    async def history_for(self, product_id: GUID) -> Sequence[StockMovement]:
        query = self._newest_first().where(col(StockMovement.product_id) == product_id)
        return await self._fetch("history_for", query, product_id=product_id)

    async def by_type(self, movement_type: MovementType, product_id: GUID | None = None) -> Sequence[StockMovement]:
        query = self._newest_first().where(col(StockMovement.movement_type) == movement_type)
        if product_id is not None:
            query = query.where(col(StockMovement.product_id) == product_id)
        return await self._fetch("by_type", query, movement_type=movement_type)

    async def by_user(self, performed_by: str) -> Sequence[StockMovement]:
        query = self._newest_first().where(col(StockMovement.performed_by) == performed_by)
        return await self._fetch("by_user", query, performed_by=performed_by)

    async def for_line(self, reservation_line_id: GUID) -> Sequence[StockMovement]:
        query = self._newest_first().where(col(StockMovement.reservation_line_id) == reservation_line_id)
        return await self._fetch("for_line", query, reservation_line_id=reservation_line_id)

    async def for_instance(self, instance_id: GUID) -> Sequence[StockMovement]:
        query = self._newest_first().where(col(StockMovement.instance_id) == instance_id)
        return await self._fetch("for_instance", query, instance_id=instance_id)

    async def in_period(
        self, lower: datetime, upper: datetime, product_id: GUID | None = None
    ) -> Sequence[StockMovement]:
        """Movements recorded in the half-open interval ``[lower, upper)``."""
        query = (
            self._newest_first()
            .where(col(StockMovement.created_datetime) >= lower)
            .where(col(StockMovement.created_datetime) < upper)
        )
        if product_id is not None:
            query = query.where(col(StockMovement.product_id) == product_id)
        return await self._fetch("in_period", query, lower=str(lower), upper=str(upper))

    async def recent(self, limit: int) -> Sequence[StockMovement]:
        return await self._fetch("recent", self._newest_first().limit(limit), limit=limit)

    async def totals_by_type(
        self, product_id: GUID, lower: datetime, upper: datetime
    ) -> list[tuple[MovementType, int, int]]:
        """
        Per movement type, the sum of magnitudes and the sum of signed changes
        (after - before) of a product's rows in ``[lower, upper)``.
        """
        query = (
            select(
                StockMovement.movement_type,
                func.coalesce(func.sum(StockMovement.quantity), 0),
                func.coalesce(func.sum(StockMovement.quantity_after - StockMovement.quantity_before), 0),
            )
            .where(col(StockMovement.product_id) == product_id)
            .where(col(StockMovement.created_datetime) >= lower)
            .where(col(StockMovement.created_datetime) < upper)
            .group_by(col(StockMovement.movement_type))
        )

        try:
            rows = (await self.session.exec(query)).all()
        except SQLAlchemyError as e:
            logger.exception(
                f"rentory.domain.repositories.stock_movement_repository.totals_by_type:: error while summing movements of product {product_id}: {e}"
            )
            raise errors.DatabaseError(
                message="Failed to sum stock movements",
                detail="An error occurred while summing stock movements.",
                metadata={"product_id": product_id},
            ) from e

        return [(MovementType(movement_type), int(total), int(signed)) for movement_type, total, signed in rows]
