from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from sqlmodel.ext.asyncio.session import AsyncSession
from rentory.core.config import settings
from rentory.core.database.decorators import transactional
from rentory.core.exceptions import errors
from rentory.core.helpers.dates import day_bounds
from rentory.core.logging import get_logger
from rentory.core.types import GUID
from rentory.domain.enums import MovementFamily, MovementType
from rentory.domain.models import StockMovement
from rentory.domain.repositories.stock_movement_repository import StockMovementRepository
from rentory.domain.schemas import LedgerSummary, StockMovementCreate

logger = get_logger(__name__)


class StockLedgerService:
    """
    Service for the append-only stock ledger.

    The ledger is an audit stream written next to every counter or instance
    change. It is not a source of truth for current capacity and is not
    reconciled with the live counters: ``sum_entries_exits`` may drift from
    ``Product.available_quantity``.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.movement_repository = StockMovementRepository(session)

    @staticmethod
    def validate(movement: StockMovementCreate) -> None:
        """
        Check that the before/after quantities match the movement type family.

        Raises:
            LedgerInconsistencyError: If they do not
        """
        family = MovementType(movement.movement_type).family
        change = movement.quantity_after - movement.quantity_before

        if family == MovementFamily.ENTRY:
            consistent = change == movement.quantity
        elif family == MovementFamily.EXIT:
            consistent = change == -movement.quantity
        else:
            consistent = abs(change) == movement.quantity

        if not consistent:
            raise errors.LedgerInconsistencyError(
                detail=(
                    f"{movement.movement_type} of {movement.quantity} cannot move the quantity "
                    f"from {movement.quantity_before} to {movement.quantity_after}"
                ),
                metadata={"product_id": movement.product_id, "movement_type": str(movement.movement_type)},
            )

    @transactional
    async def record(self, movement: StockMovementCreate) -> StockMovement:
        """Validate and append a movement."""
        self.validate(movement)
        return await self.movement_repository.create(movement)

    async def log(
        self,
        *,
        product_id: GUID,
        movement_type: MovementType,
        quantity: int,
        quantity_before: int,
        performed_by: str,
        quantity_after: int | None = None,
        motif: str | None = None,
        reservation_line_id: GUID | None = None,
        instance_id: GUID | None = None,
        instance_serial: str | None = None,
    ) -> StockMovement:
        """
        Append a movement, deriving ``quantity_after`` from the family of
        entry and exit movements. Adjustments must give ``quantity_after``.
        """
        if quantity_after is None:
            family = MovementType(movement_type).family
            if family == MovementFamily.ADJUSTMENT:
                raise errors.LedgerInconsistencyError(detail="Adjustments need an explicit quantity after")
            sign = 1 if family == MovementFamily.ENTRY else -1
            quantity_after = quantity_before + sign * quantity

        movement = StockMovementCreate(
            product_id=product_id,
            movement_type=movement_type,
            quantity=quantity,
            quantity_before=quantity_before,
            quantity_after=quantity_after,
            motif=motif,
            performed_by=performed_by,
            reservation_line_id=reservation_line_id,
            instance_id=instance_id,
            instance_serial=instance_serial,
        )
        recorded = await self.record(movement)

        logger.debug(
            f"rentory.domain.services.stock_ledger_service.log:: {movement_type} x{quantity} "
            f"({quantity_before} -> {quantity_after}) on product {product_id} by {performed_by}"
        )
        return recorded

    async def history_for(self, product_id: GUID) -> Sequence[StockMovement]:
        """Movements of a product, newest first."""
        return await self.movement_repository.history_for(product_id)

    async def sum_entries_exits(self, product_id: GUID, start_date: date, end_date: date) -> LedgerSummary:
        """
        Totals of a product's movements recorded between two dates (inclusive).

        Entries and exits are sums of magnitudes; adjustments are summed with
        their sign.
        """
        if start_date > end_date:
            raise errors.InvalidRequestError(detail="start_date must be on or before end_date")

        lower, upper = day_bounds(start_date, end_date)
        summary = LedgerSummary(product_id=product_id, start_date=start_date, end_date=end_date)

        for movement_type, total, signed in await self.movement_repository.totals_by_type(product_id, lower, upper):
            if movement_type.family == MovementFamily.ENTRY:
                summary.entries += total
            elif movement_type.family == MovementFamily.EXIT:
                summary.exits += total
            else:
                summary.adjustments += signed

        return summary

    async def movements_by_type(
        self, movement_type: MovementType, product_id: GUID | None = None
    ) -> Sequence[StockMovement]:
        return await self.movement_repository.by_type(movement_type, product_id)

    async def movements_by_user(self, performed_by: str) -> Sequence[StockMovement]:
        return await self.movement_repository.by_user(performed_by)

    async def movements_for_line(self, reservation_line_id: GUID) -> Sequence[StockMovement]:
        return await self.movement_repository.for_line(reservation_line_id)

    async def movements_for_instance(self, instance_id: GUID) -> Sequence[StockMovement]:
        return await self.movement_repository.for_instance(instance_id)

    async def movements_in_period(
        self, start_date: date, end_date: date, product_id: GUID | None = None
    ) -> Sequence[StockMovement]:
        if start_date > end_date:
            raise errors.InvalidRequestError(detail="start_date must be on or before end_date")

        lower, upper = day_bounds(start_date, end_date)
        return await self.movement_repository.in_period(lower, upper, product_id)

    async def recent_movements(self, limit: int | None = None) -> Sequence[StockMovement]:
        return await self.movement_repository.recent(limit or settings.RECENT_MOVEMENTS_LIMIT)
