from datetime import date

from rentory.core.exceptions import errors
from rentory.core.logging import get_logger
from rentory.core.types import GUID
from rentory.domain.availability.interface import AvailabilityStrategy
from rentory.domain.enums import MovementType
from rentory.domain.models import Product, ReservationLine

logger = get_logger(__name__)


class PooledAvailability(AvailabilityStrategy):
    """
    Capacity of a pooled product: its counter minus the quantities of the
    overlapping lines whose reservation is PENDING or CONFIRMED.

    The counter is decremented when a line is allocated and the same line is
    subtracted again while it overlaps the checked range, so allocated lines
    count twice. This is a known inconsistency: ten chairs cannot cover two
    overlapping allocated lines of four, and a range overlapping no line
    reports the counter, not the stock. Figures stay conservative and match
    the existing reservation records. ``exclude_line_id`` removes the line
    being (re)allocated.
    """

    async def compute_available(
        self,
        product: Product,
        start_date: date,
        end_date: date,
        exclude_line_id: GUID | None = None,
    ) -> int:
        held = await self.line_repository.held_quantity(
            product.id, start_date, end_date, exclude_line_id=exclude_line_id
        )
        return product.available_quantity - held

    async def allocate(self, product: Product, line: ReservationLine, quantity: int, actor: str) -> list[str]:
        before = product.available_quantity
        if quantity > before:
            raise errors.InsufficientCapacityError(requested=quantity, available=before)

        product.available_quantity = before - quantity
        line.allocated_quantity += quantity
        await self.product_repository.save(product)
        await self.line_repository.save(line)

        await self.ledger.log(
            product_id=product.id,
            movement_type=MovementType.RESERVATION,
            quantity=quantity,
            quantity_before=before,
            performed_by=actor,
            motif=f"Allocated to line {line.id}",
            reservation_line_id=line.id,
        )

        logger.debug(
            f"rentory.domain.availability.providers.pooled.allocate:: {quantity} unit(s) of {product.code} held "
            f"by line {line.id} ({before} -> {product.available_quantity})"
        )
        return []

    async def release_units(self, product: Product, line: ReservationLine, quantity: int, actor: str) -> list[str]:
        quantity = min(quantity, line.allocated_quantity)
        if quantity <= 0:
            return []

        before = product.available_quantity
        product.available_quantity = before + quantity
        line.allocated_quantity -= quantity
        await self.product_repository.save(product)
        await self.line_repository.save(line)

        await self.ledger.log(
            product_id=product.id,
            movement_type=MovementType.RESERVATION_RELEASE,
            quantity=quantity,
            quantity_before=before,
            performed_by=actor,
            motif=f"Released by line {line.id}",
            reservation_line_id=line.id,
        )

        logger.debug(
            f"rentory.domain.availability.providers.pooled.release_units:: {quantity} unit(s) of {product.code} "
            f"released by line {line.id} ({before} -> {product.available_quantity})"
        )
        return []
