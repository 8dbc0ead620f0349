from __future__ import annotations

from sqlmodel.ext.asyncio.session import AsyncSession
from rentory.core.database.decorators import transactional
from rentory.core.exceptions import errors
from rentory.core.logging import add_to_log_context, get_logger
from rentory.core.types import GUID
from rentory.domain.availability import AvailabilityFactory
from rentory.domain.availability.providers import SerializedAvailability
from rentory.domain.models import Product, ReservationLine
from rentory.domain.repositories.instance_repository import InstanceRepository
from rentory.domain.repositories.product_repository import ProductRepository
from rentory.domain.repositories.reservation_line_repository import ReservationLineRepository
from rentory.domain.schemas import AllocationResult

logger = get_logger(__name__)


class AllocationService:
    """
    Service holding and giving back capacity for reservation lines.

    Every call runs in one transaction. The product row is locked first
    (``SELECT ... FOR UPDATE``), then the line, then the instance rows, so
    the availability check and the write cannot interleave with another
    allocation of the same product.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.product_repository = ProductRepository(session)
        self.line_repository = ReservationLineRepository(session)
        self.instance_repository = InstanceRepository(session)

    async def _lock(self, product_id: GUID, reservation_line_id: GUID) -> tuple[Product, ReservationLine]:
        product = await self.product_repository.get_or_404(product_id, for_update=True)
        line = await self.line_repository.get_or_404(reservation_line_id, for_update=True)

        if line.product_id != product.id:
            raise errors.InvalidRequestError(
                detail=f"Line {line.id} reserves product {line.product_id}, not {product.id}",
                metadata={"product_id": product.id, "reservation_line_id": line.id},
            )
        return product, line

    async def _lock_line(self, reservation_line_id: GUID) -> tuple[Product, ReservationLine]:
        line = await self.line_repository.get_or_404(reservation_line_id)
        return await self._lock(line.product_id, line.id)

    async def _result(self, product: Product, line: ReservationLine) -> AllocationResult:
        strategy = AvailabilityFactory.for_product(product, self.session)
        return AllocationResult(
            reservation_line_id=line.id,
            product_id=product.id,
            quantity=line.allocated_quantity,
            bound_serials=await strategy.bound_serials(line),
        )

    @transactional
    async def allocate(
        self, product_id: GUID, quantity: int, reservation_line_id: GUID, actor: str
    ) -> AllocationResult:
        """
        Hold ``quantity`` units of a product for a reservation line.

        Pooled products decrement their counter, serialized products bind
        their lowest free serial numbers.

        Raises:
            InvalidRequestError: If the quantity is not positive, exceeds what the line still
                reserves, or the line reserves another product
            UnknownProductError: If the product does not exist
            UnknownReservationLineError: If the line does not exist
            InsufficientCapacityError: If the capacity left is lower than ``quantity``
        """
        if quantity <= 0:
            raise errors.InvalidRequestError(detail=f"Quantity must be positive, got {quantity}")

        product, line = await self._lock(product_id, reservation_line_id)
        if line.allocated_quantity + quantity > line.quantity:
            raise errors.InvalidRequestError(
                detail=(
                    f"Line {line.id} reserves {line.quantity} unit(s) and already holds {line.allocated_quantity}, "
                    f"cannot allocate {quantity} more"
                ),
                metadata={"reservation_line_id": line.id, "quantity": quantity},
            )
        strategy = AvailabilityFactory.for_product(product, self.session)

        with add_to_log_context(product_id=product.id, reservation_line_id=line.id, actor=actor):
            available = await strategy.compute_available(
                product, line.start_date, line.end_date, exclude_line_id=line.id
            )
            if available < quantity:
                logger.info(
                    f"rentory.domain.services.allocation_service.allocate:: {product.code} short for line {line.id}: "
                    f"{quantity} requested, {available} available"
                )
                raise errors.InsufficientCapacityError(requested=quantity, available=available)

            await strategy.allocate(product, line, quantity, actor)
            result = await self._result(product, line)

            logger.info(
                f"rentory.domain.services.allocation_service.allocate:: {quantity} unit(s) of {product.code} "
                f"allocated to line {line.id} by {actor}"
            )

        return result

    @transactional
    async def release(self, reservation_line_id: GUID, actor: str) -> AllocationResult:
        """
        Give back everything held by a line: the counter of a pooled product
        grows by the held quantity, the instances of a serialized product
        return to AVAILABLE.
        """
        product, line = await self._lock_line(reservation_line_id)
        strategy = AvailabilityFactory.for_product(product, self.session)

        with add_to_log_context(product_id=product.id, reservation_line_id=line.id, actor=actor):
            released = await strategy.release(product, line, actor)
            result = await self._result(product, line)

            logger.info(
                f"rentory.domain.services.allocation_service.release:: line {line.id} of {product.code} released "
                f"by {actor}" + (f" ({', '.join(released)})" if released else "")
            )

        return result

    @transactional
    async def release_instance(self, instance_id: GUID, actor: str) -> None:
        """
        Unbind a single instance from its line.

        Raises:
            UnknownInstanceError: If the instance does not exist
            InvalidStateTransitionError: If the instance is not bound
        """
        instance = await self.instance_repository.get_or_404(instance_id)
        product = await self.product_repository.get_or_404(instance.product_id, for_update=True)
        line = await self.line_repository.find_one_by(instance.reservation_line_id, for_update=True)
        instance = await self.instance_repository.get_or_404(instance_id, for_update=True)
        if instance.reservation_line_id != (line.id if line is not None else None):
            # rebound between the unlocked read and the lock
            line = await self.line_repository.find_one_by(instance.reservation_line_id, for_update=True)

        strategy = AvailabilityFactory.for_product(product, self.session)
        if not isinstance(strategy, SerializedAvailability):
            raise errors.UnsupportedForProductTypeError(detail="Only serialized products have instances")

        with add_to_log_context(product_id=product.id, instance_id=instance.id, actor=actor):
            await strategy.release_instance(product, line, instance, actor)

            logger.info(
                f"rentory.domain.services.allocation_service.release_instance:: {instance.serial_number} released by {actor}"
            )

    @transactional
    async def resize(self, reservation_line_id: GUID, new_quantity: int, actor: str) -> AllocationResult:
        """
        Change the quantity of an allocated line.

        A larger quantity allocates the difference and fails as a whole when
        capacity is short; a smaller one releases the difference, the
        instances bound first being released first.

        Raises:
            InvalidRequestError: If the new quantity is not positive
            InsufficientCapacityError: If the increase cannot be satisfied
        """
        if new_quantity <= 0:
            raise errors.InvalidRequestError(
                detail=f"Quantity must be positive, got {new_quantity}. Release the line instead"
            )

        product, line = await self._lock_line(reservation_line_id)
        strategy = AvailabilityFactory.for_product(product, self.session)
        delta = new_quantity - line.quantity

        with add_to_log_context(product_id=product.id, reservation_line_id=line.id, actor=actor):
            if delta > 0:
                available = await strategy.compute_available(
                    product, line.start_date, line.end_date, exclude_line_id=line.id
                )
                if available < delta:
                    raise errors.InsufficientCapacityError(requested=delta, available=available)
                await strategy.allocate(product, line, delta, actor)
            elif delta < 0:
                await strategy.release_units(product, line, -delta, actor)

            line.quantity = new_quantity
            await self.line_repository.save(line)
            result = await self._result(product, line)

            logger.info(
                f"rentory.domain.services.allocation_service.resize:: line {line.id} of {product.code} resized "
                f"to {new_quantity} ({delta:+d}) by {actor}"
            )

        return result
