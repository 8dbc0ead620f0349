from datetime import date

from rentory.core.exceptions import errors
from rentory.core.logging import get_logger
from rentory.core.types import GUID
from rentory.domain.availability.interface import AvailabilityStrategy
from rentory.domain.enums import InstanceStatus, MovementType
from rentory.domain.models import Instance, Product, ReservationLine
from rentory.domain.rules.instance_transitions import TransitionChannel, ensure_transition

logger = get_logger(__name__)


class SerializedAvailability(AvailabilityStrategy):
    """
    Capacity of a serialized product: its AVAILABLE instances that are not
    bound to an overlapping line of a CONFIRMED reservation.

    Allocation binds the lowest free serial numbers; release unbinds in
    binding order. Each bound or unbound instance gets its own ledger row,
    quantities being the number of AVAILABLE instances.
    """

    async def compute_available(
        self,
        product: Product,
        start_date: date,
        end_date: date,
        exclude_line_id: GUID | None = None,
    ) -> int:
        # instances bound to the excluded line are RESERVED, never counted as free
        return await self.instance_repository.count_free(product.id, start_date, end_date)

    async def candidate_serials(self, product: Product, start_date: date, end_date: date, limit: int) -> list[str]:
        instances = await self.instance_repository.free_instances(product.id, start_date, end_date, limit=limit)
        return [instance.serial_number for instance in instances]

    async def _available_count(self, product: Product) -> int:
        return await self.instance_repository.count_with_status(product.id, InstanceStatus.AVAILABLE)

    async def _refresh_available_quantity(self, product: Product) -> None:
        product.available_quantity = await self._available_count(product)
        await self.product_repository.save(product)

    async def allocate(self, product: Product, line: ReservationLine, quantity: int, actor: str) -> list[str]:
        candidates = await self.instance_repository.free_instances(
            product.id, line.start_date, line.end_date, limit=quantity, for_update=True
        )
        if len(candidates) < quantity:
            raise errors.InsufficientCapacityError(requested=quantity, available=len(candidates))

        position = await self.instance_repository.max_binding_position(line.id)
        available = await self._available_count(product)

        for offset, instance in enumerate(candidates, start=1):
            ensure_transition(instance.status, InstanceStatus.RESERVED, TransitionChannel.ALLOCATION)
            instance.bind(line.id, position + offset)
            await self.instance_repository.save(instance)

            await self.ledger.log(
                product_id=product.id,
                movement_type=MovementType.RESERVATION,
                quantity=1,
                quantity_before=available,
                performed_by=actor,
                motif=f"Bound to line {line.id}",
                reservation_line_id=line.id,
                instance_id=instance.id,
                instance_serial=instance.serial_number,
            )
            available -= 1

        line.allocated_quantity += len(candidates)
        await self.line_repository.save(line)
        await self._refresh_available_quantity(product)

        serials = [instance.serial_number for instance in candidates]
        logger.debug(
            f"rentory.domain.availability.providers.serialized.allocate:: bound {', '.join(serials)} to line {line.id}"
        )
        return serials

    async def unbind(self, product: Product, line: ReservationLine | None, instance: Instance, actor: str) -> None:
        """Return one bound instance to AVAILABLE with its ledger row."""
        ensure_transition(instance.status, InstanceStatus.AVAILABLE, TransitionChannel.ALLOCATION)

        before = await self._available_count(product)
        line_id = instance.reservation_line_id
        instance.unbind()
        await self.instance_repository.save(instance)

        if line is not None and line.allocated_quantity > 0:
            line.allocated_quantity -= 1
            await self.line_repository.save(line)

        await self.ledger.log(
            product_id=product.id,
            movement_type=MovementType.RESERVATION_RELEASE,
            quantity=1,
            quantity_before=before,
            performed_by=actor,
            motif=f"Released from line {line_id}",
            reservation_line_id=line_id,
            instance_id=instance.id,
            instance_serial=instance.serial_number,
        )

    async def release_units(self, product: Product, line: ReservationLine, quantity: int, actor: str) -> list[str]:
        bound = await self.instance_repository.bound_to_line(line.id, for_update=True)
        released = list(bound[:quantity])

        for instance in released:
            await self.unbind(product, line, instance, actor)

        if released:
            await self._refresh_available_quantity(product)

        return [instance.serial_number for instance in released]

    async def release(self, product: Product, line: ReservationLine, actor: str) -> list[str]:
        # every bound instance, even when the line counter drifted after a retirement
        bound = await self.instance_repository.bound_to_line(line.id)
        return await self.release_units(product, line, len(bound), actor)

    async def release_instance(self, product: Product, line: ReservationLine | None, instance: Instance, actor: str) -> None:
        await self.unbind(product, line, instance, actor)
        await self._refresh_available_quantity(product)

    async def bound_serials(self, line: ReservationLine) -> list[str]:
        return [instance.serial_number for instance in await self.instance_repository.bound_to_line(line.id)]
