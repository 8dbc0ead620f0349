from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from sqlmodel.ext.asyncio.session import AsyncSession
from rentory.core.config import settings
from rentory.core.database.decorators import transactional
from rentory.core.exceptions import errors
from rentory.core.helpers.dates import add_months, today
from rentory.core.logging import add_to_log_context, get_logger
from rentory.core.types import GUID
from rentory.domain.enums import InstanceStatus, MovementType
from rentory.domain.models import Instance, Product
from rentory.domain.repositories.instance_repository import InstanceRepository
from rentory.domain.repositories.product_repository import ProductRepository
from rentory.domain.repositories.reservation_line_repository import ReservationLineRepository
from rentory.domain.rules.instance_transitions import TransitionChannel, ensure_transition
from rentory.domain.schemas import InstanceBulkCreate, InstanceCreate, InstanceUpdate
from rentory.domain.schemas.instance import InstanceBase
from rentory.domain.services.code_service import CodeService
from rentory.domain.services.stock_ledger_service import StockLedgerService

logger = get_logger(__name__)


class InstanceService:
    """
    Service for the instance registry of serialized products.

    Every status change is checked against the lifecycle table in
    ``rentory.domain.rules.instance_transitions``. Operations that move an
    instance in or out of AVAILABLE refresh the cached available quantity of
    its product.

    Ledger rows written here use the number of AVAILABLE instances as their
    before value. Retiring or servicing an instance that was not AVAILABLE
    still records an exit of one unit, so the ledger may drift from the
    derived count.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.instance_repository = InstanceRepository(session)
        self.product_repository = ProductRepository(session)
        self.line_repository = ReservationLineRepository(session)
        self.code_service = CodeService(session)
        self.ledger = StockLedgerService(session)

    async def get_instance(self, instance_id: GUID) -> Instance:
        """
        Raises:
            UnknownInstanceError: If the instance does not exist
        """
        return await self.instance_repository.get_or_404(instance_id)

    async def get_by_serial(self, serial_number: str) -> Instance:
        instance = await self.instance_repository.get_by_serial(serial_number)
        if instance is None:
            raise errors.UnknownInstanceError(
                detail=f"No instance with serial number {serial_number}", metadata={"serial_number": serial_number}
            )
        return instance

    async def list_for_product(self, product_id: GUID, status: InstanceStatus | None = None) -> Sequence[Instance]:
        return await self.instance_repository.list_for_product(product_id, status)

    async def count_by_status(self, product_id: GUID) -> dict[InstanceStatus, int]:
        return await self.instance_repository.count_by_status(product_id)

    async def list_maintenance_due(self, on: date | None = None, product_id: GUID | None = None) -> Sequence[Instance]:
        """Instances whose next maintenance date has passed and that are not in maintenance."""
        return await self.instance_repository.maintenance_due(on or today(), product_id)

    async def _serialized_for_update(self, product_id: GUID) -> Product:
        product = await self.product_repository.get_or_404(product_id, for_update=True)
        if not product.is_serialized:
            raise errors.UnsupportedForProductTypeError(
                detail=f"Product {product.code} is pooled and has no instances",
                metadata={"product_id": product.id},
            )
        return product

    async def _lock(self, instance_id: GUID) -> tuple[Product, Instance]:
        """Lock the product row, then the instance row."""
        instance = await self.instance_repository.get_or_404(instance_id)
        product = await self.product_repository.get_or_404(instance.product_id, for_update=True)
        instance = await self.instance_repository.get_or_404(instance_id, for_update=True)
        return product, instance

    async def _available_count(self, product: Product) -> int:
        return await self.instance_repository.count_with_status(product.id, InstanceStatus.AVAILABLE)

    async def _refresh_available_quantity(self, product: Product) -> None:
        product.available_quantity = await self._available_count(product)
        await self.product_repository.save(product)

    @transactional
    async def create_instance(self, instance_data: InstanceCreate, actor: str) -> Instance:
        """
        Register one instance, generating its serial number when omitted.

        Raises:
            UnsupportedForProductTypeError: If the product is pooled
            DuplicateSerialError: If the serial number is taken
        """
        product = await self._serialized_for_update(instance_data.product_id)

        if instance_data.serial_number:
            serial_numbers = [instance_data.serial_number]
        else:
            serial_numbers = await self.code_service.next_serial_numbers(product, 1)

        instances = await self._register(product, serial_numbers, instance_data, actor)
        return instances[0]

    @transactional
    async def create_instances_bulk(
        self, bulk_data: InstanceBulkCreate, actor: str, year: int | None = None
    ) -> list[Instance]:
        """
        Register ``count`` instances at once.

        Serial numbers are taken from the request or generated as
        ``{code}-{YYYY}-{NNNN}`` after the highest suffix in use. Any collision
        aborts the whole batch.

        Raises:
            DuplicateSerialError: If one of the serial numbers is taken
        """
        if bulk_data.count > settings.BULK_INSTANCE_MAX_COUNT:
            raise errors.InvalidRequestError(
                detail=f"Cannot create more than {settings.BULK_INSTANCE_MAX_COUNT} instances at once",
                metadata={"count": bulk_data.count},
            )

        product = await self._serialized_for_update(bulk_data.product_id)
        serial_numbers = bulk_data.serial_numbers or await self.code_service.next_serial_numbers(
            product, bulk_data.count, year
        )
        return await self._register(product, serial_numbers, bulk_data, actor)

    async def _register(
        self, product: Product, serial_numbers: list[str], instance_data: InstanceBase, actor: str
    ) -> list[Instance]:
        duplicates = sorted({serial for serial in serial_numbers if serial_numbers.count(serial) > 1})
        duplicates += await self.instance_repository.existing_serials(set(serial_numbers) - set(duplicates))
        if duplicates:
            raise errors.DuplicateSerialError(serial_numbers=sorted(duplicates), metadata={"product_id": product.id})

        before = await self._available_count(product)
        values = instance_data.model_dump(include=set(InstanceBase.model_fields))

        instances = []
        for serial_number in serial_numbers:
            instance = await self.instance_repository.create(
                {
                    **values,
                    "product_id": product.id,
                    "serial_number": serial_number,
                    "status": InstanceStatus.AVAILABLE,
                    "added_by": actor,
                }
            )
            instances.append(instance)

        single = instances[0] if len(instances) == 1 else None
        await self.ledger.log(
            product_id=product.id,
            movement_type=MovementType.INSTANCE_ADDED,
            quantity=len(instances),
            quantity_before=before,
            performed_by=actor,
            motif=f"{len(instances)} instance(s) registered",
            instance_id=single.id if single else None,
            instance_serial=single.serial_number if single else None,
        )
        await self._refresh_available_quantity(product)

        logger.info(
            f"rentory.domain.services.instance_service._register:: {len(instances)} instance(s) of {product.code} registered by {actor}"
        )
        return instances

    @transactional
    async def update_instance(self, instance_id: GUID, instance_data: InstanceUpdate) -> Instance:
        """Update the descriptive fields of an instance; status changes have their own operations."""
        instance = await self.instance_repository.get_or_404(instance_id)
        changes = {
            field: value
            for field, value in instance_data.model_dump(exclude_unset=True).items()
            if value is not None or field != "physical_condition"
        }
        instance.sqlmodel_update(changes)
        return await self.instance_repository.save(instance)

    @transactional
    async def change_status(
        self, instance_id: GUID, new_status: InstanceStatus, actor: str, motif: str | None = None
    ) -> Instance:
        """
        Generic status change.

        Retiring an instance (OUT_OF_SERVICE, LOST) clears any binding and
        writes a DAMAGE row; recovering a retired instance writes a
        REACTIVATION row. Maintenance and allocation transitions are refused
        here and must go through their dedicated operations.

        Raises:
            InvalidStateTransitionError: If the change is not open to generic status changes
        """
        new_status = InstanceStatus(new_status)
        product, instance = await self._lock(instance_id)
        current = InstanceStatus(instance.status)
        ensure_transition(current, new_status, TransitionChannel.GENERIC)

        with add_to_log_context(product_id=product.id, instance_id=instance.id, actor=actor):
            before = await self._available_count(product)

            if new_status in InstanceStatus.retired_states():
                if instance.is_bound:
                    await self._detach_from_line(instance)
                instance.unbind(new_status)
                movement_type = MovementType.DAMAGE
            elif new_status == InstanceStatus.AVAILABLE:
                instance.status = new_status
                movement_type = MovementType.REACTIVATION
            else:
                instance.status = new_status
                movement_type = None

            if motif:
                instance.motif = motif
            await self.instance_repository.save(instance)

            if movement_type is not None:
                await self.ledger.log(
                    product_id=product.id,
                    movement_type=movement_type,
                    quantity=1,
                    quantity_before=before,
                    performed_by=actor,
                    motif=motif or f"{current} -> {new_status}",
                    instance_id=instance.id,
                    instance_serial=instance.serial_number,
                )

            if InstanceStatus.AVAILABLE in (current, new_status):
                await self._refresh_available_quantity(product)

            logger.info(
                f"rentory.domain.services.instance_service.change_status:: {instance.serial_number} {current} -> {new_status} by {actor}"
            )

        return instance

    async def _detach_from_line(self, instance: Instance) -> None:
        line = await self.line_repository.find_one_by(instance.reservation_line_id, for_update=True)
        if line is not None and line.allocated_quantity > 0:
            line.allocated_quantity -= 1
            await self.line_repository.save(line)

        logger.warning(
            f"rentory.domain.services.instance_service._detach_from_line:: {instance.serial_number} retired while bound "
            f"to line {instance.reservation_line_id}"
        )

    @transactional
    async def send_to_maintenance(self, instance_id: GUID, motif: str, actor: str) -> Instance:
        """
        Send an instance to maintenance and plan the next one.

        Raises:
            InstanceBoundError: If the instance is bound to a reservation line
            InvalidStateTransitionError: If the instance cannot enter maintenance
        """
        product, instance = await self._lock(instance_id)
        if instance.is_bound:
            raise errors.InstanceBoundError(
                detail=f"Instance {instance.serial_number} is bound to line {instance.reservation_line_id}",
                metadata={"instance_id": instance.id},
            )

        current = InstanceStatus(instance.status)
        ensure_transition(current, InstanceStatus.IN_MAINTENANCE, TransitionChannel.MAINTENANCE)

        before = await self._available_count(product)
        instance.status = InstanceStatus.IN_MAINTENANCE
        instance.last_maintenance_date = today()
        instance.next_maintenance_date = add_months(today(), settings.MAINTENANCE_INTERVAL_MONTHS)
        instance.motif = motif
        await self.instance_repository.save(instance)

        await self.ledger.log(
            product_id=product.id,
            movement_type=MovementType.MAINTENANCE,
            quantity=1,
            quantity_before=before,
            performed_by=actor,
            motif=motif,
            instance_id=instance.id,
            instance_serial=instance.serial_number,
        )
        if current == InstanceStatus.AVAILABLE:
            await self._refresh_available_quantity(product)

        logger.info(
            f"rentory.domain.services.instance_service.send_to_maintenance:: {instance.serial_number} sent to maintenance by {actor}"
        )
        return instance

    @transactional
    async def return_from_maintenance(
        self,
        instance_id: GUID,
        next_maintenance_date: date | None,
        actor: str,
        motif: str | None = None,
    ) -> Instance:
        """
        Bring an instance back from maintenance to AVAILABLE.

        Without a ``next_maintenance_date`` the next maintenance is planned
        after the configured interval.
        """
        product, instance = await self._lock(instance_id)
        ensure_transition(instance.status, InstanceStatus.AVAILABLE, TransitionChannel.MAINTENANCE)

        before = await self._available_count(product)
        instance.status = InstanceStatus.AVAILABLE
        instance.last_maintenance_date = today()
        instance.next_maintenance_date = next_maintenance_date or add_months(
            today(), settings.MAINTENANCE_INTERVAL_MONTHS
        )
        if motif:
            instance.motif = motif
        await self.instance_repository.save(instance)

        await self.ledger.log(
            product_id=product.id,
            movement_type=MovementType.MAINTENANCE_RETURN,
            quantity=1,
            quantity_before=before,
            performed_by=actor,
            motif=motif or "Back from maintenance",
            instance_id=instance.id,
            instance_serial=instance.serial_number,
        )
        await self._refresh_available_quantity(product)
        return instance

    @transactional
    async def delete_instance(self, instance_id: GUID, actor: str, motif: str | None = None) -> None:
        """
        Delete an unbound instance.

        Raises:
            InstanceBoundError: If the instance is bound to a reservation line
        """
        product, instance = await self._lock(instance_id)
        if instance.is_bound:
            raise errors.InstanceBoundError(
                detail=f"Instance {instance.serial_number} is bound to line {instance.reservation_line_id}",
                metadata={"instance_id": instance.id},
            )

        before = await self._available_count(product)
        serial_number = instance.serial_number
        await self.instance_repository.delete(instance.id)

        await self.ledger.log(
            product_id=product.id,
            movement_type=MovementType.INSTANCE_REMOVED,
            quantity=1,
            quantity_before=before,
            performed_by=actor,
            motif=motif or "Instance deleted",
            instance_id=instance_id,
            instance_serial=serial_number,
        )
        await self._refresh_available_quantity(product)

        logger.info(f"rentory.domain.services.instance_service.delete_instance:: {serial_number} deleted by {actor}")
