from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, func, select
from sqlmodel.ext.asyncio.session import AsyncSession
from rentory.core.exceptions import errors
from rentory.core.logging import get_logger
from rentory.core.types import GUID
from rentory.domain.enums import InstanceStatus, ReservationStatus
from rentory.domain.models import Instance, Reservation, ReservationLine
from rentory.domain.repositories.base_repository import BaseRepository
from rentory.domain.schemas import InstanceCreate, InstanceUpdate

logger = get_logger(__name__)


class InstanceRepository(BaseRepository[Instance, InstanceCreate, InstanceUpdate]):
    """
    Repository for serialized product instances.
    """

    not_found_error = errors.UnknownInstanceError

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Instance, session)

    def _free_condition(self, product_id: GUID, start_date: date, end_date: date):
        """
        AVAILABLE instances of a product that are not bound to a CONFIRMED line
        overlapping the inclusive range. PENDING lines do not block instances.
        """
        blocking_line = (
            select(ReservationLine.id)
            .join(Reservation, col(Reservation.id) == col(ReservationLine.reservation_id))
            .where(col(ReservationLine.id) == col(Instance.reservation_line_id))
            .where(col(ReservationLine.start_date) <= end_date)
            .where(col(ReservationLine.end_date) >= start_date)
            .where(col(Reservation.status) == ReservationStatus.CONFIRMED)
        )
        return (
            (col(Instance.product_id) == product_id)
            & (col(Instance.status) == InstanceStatus.AVAILABLE)
            & ~blocking_line.exists()
        )

    async def get_by_serial(self, serial_number: str) -> Instance | None:
        return await self.find_one_by_and_none(serial_number=serial_number)

    async def list_for_product(self, product_id: GUID, status: InstanceStatus | None = None) -> Sequence[Instance]:
        """Instances of a product ordered by serial number."""
        try:
            query = select(Instance).where(col(Instance.product_id) == product_id)
            if status is not None:
                query = query.where(col(Instance.status) == status)
            return (await self.session.exec(query.order_by(col(Instance.serial_number)))).all()
        except SQLAlchemyError as e:
            logger.exception(
                f"rentory.domain.repositories.instance_repository.list_for_product:: error while listing instances of product {product_id}: {e}"
            )
            raise errors.DatabaseError(
                message="Failed to retrieve instances",
                detail="An error occurred while retrieving instances.",
                metadata={"product_id": product_id, "status": status},
            ) from e

    async def count_by_status(self, product_id: GUID) -> dict[InstanceStatus, int]:
        """Number of instances of a product per status, every status present."""
        try:
            query = (
                select(Instance.status, func.count())
                .where(col(Instance.product_id) == product_id)
                .group_by(col(Instance.status))
            )
            counts = {InstanceStatus(status): int(total) for status, total in (await self.session.exec(query)).all()}
        except SQLAlchemyError as e:
            logger.exception(
                f"rentory.domain.repositories.instance_repository.count_by_status:: error while counting instances of product {product_id}: {e}"
            )
            raise errors.DatabaseError(
                message="Failed to count instances",
                detail="An error occurred while counting instances.",
                metadata={"product_id": product_id},
            ) from e

        return {status: counts.get(status, 0) for status in InstanceStatus}

    async def count_with_status(self, product_id: GUID, status: InstanceStatus) -> int:
        query = select(func.count()).where(col(Instance.product_id) == product_id).where(col(Instance.status) == status)
        try:
            return int((await self.session.exec(query)).one())
        except SQLAlchemyError as e:
            raise self._database_error("count_with_status", e, product_id=product_id, status=status) from e

    async def has_instances(self, product_id: GUID) -> bool:
        query = select(func.count()).where(col(Instance.product_id) == product_id)
        try:
            return int((await self.session.exec(query)).one()) > 0
        except SQLAlchemyError as e:
            raise self._database_error("has_instances", e, product_id=product_id) from e

    async def count_free(self, product_id: GUID, start_date: date, end_date: date) -> int:
        query = select(func.count()).select_from(Instance).where(self._free_condition(product_id, start_date, end_date))
        try:
            return int((await self.session.exec(query)).one())
        except SQLAlchemyError as e:
            raise self._database_error("count_free", e, product_id=product_id) from e

    async def free_instances(
        self,
        product_id: GUID,
        start_date: date,
        end_date: date,
        limit: int | None = None,
        for_update: bool = False,
    ) -> Sequence[Instance]:
        """
        Free instances over the range, lowest serial numbers first.

        Args:
            limit: Maximum number of instances to return
            for_update: Lock the returned rows until the end of the transaction
        """
        query = (
            select(Instance)
            .where(self._free_condition(product_id, start_date, end_date))
            .order_by(col(Instance.serial_number))
        )
        if limit is not None:
            query = query.limit(limit)
        if for_update:
            query = self._lock(query)

        try:
            return (await self.session.exec(query)).all()
        except SQLAlchemyError as e:
            raise self._database_error("free_instances", e, product_id=product_id) from e

    async def bound_to_line(self, reservation_line_id: GUID, for_update: bool = False) -> Sequence[Instance]:
        """Instances bound to a line, in binding order."""
        query = (
            select(Instance)
            .where(col(Instance.reservation_line_id) == reservation_line_id)
            .order_by(col(Instance.binding_position), col(Instance.serial_number))
        )
        if for_update:
            query = self._lock(query)

        try:
            return (await self.session.exec(query)).all()
        except SQLAlchemyError as e:
            raise self._database_error("bound_to_line", e, reservation_line_id=reservation_line_id) from e

    async def max_binding_position(self, reservation_line_id: GUID) -> int:
        query = select(func.coalesce(func.max(Instance.binding_position), 0)).where(
            col(Instance.reservation_line_id) == reservation_line_id
        )
        try:
            return int((await self.session.exec(query)).one())
        except SQLAlchemyError as e:
            raise self._database_error("max_binding_position", e, reservation_line_id=reservation_line_id) from e

    async def serials_with_prefix(self, prefix: str) -> list[str]:
        query = select(Instance.serial_number).where(col(Instance.serial_number).startswith(prefix, autoescape=True))
        try:
            return list((await self.session.exec(query)).all())
        except SQLAlchemyError as e:
            raise self._database_error("serials_with_prefix", e, prefix=prefix) from e

    async def existing_serials(self, serial_numbers: Iterable[str]) -> list[str]:
        """Return the subset of ``serial_numbers`` already taken, sorted."""
        serial_numbers = list(serial_numbers)
        if not serial_numbers:
            return []

        query = select(Instance.serial_number).where(col(Instance.serial_number).in_(serial_numbers))
        try:
            return sorted((await self.session.exec(query)).all())
        except SQLAlchemyError as e:
            raise self._database_error("existing_serials", e, count=len(serial_numbers)) from e

    async def maintenance_due(self, on: date, product_id: GUID | None = None) -> Sequence[Instance]:
        """Instances whose next maintenance date is before ``on`` and that are not in maintenance."""
        query = (
            select(Instance)
            .where(col(Instance.next_maintenance_date).is_not(None))
            .where(col(Instance.next_maintenance_date) < on)
            .where(col(Instance.status) != InstanceStatus.IN_MAINTENANCE)
            .order_by(col(Instance.next_maintenance_date), col(Instance.serial_number))
        )
        if product_id is not None:
            query = query.where(col(Instance.product_id) == product_id)

        try:
            return (await self.session.exec(query)).all()
        except SQLAlchemyError as e:
            raise self._database_error("maintenance_due", e, on=str(on)) from e
