from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, func, select
from sqlmodel.ext.asyncio.session import AsyncSession
from rentory.core.exceptions import errors
from rentory.core.logging import get_logger
from rentory.core.types import GUID
from rentory.domain.enums import ReservationStatus
from rentory.domain.models import Reservation, ReservationLine
from rentory.domain.repositories.base_repository import BaseRepository
from rentory.domain.schemas import ReservationLineCreate, ReservationLineUpdate

logger = get_logger(__name__)


class ReservationLineRepository(BaseRepository[ReservationLine, ReservationLineCreate, ReservationLineUpdate]):
    """
    Repository for reservation lines, the targets of allocations.
    """

    not_found_error = errors.UnknownReservationLineError

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(ReservationLine, session)

    def _overlapping(self, query, product_id: GUID, start_date: date, end_date: date, statuses, exclude_line_id):
        query = (
            query.join(Reservation, col(Reservation.id) == col(ReservationLine.reservation_id))
            .where(col(ReservationLine.product_id) == product_id)
            .where(col(ReservationLine.start_date) <= end_date)
            .where(col(ReservationLine.end_date) >= start_date)
            .where(col(Reservation.status).in_([str(status) for status in statuses]))
        )
        if exclude_line_id is not None:
            query = query.where(col(ReservationLine.id) != exclude_line_id)
        return query

    async def held_quantity(
        self,
        product_id: GUID,
        start_date: date,
        end_date: date,
        statuses: Iterable[ReservationStatus] | None = None,
        exclude_line_id: GUID | None = None,
    ) -> int:
        """
        Sum the quantities of the lines of a product overlapping an inclusive
        date range whose reservation is in one of ``statuses`` (held states
        by default).
        """
        statuses = list(statuses or ReservationStatus.held_states())

        try:
            query = self._overlapping(
                select(func.coalesce(func.sum(ReservationLine.quantity), 0)),
                product_id,
                start_date,
                end_date,
                statuses,
                exclude_line_id,
            )
            return int((await self.session.exec(query)).one())
        except SQLAlchemyError as e:
            logger.exception(
                f"rentory.domain.repositories.reservation_line_repository.held_quantity:: error while summing held quantity for product {product_id}: {e}"
            )
            raise errors.DatabaseError(
                message="Failed to compute held quantity",
                detail="An error occurred while summing reservation lines.",
                metadata={"product_id": product_id, "start_date": str(start_date), "end_date": str(end_date)},
            ) from e

    async def overlapping_lines(
        self,
        product_id: GUID,
        start_date: date,
        end_date: date,
        statuses: Iterable[ReservationStatus] | None = None,
    ) -> Sequence[ReservationLine]:
        """Lines of a product overlapping an inclusive date range, ordered by start date."""
        statuses = list(statuses or ReservationStatus.held_states())

        try:
            query = self._overlapping(select(ReservationLine), product_id, start_date, end_date, statuses, None)
            query = query.order_by(col(ReservationLine.start_date), col(ReservationLine.created_datetime))
            return (await self.session.exec(query)).all()
        except SQLAlchemyError as e:
            logger.exception(
                f"rentory.domain.repositories.reservation_line_repository.overlapping_lines:: error while reading lines for product {product_id}: {e}"
            )
            raise errors.DatabaseError(
                message="Failed to retrieve reservation lines",
                detail="An error occurred while retrieving reservation lines.",
                metadata={"product_id": product_id},
            ) from e
