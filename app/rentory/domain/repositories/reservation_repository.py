from __future__ import annotations

from sqlmodel.ext.asyncio.session import AsyncSession
from rentory.domain.models import Reservation
from rentory.domain.repositories.base_repository import BaseRepository
from rentory.domain.schemas import ReservationCreate, ReservationUpdate


class ReservationRepository(BaseRepository[Reservation, ReservationCreate, ReservationUpdate]):
    """
    Repository for reservations. The reservation workflow owns their lifecycle,
    the inventory core only reads their status.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Reservation, session)

    async def get_by_reference(self, reference: str) -> Reservation | None:
        return await self.find_one_by_and_none(reference=reference)
