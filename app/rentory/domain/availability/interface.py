from abc import ABC, abstractmethod
from datetime import date

from sqlmodel.ext.asyncio.session import AsyncSession
from rentory.core.types import GUID
from rentory.domain.models import Product, ReservationLine
from rentory.domain.repositories.instance_repository import InstanceRepository
from rentory.domain.repositories.product_repository import ProductRepository
from rentory.domain.repositories.reservation_line_repository import ReservationLineRepository
from rentory.domain.services.stock_ledger_service import StockLedgerService


class AvailabilityStrategy(ABC):
    """
    Base abstract class for the capacity rules of a product type.

    A strategy computes the capacity left over a date range and moves
    capacity between a product and a reservation line, writing the matching
    ledger rows. Callers lock the product and line rows and run the calls
    inside a transaction.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.product_repository = ProductRepository(session)
        self.line_repository = ReservationLineRepository(session)
        self.instance_repository = InstanceRepository(session)
        self.ledger = StockLedgerService(session)

    @abstractmethod
    async def compute_available(
        self,
        product: Product,
        start_date: date,
        end_date: date,
        exclude_line_id: GUID | None = None,
    ) -> int:
        """
        Capacity left for a product over an inclusive date range.

        Args:
            product (Product): The product to check
            start_date (date): First day of the range
            end_date (date): Last day of the range
            exclude_line_id (GUID | None): Line that must not count against itself

        Returns:
            int: The remaining capacity, may be negative when the product is oversubscribed
        """
        pass

    async def candidate_serials(self, product: Product, start_date: date, end_date: date, limit: int) -> list[str]:
        """Serial numbers that would be bound by an allocation, lowest first."""
        return []

    @abstractmethod
    async def allocate(self, product: Product, line: ReservationLine, quantity: int, actor: str) -> list[str]:
        """
        Hold ``quantity`` more units of a product for a line.

        Returns:
            list[str]: Serial numbers bound by this call
        """
        pass

    @abstractmethod
    async def release_units(self, product: Product, line: ReservationLine, quantity: int, actor: str) -> list[str]:
        """
        Give back up to ``quantity`` units held by a line.

        Returns:
            list[str]: Serial numbers unbound by this call
        """
        pass

    async def release(self, product: Product, line: ReservationLine, actor: str) -> list[str]:
        """Give back every unit held by a line."""
        return await self.release_units(product, line, line.allocated_quantity, actor)

    async def bound_serials(self, line: ReservationLine) -> list[str]:
        """Serial numbers bound to a line, in binding order."""
        return []
