from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from sqlmodel.ext.asyncio.session import AsyncSession
from rentory.core.database.decorators import transactional
from rentory.core.exceptions import errors
from rentory.core.logging import get_logger
from rentory.core.types import GUID
from rentory.domain.availability import AvailabilityFactory
from rentory.domain.repositories.product_repository import ProductRepository
from rentory.domain.schemas import AvailabilityQuery, AvailabilityResult

logger = get_logger(__name__)


class AvailabilityService:
    """
    Service answering whether a quantity of a product is free over an
    inclusive date range. Read only: nothing is held by a check.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.product_repository = ProductRepository(session)

    @staticmethod
    def validate_request(quantity: int, start_date: date, end_date: date) -> None:
        """
        Raises:
            InvalidRequestError: If the quantity is not positive or the range ends before it starts
        """
        if quantity <= 0:
            raise errors.InvalidRequestError(
                detail=f"Quantity must be positive, got {quantity}", metadata={"quantity": quantity}
            )
        if start_date > end_date:
            raise errors.InvalidRequestError(
                detail=f"Date range {start_date} - {end_date} ends before it starts",
                metadata={"start_date": str(start_date), "end_date": str(end_date)},
            )

    @transactional
    async def check_availability(
        self,
        product_id: GUID,
        quantity: int,
        start_date: date,
        end_date: date,
        exclude_line_id: GUID | None = None,
    ) -> AvailabilityResult:
        """
        Check whether ``quantity`` units of a product are free from
        ``start_date`` to ``end_date`` (both inclusive).

        Raises:
            InvalidRequestError: If the arguments are invalid
            UnknownProductError: If the product does not exist
        """
        self.validate_request(quantity, start_date, end_date)
        product = await self.product_repository.get_or_404(product_id)
        strategy = AvailabilityFactory.for_product(product, self.session)

        remaining = await strategy.compute_available(product, start_date, end_date, exclude_line_id)
        candidate_serials = await strategy.candidate_serials(product, start_date, end_date, quantity)

        logger.debug(
            f"rentory.domain.services.availability_service.check_availability:: {product.code} "
            f"{start_date} - {end_date}: {remaining} left for {quantity} requested"
        )
        return AvailabilityResult(
            product_id=product.id,
            requested=quantity,
            available=remaining >= quantity,
            remaining=max(remaining, 0),
            candidate_serials=candidate_serials,
        )

    @transactional
    async def check_availability_batch(self, queries: Iterable[AvailabilityQuery]) -> list[AvailabilityResult]:
        """
        Run several independent checks, one result per query in the same order.
        Quantities are not summed across queries.
        """
        return [
            await self.check_availability(
                query.product_id, query.quantity, query.start_date, query.end_date, query.exclude_line_id
            )
            for query in queries
        ]
