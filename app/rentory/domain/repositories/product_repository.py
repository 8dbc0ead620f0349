from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession
from rentory.core.exceptions import errors
from rentory.core.logging import get_logger
from rentory.domain.enums import ProductType
from rentory.domain.models import Product
from rentory.domain.repositories.base_repository import BaseRepository
from rentory.domain.schemas import ProductCreate, ProductUpdate

logger = get_logger(__name__)


class ProductRepository(BaseRepository[Product, ProductCreate, ProductUpdate]):
    """
    Repository for managing catalog products.
    """

    not_found_error = errors.UnknownProductError

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Product, session)

    async def get_by_code(self, code: str) -> Product | None:
        return await self.find_one_by_and_none(code=code)

    async def list_products(self, product_type: ProductType | None = None) -> Sequence[Product]:
        """List products ordered by code, optionally restricted to one type."""
        try:
            query = select(Product).order_by(col(Product.code))
            if product_type is not None:
                query = query.where(col(Product.product_type) == product_type)
            return (await self.session.exec(query)).all()
        except SQLAlchemyError as e:
            logger.exception(f"rentory.domain.repositories.product_repository.list_products:: error listing products: {e}")
            raise errors.DatabaseError(
                message="Failed to retrieve products",
                detail="An error occurred while retrieving products.",
                metadata={"product_type": product_type},
            ) from e

    async def codes_with_prefix(self, prefix: str) -> list[str]:
        """Return every product code starting with ``prefix``."""
        try:
            query = select(Product.code).where(col(Product.code).startswith(prefix, autoescape=True))
            return list((await self.session.exec(query)).all())
        except SQLAlchemyError as e:
            logger.exception(
                f"rentory.domain.repositories.product_repository.codes_with_prefix:: error while reading codes with prefix {prefix}: {e}"
            )
            raise errors.DatabaseError(
                message="Failed to retrieve product codes",
                detail="An error occurred while retrieving product codes.",
                metadata={"prefix": prefix},
            ) from e
