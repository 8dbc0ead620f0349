from sqlmodel.ext.asyncio.session import AsyncSession
from rentory.core.exceptions import errors
from rentory.domain.availability.interface import AvailabilityStrategy
from rentory.domain.availability.providers import PooledAvailability, SerializedAvailability
from rentory.domain.enums import ProductType
from rentory.domain.models import Product


class AvailabilityFactory:
    """
    Factory selecting the availability strategy of a product type.
    """

    _providers: dict[ProductType, type[AvailabilityStrategy]] = {
        ProductType.POOLED: PooledAvailability,
        ProductType.SERIALIZED: SerializedAvailability,
    }

    @classmethod
    def register_provider(cls, product_type: ProductType, provider_class: type[AvailabilityStrategy]) -> None:
        """
        Register the strategy used for a product type.

        Args:
            product_type: Product type served by the strategy
            provider_class: Strategy class
        """
        cls._providers[product_type] = provider_class

    @classmethod
    def create_provider(cls, product_type: ProductType | str, session: AsyncSession) -> AvailabilityStrategy:
        """
        Create the strategy of a product type.

        Raises:
            UnsupportedForProductTypeError: If no strategy is registered for the type
        """
        product_type = ProductType(product_type)
        if product_type not in cls._providers:
            raise errors.UnsupportedForProductTypeError(detail=f"No availability strategy for {product_type} products")

        return cls._providers[product_type](session)

    @classmethod
    def for_product(cls, product: Product, session: AsyncSession) -> AvailabilityStrategy:
        return cls.create_provider(product.product_type, session)
