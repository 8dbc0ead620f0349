from decimal import Decimal
from typing import ClassVar

from sqlalchemy import TEXT, CheckConstraint, Column, UniqueConstraint
from sqlmodel import Field
from rentory.core.config import settings
from rentory.core.database.mixins import GUIDMixin, TimestampMixin
from rentory.domain.enums import ProductCategory, ProductType


class Product(GUIDMixin, TimestampMixin, table=True):
    """
    Represents a catalog entry of rentable equipment.

    Attributes:
        id (GUID): The unique identifier for the product.
        code (str): Unique business code (e.g. PRD-PR-001).
        name (str): Display name.
        description (str | None): Free-text description.
        category (ProductCategory): Catalog category.
        unit_price (Decimal): Rental price per unit and per day.
        initial_quantity (int): Stock the product was registered with (pooled products).
        available_quantity (int): Authoritative counter for pooled products; cached count of
            AVAILABLE instances for serialized products.
        product_type (ProductType): POOLED or SERIALIZED, fixed at creation.
        critical_threshold (int | None): Stock level at or below which the product is critical.
        maintenance_required (bool): Whether some units are waiting for or undergoing maintenance.
        created_datetime (datetime): The timestamp when the product was created.
        updated_datetime (datetime | None): The timestamp when the product was last updated.
    """

    __table_args__ = (
        UniqueConstraint("code", name="uq_products_code"),
        CheckConstraint("initial_quantity >= 0", name="chk_products_initial_quantity_positive"),
        CheckConstraint("available_quantity >= 0", name="chk_products_available_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="chk_products_unit_price_positive"),
    )

    SELECTABLE_FIELDS: ClassVar[list[str]] = [
        "id",
        "code",
        "name",
        "description",
        "category",
        "unit_price",
        "initial_quantity",
        "available_quantity",
        "product_type",
        "critical_threshold",
        "maintenance_required",
        "created_datetime",
        "updated_datetime",
    ]

    code: str = Field(max_length=50, nullable=False, index=True)
    name: str = Field(max_length=255, nullable=False)
    description: str | None = Field(default=None, sa_column=Column(TEXT(), nullable=True))
    category: ProductCategory = Field(sa_column=Column(TEXT(), nullable=False))
    unit_price: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2, nullable=False)
    initial_quantity: int = Field(default=0, nullable=False)
    available_quantity: int = Field(default=0, nullable=False)
    product_type: ProductType = Field(sa_column=Column(TEXT(), nullable=False, index=True))
    critical_threshold: int | None = Field(default=None, nullable=True)
    maintenance_required: bool = Field(default=False, nullable=False)

    @property
    def is_pooled(self) -> bool:
        return self.product_type == ProductType.POOLED

    @property
    def is_serialized(self) -> bool:
        return self.product_type == ProductType.SERIALIZED

    @property
    def effective_critical_threshold(self) -> int:
        """The configured threshold, or the default for the product type when unset."""
        if self.critical_threshold is not None:
            return self.critical_threshold

        if self.is_serialized:
            return settings.SERIALIZED_CRITICAL_THRESHOLD
        return settings.POOLED_CRITICAL_THRESHOLD

    def is_critical(self) -> bool:
        """
        Check whether the stock is at or below the critical threshold.

        For serialized products ``available_quantity`` is the cached count of
        AVAILABLE instances, refreshed by every operation that moves an
        instance in or out of that state.
        """
        return self.available_quantity <= self.effective_critical_threshold
