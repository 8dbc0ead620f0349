from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from rentory.core.helpers import optional
from rentory.core.types import GUID
from rentory.domain.enums import ProductCategory, ProductType


class ProductBase(BaseModel):
    """Base product schema with the fields an administrator may edit."""

    name: str = Field(..., min_length=1, max_length=255, description="Display name of the product")
    description: str | None = Field(default=None, description="Free-text description")
    category: ProductCategory = Field(..., description="Catalog category")
    unit_price: Decimal = Field(default=Decimal("0.00"), ge=0, description="Rental price per unit")
    critical_threshold: int | None = Field(
        default=None, ge=0, description="Critical stock level, the product type default applies when unset"
    )
    maintenance_required: bool = Field(default=False, description="Whether some units need maintenance")


class ProductCreate(ProductBase):
    """Schema for creating a new product."""

    code: str | None = Field(
        default=None, min_length=1, max_length=50, description="Unique code, generated from the name when omitted"
    )
    product_type: ProductType = Field(..., description="POOLED or SERIALIZED, cannot change afterwards")
    initial_quantity: int = Field(
        default=0, ge=0, description="Initial stock of a pooled product, ignored for serialized products"
    )


@optional
class ProductUpdate(ProductBase):
    """Schema for updating a product."""

    initial_quantity: int | None = Field(default=None, ge=0, description="New initial stock (pooled products)")
    product_type: ProductType | None = Field(default=None, description="Rejected when different from the current type")


class ProductResponse(ProductBase):
    """Schema for product response data."""

    model_config = ConfigDict(from_attributes=True)

    id: GUID
    code: str
    product_type: ProductType
    initial_quantity: int
    available_quantity: int
    created_datetime: datetime
    updated_datetime: datetime | None = None
