from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field
from rentory.core.types import GUID


class AvailabilityQuery(BaseModel):
    """One availability check: a product, a quantity and an inclusive date range."""

    product_id: GUID = Field(..., description="Product to check")
    quantity: int = Field(..., description="Requested quantity")
    start_date: date = Field(..., description="First day (inclusive)")
    end_date: date = Field(..., description="Last day (inclusive)")
    exclude_line_id: GUID | None = Field(
        default=None, description="Reservation line left out of the overlap computation"
    )


class AvailabilityResult(BaseModel):
    """Outcome of an availability check."""

    product_id: GUID
    requested: int
    available: bool = Field(..., description="Whether the requested quantity fits")
    remaining: int = Field(..., description="Capacity left over the range before this request")
    candidate_serials: list[str] = Field(
        default_factory=list, description="Free serial numbers, ascending, truncated to the requested quantity"
    )
