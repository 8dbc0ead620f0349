from __future__ import annotations

from pydantic import BaseModel, Field
from rentory.core.types import GUID


class AllocationResult(BaseModel):
    """Capacity held by a reservation line after an allocation, release or resize."""

    reservation_line_id: GUID
    product_id: GUID
    quantity: int = Field(..., description="Quantity now held by the line")
    bound_serials: list[str] = Field(
        default_factory=list, description="Serial numbers bound to the line, in binding order"
    )
