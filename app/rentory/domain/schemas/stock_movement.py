from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field
from rentory.core.types import GUID
from rentory.domain.enums import MovementType


class StockMovementCreate(BaseModel):
    """Schema for appending a row to the stock ledger."""

    product_id: GUID = Field(..., description="Product whose stock moved")
    movement_type: MovementType = Field(..., description="Type of movement")
    quantity: int = Field(..., gt=0, description="Magnitude of the movement")
    quantity_before: int = Field(..., description="Quantity before the movement")
    quantity_after: int = Field(..., description="Quantity after the movement")
    motif: str | None = Field(default=None, description="Free-text reason")
    performed_by: str = Field(..., min_length=1, max_length=255, description="Acting user")
    reservation_line_id: GUID | None = Field(default=None, description="Correlated reservation line")
    instance_id: GUID | None = Field(default=None, description="Correlated instance")
    instance_serial: str | None = Field(default=None, description="Serial number(s) of the instance(s)")


class StockMovementResponse(StockMovementCreate):
    """Schema for stock movement response data."""

    model_config = ConfigDict(from_attributes=True)

    id: GUID
    created_datetime: datetime


class LedgerSummary(BaseModel):
    """Totals of the ledger rows of a product over an inclusive date range."""

    product_id: GUID
    start_date: date
    end_date: date
    entries: int = Field(default=0, description="Sum of entry family quantities")
    exits: int = Field(default=0, description="Sum of exit family quantities")
    adjustments: int = Field(default=0, description="Signed sum of adjustment family changes")

    @property
    def net(self) -> int:
        return self.entries - self.exits + self.adjustments
