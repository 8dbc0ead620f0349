from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Self

from pydantic import BaseModel, Field, model_validator
from rentory.core.types import GUID
from rentory.domain.enums import DeliveryStatus, ReservationStatus


class ReservationCreate(BaseModel):
    """Schema for creating a reservation."""

    reference: str = Field(..., min_length=1, max_length=50, description="Unique business reference")
    status: ReservationStatus = Field(default=ReservationStatus.PENDING, description="Reservation status")
    notes: str | None = Field(default=None, description="Free-text notes")


class ReservationUpdate(BaseModel):
    """Schema for updating a reservation."""

    status: ReservationStatus | None = Field(default=None, description="Reservation status")
    notes: str | None = Field(default=None, description="Free-text notes")


class ReservationLineCreate(BaseModel):
    """Schema for creating a reservation line."""

    reservation_id: GUID = Field(..., description="Parent reservation")
    product_id: GUID = Field(..., description="Reserved product")
    quantity: int = Field(..., gt=0, description="Reserved quantity")
    unit_price: Decimal = Field(default=Decimal("0.00"), ge=0, description="Price snapshot")
    start_date: date = Field(..., description="First rental day (inclusive)")
    end_date: date = Field(..., description="Last rental day (inclusive)")
    delivery_status: DeliveryStatus = Field(default=DeliveryStatus.PENDING, description="Delivery progress")

    @model_validator(mode="after")
    def _check_date_range(self) -> Self:
        if self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self


class ReservationLineUpdate(BaseModel):
    """
    Schema for updating a reservation line.

    The price snapshot is not editable; quantity edits go through the
    allocation engine's resize.
    """

    quantity: int | None = Field(default=None, gt=0, description="Reserved quantity")
    start_date: date | None = Field(default=None, description="First rental day (inclusive)")
    end_date: date | None = Field(default=None, description="Last rental day (inclusive)")
    delivery_status: DeliveryStatus | None = Field(default=None, description="Delivery progress")
