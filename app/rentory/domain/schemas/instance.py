from __future__ import annotations

from datetime import date, datetime
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator
from rentory.core.helpers import optional
from rentory.core.types import GUID
from rentory.domain.enums import InstanceStatus, PhysicalCondition


class InstanceBase(BaseModel):
    """Base instance schema with the descriptive fields of a unit."""

    physical_condition: PhysicalCondition = Field(
        default=PhysicalCondition.NEW, description="Physical condition of the unit"
    )
    observation: str | None = Field(default=None, description="Free-text notes")
    acquisition_date: date | None = Field(default=None, description="Purchase date")
    next_maintenance_date: date | None = Field(default=None, description="Next planned maintenance")


class InstanceCreate(InstanceBase):
    """Schema for registering a single instance."""

    product_id: GUID = Field(..., description="Owning serialized product")
    serial_number: str | None = Field(
        default=None, min_length=1, max_length=50, description="Serial number, generated when omitted"
    )


class InstanceBulkCreate(InstanceBase):
    """Schema for registering several instances with generated serial numbers."""

    product_id: GUID = Field(..., description="Owning serialized product")
    count: int = Field(..., gt=0, description="Number of instances to create")
    serial_numbers: list[str] | None = Field(
        default=None, description="Explicit serial numbers, generated from the product code when omitted"
    )

    @model_validator(mode="after")
    def _check_serial_numbers(self) -> Self:
        if self.serial_numbers is not None and len(self.serial_numbers) != self.count:
            raise ValueError("serial_numbers must hold exactly count entries")
        return self


@optional
class InstanceUpdate(InstanceBase):
    """Schema for updating the descriptive fields of an instance."""


class InstanceResponse(InstanceBase):
    """Schema for instance response data."""

    model_config = ConfigDict(from_attributes=True)

    id: GUID
    serial_number: str
    product_id: GUID
    status: InstanceStatus
    reservation_line_id: GUID | None = None
    last_maintenance_date: date | None = None
    motif: str | None = None
    created_datetime: datetime
    updated_datetime: datetime | None = None
