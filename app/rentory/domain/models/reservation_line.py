from datetime import date
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import TEXT, CheckConstraint, Column
from sqlmodel import Field
from rentory.core.database.mixins import GUIDMixin, TimestampMixin
from rentory.core.helpers.dates import ranges_overlap
from rentory.core.types import GUID
from rentory.domain.enums import DeliveryStatus


class ReservationLine(GUIDMixin, TimestampMixin, table=True):
    """
    Represents one product entry of a reservation, the target of allocations.

    For serialized products the bound instances are the instances whose
    ``reservation_line_id`` references the line.

    Attributes:
        id (GUID): The unique identifier for the line.
        reservation_id (GUID): Parent reservation.
        product_id (GUID): Reserved product.
        quantity (int): Reserved quantity.
        allocated_quantity (int): Units currently held by the line (counter units for pooled
            products, bound instances for serialized products).
        unit_price (Decimal): Price snapshot taken when the line was created.
        start_date (date): First rental day (inclusive).
        end_date (date): Last rental day (inclusive).
        delivery_status (DeliveryStatus): Delivery progress.
        created_datetime (datetime): The timestamp when the line was created.
        updated_datetime (datetime | None): The timestamp when the line was last updated.
    """

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_reservation_lines_quantity_positive"),
        CheckConstraint("allocated_quantity >= 0", name="chk_reservation_lines_allocated_quantity_positive"),
        CheckConstraint("start_date <= end_date", name="chk_reservation_lines_date_range"),
    )

    SELECTABLE_FIELDS: ClassVar[list[str]] = [
        "id",
        "reservation_id",
        "product_id",
        "quantity",
        "allocated_quantity",
        "unit_price",
        "start_date",
        "end_date",
        "delivery_status",
        "created_datetime",
        "updated_datetime",
    ]

    reservation_id: GUID = Field(foreign_key="reservations.id", nullable=False, index=True)
    product_id: GUID = Field(foreign_key="products.id", nullable=False, index=True)
    quantity: int = Field(nullable=False)
    allocated_quantity: int = Field(default=0, nullable=False)
    unit_price: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2, nullable=False)
    start_date: date = Field(nullable=False, index=True)
    end_date: date = Field(nullable=False, index=True)
    delivery_status: DeliveryStatus = Field(
        default=DeliveryStatus.PENDING, sa_column=Column(TEXT(), nullable=False)
    )

    def overlaps(self, start_date: date, end_date: date) -> bool:
        return ranges_overlap(self.start_date, self.end_date, start_date, end_date)
