from typing import ClassVar

from sqlalchemy import TEXT, Column, UniqueConstraint
from sqlmodel import Field
from rentory.core.database.mixins import GUIDMixin, TimestampMixin
from rentory.domain.enums import ReservationStatus


class Reservation(GUIDMixin, TimestampMixin, table=True):
    """
    Represents a customer reservation.

    Only the fields the availability computation depends on live here; the
    reservation workflow (quotes, customers, payments, deliveries) owns the rest.

    Attributes:
        id (GUID): The unique identifier for the reservation.
        reference (str): Unique business reference.
        status (ReservationStatus): PENDING and CONFIRMED reservations hold capacity.
        notes (str | None): Free-text notes.
        created_datetime (datetime): The timestamp when the reservation was created.
        updated_datetime (datetime | None): The timestamp when the reservation was last updated.
    """

    __table_args__ = (UniqueConstraint("reference", name="uq_reservations_reference"),)

    SELECTABLE_FIELDS: ClassVar[list[str]] = [
        "id",
        "reference",
        "status",
        "notes",
        "created_datetime",
        "updated_datetime",
    ]

    reference: str = Field(max_length=50, nullable=False, index=True)
    status: ReservationStatus = Field(
        default=ReservationStatus.PENDING, sa_column=Column(TEXT(), nullable=False, index=True)
    )
    notes: str | None = Field(default=None, sa_column=Column(TEXT(), nullable=True))
