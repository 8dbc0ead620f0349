from datetime import date
from typing import ClassVar

from sqlalchemy import TEXT, CheckConstraint, Column, UniqueConstraint
from sqlmodel import Field
from rentory.core.database.mixins import GUIDMixin, TimestampMixin
from rentory.core.helpers.dates import today
from rentory.core.types import GUID
from rentory.domain.enums import InstanceStatus, PhysicalCondition

_BOUND_STATES_SQL = ", ".join(f"'{state.value}'" for state in sorted(InstanceStatus.bound_states()))


class Instance(GUIDMixin, TimestampMixin, table=True):
    """
    Represents one physical, individually tracked unit of a serialized product.

    Attributes:
        id (GUID): The unique identifier for the instance.
        serial_number (str): Unique serial number.
        product_id (GUID): Owning product.
        status (InstanceStatus): Lifecycle state.
        physical_condition (PhysicalCondition): Physical condition.
        reservation_line_id (GUID | None): Reservation line the instance is bound to. Set iff the
            status is RESERVED, IN_DELIVERY, IN_USE or IN_RETURN.
        binding_position (int | None): Order in which the instance was bound to its current line.
        observation (str | None): Free-text notes.
        acquisition_date (date | None): Purchase date.
        added_by (str | None): User who registered the instance.
        last_maintenance_date (date | None): Date of the last maintenance.
        next_maintenance_date (date | None): Date of the next planned maintenance.
        motif (str | None): Reason of the last maintenance or status change.
        created_datetime (datetime): The timestamp when the instance was created.
        updated_datetime (datetime | None): The timestamp when the instance was last updated.
    """

    __table_args__ = (
        UniqueConstraint("serial_number", name="uq_instances_serial_number"),
        CheckConstraint(
            f"(reservation_line_id IS NULL) = (status NOT IN ({_BOUND_STATES_SQL}))",
            name="chk_instances_binding_matches_status",
        ),
    )

    SELECTABLE_FIELDS: ClassVar[list[str]] = [
        "id",
        "serial_number",
        "product_id",
        "status",
        "physical_condition",
        "reservation_line_id",
        "observation",
        "acquisition_date",
        "added_by",
        "last_maintenance_date",
        "next_maintenance_date",
        "created_datetime",
        "updated_datetime",
    ]

    serial_number: str = Field(max_length=50, nullable=False, index=True)
    product_id: GUID = Field(foreign_key="products.id", nullable=False, index=True)
    status: InstanceStatus = Field(
        default=InstanceStatus.AVAILABLE, sa_column=Column(TEXT(), nullable=False, index=True)
    )
    physical_condition: PhysicalCondition = Field(
        default=PhysicalCondition.NEW, sa_column=Column(TEXT(), nullable=False)
    )
    reservation_line_id: GUID | None = Field(
        default=None, foreign_key="reservation_lines.id", nullable=True, index=True
    )
    binding_position: int | None = Field(default=None, nullable=True)
    observation: str | None = Field(default=None, sa_column=Column(TEXT(), nullable=True))
    acquisition_date: date | None = Field(default=None, nullable=True)
    added_by: str | None = Field(default=None, max_length=255, nullable=True)
    last_maintenance_date: date | None = Field(default=None, nullable=True)
    next_maintenance_date: date | None = Field(default=None, nullable=True)
    motif: str | None = Field(default=None, sa_column=Column(TEXT(), nullable=True))

    @property
    def is_bound(self) -> bool:
        return self.reservation_line_id is not None

    def is_maintenance_due(self, on: date | None = None) -> bool:
        """
        Check whether the planned maintenance date has passed.

        Instances already in maintenance are never due.
        """
        if self.next_maintenance_date is None or self.status == InstanceStatus.IN_MAINTENANCE:
            return False
        return self.next_maintenance_date < (on or today())

    def bind(self, reservation_line_id: GUID, position: int) -> None:
        self.status = InstanceStatus.RESERVED
        self.reservation_line_id = reservation_line_id
        self.binding_position = position

    def unbind(self, status: InstanceStatus = InstanceStatus.AVAILABLE) -> None:
        self.status = status
        self.reservation_line_id = None
        self.binding_position = None
