from typing import ClassVar

from sqlalchemy import TEXT, CheckConstraint, Column, event
from sqlmodel import Field
from rentory.core.database.mixins import CreatedDateTimeMixin, GUIDMixin
from rentory.core.exceptions import errors
from rentory.core.types import GUID
from rentory.domain.enums import MovementFamily, MovementType


class StockMovement(GUIDMixin, CreatedDateTimeMixin, table=True):
    """
    Represents one append-only row of the stock ledger.

    Rows are inserted alongside the counter or instance change they describe
    and are never updated or deleted.

    Attributes:
        id (GUID): The unique identifier for the movement.
        product_id (GUID): Product whose stock moved.
        movement_type (MovementType): Type of movement, its family gives the sign.
        quantity (int): Magnitude of the movement, always positive.
        quantity_before (int): Quantity before the movement.
        quantity_after (int): Quantity after the movement.
        motif (str | None): Free-text reason.
        performed_by (str): Acting user.
        reservation_line_id (GUID | None): Correlated reservation line.
        instance_id (GUID | None): Correlated instance.
        instance_serial (str | None): Serial number(s) of the correlated instance(s).
        created_datetime (datetime): When the movement was recorded.
    """

    __table_args__ = (CheckConstraint("quantity > 0", name="chk_stock_movements_quantity_positive"),)

    SELECTABLE_FIELDS: ClassVar[list[str]] = [
        "id",
        "product_id",
        "movement_type",
        "quantity",
        "quantity_before",
        "quantity_after",
        "motif",
        "performed_by",
        "reservation_line_id",
        "instance_id",
        "instance_serial",
        "created_datetime",
    ]

    product_id: GUID = Field(foreign_key="products.id", nullable=False, index=True)
    movement_type: MovementType = Field(sa_column=Column(TEXT(), nullable=False, index=True))
    quantity: int = Field(nullable=False)
    quantity_before: int = Field(nullable=False)
    quantity_after: int = Field(nullable=False)
    motif: str | None = Field(default=None, sa_column=Column(TEXT(), nullable=True))
    performed_by: str = Field(max_length=255, nullable=False, index=True)
    reservation_line_id: GUID | None = Field(default=None, nullable=True, index=True)
    instance_id: GUID | None = Field(default=None, nullable=True, index=True)
    instance_serial: str | None = Field(default=None, sa_column=Column(TEXT(), nullable=True))

    @property
    def family(self) -> MovementFamily:
        return MovementType(self.movement_type).family

    @property
    def signed_quantity(self) -> int:
        return self.quantity_after - self.quantity_before


@event.listens_for(StockMovement, "before_update")
def _reject_movement_update(mapper, connection, target: StockMovement) -> None:
    raise errors.LedgerInconsistencyError(detail="Stock movements are append-only and cannot be updated")


@event.listens_for(StockMovement, "before_delete")
def _reject_movement_delete(mapper, connection, target: StockMovement) -> None:
    raise errors.LedgerInconsistencyError(detail="Stock movements are append-only and cannot be deleted")
