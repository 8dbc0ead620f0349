from enum import StrEnum


class MovementFamily(StrEnum):
    """
    Enumeration for the direction of a stock movement

    Attributes:
        ENTRY: Adds to the quantity (after = before + quantity).
        EXIT: Removes from the quantity (after = before - quantity).
        ADJUSTMENT: Corrects the quantity in either direction (|after - before| = quantity).
    """

    ENTRY = "entry"
    EXIT = "exit"
    ADJUSTMENT = "adjustment"


class MovementType(StrEnum):
    """
    Enumeration for stock ledger movement types

    Attributes:
        CREATION: Initial stock of a new product.
        REACTIVATION: Stock put back into service.
        STOCK_ADDITION: Units added to an existing product.
        STOCK_ENTRY: Stock received.
        MAINTENANCE_RETURN: Units back from maintenance.
        INSTANCE_ADDED: Serialized instances registered.
        RESERVATION_RELEASE: Capacity released by a reservation line.
        RETURN: Units returned by a customer.
        DEACTIVATION: Stock taken out of service.
        STOCK_WITHDRAWAL: Units removed from stock.
        MAINTENANCE: Units sent to maintenance.
        DAMAGE: Units damaged, out of service or lost.
        INSTANCE_REMOVED: Serialized instance deleted.
        RESERVATION: Capacity allocated to a reservation line.
        DELIVERY: Units delivered to a customer.
        INVENTORY_ADJUSTMENT: Counter corrected after an inventory count or edit.
        CORRECTION: Manual correction.
    """

    CREATION = "creation"
    REACTIVATION = "reactivation"
    STOCK_ADDITION = "stock_addition"
    STOCK_ENTRY = "stock_entry"
    MAINTENANCE_RETURN = "maintenance_return"
    INSTANCE_ADDED = "instance_added"
    RESERVATION_RELEASE = "reservation_release"
    RETURN = "return"
    DEACTIVATION = "deactivation"
    STOCK_WITHDRAWAL = "stock_withdrawal"
    MAINTENANCE = "maintenance"
    DAMAGE = "damage"
    INSTANCE_REMOVED = "instance_removed"
    RESERVATION = "reservation"
    DELIVERY = "delivery"
    INVENTORY_ADJUSTMENT = "inventory_adjustment"
    CORRECTION = "correction"

    @property
    def family(self) -> MovementFamily:
        if self in _ENTRY_TYPES:
            return MovementFamily.ENTRY
        if self in _EXIT_TYPES:
            return MovementFamily.EXIT
        return MovementFamily.ADJUSTMENT

    @classmethod
    def of_family(cls, family: MovementFamily) -> frozenset["MovementType"]:
        return frozenset(member for member in cls if member.family == family)


_ENTRY_TYPES = frozenset(
    {
        MovementType.CREATION,
        MovementType.REACTIVATION,
        MovementType.STOCK_ADDITION,
        MovementType.STOCK_ENTRY,
        MovementType.MAINTENANCE_RETURN,
        MovementType.INSTANCE_ADDED,
        MovementType.RESERVATION_RELEASE,
        MovementType.RETURN,
    }
)

_EXIT_TYPES = frozenset(
    {
        MovementType.DEACTIVATION,
        MovementType.STOCK_WITHDRAWAL,
        MovementType.MAINTENANCE,
        MovementType.DAMAGE,
        MovementType.INSTANCE_REMOVED,
        MovementType.RESERVATION,
        MovementType.DELIVERY,
    }
)
