from enum import StrEnum


class InstanceStatus(StrEnum):
    """
    Enumeration for the lifecycle states of a serialized instance

    Attributes:
        AVAILABLE: Free to be allocated.
        RESERVED: Bound to a reservation line.
        IN_DELIVERY: Bound and on its way to the customer.
        IN_USE: Bound and on site at the event.
        IN_RETURN: Bound and on its way back.
        IN_MAINTENANCE: Being serviced.
        OUT_OF_SERVICE: Defective, cannot be rented.
        LOST: Lost or stolen.
    """

    AVAILABLE = "available"
    RESERVED = "reserved"
    IN_DELIVERY = "in_delivery"
    IN_USE = "in_use"
    IN_RETURN = "in_return"
    IN_MAINTENANCE = "in_maintenance"
    OUT_OF_SERVICE = "out_of_service"
    LOST = "lost"

    @classmethod
    def bound_states(cls) -> frozenset["InstanceStatus"]:
        """States in which an instance holds a reservation line back-reference."""
        return frozenset({cls.RESERVED, cls.IN_DELIVERY, cls.IN_USE, cls.IN_RETURN})

    @classmethod
    def retired_states(cls) -> frozenset["InstanceStatus"]:
        return frozenset({cls.OUT_OF_SERVICE, cls.LOST})

    @property
    def is_bound(self) -> bool:
        return self in self.bound_states()


class PhysicalCondition(StrEnum):
    """
    Enumeration for the physical condition of an instance

    Attributes:
        NEW: Never used.
        GOOD: Used, no visible wear.
        FAIR: Light wear.
        WORN: Heavy wear, still usable.
        DAMAGED: Damaged.
    """

    NEW = "new"
    GOOD = "good"
    FAIR = "fair"
    WORN = "worn"
    DAMAGED = "damaged"
