from enum import StrEnum


class ReservationStatus(StrEnum):
    """
    Enumeration for reservation statuses

    Attributes:
        PENDING: Quote or request awaiting confirmation.
        CONFIRMED: Confirmed by the customer.
        IN_PROGRESS: Event running, equipment on site.
        COMPLETED: Equipment returned, reservation closed.
        CANCELLED: Cancelled.
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def held_states(cls) -> frozenset["ReservationStatus"]:
        """States whose lines reduce the capacity of pooled products."""
        return frozenset({cls.PENDING, cls.CONFIRMED})


class DeliveryStatus(StrEnum):
    """
    Enumeration for the delivery status of a reservation line

    Attributes:
        PENDING: Not shipped yet.
        IN_DELIVERY: On its way to the customer.
        DELIVERED: Delivered.
        PARTIALLY_RETURNED: Some units returned.
        RETURNED: All units returned.
    """

    PENDING = "pending"
    IN_DELIVERY = "in_delivery"
    DELIVERED = "delivered"
    PARTIALLY_RETURNED = "partially_returned"
    RETURNED = "returned"
