from fastapi import status

from .base import NotFoundError, ServiceError


class UnknownReservationLineError(NotFoundError):
    """
    This error is raised when a reservation line id does not match any line.
    """

    type_ = "unknown_reservation_line"
    title = "Unknown Reservation Line"
    detail = "The requested reservation line does not exist"


class InsufficientCapacityError(ServiceError):
    """
    This error is raised when the capacity left for a product over a date range
    is lower than the requested quantity. Nothing is allocated.
    """

    type_ = "insufficient_capacity"
    title = "Insufficient Capacity"
    detail = "Not enough capacity to satisfy the requested quantity"
    status = status.HTTP_409_CONFLICT

    def __init__(self, requested: int, available: int, detail=None, **kwargs):
        self.requested = requested
        self.available = available
        super().__init__(
            detail=detail or f"Requested {requested} unit(s) but only {max(available, 0)} available",
            requested=requested,
            available=available,
            **kwargs,
        )


class LedgerInconsistencyError(ServiceError):
    """
    This error is raised when a stock movement's before/after quantities do not
    match the sign of its movement type family.
    """

    type_ = "ledger_inconsistency"
    title = "Ledger Inconsistency"
    detail = "The stock movement quantities are inconsistent with its type"
    status = status.HTTP_500_INTERNAL_SERVER_ERROR
