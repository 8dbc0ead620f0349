from fastapi import status

from .base import NotFoundError, ServiceError


class UnknownInstanceError(NotFoundError):
    """
    This error is raised when an instance id or serial number does not match any instance.
    """

    type_ = "unknown_instance"
    title = "Unknown Instance"
    detail = "The requested instance does not exist"


class DuplicateSerialError(ServiceError):
    """
    This error is raised when one or more serial numbers are already taken.
    Bulk creation is aborted as a whole.
    """

    type_ = "duplicate_serial"
    title = "Duplicate Serial Number"
    detail = "One or more serial numbers already exist"
    status = status.HTTP_409_CONFLICT

    def __init__(self, serial_numbers: list[str] | None = None, detail=None, **kwargs):
        self.serial_numbers = list(serial_numbers or [])
        if detail is None and self.serial_numbers:
            detail = f"Serial number(s) already exist: {', '.join(self.serial_numbers)}"
        super().__init__(detail=detail, serial_numbers=self.serial_numbers, **kwargs)


class InvalidStateTransitionError(ServiceError):
    """
    This error is raised when an instance status change is not allowed by the
    lifecycle table, or must go through a dedicated operation.
    """

    type_ = "invalid_state_transition"
    title = "Invalid State Transition"
    detail = "The requested status change is not allowed"
    status = status.HTTP_409_CONFLICT

    def __init__(self, current_status=None, target_status=None, detail=None, **kwargs):
        self.current_status = current_status
        self.target_status = target_status
        if detail is None and current_status is not None and target_status is not None:
            detail = f"Cannot change status from {current_status} to {target_status}"
        super().__init__(
            detail=detail,
            current_status=str(current_status) if current_status is not None else None,
            target_status=str(target_status) if target_status is not None else None,
            **kwargs,
        )


class InstanceBoundError(ServiceError):
    """
    This error is raised when an operation requires an unbound instance but the
    instance is held by a reservation line.
    """

    type_ = "instance_bound"
    title = "Instance Bound To Reservation"
    detail = "The instance is bound to a reservation line"
    status = status.HTTP_409_CONFLICT
