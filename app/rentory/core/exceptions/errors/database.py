from fastapi import status
from fastapi_problem.error import StatusProblem


class DatabaseError(StatusProblem):
    """Raised by repositories when the inventory store rejects a read or a write."""

    type_ = "inventory_store_error"
    title = "Inventory store error"
    status = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "The inventory store could not complete the operation."

    def __init__(self, detail=None, **kwargs):
        super().__init__(detail=detail or self.detail, **kwargs)
