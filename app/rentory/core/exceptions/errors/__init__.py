from .allocation import (  # noqa: F401
    InsufficientCapacityError,
    LedgerInconsistencyError,
    UnknownReservationLineError,
)
from .base import InvalidRequestError, NotFoundError, ServiceError  # noqa: F401
from .database import DatabaseError  # noqa: F401
from .instance import (  # noqa: F401
    DuplicateSerialError,
    InstanceBoundError,
    InvalidStateTransitionError,
    UnknownInstanceError,
)
from .product import (  # noqa: F401
    DuplicateProductCodeError,
    NegativeStockError,
    ProductTypeChangeError,
    UnknownProductError,
    UnsupportedForProductTypeError,
)

__all__ = [
    "InsufficientCapacityError",
    "LedgerInconsistencyError",
    "UnknownReservationLineError",
    "InvalidRequestError",
    "NotFoundError",
    "ServiceError",
    "DatabaseError",
    "DuplicateSerialError",
    "InstanceBoundError",
    "InvalidStateTransitionError",
    "UnknownInstanceError",
    "DuplicateProductCodeError",
    "NegativeStockError",
    "ProductTypeChangeError",
    "UnknownProductError",
    "UnsupportedForProductTypeError",
]
