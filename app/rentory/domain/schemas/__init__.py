from .allocation import AllocationResult  # noqa: F401
from .availability import AvailabilityQuery, AvailabilityResult  # noqa: F401
from .instance import InstanceBulkCreate, InstanceCreate, InstanceResponse, InstanceUpdate  # noqa: F401
from .product import ProductCreate, ProductResponse, ProductUpdate  # noqa: F401
from .reservation import (  # noqa: F401
    ReservationCreate,
    ReservationLineCreate,
    ReservationLineUpdate,
    ReservationUpdate,
)
from .stock_movement import LedgerSummary, StockMovementCreate, StockMovementResponse  # noqa: F401
