from .instance import Instance  # noqa: F401
from .product import Product  # noqa: F401
from .reservation import Reservation  # noqa: F401
from .reservation_line import ReservationLine  # noqa: F401
from .stock_movement import StockMovement  # noqa: F401
