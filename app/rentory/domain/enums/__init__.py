from .instance import InstanceStatus, PhysicalCondition  # noqa: F401
from .movement import MovementFamily, MovementType  # noqa: F401
from .product import ProductCategory, ProductType  # noqa: F401
from .reservation import DeliveryStatus, ReservationStatus  # noqa: F401
