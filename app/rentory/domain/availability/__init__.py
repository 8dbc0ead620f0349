from .factory import AvailabilityFactory  # noqa: F401
from .interface import AvailabilityStrategy  # noqa: F401
