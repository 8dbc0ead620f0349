from .pooled import PooledAvailability  # noqa: F401
from .serialized import SerializedAvailability  # noqa: F401
