from .created import CreatedDateTimeMixin  # noqa: F401
from .id import GUIDMixin  # noqa: F401
from .timestamp import TimestampMixin  # noqa: F401
from .updated import UpdatedDateTimeMixin  # noqa: F401
