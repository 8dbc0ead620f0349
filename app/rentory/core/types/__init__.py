from .guid import GUID  # noqa: F401
from .id_type import IDType  # noqa: F401
