from typing import Union
from uuid import UUID

from .guid import GUID

# Accepted wherever a record is looked up by primary key
IDType = Union[GUID, UUID, int, str]
