from datetime import date, datetime
from json import JSONEncoder
from typing import Any


class DateTimeEncoder(JSONEncoder):
    """Custom JSON encoder for datetime objects."""

    def default(self, obj: Any) -> Any:  # type: ignore
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return super().default(obj)
