import traceback
from typing import Any, Dict

from pythonjsonlogger.json import JsonFormatter

BASE_RENAME_FIELDS: Dict[str, str] = {
    "levelname": "level",
    "asctime": "timestamp",
    "name": "logger",
}

DETAILED_RENAME_FIELDS: Dict[str, str] = {
    **BASE_RENAME_FIELDS,
    "pathname": "file_path",
    "lineno": "line_number",
    "funcName": "function_name",
    "process": "process_id",
    "thread": "thread_id",
}

_FORMATTER_KWARGS = (
    "json_default",
    "json_encoder",
    "json_serializer",
    "json_indent",
    "json_ensure_ascii",
    "prefix",
    "static_fields",
    "reserved_attrs",
)


class StructuredExceptionJsonFormatter(JsonFormatter):
    """
    A JSON formatter that turns exception information into structured data.

    Exceptions are emitted under an ``exception`` key holding the type, the
    message and the formatted traceback lines. Unknown keyword arguments
    (e.g. coming from a YAML config) are ignored.
    """

    def __init__(self, fmt: str | None = None, datefmt: str | None = None, rename_fields=None, **kwargs):
        fmt = kwargs.pop("format", fmt)
        options = {key: kwargs[key] for key in _FORMATTER_KWARGS if kwargs.get(key) is not None}

        super().__init__(fmt=fmt, datefmt=datefmt, rename_fields=rename_fields or {}, **options)

    def add_fields(self, log_record: Dict[str, Any], record: Any, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)

        if record.exc_info:
            exc_type, exc_value, exc_traceback = record.exc_info

            log_record["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value) if exc_value else None,
                "traceback": (
                    traceback.format_exception(exc_type, exc_value, exc_traceback) if exc_traceback else None
                ),
            }

            log_record.pop("exc_info", None)
            log_record.pop("exc_text", None)


class ConsoleFormatter(JsonFormatter):
    """A compact JSON formatter for development consoles."""

    def __init__(self, **kwargs):
        fmt = kwargs.pop("format", "%(asctime)s %(name)s %(levelname)s %(message)s")
        datefmt = kwargs.pop("datefmt", "%Y-%m-%d %H:%M:%S")
        rename_fields = {**BASE_RENAME_FIELDS, **kwargs.pop("rename_fields", {})}

        super().__init__(fmt=fmt, datefmt=datefmt, rename_fields=rename_fields, **kwargs)


class ProductionFormatter(StructuredExceptionJsonFormatter):
    """
    Formatter for production: every source location field plus structured
    exceptions.
    """

    def __init__(self, **kwargs):
        fmt = kwargs.pop("format", None) or (
            "%(asctime)s %(name)s %(levelname)s %(message)s "
            "%(pathname)s %(lineno)d %(funcName)s %(process)d %(thread)d"
        )
        datefmt = kwargs.pop("datefmt", "%Y-%m-%dT%H:%M:%S")
        rename_fields = {**DETAILED_RENAME_FIELDS, **kwargs.pop("rename_fields", {})}

        super().__init__(fmt=fmt, datefmt=datefmt, rename_fields=rename_fields, **kwargs)
