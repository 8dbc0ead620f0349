import base64
import struct
from typing import Any, ClassVar
from uuid import UUID, uuid4

from pydantic import GetCoreSchemaHandler, GetJsonSchemaHandler
from pydantic.json_schema import JsonSchemaValue
from pydantic_core import PydanticCustomError, core_schema


class GUID(str):
    """
    Global identifier used as primary key for every inventory record.\n

    Format: gid://rentory/{ResourceType}/{urlsafe_base64_encoded_uuid}

    The resource type makes identifiers self-describing in ledger rows and
    log records (e.g. a movement correlated to ``gid://rentory/Instance/...``).
    """

    APP_NAME: ClassVar[str] = "rentory"
    SCHEME: ClassVar[str] = "gid://"

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: GetCoreSchemaHandler) -> core_schema.CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls.validate,
            core_schema.str_schema(strip_whitespace=True, min_length=1),
            serialization=core_schema.to_string_ser_schema(),
        )

    @classmethod
    def __get_pydantic_json_schema__(
        cls, core_schema: core_schema.CoreSchema, handler: GetJsonSchemaHandler
    ) -> JsonSchemaValue:
        json_schema = handler(core_schema)
        json_schema.update(
            type="string",
            pattern=rf"^gid://{cls.APP_NAME}/[a-zA-Z0-9_]+/[A-Za-z0-9_-]+$",
            example=f"gid://{cls.APP_NAME}/Product/dGVzdGluZ3Rlc3Rpbmc",
        )
        return json_schema

    @classmethod
    def validate(cls, value: Any) -> "GUID":
        try:
            cls.decode_guid(value)
        except ValueError as e:
            raise PydanticCustomError("invalid_guid", "Invalid GUID format: {error}", {"error": str(e)}) from e

        return cls(value)

    @classmethod
    def encode_guid(cls, resource_type: str) -> "GUID":
        """
        Generate a new GUID for the given resource type.

        Args:
            resource_type: The type of resource (e.g., "Product", "Instance")

        Returns:
            GUID: A new GUID instance
        """
        int_id = uuid4().int
        id_bytes = struct.pack(">QQ", int_id >> 64, int_id & 0xFFFFFFFFFFFFFFFF)
        encoded_id = base64.urlsafe_b64encode(id_bytes).decode("ascii").rstrip("=")

        return cls(f"{cls.SCHEME}{cls.APP_NAME}/{resource_type}/{encoded_id}")

    @classmethod
    def decode_guid(cls, guid: str) -> dict[str, str]:
        """
        Split a GUID into its components.

        Raises:
            ValueError: If the GUID format is invalid
        """
        if not isinstance(guid, str) or not guid.startswith(cls.SCHEME):
            raise ValueError(f"GUID must start with '{cls.SCHEME}'")

        parts = guid[len(cls.SCHEME) :].split("/")
        if len(parts) != 3 or not all(parts):
            raise ValueError("GUID must have format gid://app_name/resource_type/encoded_id")

        app_name, resource_type, encoded_id = parts
        return {"app_name": app_name, "resource_type": resource_type, "encoded_id": encoded_id}

    @classmethod
    def extract_internal_id(cls, guid: str) -> UUID:
        """
        Extract the internal UUID from a GUID.

        Raises:
            ValueError: If the GUID format is invalid or cannot be decoded
        """
        encoded_id = cls.decode_guid(guid)["encoded_id"]
        encoded_id += "=" * (-len(encoded_id) % 4)

        try:
            id_bytes = base64.urlsafe_b64decode(encoded_id)
        except ValueError as e:
            raise ValueError(f"Cannot decode GUID: {e}") from e

        if len(id_bytes) != 16:
            raise ValueError("Cannot decode GUID: invalid UUID bytes length")

        high, low = struct.unpack(">QQ", id_bytes)
        return UUID(int=(high << 64) | low)

    @property
    def resource_type(self) -> str:
        return self.decode_guid(str(self))["resource_type"]

    def is_resource(self, resource_type: str) -> bool:
        """Check whether this GUID identifies a record of the given type."""
        return self.resource_type == resource_type

    def to_uuid(self) -> UUID:
        return self.extract_internal_id(str(self))

    def __repr__(self) -> str:
        return f"GUID('{str(self)}')"
