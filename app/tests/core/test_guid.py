from uuid import UUID

import pytest
from pydantic import BaseModel, ValidationError
from rentory.core.types import GUID


class _Reference(BaseModel):
    id: GUID


class TestGUID:
    """Test cases for global identifiers"""

    def test_encode_guid(self):
        guid = GUID.encode_guid("Product")

        assert guid.startswith("gid://rentory/Product/")
        assert guid.resource_type == "Product"
        assert guid.is_resource("Product") is True
        assert guid.is_resource("Instance") is False

    def test_guids_are_unique(self):
        assert GUID.encode_guid("Instance") != GUID.encode_guid("Instance")

    def test_uuid_round_trip(self):
        """Test that the encoded part decodes to a 16 byte UUID."""
        guid = GUID.encode_guid("StockMovement")

        assert isinstance(guid.to_uuid(), UUID)
        assert GUID.extract_internal_id(guid) == guid.to_uuid()

    def test_decode_guid(self):
        assert GUID.decode_guid("gid://rentory/ReservationLine/abc") == {
            "app_name": "rentory",
            "resource_type": "ReservationLine",
            "encoded_id": "abc",
        }

    @pytest.mark.parametrize("value", ["rentory/Product/abc", "gid://rentory/Product", "gid://rentory//abc"])
    def test_invalid_format(self, value):
        with pytest.raises(ValueError):
            GUID.decode_guid(value)

    def test_invalid_uuid_bytes(self):
        with pytest.raises(ValueError):
            GUID.extract_internal_id("gid://rentory/Product/abc")

    def test_pydantic_validation(self):
        """Test GUID fields in schemas."""
        guid = GUID.encode_guid("Product")

        assert _Reference(id=f"  {guid} ").id == guid

        with pytest.raises(ValidationError):
            _Reference(id="not-a-guid")

    def test_encoded_part_never_contains_a_slash(self, monkeypatch):
        """Test an id whose standard base64 encoding is all slashes."""
        all_ones = UUID(int=(1 << 128) - 1)
        monkeypatch.setattr("rentory.core.types.guid.uuid4", lambda: all_ones)

        guid = GUID.encode_guid("Product")

        assert guid.count("/") == 4
        assert GUID.validate(guid) == guid
        assert guid.to_uuid() == all_ones
        assert _Reference(id=guid).id == guid

    def test_slash_in_encoded_part_is_refused(self):
        with pytest.raises(ValidationError):
            _Reference(id="gid://rentory/Product//wAAAAAAAAAAAAAAAAAA/A")
