import pytest
from rentory.core.exceptions import errors
from rentory.domain.enums import ProductCategory, ProductType
from rentory.domain.schemas import ProductCreate
from rentory.domain.services.code_service import CodeService, name_prefix, next_sequence, normalize_name


class TestNamePrefix:
    """Prefixes of product codes"""

    @pytest.mark.parametrize(
        "name,prefix",
        [
            ("Chaise pliante", "CH"),
            ("Chaise Napoléon dorée", "CHN"),
            ("Napoleon chair", "CHN"),
            ("Table basse en verre", "TB"),
            ("Table ronde", "TA"),
            ("Tapis rouge 10m", "TPR"),
            ("Projecteur LED", "PR"),
            ("Podium", "PO"),
            ("Q", "QX"),
            ("", "XX"),
        ],
    )
    def test_known_and_fallback_names(self, name, prefix):
        assert name_prefix(name) == prefix

    def test_normalize_name(self):
        assert normalize_name("Chaise Napoléon - dorée") == "CHAISENAPOLEONDOREE"
        assert normalize_name("Tente 5x5") == "TENTE5X5"


class TestNextSequence:
    """Numeric suffixes"""

    def test_continues_after_highest(self):
        assert next_sequence(["PRD-CH-001", "PRD-CH-007", "PRD-CH-003"], "PRD-CH-") == 8

    def test_ignores_non_numeric_suffixes(self):
        assert next_sequence(["PRD-CH-001", "PRD-CH-00A", "PRD-CHN-009"], "PRD-CH-") == 2

    def test_starts_at_one(self):
        assert next_sequence([], "PRD-CH-") == 1


class TestCodeService:
    """Generated codes and serial numbers"""

    async def test_product_codes(self, session, chairs):
        service = CodeService(session)

        assert await service.next_product_code("Chaise longue") == "PRD-CH-002"
        assert await service.next_product_code("Lampe") == "PRD-LP-001"

    async def test_serial_numbers(self, session, projector):
        serials = await CodeService(session).next_serial_numbers(projector, 2, year=2026)

        assert serials == ["PRD-PR-001-2026-0001", "PRD-PR-001-2026-0002"]

    async def test_serial_numbers_too_long(self, session, product_service):
        product = await product_service.create_product(
            ProductCreate(
                name="Long code",
                code="X" * 45,
                category=ProductCategory.FURNITURE,
                product_type=ProductType.SERIALIZED,
            ),
            "alice",
        )

        with pytest.raises(errors.InvalidRequestError):
            await CodeService(session).next_serial_numbers(product, 1, year=2026)
