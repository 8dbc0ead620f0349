from decimal import Decimal

import pytest
from rentory.core.exceptions import errors
from rentory.domain.enums import MovementType, ProductCategory, ProductType
from rentory.domain.schemas import InstanceBulkCreate, ProductCreate, ProductUpdate
from rentory.domain.services.stock_ledger_service import StockLedgerService

ACTOR = "alice"


def _product(name, product_type=ProductType.POOLED, **kwargs):
    return ProductCreate(name=name, category=ProductCategory.FURNITURE, product_type=product_type, **kwargs)


class TestCreateProduct:
    """Product creation"""

    async def test_pooled_product_starts_with_initial_stock(self, session, chairs):
        """Test that a pooled product's counter equals its initial quantity with a STOCK_ENTRY row."""
        assert chairs.available_quantity == 10
        assert chairs.initial_quantity == 10

        rows = await StockLedgerService(session).history_for(chairs.id)
        assert len(rows) == 1
        assert (rows[0].movement_type, rows[0].quantity_before, rows[0].quantity_after) == (
            MovementType.STOCK_ENTRY,
            0,
            10,
        )

    async def test_serialized_product_starts_empty(self, session, product_service):
        """Test that the initial quantity of a serialized product is ignored."""
        product = await product_service.create_product(
            _product("Vidéoprojecteur", ProductType.SERIALIZED, initial_quantity=8), ACTOR
        )

        assert product.initial_quantity == 0
        assert product.available_quantity == 0
        assert await StockLedgerService(session).history_for(product.id) == []

    async def test_generated_codes(self, product_service):
        """Test code generation from known names, fallbacks and sequences."""
        first = await product_service.create_product(_product("Chaise Napoléon"), ACTOR)
        second = await product_service.create_product(_product("chaise napoleon blanche"), ACTOR)
        table = await product_service.create_product(_product("Table basse"), ACTOR)
        other = await product_service.create_product(_product("Podium"), ACTOR)

        assert first.code == "PRD-CHN-001"
        assert second.code == "PRD-CHN-002"
        assert table.code == "PRD-TB-001"
        assert other.code == "PRD-PO-001"

    async def test_supplied_code_must_be_unique(self, product_service):
        """Test that a duplicate code raises DuplicateProductCodeError."""
        await product_service.create_product(_product("Stool", code="STOOL-1"), ACTOR)

        with pytest.raises(errors.DuplicateProductCodeError):
            await product_service.create_product(_product("Other stool", code="STOOL-1"), ACTOR)

    async def test_lookups(self, product_service, chairs, projector):
        """Test get by id, by code and listing by type."""
        assert (await product_service.get_product(chairs.id)).code == chairs.code
        assert (await product_service.get_product_by_code(projector.code)).id == projector.id
        assert [p.code for p in await product_service.list_products(ProductType.SERIALIZED)] == [projector.code]
        assert len(await product_service.list_products()) == 2

        with pytest.raises(errors.UnknownProductError):
            await product_service.get_product_by_code("PRD-ZZ-999")


class TestUpdateProduct:
    """Product updates"""

    async def test_type_is_immutable(self, product_service, chairs):
        """Test that changing the product type raises ProductTypeChangeError."""
        with pytest.raises(errors.ProductTypeChangeError):
            await product_service.update_product(chairs.id, ProductUpdate(product_type=ProductType.SERIALIZED), ACTOR)

    async def test_same_type_is_accepted(self, product_service, chairs):
        updated = await product_service.update_product(
            chairs.id, ProductUpdate(product_type=ProductType.POOLED, unit_price=Decimal("3.00")), ACTOR
        )

        assert updated.unit_price == Decimal("3.00")

    async def test_initial_quantity_shifts_counter(self, session, product_service, chairs):
        """Test that a new initial quantity moves the counter by the same delta."""
        updated = await product_service.update_product(chairs.id, ProductUpdate(initial_quantity=7), ACTOR)

        assert updated.initial_quantity == 7
        assert updated.available_quantity == 7

        rows = await StockLedgerService(session).movements_by_type(MovementType.INVENTORY_ADJUSTMENT)
        assert (rows[0].quantity, rows[0].quantity_before, rows[0].quantity_after) == (3, 10, 7)

    async def test_initial_quantity_cannot_make_counter_negative(self, product_service, chairs):
        await product_service.adjust_stock(chairs.id, -8, ACTOR)

        with pytest.raises(errors.NegativeStockError):
            await product_service.update_product(chairs.id, ProductUpdate(initial_quantity=5), ACTOR)

    async def test_descriptive_fields(self, product_service, chairs):
        updated = await product_service.update_product(
            chairs.id, ProductUpdate(name="Chaise pliante blanche", critical_threshold=3), ACTOR
        )

        assert updated.name == "Chaise pliante blanche"
        assert updated.critical_threshold == 3
        assert updated.category == ProductCategory.FURNITURE


class TestCriticalStock:
    """Critical thresholds"""

    async def test_default_thresholds(self, product_service, chairs, projector, instance_service):
        """Test the type defaults: 5 for pooled, 2 for serialized."""
        assert product_service.is_critical(chairs) is False
        assert product_service.is_critical(projector) is True

        await product_service.adjust_stock(chairs.id, -5, ACTOR)
        await instance_service.create_instances_bulk(InstanceBulkCreate(product_id=projector.id, count=3), ACTOR)

        assert product_service.is_critical(chairs) is True
        assert product_service.is_critical(projector) is False
        assert [p.id for p in await product_service.list_critical_products()] == [chairs.id]

    async def test_explicit_threshold(self, product_service, chairs):
        await product_service.update_product(chairs.id, ProductUpdate(critical_threshold=10), ACTOR)

        assert product_service.is_critical(chairs) is True


class TestCounterOperations:
    """Counter operations of pooled products, each with one ledger row"""

    async def test_operations_and_ledger_rows(self, session, product_service, chairs):
        await product_service.adjust_stock(chairs.id, 5, ACTOR, motif="Delivery from supplier")
        await product_service.adjust_stock(chairs.id, -2, ACTOR)
        await product_service.mark_damaged(chairs.id, 1, ACTOR)
        await product_service.send_units_to_maintenance(chairs.id, 2, ACTOR)
        assert chairs.maintenance_required is True
        await product_service.return_units_from_maintenance(chairs.id, 2, ACTOR)
        assert chairs.maintenance_required is False

        assert chairs.available_quantity == 12

        rows = await StockLedgerService(session).history_for(chairs.id)
        assert sorted(row.movement_type for row in rows) == sorted(
            [
                MovementType.STOCK_ENTRY,
                MovementType.STOCK_ENTRY,
                MovementType.STOCK_WITHDRAWAL,
                MovementType.DAMAGE,
                MovementType.MAINTENANCE,
                MovementType.MAINTENANCE_RETURN,
            ]
        )
        for row in rows:
            assert abs(row.signed_quantity) == row.quantity

    async def test_deactivate_empties_counter(self, product_service, chairs):
        await product_service.deactivate(chairs.id, ACTOR, motif="End of season")
        assert chairs.available_quantity == 0

        with pytest.raises(errors.InvalidRequestError):
            await product_service.deactivate(chairs.id, ACTOR)

    async def test_reactivate(self, product_service, chairs):
        await product_service.deactivate(chairs.id, ACTOR)
        reactivated = await product_service.reactivate(chairs.id, 6, ACTOR)

        assert reactivated.available_quantity == 6

    async def test_counter_cannot_go_negative(self, product_service, chairs):
        with pytest.raises(errors.NegativeStockError):
            await product_service.mark_damaged(chairs.id, 11, ACTOR)

    async def test_zero_or_negative_quantities(self, product_service, chairs):
        chairs_id = chairs.id

        with pytest.raises(errors.InvalidRequestError):
            await product_service.adjust_stock(chairs_id, 0, ACTOR)

        with pytest.raises(errors.InvalidRequestError):
            await product_service.mark_damaged(chairs_id, -1, ACTOR)

    async def test_serialized_products_are_refused(self, product_service, projector):
        """Test that counter operations raise UnsupportedForProductTypeError on serialized products."""
        projector_id = projector.id

        with pytest.raises(errors.UnsupportedForProductTypeError):
            await product_service.adjust_stock(projector_id, 3, ACTOR)

        with pytest.raises(errors.UnsupportedForProductTypeError):
            await product_service.send_units_to_maintenance(projector_id, 1, ACTOR)

    async def test_recompute_available(self, product_service, projector, projector_units, chairs):
        """Test that recompute counts AVAILABLE instances and refuses pooled products."""
        assert await product_service.recompute_available(projector.id) == 5

        with pytest.raises(errors.UnsupportedForProductTypeError):
            await product_service.recompute_available(chairs.id)
