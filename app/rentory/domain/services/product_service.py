from __future__ import annotations

from collections.abc import Sequence

from sqlmodel.ext.asyncio.session import AsyncSession
from rentory.core.database.decorators import transactional
from rentory.core.exceptions import errors
from rentory.core.logging import get_logger
from rentory.core.types import GUID
from rentory.domain.enums import InstanceStatus, MovementFamily, MovementType, ProductType
from rentory.domain.models import Product
from rentory.domain.repositories.instance_repository import InstanceRepository
from rentory.domain.repositories.product_repository import ProductRepository
from rentory.domain.schemas import ProductCreate, ProductUpdate
from rentory.domain.services.code_service import CodeService
from rentory.domain.services.stock_ledger_service import StockLedgerService

logger = get_logger(__name__)

# Fields that may be cleared through an update, every other field ignores None.
_NULLABLE_FIELDS = frozenset({"description", "critical_threshold"})


class ProductService:
    """Service for the product catalog and the counters of pooled products."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.product_repository = ProductRepository(session)
        self.instance_repository = InstanceRepository(session)
        self.code_service = CodeService(session)
        self.ledger = StockLedgerService(session)

    async def get_product(self, product_id: GUID) -> Product:
        """
        Get a product by id.

        Raises:
            UnknownProductError: If the product does not exist
        """
        return await self.product_repository.get_or_404(product_id)

    async def get_product_by_code(self, code: str) -> Product:
        product = await self.product_repository.get_by_code(code)
        if product is None:
            raise errors.UnknownProductError(detail=f"No product with code {code}", metadata={"code": code})
        return product

    async def list_products(self, product_type: ProductType | None = None) -> Sequence[Product]:
        return await self.product_repository.list_products(product_type)

    @transactional
    async def create_product(self, product_data: ProductCreate, actor: str) -> Product:
        """
        Create a catalog product.

        The code is generated from the name when not supplied. A pooled
        product starts with ``available_quantity = initial_quantity`` and a
        STOCK_ENTRY ledger row; a serialized product starts empty, its stock
        comes from registered instances.

        Raises:
            DuplicateProductCodeError: If the code is already used
        """
        code = product_data.code or await self.code_service.next_product_code(product_data.name)

        if await self.product_repository.get_by_code(code) is not None:
            raise errors.DuplicateProductCodeError(detail=f"Product code {code} is already used", code=code)

        values = product_data.model_dump(exclude={"code"})
        values["code"] = code
        if product_data.product_type == ProductType.SERIALIZED:
            values["initial_quantity"] = 0
        values["available_quantity"] = values["initial_quantity"]

        product = await self.product_repository.create(values)

        if product.is_pooled and product.initial_quantity > 0:
            await self.ledger.log(
                product_id=product.id,
                movement_type=MovementType.STOCK_ENTRY,
                quantity=product.initial_quantity,
                quantity_before=0,
                performed_by=actor,
                motif="Initial stock",
            )

        logger.info(
            f"rentory.domain.services.product_service.create_product:: {product.product_type} product {product.code} created by {actor}"
        )
        return product

    @transactional
    async def update_product(self, product_id: GUID, product_data: ProductUpdate, actor: str) -> Product:
        """
        Update the editable fields of a product.

        A new ``initial_quantity`` of a pooled product shifts the available
        counter by the same amount and is recorded as an INVENTORY_ADJUSTMENT.

        Raises:
            ProductTypeChangeError: If a different product type is requested
            UnsupportedForProductTypeError: If the initial quantity of a serialized product is changed
            NegativeStockError: If the counter would drop below zero
        """
        product = await self.product_repository.get_or_404(product_id, for_update=True)
        changes = product_data.model_dump(exclude_unset=True)

        requested_type = changes.pop("product_type", None)
        if requested_type is not None and ProductType(requested_type) != ProductType(product.product_type):
            raise errors.ProductTypeChangeError(
                detail=f"Product {product.code} is {product.product_type} and cannot become {requested_type}",
                metadata={"product_id": product.id},
            )

        initial_quantity = changes.pop("initial_quantity", None)
        if initial_quantity is not None and initial_quantity != product.initial_quantity:
            await self._shift_initial_quantity(product, initial_quantity, actor)

        product.sqlmodel_update(
            {field: value for field, value in changes.items() if value is not None or field in _NULLABLE_FIELDS}
        )
        return await self.product_repository.save(product)

    async def _shift_initial_quantity(self, product: Product, initial_quantity: int, actor: str) -> None:
        if not product.is_pooled:
            raise errors.UnsupportedForProductTypeError(
                detail="The stock of a serialized product is the number of its instances",
                metadata={"product_id": product.id},
            )

        delta = initial_quantity - product.initial_quantity
        before = product.available_quantity
        after = before + delta
        if after < 0:
            raise errors.NegativeStockError(
                detail=f"Lowering the initial quantity by {-delta} would leave {after} units available",
                metadata={"product_id": product.id},
            )

        product.initial_quantity = initial_quantity
        product.available_quantity = after
        await self.ledger.log(
            product_id=product.id,
            movement_type=MovementType.INVENTORY_ADJUSTMENT,
            quantity=abs(delta),
            quantity_before=before,
            quantity_after=after,
            performed_by=actor,
            motif="Initial quantity changed",
        )

    @transactional
    async def recompute_available(self, product_id: GUID) -> int:
        """
        Refresh the cached available quantity of a serialized product from the
        number of its AVAILABLE instances.
        """
        product = await self.product_repository.get_or_404(product_id, for_update=True)
        if not product.is_serialized:
            raise errors.UnsupportedForProductTypeError(
                detail="The counter of a pooled product is authoritative", metadata={"product_id": product.id}
            )

        product.available_quantity = await self.instance_repository.count_with_status(
            product.id, InstanceStatus.AVAILABLE
        )
        await self.product_repository.save(product)
        return product.available_quantity

    def is_critical(self, product: Product) -> bool:
        return product.is_critical()

    async def list_critical_products(self) -> list[Product]:
        """Products at or below their critical threshold."""
        return [product for product in await self.product_repository.list_products() if product.is_critical()]

    async def _pooled_for_update(self, product_id: GUID) -> Product:
        product = await self.product_repository.get_or_404(product_id, for_update=True)
        if not product.is_pooled:
            raise errors.UnsupportedForProductTypeError(
                detail=f"Product {product.code} is serialized, change its instances instead",
                metadata={"product_id": product.id},
            )
        return product

    async def _move_counter(
        self,
        product: Product,
        movement_type: MovementType,
        quantity: int,
        actor: str,
        motif: str | None = None,
    ) -> Product:
        """Apply an entry or exit to the counter of a pooled product with its ledger row."""
        if quantity <= 0:
            raise errors.InvalidRequestError(detail="Quantity must be positive", metadata={"quantity": quantity})

        before = product.available_quantity
        after = before + quantity if movement_type.family == MovementFamily.ENTRY else before - quantity
        if after < 0:
            raise errors.NegativeStockError(
                detail=f"Cannot remove {quantity} units, only {before} available",
                metadata={"product_id": product.id},
            )

        product.available_quantity = after
        await self.product_repository.save(product)
        await self.ledger.log(
            product_id=product.id,
            movement_type=movement_type,
            quantity=quantity,
            quantity_before=before,
            performed_by=actor,
            motif=motif,
        )

        logger.info(
            f"rentory.domain.services.product_service._move_counter:: {movement_type} x{quantity} on {product.code} "
            f"({before} -> {after}) by {actor}"
        )
        return product

    @transactional
    async def adjust_stock(self, product_id: GUID, delta: int, actor: str, motif: str | None = None) -> Product:
        """Add (positive delta) or withdraw (negative delta) units of a pooled product."""
        if delta == 0:
            raise errors.InvalidRequestError(detail="Stock adjustment cannot be zero")

        product = await self._pooled_for_update(product_id)
        movement_type = MovementType.STOCK_ENTRY if delta > 0 else MovementType.STOCK_WITHDRAWAL
        return await self._move_counter(product, movement_type, abs(delta), actor, motif)

    @transactional
    async def mark_damaged(self, product_id: GUID, quantity: int, actor: str, motif: str | None = None) -> Product:
        product = await self._pooled_for_update(product_id)
        return await self._move_counter(product, MovementType.DAMAGE, quantity, actor, motif)

    @transactional
    async def send_units_to_maintenance(
        self, product_id: GUID, quantity: int, actor: str, motif: str | None = None
    ) -> Product:
        product = await self._pooled_for_update(product_id)
        product.maintenance_required = True
        return await self._move_counter(product, MovementType.MAINTENANCE, quantity, actor, motif)

    @transactional
    async def return_units_from_maintenance(
        self, product_id: GUID, quantity: int, actor: str, motif: str | None = None
    ) -> Product:
        product = await self._pooled_for_update(product_id)
        product.maintenance_required = False
        return await self._move_counter(product, MovementType.MAINTENANCE_RETURN, quantity, actor, motif)

    @transactional
    async def deactivate(self, product_id: GUID, actor: str, motif: str | None = None) -> Product:
        """Take every available unit of a pooled product out of service."""
        product = await self._pooled_for_update(product_id)
        if product.available_quantity == 0:
            raise errors.InvalidRequestError(
                detail=f"Product {product.code} has no available units", metadata={"product_id": product.id}
            )
        return await self._move_counter(product, MovementType.DEACTIVATION, product.available_quantity, actor, motif)

    @transactional
    async def reactivate(self, product_id: GUID, quantity: int, actor: str, motif: str | None = None) -> Product:
        product = await self._pooled_for_update(product_id)
        return await self._move_counter(product, MovementType.REACTIVATION, quantity, actor, motif)
