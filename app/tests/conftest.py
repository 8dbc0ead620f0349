import os
from datetime import date
from decimal import Decimal

import pytest

os.environ.setdefault("ENVIRONMENT", "local")
os.environ.setdefault("POSTGRES_USER", "rentory")
os.environ.setdefault("POSTGRES_PASSWORD", "rentory-test")
os.environ.setdefault("POSTGRES_DB", "rentory_test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from rentory.core.database.session import build_engine, build_sessionmaker, create_all_tables  # noqa: E402
from rentory.domain.enums import ProductCategory, ProductType, ReservationStatus  # noqa: E402
from rentory.domain.repositories.reservation_line_repository import ReservationLineRepository  # noqa: E402
from rentory.domain.repositories.reservation_repository import ReservationRepository  # noqa: E402
from rentory.domain.schemas import (  # noqa: E402
    InstanceBulkCreate,
    ProductCreate,
    ReservationCreate,
    ReservationLineCreate,
)
from rentory.domain.services.instance_service import InstanceService  # noqa: E402
from rentory.domain.services.product_service import ProductService  # noqa: E402

ACTOR = "alice"


@pytest.fixture
async def engine():
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await create_all_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    async with build_sessionmaker(engine)() as session:
        yield session


@pytest.fixture
def product_service(session):
    return ProductService(session)


@pytest.fixture
def instance_service(session):
    return InstanceService(session)


@pytest.fixture
async def chairs(product_service):
    """Pooled product with 10 units."""
    return await product_service.create_product(
        ProductCreate(
            name="Chaise pliante",
            category=ProductCategory.FURNITURE,
            product_type=ProductType.POOLED,
            unit_price=Decimal("2.50"),
            initial_quantity=10,
        ),
        ACTOR,
    )


@pytest.fixture
async def projector(product_service):
    """Serialized product without instances."""
    return await product_service.create_product(
        ProductCreate(
            name="Projector",
            category=ProductCategory.AUDIOVISUAL,
            product_type=ProductType.SERIALIZED,
            unit_price=Decimal("80.00"),
        ),
        ACTOR,
    )


@pytest.fixture
async def projector_units(instance_service, projector):
    """Five AVAILABLE instances P-01 .. P-05."""
    return await instance_service.create_instances_bulk(
        InstanceBulkCreate(
            product_id=projector.id,
            count=5,
            serial_numbers=[f"P-{number:02d}" for number in range(1, 6)],
        ),
        ACTOR,
    )


@pytest.fixture
def make_line(session):
    """Create a reservation with one line and return the line."""
    counter = {"value": 0}

    async def _make_line(
        product,
        quantity: int,
        start_date: date,
        end_date: date,
        status: ReservationStatus = ReservationStatus.CONFIRMED,
    ):
        counter["value"] += 1
        reservation = await ReservationRepository(session).create(
            ReservationCreate(reference=f"RES-{counter['value']:04d}", status=status)
        )
        return await ReservationLineRepository(session).create(
            ReservationLineCreate(
                reservation_id=reservation.id,
                product_id=product.id,
                quantity=quantity,
                unit_price=product.unit_price,
                start_date=start_date,
                end_date=end_date,
            )
        )

    return _make_line
