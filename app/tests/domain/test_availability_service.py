from datetime import date

import pytest
from rentory.core.exceptions import errors
from rentory.domain.availability import AvailabilityFactory
from rentory.domain.availability.providers import PooledAvailability, SerializedAvailability
from rentory.domain.enums import InstanceStatus, ProductType, ReservationStatus
from rentory.domain.schemas import AvailabilityQuery
from rentory.domain.services.allocation_service import AllocationService
from rentory.domain.services.availability_service import AvailabilityService

ACTOR = "alice"


class TestPooledAvailability:
    """Availability of pooled products"""

    async def test_overlapping_held_lines_are_subtracted(self, session, chairs, make_line):
        """Test that only PENDING and CONFIRMED lines overlapping the range count."""
        await make_line(chairs, 3, date(2026, 7, 1), date(2026, 7, 3), status=ReservationStatus.PENDING)
        await make_line(chairs, 4, date(2026, 7, 2), date(2026, 7, 6), status=ReservationStatus.CONFIRMED)
        await make_line(chairs, 5, date(2026, 7, 2), date(2026, 7, 6), status=ReservationStatus.CANCELLED)
        await make_line(chairs, 6, date(2026, 7, 2), date(2026, 7, 6), status=ReservationStatus.COMPLETED)
        await make_line(chairs, 8, date(2026, 8, 1), date(2026, 8, 2), status=ReservationStatus.CONFIRMED)

        result = await AvailabilityService(session).check_availability(chairs.id, 3, date(2026, 7, 1), date(2026, 7, 4))

        assert result.remaining == 3
        assert result.available is True
        assert result.candidate_serials == []

    async def test_boundary_dates_overlap(self, session, chairs, make_line):
        """Test that a line ending on the first requested day still overlaps."""
        await make_line(chairs, 8, date(2026, 6, 25), date(2026, 7, 1))
        service = AvailabilityService(session)

        touching = await service.check_availability(chairs.id, 3, date(2026, 7, 1), date(2026, 7, 3))
        after = await service.check_availability(chairs.id, 3, date(2026, 7, 2), date(2026, 7, 3))

        assert touching.remaining == 2
        assert touching.available is False
        assert after.remaining == 10
        assert after.available is True

    async def test_excluded_line_does_not_count_against_itself(self, session, chairs, make_line):
        """Test the exclude_line_id argument."""
        line = await make_line(chairs, 9, date(2026, 7, 1), date(2026, 7, 3))
        service = AvailabilityService(session)

        without = await service.check_availability(chairs.id, 9, date(2026, 7, 1), date(2026, 7, 3))
        excluded = await service.check_availability(chairs.id, 9, date(2026, 7, 1), date(2026, 7, 3), line.id)

        assert without.available is False
        assert excluded.available is True
        assert excluded.remaining == 10

    async def test_allocated_line_counts_twice(self, session, chairs, make_line):
        """
        Test that an allocated line lowers the counter and is still subtracted while overlapping.

        Pins the known double count of pooled availability (see PooledAvailability), not a
        desired figure: with a correct count both ranges would report 6 and 10.
        """
        line = await make_line(chairs, 4, date(2026, 7, 1), date(2026, 7, 3))
        await AllocationService(session).allocate(chairs.id, 4, line.id, ACTOR)
        service = AvailabilityService(session)

        overlapping = await service.check_availability(chairs.id, 1, date(2026, 7, 2), date(2026, 7, 2))
        elsewhere = await service.check_availability(chairs.id, 1, date(2026, 9, 1), date(2026, 9, 2))

        assert overlapping.remaining == 2
        assert elsewhere.remaining == 6


class TestSerializedAvailability:
    """Availability of serialized products"""

    async def test_only_available_instances_count(self, session, instance_service, projector, projector_units):
        """Test that instances outside AVAILABLE are not free."""
        await instance_service.change_status(projector_units[0].id, InstanceStatus.OUT_OF_SERVICE, ACTOR)
        await instance_service.send_to_maintenance(projector_units[1].id, "Lamp replacement", ACTOR)

        result = await AvailabilityService(session).check_availability(
            projector.id, 2, date(2026, 7, 1), date(2026, 7, 3)
        )

        assert result.remaining == 3
        assert result.candidate_serials == ["P-03", "P-04"]

    async def test_pending_lines_do_not_block_instances(self, session, projector, projector_units, make_line):
        """Test that unallocated lines, even overlapping, do not reduce serialized capacity."""
        await make_line(projector, 4, date(2026, 7, 1), date(2026, 7, 3), status=ReservationStatus.PENDING)
        await make_line(projector, 4, date(2026, 7, 1), date(2026, 7, 3), status=ReservationStatus.CONFIRMED)

        result = await AvailabilityService(session).check_availability(
            projector.id, 5, date(2026, 7, 1), date(2026, 7, 3)
        )

        assert result.available is True
        assert result.remaining == 5
        assert result.candidate_serials == ["P-01", "P-02", "P-03", "P-04", "P-05"]

    async def test_short_request(self, session, projector, projector_units):
        """Test that a request beyond the free instances is reported unavailable."""
        result = await AvailabilityService(session).check_availability(
            projector.id, 7, date(2026, 7, 1), date(2026, 7, 3)
        )

        assert result.available is False
        assert result.remaining == 5
        assert len(result.candidate_serials) == 5


class TestAvailabilityArguments:
    """Argument validation and batch checks"""

    async def test_invalid_range(self, session, chairs):
        """Test that a range ending before it starts is rejected."""
        with pytest.raises(errors.InvalidRequestError):
            await AvailabilityService(session).check_availability(chairs.id, 1, date(2026, 7, 3), date(2026, 7, 1))

    async def test_non_positive_quantity(self, session, chairs):
        """Test that zero and negative quantities are rejected."""
        chairs_id = chairs.id
        service = AvailabilityService(session)

        with pytest.raises(errors.InvalidRequestError):
            await service.check_availability(chairs_id, 0, date(2026, 7, 1), date(2026, 7, 1))

        with pytest.raises(errors.InvalidRequestError):
            await service.check_availability(chairs_id, -2, date(2026, 7, 1), date(2026, 7, 1))

    async def test_unknown_product(self, session):
        """Test that an unknown product raises UnknownProductError."""
        with pytest.raises(errors.UnknownProductError):
            await AvailabilityService(session).check_availability(
                "gid://rentory/Product/AAAAAAAAAAAAAAAAAAAAAA", 1, date(2026, 7, 1), date(2026, 7, 1)
            )

    async def test_batch_results_are_independent(self, session, chairs, projector, projector_units):
        """Test that each query of a batch is answered on its own."""
        queries = [
            AvailabilityQuery(product_id=chairs.id, quantity=8, start_date=date(2026, 7, 1), end_date=date(2026, 7, 2)),
            AvailabilityQuery(product_id=chairs.id, quantity=8, start_date=date(2026, 7, 1), end_date=date(2026, 7, 2)),
            AvailabilityQuery(
                product_id=projector.id, quantity=6, start_date=date(2026, 7, 1), end_date=date(2026, 7, 2)
            ),
        ]

        results = await AvailabilityService(session).check_availability_batch(queries)

        assert [result.available for result in results] == [True, True, False]
        assert [result.product_id for result in results] == [chairs.id, chairs.id, projector.id]


class TestAvailabilityFactory:
    """Strategy selection by product type"""

    def test_strategies_by_type(self, session):
        assert isinstance(AvailabilityFactory.create_provider(ProductType.POOLED, session), PooledAvailability)
        assert isinstance(AvailabilityFactory.create_provider("serialized", session), SerializedAvailability)

    async def test_registered_provider_is_used(self, session, chairs):
        """Test that a registered strategy replaces the default of its type."""

        class _ClosedForInventory(PooledAvailability):
            async def compute_available(self, product, start_date, end_date, exclude_line_id=None):
                return 0

        AvailabilityFactory.register_provider(ProductType.POOLED, _ClosedForInventory)
        try:
            result = await AvailabilityService(session).check_availability(
                chairs.id, 1, date(2026, 7, 1), date(2026, 7, 1)
            )
        finally:
            AvailabilityFactory.register_provider(ProductType.POOLED, PooledAvailability)

        assert result.available is False
        assert result.remaining == 0
