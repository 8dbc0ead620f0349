import pytest
from rentory.core.database.decorators import transactional
from rentory.core.database.session import db_context_manager
from rentory.core.database.transaction import Transaction, current_transaction, in_transaction
from rentory.domain.enums import ReservationStatus
from rentory.domain.repositories.reservation_repository import ReservationRepository
from rentory.domain.schemas import ReservationCreate
from sqlmodel.ext.asyncio.session import AsyncSession


class _ReservationWriter:
    def __init__(self, session):
        self.session = session
        self.repository = ReservationRepository(session)

    @transactional
    async def write(self, reference: str, fail: bool = False):
        await self.repository.create(ReservationCreate(reference=reference, status=ReservationStatus.PENDING))
        if fail:
            raise RuntimeError("write failed")

    @transactional
    async def write_both(self, first: str, second: str, fail: bool = False):
        await self.write(first)
        assert in_transaction() is True
        await self.write(second, fail=fail)


class TestTransaction:
    """Test cases for the unit of work"""

    async def test_commit_on_success(self, session):
        async with Transaction(session) as transaction:
            assert current_transaction() is transaction
            await ReservationRepository(session).create(
                ReservationCreate(reference="RES-0001", status=ReservationStatus.PENDING)
            )

        assert in_transaction() is False
        assert len(await ReservationRepository(session).find_all()) == 1
        assert (await ReservationRepository(session).get_by_reference("RES-0001")).status == ReservationStatus.PENDING

    async def test_rollback_on_error(self, session):
        with pytest.raises(RuntimeError):
            async with Transaction(session):
                await ReservationRepository(session).create(
                    ReservationCreate(reference="RES-0001", status=ReservationStatus.PENDING)
                )
                raise RuntimeError("allocation failed")

        assert await ReservationRepository(session).find_all() == []

    async def test_nested_transaction_is_refused(self, session):
        async with Transaction(session):
            with pytest.raises(RuntimeError):
                async with Transaction(session):
                    pass


class TestTransactional:
    """Test cases for the transactional decorator"""

    async def test_nested_calls_join_one_unit_of_work(self, session):
        """Test that a failure in a nested call rolls back the outer call too."""
        writer = _ReservationWriter(session)

        with pytest.raises(RuntimeError):
            await writer.write_both("RES-0001", "RES-0002", fail=True)

        assert await ReservationRepository(session).find_all() == []

        await writer.write_both("RES-0003", "RES-0004")
        assert len(await ReservationRepository(session).find_all()) == 2

    async def test_session_parameter(self, session):
        @transactional
        async def write(session: AsyncSession, reference: str):
            await ReservationRepository(session).create(
                ReservationCreate(reference=reference, status=ReservationStatus.PENDING)
            )

        await write(session, "RES-0001")

        assert len(await ReservationRepository(session).find_all()) == 1

    async def test_missing_session(self):
        @transactional
        async def write(reference: str):
            return reference

        with pytest.raises(ValueError):
            await write("RES-0001")


class TestSessionFactory:
    """Test cases for the session helpers"""

    async def test_db_context_manager_yields_a_session(self):
        async with db_context_manager() as session:
            assert isinstance(session, AsyncSession)
