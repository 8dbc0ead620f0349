from contextvars import ContextVar, Token
from types import TracebackType

from sqlalchemy.ext.asyncio import AsyncSession
from rentory.core.logging import get_logger

logger = get_logger(__name__)

_current_transaction: ContextVar["Transaction | None"] = ContextVar("current_transaction", default=None)


def in_transaction() -> bool:
    """Return True when the current task runs inside a ``Transaction`` block."""
    return _current_transaction.get() is not None


def current_transaction() -> "Transaction | None":
    return _current_transaction.get()


class Transaction:
    """
    Unit of work bound to an ``AsyncSession`` for the current task.

    On a clean exit the session is committed, on an exception it is rolled
    back and the exception propagates. While the block runs,
    ``in_transaction()`` is True so repositories only flush and nested
    ``@transactional`` calls join this unit of work instead of committing.

    Usage:
        async with Transaction(session):
            ...
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self._token: Token | None = None

    async def __aenter__(self) -> "Transaction":
        if in_transaction():
            raise RuntimeError("A transaction is already active in this context")

        self._token = _current_transaction.set(self)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool:
        try:
            if exc_type is None:
                try:
                    await self.session.commit()
                except BaseException:
                    logger.exception("rentory.core.database.transaction:: commit failed, rolling back")
                    await self.session.rollback()
                    raise
            else:
                await self.session.rollback()
        finally:
            if self._token is not None:
                _current_transaction.reset(self._token)
                self._token = None

        return False
