import functools
import inspect
from collections.abc import Awaitable, Callable
from typing import Any, ParamSpec, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession
from rentory.core.database.transaction import Transaction, in_transaction
from rentory.core.logging import get_logger

logger = get_logger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def _resolve_session(func: Callable[..., Any], args: tuple[Any, ...], kwargs: dict[str, Any]) -> AsyncSession:
    if args and hasattr(args[0], "session"):
        session = args[0].session
    elif "session" in kwargs:
        session = kwargs["session"]
    else:
        param_names = list(inspect.signature(func).parameters.keys())
        if "session" not in param_names:
            raise ValueError("Could not find session parameter in function or method")

        session_idx = param_names.index("session")
        if len(args) <= session_idx:
            raise ValueError("Session argument is required but not provided")
        session = args[session_idx]

    if not isinstance(session, AsyncSession):
        raise TypeError("Session must be an instance of AsyncSession")

    return session


def transactional(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
    """
    Run a coroutine inside a transaction.

    The outermost decorated call opens a ``Transaction``: it commits when the
    call returns and rolls back when it raises, so a failed inventory
    operation leaves counters, instance states and ledger rows untouched.
    Nested decorated calls join the running transaction.

    The function must take a ``session`` parameter or be a method of an
    object with a ``session`` attribute.

    Usage:
        class AllocationService:
            def __init__(self, session: AsyncSession):
                self.session = session

            @transactional
            async def allocate(self, ...):
                ...
    """

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        session = _resolve_session(func, args, kwargs)

        if in_transaction():
            return await func(*args, **kwargs)

        async with Transaction(session):
            try:
                return await func(*args, **kwargs)
            except Exception:
                logger.debug(f"rentory.core.database.decorators.transactional:: rolling back {func.__qualname__}")
                raise

    return wrapper
