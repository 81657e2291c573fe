"""
Base Service.

Services own a session, call repositories through _execute_db_operation,
and log through the helpers here. SQLAlchemy errors never leave a service:
they are translated by classify_db_error into the application hierarchy,
so the API layer only ever sees ApplicationError subclasses.

Writes are committed by the service itself through _commit, before the
response is built, so a failed commit surfaces as an error response and
nothing that depends on the write (audit records) happens.
"""

from collections.abc import Awaitable
from typing import Any, TypeVar

from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from notevault.backend.core.exceptions import (
    ApplicationError,
    ConflictError,
    DatabaseError,
    EngineUnavailableError,
)
from notevault.backend.core.logging import get_logger

T = TypeVar("T")

# The store could not be reached or did not answer in time
UNAVAILABLE_ERRORS = (
    OperationalError,
    InterfaceError,
    DisconnectionError,
    PoolTimeoutError,
    ConnectionError,
    TimeoutError,
)


def is_unavailable(exc: BaseException) -> bool:
    if isinstance(exc, UNAVAILABLE_ERRORS):
        return True
    return isinstance(exc, DBAPIError) and bool(exc.connection_invalidated)


def classify_db_error(operation: str, exc: BaseException) -> ApplicationError:
    """
    Translate a store failure into an application error.

    Unique violations become ConflictError, connectivity and timeout
    failures become EngineUnavailableError, anything else DatabaseError.
    """
    if isinstance(exc, IntegrityError):
        text = str(exc).lower()
        if "unique" in text or "duplicate" in text:
            return ConflictError("Resource already exists")
        return DatabaseError(f"Database constraint violation: {operation}")
    if is_unavailable(exc):
        return EngineUnavailableError(f"Note store unavailable: {operation}")
    return DatabaseError(f"Database operation failed: {operation}")


class BaseService:
    """Common session handling, error translation and logging for services."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._logger = get_logger(self.__class__.__module__)

    @property
    def session(self) -> AsyncSession:
        return self._session

    async def _execute_db_operation(
        self,
        operation: str,
        coro: Awaitable[T],
    ) -> T:
        """
        Await a repository call, translating store failures.

        Application errors raised inside (NotFoundError and friends) pass
        through untouched.

        Raises:
            ConflictError: Unique constraint violation
            EngineUnavailableError: Store unreachable or timed out
            DatabaseError: Any other store failure
        """
        try:
            return await coro
        except (SQLAlchemyError, ConnectionError, TimeoutError) as e:
            error = classify_db_error(operation, e)
            log = self._logger.warning if isinstance(error, ConflictError) else self._logger.error
            log(
                "Note store operation failed",
                extra={
                    "operation": operation,
                    "code": error.code,
                    "exception_type": type(e).__name__,
                    "error": str(e),
                },
            )
            raise error from e

    async def _commit(self, operation: str) -> None:
        """Commit the session, translating store failures like any other call."""
        await self._execute_db_operation(f"{operation}_commit", self._session.commit())

    def _log_operation(self, operation: str, **context: Any) -> None:
        self._logger.info(
            operation,
            extra={"service": self.__class__.__name__, **context},
        )

    def _log_debug(self, message: str, **context: Any) -> None:
        self._logger.debug(
            message,
            extra={"service": self.__class__.__name__, **context},
        )
