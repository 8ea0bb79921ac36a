"""
Error taxonomy for the deal service.

Every failure leaving the core is a ``DealError`` carrying an ``ErrorKind``.
Store failures are classified once, at the repository boundary, by
``store_errors()``; the HTTP layer is the only place kinds become status
codes (see ``dealdesk.api.errors``).
"""
import asyncio
import enum
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import exc as sa_exc

from dealdesk.core.logging import get_logger

logger = get_logger(__name__)


class ErrorKind(str, enum.Enum):
    """Failure kinds visible to callers."""
    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAVAILABLE = "unavailable"
    INTERNAL = "internal_error"
    RATE_LIMITED = "rate_limited"


class DealError(Exception):
    """Base class for classified failures."""
    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, *, detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class ValidationFailed(DealError):
    """Raised when a request value is missing or malformed."""
    kind = ErrorKind.VALIDATION

    def __init__(self, field: str, message: str, *, detail: Optional[str] = None):
        self.field = field
        super().__init__(f"{field}: {message}", detail=detail)


class DealNotFound(DealError):
    """Raised when the referenced deal does not exist."""
    kind = ErrorKind.NOT_FOUND

    def __init__(self, deal_id: int):
        self.deal_id = deal_id
        super().__init__(f"Deal {deal_id} not found")


class StoreConflict(DealError):
    """Raised when the store rejects a write on a constraint."""
    kind = ErrorKind.CONFLICT


class StoreUnavailable(DealError):
    """Raised on transport failures, timeouts and pool exhaustion."""
    kind = ErrorKind.UNAVAILABLE


class InternalError(DealError):
    """Raised for anything that could not be classified."""
    kind = ErrorKind.INTERNAL


_UNAVAILABLE_TYPES = (
    sa_exc.TimeoutError,  # pool exhausted past pool_timeout
    sa_exc.OperationalError,
    sa_exc.InterfaceError,
    asyncio.TimeoutError,
    ConnectionError,
    OSError,
)


def describe_error(error: BaseException) -> str:
    """
    Exception class plus the driver's own message.

    ``str()`` of a SQLAlchemy statement error embeds the SQL text, the bound
    parameters and a documentation link; none of that is kept.
    """
    if isinstance(error, sa_exc.StatementError):
        if error.orig is None:
            return type(error).__name__
        lines = str(error.orig).strip().splitlines()
        return f"{type(error).__name__}: {lines[0]}" if lines else type(error).__name__
    return f"{type(error).__name__}: {error}"


def classify_error(error: BaseException) -> DealError:
    """Map a raw failure onto the error taxonomy."""
    if isinstance(error, DealError):
        return error
    if isinstance(error, sa_exc.IntegrityError):
        return StoreConflict("The deal violates a store constraint", detail=describe_error(error))
    if isinstance(error, sa_exc.DataError):
        # Value the store cannot represent, e.g. a NUL byte in text or an out-of-range number
        return ValidationFailed("request", "contains a value the store cannot accept", detail=describe_error(error))
    if isinstance(error, _UNAVAILABLE_TYPES):
        return StoreUnavailable("The deal store is unavailable, retry later", detail=describe_error(error))
    if isinstance(error, sa_exc.DBAPIError) and error.connection_invalidated:
        return StoreUnavailable("The deal store connection was lost, retry later", detail=describe_error(error))
    return InternalError("An unexpected error occurred", detail=describe_error(error))


@asynccontextmanager
async def store_errors(operation: str) -> AsyncIterator[None]:
    """
    Classify anything raised inside the block and re-raise it as a DealError.

    ``asyncio.CancelledError`` is a BaseException and passes through untouched.
    """
    try:
        yield
    except DealError:
        raise
    except Exception as e:
        classified = classify_error(e)
        if classified.kind is ErrorKind.INTERNAL:
            logger.exception("Store operation failed", operation=operation, kind=classified.kind.value)
        else:
            logger.warning(
                "Store operation failed",
                operation=operation,
                kind=classified.kind.value,
                error=classified.detail,
            )
        raise classified from e
