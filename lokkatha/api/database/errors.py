"""Storage-boundary errors raised by repositories and the connection manager.

Lookups that find nothing return ``None``; these exceptions are reserved for
writes rejected by a constraint and for storage that cannot be reached.
"""

import asyncpg


class RepositoryError(Exception):
    """Base exception for all data-layer failures."""

    code = "repository_error"

    def __init__(self, message: str, operation: str):
        super().__init__(message)
        self.message = message
        self.operation = operation


class ConstraintViolationError(RepositoryError):
    """A write was rejected by a storage constraint (length, enum, not-null)."""

    code = "constraint_violation"


class DuplicateEmailError(ConstraintViolationError):
    """A user with the given email already exists."""

    code = "duplicate_email"

    def __init__(self, email: str, operation: str = "create_user"):
        super().__init__(f"A user with email {email!r} already exists", operation)
        self.email = email


class StorageUnavailableError(RepositoryError):
    """The database could not be reached or the connection was lost."""

    code = "storage_unavailable"


# Driver errors that mean the write itself was invalid, not that storage is down
_CONSTRAINT_ERRORS = (
    asyncpg.IntegrityConstraintViolationError,
    asyncpg.StringDataRightTruncationError,
    asyncpg.DataError,
)

_CONNECTION_ERRORS = (
    asyncpg.PostgresConnectionError,
    asyncpg.InterfaceError,
    OSError,
)

# Everything a query can raise from the driver or the socket underneath it
DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


def translate_error(error: Exception, operation: str) -> RepositoryError:
    """Map a driver exception onto the repository error hierarchy.

    Usage: ``raise translate_error(e, "create_tale") from e``
    """
    if isinstance(error, _CONSTRAINT_ERRORS):
        return ConstraintViolationError(str(error), operation)
    if isinstance(error, _CONNECTION_ERRORS):
        return StorageUnavailableError(str(error), operation)
    return RepositoryError(str(error), operation)
