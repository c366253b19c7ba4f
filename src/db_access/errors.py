"""Error types raised or reported by the database access layer."""

from typing import Any, Optional, Sequence


class DBError(Exception):
    """Base exception for database access errors."""

    def __init__(self, message: str, code: int = -1):
        self.code = code
        self.message = message
        super().__init__(message)


class ConfigurationError(DBError):
    """Raised when no configuration exists for a connection type."""


class DatabaseConnectionError(DBError):
    """Raised when the driver connection cannot be established."""


class InvalidArgumentsError(DBError):
    """Query arguments are not a keyed record."""


class TemplateNotFoundError(DBError):
    """No query template exists for the requested query ID."""


class TemplateCompileError(DBError):
    """The query template could not be compiled."""


class QueryBuildError(DBError):
    """The compiled query could not be rendered with the given arguments."""


class QueryExecutionError(DBError):
    """The driver failed to execute a statement."""

    def __init__(
        self,
        message: str,
        code: int = -1,
        query: Optional[str] = None,
        params: Optional[Sequence[Any]] = None,
    ):
        self.query = query
        self.params = list(params) if params else []
        super().__init__(message, code)


def driver_error_message(exc: BaseException) -> str:
    """
    Extract the DB-API message from a driver exception.

    SQLAlchemy wraps DB-API errors and appends the statement and a
    documentation link to the message; only the original text is kept.

    Args:
        exc: Exception raised by the driver

    Returns:
        Human-readable error message
    """
    orig = getattr(exc, "orig", None)
    if orig is not None:
        return str(orig)
    return str(exc)
