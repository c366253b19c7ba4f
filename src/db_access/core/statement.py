"""Statement wrapper adding timing, error state and query logging."""

import time
from typing import TYPE_CHECKING, Any, Iterator, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from db_access.adapters.base import DriverStatement
from db_access.errors import QueryExecutionError, driver_error_message

if TYPE_CHECKING:
    from db_access.core.connection import ConnectionHandle


class InstrumentedStatement:
    """Wraps a driver statement and reports every execution to its handle.

    The handle's error state is cleared on success and set on failure, and
    the elapsed time is always added to the handle, whether or not the
    driver raised.
    """

    def __init__(self, statement: DriverStatement, handle: "ConnectionHandle"):
        self.statement = statement
        self.handle = handle
        self.elapsed_time = 0.0

    @property
    def query_string(self) -> str:
        return self.statement.sql

    def execute(self, params: Optional[Sequence[Any]] = None) -> bool:
        """
        Execute the wrapped statement.

        Args:
            params: Positional parameters bound to ``?`` placeholders

        Returns:
            True on success

        Raises:
            QueryExecutionError: If the driver fails to execute the statement
        """
        start_time = time.perf_counter()
        error_message = None
        try:
            self.statement.execute(params)
            self.handle.clear_error()
        except SQLAlchemyError as e:
            error_message = driver_error_message(e)
            self.handle.set_error(-1, error_message)
            raise QueryExecutionError(
                error_message, query=self.query_string, params=params
            ) from e
        finally:
            self.elapsed_time = time.perf_counter() - start_time
            self.handle.add_elapsed_time(self.elapsed_time)
            if self.handle.query_log.is_enabled():
                self.handle.set_query_log(
                    self.handle.get_query_log(
                        self.query_string, self.elapsed_time, error_message
                    )
                )
        return True

    def fetch(self) -> Optional[dict[str, Any]]:
        return self.statement.fetch()

    # Legacy name for fetch()
    fetch_object = fetch

    def close_cursor(self) -> None:
        self.statement.close_cursor()

    @property
    def rowcount(self) -> int:
        return self.statement.rowcount

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return iter(self.statement)
