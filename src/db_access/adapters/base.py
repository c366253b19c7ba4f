"""Base driver abstract classes for database-specific implementations."""

from abc import ABC, abstractmethod
from typing import Any, Iterator, Optional, Sequence


class DriverStatement(ABC):
    """A prepared statement and, once executed, its open cursor."""

    sql: str

    @abstractmethod
    def execute(self, params: Optional[Sequence[Any]] = None) -> None:
        """
        Execute the statement.

        Args:
            params: Positional parameters bound to ``?`` placeholders

        Raises:
            sqlalchemy.exc.SQLAlchemyError: If the driver rejects the statement
        """
        ...

    @abstractmethod
    def fetch(self) -> Optional[dict[str, Any]]:
        """Fetch the next row as a dict, or None when the cursor is drained."""
        ...

    @abstractmethod
    def close_cursor(self) -> None:
        """Release the cursor so the connection can run another statement."""
        ...

    @property
    @abstractmethod
    def rowcount(self) -> int:
        """Number of rows affected by the last execution."""
        ...

    def __iter__(self) -> Iterator[dict[str, Any]]:
        while True:
            row = self.fetch()
            if row is None:
                return
            yield row


class BaseDriver(ABC):
    """Base driver defining the generic parameterized-query interface."""

    dialect: str = ""

    @abstractmethod
    def prepare(self, sql: str) -> DriverStatement:
        """
        Compile a statement without executing it.

        Args:
            sql: SQL text with ``?`` placeholders

        Returns:
            Unexecuted statement
        """
        ...

    def query(self, sql: str) -> DriverStatement:
        """Execute a literal SQL string without parameter binding."""
        stmt = self.prepare(sql)
        stmt.execute()
        return stmt

    @abstractmethod
    def begin(self) -> None:
        """Start a real transaction."""
        ...

    @abstractmethod
    def commit(self) -> None:
        """Commit the real transaction."""
        ...

    @abstractmethod
    def rollback(self) -> None:
        """Roll back the real transaction."""
        ...

    @abstractmethod
    def in_transaction(self) -> bool:
        """Whether a real transaction is active on the connection."""
        ...

    @abstractmethod
    def last_insert_id(self) -> int:
        """Auto-increment ID generated by the last INSERT on this connection."""
        ...

    @abstractmethod
    def quote(self, value: str) -> str:
        """Quote a string literal for inclusion in SQL text."""
        ...

    @property
    @abstractmethod
    def server_version(self) -> str:
        """Database server version string."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close the underlying connection."""
        ...
