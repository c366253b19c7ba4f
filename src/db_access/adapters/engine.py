"""SQLAlchemy-backed driver holding a single connection."""

import itertools
import re
from typing import Any, Optional, Sequence

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, CursorResult, Engine
from sqlalchemy.types import String

from db_access.adapters.base import BaseDriver, DriverStatement
from db_access.models.config import ConnectionConfig

# Quoted literals and identifiers are skipped when rewriting placeholders
_PLACEHOLDER_PATTERN = re.compile(
    r"""('(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*"|`[^`]*`)|(\?)|(%)""", re.DOTALL
)

SUPPORTED_PARAMSTYLES = {"qmark", "format", "pyformat", "numeric"}


def convert_placeholders(sql: str, paramstyle: str) -> str:
    """
    Rewrite ``?`` placeholders into the DB-API driver's paramstyle.

    Args:
        sql: SQL text using ``?`` placeholders
        paramstyle: DB-API paramstyle of the driver

    Returns:
        SQL text the driver can bind positional parameters to
    """
    if paramstyle == "qmark":
        return sql

    counter = itertools.count(1)

    def replace(match: re.Match) -> str:
        literal = match.group(1)
        if literal:
            # DB-API format drivers interpolate the whole statement, literals included
            return literal.replace("%", "%%") if paramstyle in ("format", "pyformat") else literal
        if match.group(2):
            return f":{next(counter)}" if paramstyle == "numeric" else "%s"
        # Literal percent signs must be doubled for format-style drivers
        return "%%" if paramstyle in ("format", "pyformat") else "%"

    return _PLACEHOLDER_PATTERN.sub(replace, sql)


class EngineStatement(DriverStatement):
    """Statement executed through ``Connection.exec_driver_sql``."""

    def __init__(self, driver: "EngineDriver", sql: str):
        self.sql = sql
        self._driver = driver
        self._result: Optional[CursorResult] = None
        self._rowcount = 0

    def execute(self, params: Optional[Sequence[Any]] = None) -> None:
        self.close_cursor()
        self._result = self._driver.execute_driver_sql(self.sql, params)
        self._rowcount = max(self._result.rowcount, 0)

    def fetch(self) -> Optional[dict[str, Any]]:
        if self._result is None or not self._result.returns_rows:
            return None
        row = self._result.fetchone()
        if row is None:
            return None
        return dict(row._mapping)

    def close_cursor(self) -> None:
        if self._result is not None:
            self._result.close()
            self._result = None

    @property
    def rowcount(self) -> int:
        return self._rowcount


class EngineDriver(BaseDriver):
    """Generic driver over one SQLAlchemy connection in autocommit mode.

    Transactions are started and ended with explicit SQL so that statements
    outside a transaction commit immediately, as MySQL does by default.
    """

    BEGIN_SQL = "BEGIN"
    COMMIT_SQL = "COMMIT"
    ROLLBACK_SQL = "ROLLBACK"
    LAST_INSERT_ID_SQL = ""

    def __init__(self, config: ConnectionConfig):
        """
        Open the connection.

        Args:
            config: Connection configuration

        Raises:
            sqlalchemy.exc.SQLAlchemyError: If the connection cannot be opened
            ValueError: If the DB-API driver uses an unsupported paramstyle
        """
        self.config = config
        self.dialect = config.dialect
        self.engine: Engine = create_engine(
            config.sqlalchemy_url,
            echo=config.echo_sql,
            isolation_level="AUTOCOMMIT",
            **self._engine_options(),
        )
        self.paramstyle = self.engine.dialect.paramstyle
        if self.paramstyle not in SUPPORTED_PARAMSTYLES:
            raise ValueError(f"Unsupported DB-API paramstyle: {self.paramstyle}")
        self.connection: Connection = self.engine.connect()
        self._in_transaction = False

    def _engine_options(self) -> dict[str, Any]:
        """Extra keyword arguments for ``create_engine``."""
        return {}

    def execute_driver_sql(
        self, sql: str, params: Optional[Sequence[Any]] = None
    ) -> CursorResult:
        """Run SQL text on the connection, binding params when given."""
        if params:
            return self.connection.exec_driver_sql(
                convert_placeholders(sql, self.paramstyle), tuple(params)
            )
        # Without parameters the driver must not interpret % sequences
        return self.connection.exec_driver_sql(
            sql, execution_options={"no_parameters": True}
        )

    def prepare(self, sql: str) -> EngineStatement:
        return EngineStatement(self, sql)

    def begin(self) -> None:
        self.execute_driver_sql(self.BEGIN_SQL)
        self._in_transaction = True

    def commit(self) -> None:
        try:
            self.execute_driver_sql(self.COMMIT_SQL)
        finally:
            self._in_transaction = False

    def rollback(self) -> None:
        try:
            self.execute_driver_sql(self.ROLLBACK_SQL)
        finally:
            self._in_transaction = False

    def in_transaction(self) -> bool:
        return self._in_transaction

    def last_insert_id(self) -> int:
        value = self.execute_driver_sql(self.LAST_INSERT_ID_SQL).scalar()
        return int(value or 0)

    def quote(self, value: str) -> str:
        processor = String().literal_processor(dialect=self.engine.dialect)
        return processor(str(value))

    @property
    def server_version(self) -> str:
        info = self.engine.dialect.server_version_info
        return ".".join(str(part) for part in info) if info else ""

    def close(self) -> None:
        self.connection.close()
        self.engine.dispose()
