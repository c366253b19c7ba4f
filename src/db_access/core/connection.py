"""Connection handle wrapping one live driver connection."""

import logging
import re
import time
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Union

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from db_access.adapters import BaseDriver, create_driver
from db_access.core.pagination import Pagination
from db_access.core.prefix import PrefixRewriter
from db_access.core.statement import InstrumentedStatement
from db_access.core.template_cache import QueryTemplateCache
from db_access.core.transaction import TransactionLedger
from db_access.diagnostics import QueryLog
from db_access.errors import (
    DBError,
    InvalidArgumentsError,
    QueryBuildError,
    QueryExecutionError,
    TemplateCompileError,
    TemplateNotFoundError,
    driver_error_message,
)
from db_access.models import (
    ConnectionConfig,
    ExecutionOutput,
    Navigation,
    QueryDescriptor,
    QueryLogEntry,
)

logger = logging.getLogger(__name__)

# Query IDs with two segments ("member.getMemberInfo") live under this group
DEFAULT_QUERY_GROUP = "modules"
SEQUENCE_CLEANUP_INTERVAL = 10000

_QUERY_ID_SEGMENT = re.compile(r"^[\w-]+$")
_NUMERIC_STRING = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")

Row = dict[str, Any]
FetchResult = Union[Row, dict[int, Row]]


class ConnectionHandle:
    """One logical connection type (e.g. master) and its live connection.

    Two call shapes coexist. ``prepare_query``, ``run_query`` and
    ``run_raw_query`` raise ``QueryExecutionError`` on driver failures.
    ``execute_query`` never raises for query problems and reports them in the
    returned ``ExecutionOutput`` instead.

    The handle also keeps a snapshot of the last error (``is_error``,
    ``get_error``). It is overwritten by every statement and is only a
    convenience for legacy callers; the return values are authoritative.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        driver: Optional[BaseDriver] = None,
        template_cache: Optional[QueryTemplateCache] = None,
        query_root: Union[str, Path] = ".",
        query_log: Optional[QueryLog] = None,
    ):
        """
        Initialize the handle and connect.

        Args:
            config: Connection configuration
            driver: Already connected driver; opened from config when omitted
            template_cache: Shared compiled-template cache
            query_root: Root directory of query templates
            query_log: Diagnostic query log

        Raises:
            DatabaseConnectionError: If the connection cannot be opened
        """
        self.config = config
        self.type = config.type
        self.prefix = config.prefix
        self.charset = config.charset
        self.engine = config.engine
        self.query_root = Path(query_root)
        self.template_cache = (
            template_cache if template_cache is not None else QueryTemplateCache()
        )
        self.query_log = query_log if query_log is not None else QueryLog()

        self._driver = driver if driver is not None else create_driver(config)
        self._rewriter = PrefixRewriter(config.prefix)
        self.transaction = TransactionLedger(self._driver, log=self._log_transaction)

        self._last_stmt: Optional[InstrumentedStatement] = None
        self._query_time = 0.0
        self._total_time = 0.0
        self._errno = 0
        self._errstr = "success"
        self._error: Optional[DBError] = None

        self.db_type = self._driver.dialect or config.dialect
        self.db_version = self._driver.server_version
        logger.info(f"Connected DB type '{self.type}' ({self.db_type} {self.db_version})")

    def __repr__(self) -> str:
        return f"<ConnectionHandle type={self.type!r} dialect={self.db_type!r}>"

    def get_handle(self) -> BaseDriver:
        """Get the underlying driver."""
        return self._driver

    # ==================== Raw execution ====================

    def prepare_query(self, query_string: str) -> InstrumentedStatement:
        """
        Create a prepared statement after adding table prefixes.

        Args:
            query_string: SQL text with ``?`` placeholders

        Returns:
            Unexecuted statement

        Raises:
            QueryExecutionError: If the driver cannot prepare the statement
        """
        return self._prepare(self.add_prefixes(query_string))

    def run_query(self, query_string: str, *args: Any) -> InstrumentedStatement:
        """
        Execute a query string after adding table prefixes.

        Parameters may be passed individually or as a single list. With
        parameters the statement is prepared and bound; without, the literal
        string is executed.

        Returns:
            Executed statement, ready to fetch

        Raises:
            QueryExecutionError: If execution fails
        """
        if len(args) == 1 and isinstance(args[0], (list, tuple)):
            args = tuple(args[0])

        stmt = self._prepare(self.add_prefixes(query_string))
        stmt.execute(list(args) if args else None)
        self._last_stmt = stmt
        return stmt

    def run_raw_query(self, query_string: str) -> InstrumentedStatement:
        """
        Execute a literal query string without prefixes or parameter binding.

        Raises:
            QueryExecutionError: If execution fails
        """
        stmt = self._prepare(query_string)
        stmt.execute()
        self._last_stmt = stmt
        return stmt

    def _prepare(self, query_string: str) -> InstrumentedStatement:
        try:
            return InstrumentedStatement(self._driver.prepare(query_string), self)
        except SQLAlchemyError as e:
            message = driver_error_message(e)
            self.set_error(-1, message)
            raise QueryExecutionError(message, query=query_string) from e

    # ==================== Template queries ====================

    def execute_query(
        self,
        query_id: str,
        args: Any = None,
        column_list: Optional[Sequence[str]] = None,
    ) -> ExecutionOutput:
        """
        Execute a template-declared query.

        Args:
            query_id: Dotted ID, e.g. ``member.getMemberInfo`` or
                ``modules.member.getMemberInfo``
            args: Keyed query arguments (mapping, pydantic model or object)
            column_list: Requested output columns

        Returns:
            Execution output; failures are reported in its error fields
        """
        try:
            args = self._normalize_args(args)
        except InvalidArgumentsError as e:
            return self._report(e)

        columns = list(column_list) if isinstance(column_list, (list, tuple)) else []

        class_start_time = time.perf_counter()

        try:
            descriptor = self._load_descriptor(query_id)
            query_string, query_params = self._render(descriptor, args, columns)
        except DBError as e:
            return self._report(e)

        # Paginated queries run a COUNT(*) pass first.
        last_index = 0
        if descriptor.requires_pagination():
            output, last_index = self._execute_count_query(descriptor, args)
            if not output.success:
                return output

            # Skip the main query if the current page is out of bounds.
            if output.page > output.total_page:
                output.data = {}
                output.query = query_string
                output.elapsed_time = "0.00000"
                self._total_time += time.perf_counter() - class_start_time
                return output
        else:
            output = ExecutionOutput()

        try:
            query_start_time = time.perf_counter()
            result = self._execute_and_fetch(query_string, query_params, last_index)
            query_elapsed_time = time.perf_counter() - query_start_time
        except QueryExecutionError as e:
            return self._report(e)

        output.query = query_string
        output.elapsed_time = f"{query_elapsed_time:0.5f}"
        output.data = result

        self._total_time += time.perf_counter() - class_start_time
        return output

    def _execute_count_query(
        self, descriptor: QueryDescriptor, args: dict[str, Any]
    ) -> tuple[ExecutionOutput, int]:
        """
        Run the COUNT(*) variant of a paginated query.

        Returns:
            Tuple of (output with page numbers, last_index for reverse fetch)
        """
        try:
            query_string, query_params = self._render(
                descriptor, args, [], count_mode=True
            )
            result = self._execute_and_fetch(query_string, query_params)

            navigation = descriptor.navigation or Navigation()
            _, list_count = navigation.list_count.get_value(args)
            _, page_count = navigation.page_count.get_value(args)
            _, page = navigation.page.get_value(args)
            pagination = Pagination.calculate(
                self._count_value(result), list_count, page, page_count
            )
        except DBError as e:
            return self._report(e), 0

        output = ExecutionOutput(
            total_count=pagination.total_count,
            total_page=pagination.total_page,
            page=pagination.page,
            data=None,
            page_navigation=pagination.navigation(),
        )
        return output, pagination.last_index

    def _execute_and_fetch(
        self, query_string: str, query_params: Sequence[Any], last_index: int = 0
    ) -> FetchResult:
        stmt = self._prepare(query_string)
        self._last_stmt = stmt
        stmt.execute(query_params or None)
        try:
            return self.fetch(stmt, last_index)
        except SQLAlchemyError as e:
            message = driver_error_message(e)
            self.set_error(-1, message)
            raise QueryExecutionError(
                message, query=query_string, params=query_params
            ) from e

    @staticmethod
    def _count_value(result: Any) -> Any:
        # COUNT(*) queries project their total as a column named "count"
        if isinstance(result, dict) and "count" in result:
            return result["count"] or 0
        return 0

    def _load_descriptor(self, query_id: str) -> QueryDescriptor:
        path = self.resolve_query_path(query_id)
        try:
            return self.template_cache.get(path)
        except TemplateNotFoundError:
            raise TemplateNotFoundError(f"Query '{query_id}' does not exist.")
        except TemplateCompileError as e:
            logger.warning(f"Query '{query_id}' cannot be parsed: {e}")
            raise TemplateCompileError(f"Query '{query_id}' cannot be parsed.") from e

    def _render(
        self,
        descriptor: QueryDescriptor,
        args: dict[str, Any],
        columns: Sequence[str],
        count_mode: bool = False,
    ) -> tuple[str, list[Any]]:
        try:
            query_string, query_params = descriptor.render(
                self.prefix, args, columns, count_mode
            )
        except QueryBuildError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise QueryBuildError(str(e)) from e
        return query_string, list(query_params or [])

    def resolve_query_path(self, query_id: str) -> Path:
        """
        Map a dotted query ID to its template file.

        Raises:
            TemplateNotFoundError: If the ID is malformed or the file is missing
        """
        parts = query_id.split(".")
        if len(parts) == 2:
            parts.insert(0, DEFAULT_QUERY_GROUP)
        if len(parts) != 3 or not all(_QUERY_ID_SEGMENT.match(p) for p in parts):
            raise TemplateNotFoundError(f"Query '{query_id}' does not exist.")

        path = self.query_root / parts[0] / parts[1] / "queries" / f"{parts[2]}.xml"
        if not path.is_file():
            raise TemplateNotFoundError(f"Query '{query_id}' does not exist.")
        return path

    @staticmethod
    def _normalize_args(args: Any) -> dict[str, Any]:
        if args is None:
            return {}
        if isinstance(args, Mapping):
            return dict(args)
        if isinstance(args, BaseModel):
            return args.model_dump()
        if hasattr(args, "__dict__") and not isinstance(args, type) and not callable(args):
            return dict(vars(args))
        raise InvalidArgumentsError("Invalid query arguments.")

    def _report(self, exc: DBError) -> ExecutionOutput:
        return self.set_error(exc.code, exc.message, exc=exc)

    # ==================== Fetching ====================

    def fetch(self, stmt: InstrumentedStatement, last_index: int = 0) -> FetchResult:
        """
        Drain an executed statement into rows keyed by ordinal.

        With ``last_index == 0`` rows are numbered 0, 1, 2, ... and a single
        row is returned directly instead of a one-entry collection. Otherwise
        numbering starts at ``last_index`` and counts down, so that on a
        paginated result each key is the row's position from the end of the
        full result set.

        Args:
            stmt: Executed statement
            last_index: Starting ordinal for reverse numbering, or 0

        Returns:
            A single row, or a dict of rows keyed by ordinal
        """
        result: dict[int, Row] = {}
        index = last_index
        step = -1 if last_index != 0 else 1

        try:
            for row in stmt:
                result[index] = row
                index += step
        finally:
            stmt.close_cursor()

        if last_index == 0 and len(result) == 1:
            return result[0]
        return result

    # ==================== Transactions ====================

    def begin(self) -> int:
        """Begin a (nested) transaction; returns the nesting depth."""
        return self.transaction.begin()

    def commit(self) -> int:
        """Commit a (nested) transaction; returns the nesting depth."""
        return self.transaction.commit()

    def rollback(self) -> int:
        """Roll back a (nested) transaction; returns the nesting depth."""
        return self.transaction.rollback()

    @property
    def transaction_level(self) -> int:
        return self.transaction.depth

    def _log_transaction(self, statement: str, result: str, message: Optional[str]) -> None:
        self.set_query_log(
            QueryLogEntry(
                query=statement,
                result=result,
                message=message,
                connection_type=self.type,
            )
        )

    # ==================== Statement information ====================

    def get_affected_rows(self) -> int:
        """Number of rows affected by the last statement."""
        return int(self._last_stmt.rowcount) if self._last_stmt else 0

    def get_insert_id(self) -> int:
        """
        Auto-increment ID generated by the last INSERT.

        Raises:
            QueryExecutionError: If the driver query fails
        """
        try:
            return int(self._driver.last_insert_id())
        except SQLAlchemyError as e:
            message = driver_error_message(e)
            self.set_error(-1, message)
            raise QueryExecutionError(message) from e

    def get_next_sequence(self) -> int:
        """
        Get the next value of the global ``sequence`` table.

        The table is not prefixed. Old rows are purged every
        ``SEQUENCE_CLEANUP_INTERVAL`` values.
        """
        self._prepare("INSERT INTO `sequence` (seq) VALUES (0)").execute()
        sequence = self.get_insert_id()
        if sequence % SEQUENCE_CLEANUP_INTERVAL == 0:
            self._prepare(f"DELETE FROM `sequence` WHERE seq < {sequence:d}").execute()
        return sequence

    # ==================== Helpers ====================

    def add_prefixes(self, query_string: str) -> str:
        """Add the table prefix to tables in FROM/JOIN clauses."""
        return self._rewriter.rewrite(query_string)

    def add_quotes(self, value: Any) -> str:
        """
        Escape a value for inclusion in SQL text.

        Numbers and numeric strings are returned as-is; anything else is
        quoted by the driver.
        """
        if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
            return str(value)
        if isinstance(value, str) and _NUMERIC_STRING.match(value):
            return value
        return self._driver.quote(str(value))

    def get_best_supported_charset(self) -> str:
        """Return utf8mb4 if the server supports it, utf8 otherwise."""
        stmt = self.run_raw_query("SHOW CHARACTER SET LIKE 'utf8%'")
        # A non-zero start index keeps a single row keyed like several rows
        rows = self.fetch(stmt, 1)
        supported = any(row.get("Charset") == "utf8mb4" for row in rows.values())
        return "utf8mb4" if supported else "utf8"

    # ==================== Error state ====================

    def is_error(self) -> bool:
        """Check if the last statement produced an error."""
        return self._errno != 0

    def get_error(self) -> ExecutionOutput:
        """Get the last error as an output object."""
        if self._error is not None:
            return ExecutionOutput.from_error(self._error)
        return ExecutionOutput(error=self._errno, message=self._errstr)

    def set_error(
        self, code: int = 0, message: str = "success", exc: Optional[DBError] = None
    ) -> ExecutionOutput:
        """
        Record error information and return it as an output object.

        Args:
            code: Error code, 0 for success
            message: Error message
            exc: Typed error to attach to the output

        Returns:
            Output carrying the error
        """
        self._errno = code
        self._errstr = message
        self._error = exc
        if exc is not None:
            return ExecutionOutput.from_error(exc)
        return ExecutionOutput(error=code, message=message)

    def clear_error(self) -> None:
        self._errno = 0
        self._errstr = "success"
        self._error = None

    # ==================== Timing and query log ====================

    def add_elapsed_time(self, elapsed_time: float) -> None:
        self._query_time += elapsed_time

    @property
    def query_time(self) -> float:
        """Cumulative time spent executing statements, in seconds."""
        return self._query_time

    @property
    def total_time(self) -> float:
        """Cumulative end-to-end time of template queries, in seconds."""
        return self._total_time

    def get_query_log(
        self, query: str, elapsed_time: float, error: Optional[str] = None
    ) -> QueryLogEntry:
        """Build a query log entry for a statement run on this handle."""
        return QueryLogEntry(
            query=query,
            elapsed_time=elapsed_time,
            result="error" if error else "success",
            message=error,
            connection_type=self.type,
        )

    def set_query_log(self, entry: QueryLogEntry) -> None:
        """Send an entry to the query log, if enabled for the current caller."""
        if self.query_log.is_enabled():
            self.query_log.add_query_log(entry)

    def close(self) -> None:
        """Close the driver connection."""
        self._driver.close()
