"""Pytest configuration and shared fixtures for database access tests"""

from pathlib import Path
from typing import Any, Generator, Optional, Sequence

import pytest
from sqlalchemy.exc import OperationalError

from db_access.adapters.base import BaseDriver, DriverStatement
from db_access.core import ConnectionHandle, QueryTemplateCache
from db_access.diagnostics import QueryLog
from db_access.errors import QueryBuildError
from db_access.models import ConnectionConfig, Navigation, NavigationValue


# ==================== Fake driver ====================


class FakeStatement(DriverStatement):
    """Statement returning canned rows registered on the FakeDriver."""

    def __init__(self, driver: "FakeDriver", sql: str):
        self.sql = sql
        self._driver = driver
        self._rows: list[dict[str, Any]] = []
        self._rowcount = 0
        self.executed = False
        self.closed = False

    def execute(self, params: Optional[Sequence[Any]] = None) -> None:
        self._driver.executed.append((self.sql, list(params) if params else []))
        message = self._driver.failure_for(self.sql)
        if message is not None:
            raise OperationalError(self.sql, params, Exception(message))
        self._rows = [dict(row) for row in self._driver.rows_for(self.sql)]
        self._rowcount = self._driver.rowcount if self._driver.rowcount is not None else len(self._rows)
        self.executed = True
        self.closed = False

    def fetch(self) -> Optional[dict[str, Any]]:
        if not self._rows:
            return None
        return self._rows.pop(0)

    def close_cursor(self) -> None:
        self._rows = []
        self.closed = True

    @property
    def rowcount(self) -> int:
        return self._rowcount


class FakeDriver(BaseDriver):
    """In-memory driver recording every statement and transaction call."""

    dialect = "mysql"

    def __init__(self):
        self.executed: list[tuple[str, list[Any]]] = []
        self.prepared: list[str] = []
        self.statements: list[FakeStatement] = []
        self.transaction_calls: list[str] = []
        self.responses: list[tuple[str, list[dict[str, Any]]]] = []
        self.failures: dict[str, str] = {}
        self.fail_transactions = False
        self.rowcount: Optional[int] = None
        self.insert_id = 0
        self.closed = False
        self._in_transaction = False

    def respond(self, pattern: str, rows: list[dict[str, Any]]) -> None:
        """Return rows for statements containing pattern (first match wins)."""
        self.responses.append((pattern, rows))

    def fail(self, pattern: str, message: str = "Table 'app.xe_missing' doesn't exist") -> None:
        """Raise a driver error for statements containing pattern."""
        self.failures[pattern] = message

    def rows_for(self, sql: str) -> list[dict[str, Any]]:
        for pattern, rows in self.responses:
            if pattern in sql:
                return rows
        return []

    def failure_for(self, sql: str) -> Optional[str]:
        for pattern, message in self.failures.items():
            if pattern in sql:
                return message
        return None

    @property
    def executed_sql(self) -> list[str]:
        return [sql for sql, _ in self.executed]

    def prepare(self, sql: str) -> FakeStatement:
        self.prepared.append(sql)
        stmt = FakeStatement(self, sql)
        self.statements.append(stmt)
        return stmt

    def _transaction_call(self, name: str) -> None:
        self.transaction_calls.append(name)
        if self.fail_transactions:
            raise OperationalError(name, None, Exception("Lock wait timeout exceeded"))

    def begin(self) -> None:
        self._transaction_call("BEGIN")
        self._in_transaction = True

    def commit(self) -> None:
        try:
            self._transaction_call("COMMIT")
        finally:
            self._in_transaction = False

    def rollback(self) -> None:
        try:
            self._transaction_call("ROLLBACK")
        finally:
            self._in_transaction = False

    def in_transaction(self) -> bool:
        return self._in_transaction

    def last_insert_id(self) -> int:
        return self.insert_id

    def quote(self, value: str) -> str:
        return "'" + value.replace("'", "''") + "'"

    @property
    def server_version(self) -> str:
        return "8.0.36"

    def close(self) -> None:
        self.closed = True


# ==================== Fake query templates ====================


class FakeDescriptor:
    """Query descriptor rendering Python format strings.

    ``{prefix}`` and ``{columns}`` are substituted; parameters are read from
    the arguments named in ``param_names``.
    """

    def __init__(
        self,
        sql: str,
        count_sql: Optional[str] = None,
        param_names: Sequence[str] = (),
        navigation: Optional[Navigation] = None,
    ):
        self.sql = sql
        self.count_sql = count_sql
        self.param_names = list(param_names)
        self.navigation = navigation
        self.render_calls: list[dict[str, Any]] = []

    def render(self, prefix, args, columns, count_mode=False):
        self.render_calls.append(
            {"prefix": prefix, "args": dict(args), "columns": list(columns), "count_mode": count_mode}
        )
        if args.get("break_render"):
            raise QueryBuildError("Argument 'member_srl' is required.")
        template = self.count_sql if count_mode else self.sql
        sql = template.format(prefix=prefix, columns=", ".join(columns) or "*")
        params = [args[name] for name in self.param_names]
        if self.navigation is not None and not count_mode:
            _, list_count = self.navigation.list_count.get_value(args)
            _, page = self.navigation.page.get_value(args)
            sql += " LIMIT ? OFFSET ?"
            params += [int(list_count), (int(page) - 1) * int(list_count)]
        return sql, params

    def requires_pagination(self) -> bool:
        return self.count_sql is not None


class FakeCompiler:
    """Compiler returning descriptors registered by template file stem."""

    def __init__(self):
        self.descriptors: dict[str, Optional[FakeDescriptor]] = {}
        self.calls: list[Path] = []

    def __call__(self, path: Path) -> Optional[FakeDescriptor]:
        self.calls.append(path)
        if path.stem not in self.descriptors:
            raise ValueError(f"Unexpected token in {path.name}")
        return self.descriptors[path.stem]


def write_template(root: Path, query_id: str) -> Path:
    """Create an (empty) template file for a three-part query ID."""
    group, module, name = query_id.split(".")
    path = root / group / module / "queries" / f"{name}.xml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f'<query id="{name}" action="select"></query>')
    return path


MEMBER_LIST_NAVIGATION = Navigation(
    list_count=NavigationValue(var="list_count", default=20),
    page_count=NavigationValue(var="page_count", default=10),
    page=NavigationValue(var="page", default=1),
)


# ==================== Configuration Fixtures ====================


@pytest.fixture
def config() -> ConnectionConfig:
    """MySQL-style configuration with a table prefix"""
    return ConnectionConfig(host="db", database="app", user="app", prefix="xe_")


@pytest.fixture
def driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture
def query_log() -> QueryLog:
    """Query log enabled for every caller"""
    return QueryLog(enabled=True)


@pytest.fixture
def compiler() -> FakeCompiler:
    """Compiler with the member module's queries registered"""
    compiler = FakeCompiler()
    compiler.descriptors["getMemberInfo"] = FakeDescriptor(
        "SELECT {columns} FROM `{prefix}member` AS `member` WHERE member_srl = ?",
        param_names=["member_srl"],
    )
    compiler.descriptors["getMemberList"] = FakeDescriptor(
        "SELECT {columns} FROM `{prefix}member` AS `member` ORDER BY member_srl DESC",
        count_sql="SELECT COUNT(*) AS count FROM `{prefix}member` AS `member`",
        navigation=MEMBER_LIST_NAVIGATION,
    )
    compiler.descriptors["getBrokenQuery"] = None
    return compiler


@pytest.fixture
def query_root(tmp_path: Path) -> Path:
    """Template directory holding the member module's query files"""
    for query_id in (
        "modules.member.getMemberInfo",
        "modules.member.getMemberList",
        "modules.member.getBrokenQuery",
        "modules.member.getUnparsable",
    ):
        write_template(tmp_path, query_id)
    return tmp_path


@pytest.fixture
def handle(
    config: ConnectionConfig,
    driver: FakeDriver,
    compiler: FakeCompiler,
    query_root: Path,
    query_log: QueryLog,
) -> ConnectionHandle:
    """Connection handle over the fake driver"""
    return ConnectionHandle(
        config,
        driver=driver,
        template_cache=QueryTemplateCache(compiler),
        query_root=query_root,
        query_log=query_log,
    )


# ==================== SQLite Fixtures ====================


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    """In-memory SQLite configuration with a table prefix"""
    return ConnectionConfig(driver="sqlite+pysqlite", database=":memory:", prefix="xe_")


@pytest.fixture
def sqlite_handle(
    sqlite_config: ConnectionConfig, compiler: FakeCompiler, query_root: Path
) -> Generator[ConnectionHandle, None, None]:
    """Connection handle over a real SQLite connection with a member table"""
    handle = ConnectionHandle(
        sqlite_config,
        template_cache=QueryTemplateCache(compiler),
        query_root=query_root,
        query_log=QueryLog(enabled=True),
    )
    handle.run_raw_query(
        "CREATE TABLE xe_member ("
        "member_srl INTEGER PRIMARY KEY AUTOINCREMENT, "
        "user_id TEXT NOT NULL, "
        "nick_name TEXT)"
    )
    try:
        yield handle
    finally:
        handle.close()


# ==================== Pytest Configuration ====================


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "sqlite: Tests running against SQLite")
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring a real database connection"
    )
