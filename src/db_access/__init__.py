"""
db_access - relational database access layer

Per-connection-type handles with table-prefix rewriting, template-declared
queries with pagination, nested transactions and statement instrumentation.
"""

__version__ = "1.0.0"

from db_access.core import (
    ConnectionHandle,
    ConnectionRegistry,
    InstrumentedStatement,
    Pagination,
    PrefixRewriter,
    QueryTemplateCache,
    TransactionLedger,
)
from db_access.diagnostics import QueryLog
from db_access.errors import (
    ConfigurationError,
    DatabaseConnectionError,
    DBError,
    InvalidArgumentsError,
    QueryBuildError,
    QueryExecutionError,
    TemplateCompileError,
    TemplateNotFoundError,
)
from db_access.models import (
    ConnectionConfig,
    ExecutionOutput,
    Navigation,
    NavigationValue,
    PageNavigation,
    QueryDescriptor,
    QueryLogEntry,
)

__all__ = [
    "ConnectionHandle",
    "ConnectionRegistry",
    "InstrumentedStatement",
    "Pagination",
    "PrefixRewriter",
    "QueryTemplateCache",
    "TransactionLedger",
    "QueryLog",
    "DBError",
    "ConfigurationError",
    "DatabaseConnectionError",
    "InvalidArgumentsError",
    "TemplateNotFoundError",
    "TemplateCompileError",
    "QueryBuildError",
    "QueryExecutionError",
    "ConnectionConfig",
    "ExecutionOutput",
    "Navigation",
    "NavigationValue",
    "PageNavigation",
    "QueryDescriptor",
    "QueryLogEntry",
]
