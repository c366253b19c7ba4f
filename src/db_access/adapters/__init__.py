"""Database drivers for specific database implementations."""

from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import SQLAlchemyError

from .base import BaseDriver, DriverStatement
from .engine import EngineDriver, EngineStatement, convert_placeholders
from .mysql import MySQLDriver
from .sqlite import SQLiteDriver
from ..errors import DatabaseConnectionError, driver_error_message
from ..models.config import ConnectionConfig

__all__ = [
    "BaseDriver",
    "DriverStatement",
    "EngineDriver",
    "EngineStatement",
    "MySQLDriver",
    "SQLiteDriver",
    "convert_placeholders",
    "create_driver",
    "detect_dialect",
]


def detect_dialect(url: str) -> str:
    """
    Detect database dialect from connection URL.

    Args:
        url: Database connection URL

    Returns:
        Dialect name (mysql, sqlite)

    Raises:
        ValueError: If dialect cannot be detected
    """
    try:
        parsed_url = make_url(url)
        # Extract base dialect (e.g., "mysql" from "mysql+pymysql")
        return parsed_url.drivername.split("+")[0]
    except Exception as e:
        raise ValueError(f"Failed to detect dialect from URL: {e}")


def create_driver(config: ConnectionConfig) -> BaseDriver:
    """
    Factory function to open the appropriate driver for a configuration.

    Args:
        config: Connection configuration

    Returns:
        Connected driver instance

    Raises:
        DatabaseConnectionError: If the dialect is unsupported or the
            connection cannot be opened
    """
    dialect = config.dialect

    drivers = {
        "mysql": MySQLDriver,
        "mariadb": MySQLDriver,
        "sqlite": SQLiteDriver,
    }

    driver_class = drivers.get(dialect)

    if driver_class is None:
        raise DatabaseConnectionError(
            f"Unsupported database dialect: {dialect}. "
            f"Supported dialects: {', '.join(drivers.keys())}"
        )

    try:
        return driver_class(config)
    except SQLAlchemyError as e:
        raise DatabaseConnectionError(driver_error_message(e), _driver_error_code(e)) from e
    except (ImportError, ValueError) as e:
        raise DatabaseConnectionError(str(e)) from e


def _driver_error_code(exc: SQLAlchemyError) -> int:
    """MySQL DB-API errors carry the server error number as their first arg."""
    args = getattr(getattr(exc, "orig", None), "args", None) or ()
    if args and isinstance(args[0], int):
        return args[0]
    return -1
