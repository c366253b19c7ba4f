"""MySQL driver."""

from typing import Any

from db_access.adapters.engine import EngineDriver


class MySQLDriver(EngineDriver):
    """MySQL driver (PyMySQL by default) with autocommit semantics."""

    BEGIN_SQL = "START TRANSACTION"
    LAST_INSERT_ID_SQL = "SELECT LAST_INSERT_ID()"

    def _engine_options(self) -> dict[str, Any]:
        return {
            "pool_pre_ping": True,  # Verify the connection before first use
            "pool_recycle": 3600,
        }
