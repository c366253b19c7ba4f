"""SQLite driver, used for local development and tests."""

from db_access.adapters.engine import EngineDriver


class SQLiteDriver(EngineDriver):
    """SQLite driver through the standard library's sqlite3 module."""

    BEGIN_SQL = "BEGIN"
    LAST_INSERT_ID_SQL = "SELECT last_insert_rowid()"
