"""In-process query log used for debugging output."""

import logging
import threading
from collections import deque
from typing import Callable, Optional, Union

from db_access.models.query import QueryLogEntry

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 1000


class QueryLog:
    """Collects executed statements when diagnostics are enabled.

    ``enabled`` may be a bool or a zero-argument predicate, so a web
    application can enable logging for selected callers only.
    """

    def __init__(
        self,
        enabled: Union[bool, Callable[[], bool]] = False,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ):
        self._enabled = enabled
        self._entries: deque[QueryLogEntry] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def is_enabled(self) -> bool:
        """Check whether the current caller wants statements logged."""
        if callable(self._enabled):
            return bool(self._enabled())
        return bool(self._enabled)

    def set_enabled(self, enabled: Union[bool, Callable[[], bool]]) -> None:
        self._enabled = enabled

    def add_query_log(self, entry: QueryLogEntry) -> None:
        """Append an entry and echo it to the module logger."""
        with self._lock:
            self._entries.append(entry)
        if entry.is_error:
            logger.debug(
                f"[{entry.connection_type}] {entry.query} failed: {entry.message}"
            )
        else:
            logger.debug(
                f"[{entry.connection_type}] {entry.query} ({entry.elapsed_time:.5f}s)"
            )

    @property
    def entries(self) -> list[QueryLogEntry]:
        with self._lock:
            return list(self._entries)

    @property
    def total_elapsed_time(self) -> float:
        return sum(entry.elapsed_time for entry in self.entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def create_query_log(enabled: Optional[bool] = None) -> QueryLog:
    """Create a query log, enabled from the environment when not specified."""
    if enabled is None:
        from db_access.settings import query_log_enabled

        enabled = query_log_enabled()
    return QueryLog(enabled=enabled)
