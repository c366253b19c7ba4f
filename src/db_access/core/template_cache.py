"""Cache of compiled query templates."""

import logging
import threading
from pathlib import Path
from typing import Optional, Union

from db_access.errors import TemplateCompileError, TemplateNotFoundError
from db_access.models.query import QueryCompiler, QueryDescriptor

logger = logging.getLogger(__name__)


class QueryTemplateCache:
    """Compiled query descriptors keyed by source path and modification time.

    Editing a template changes its mtime, so the next lookup misses and the
    template is compiled again. Entries never expire.
    """

    def __init__(self, compiler: Optional[QueryCompiler] = None):
        self.compiler = compiler
        self._entries: dict[tuple[str, int], QueryDescriptor] = {}
        self._lock = threading.Lock()

    @staticmethod
    def cache_key(path: Union[str, Path]) -> tuple[str, int]:
        """
        Build the cache key for a template file.

        Raises:
            TemplateNotFoundError: If the file does not exist
        """
        path = Path(path)
        try:
            mtime = path.stat().st_mtime_ns
        except FileNotFoundError:
            raise TemplateNotFoundError(f"Query template '{path}' does not exist.")
        return (str(path), mtime)

    def get(self, path: Union[str, Path]) -> QueryDescriptor:
        """
        Return the compiled descriptor for a template, compiling on a miss.

        Args:
            path: Template file path

        Returns:
            Compiled query descriptor

        Raises:
            TemplateNotFoundError: If the file does not exist
            TemplateCompileError: If compilation fails
        """
        key = self.cache_key(path)
        descriptor = self._entries.get(key)
        if descriptor is not None:
            return descriptor

        descriptor = self._compile(Path(path))
        # Concurrent misses compile the same source; the last write wins.
        with self._lock:
            self._entries[key] = descriptor
        return descriptor

    def _compile(self, path: Path) -> QueryDescriptor:
        if self.compiler is None:
            raise TemplateCompileError(f"No query compiler configured for '{path}'.")
        try:
            descriptor = self.compiler(path)
        except TemplateCompileError:
            raise
        except Exception as e:
            logger.warning(f"Failed to compile query template {path}: {e}")
            raise TemplateCompileError(str(e)) from e
        if descriptor is None:
            raise TemplateCompileError(f"Query template '{path}' cannot be parsed.")
        logger.debug(f"Compiled query template {path}")
        return descriptor

    def invalidate(self, path: Optional[Union[str, Path]] = None) -> None:
        """Drop cached descriptors for one template, or all of them."""
        with self._lock:
            if path is None:
                self._entries.clear()
                return
            source = str(Path(path))
            for key in [key for key in self._entries if key[0] == source]:
                del self._entries[key]

    def __contains__(self, path: Union[str, Path]) -> bool:
        try:
            return self.cache_key(path) in self._entries
        except TemplateNotFoundError:
            return False

    def __len__(self) -> int:
        return len(self._entries)
