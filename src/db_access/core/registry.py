"""Registry of connection handles, one per logical connection type."""

import logging
import threading
from pathlib import Path
from typing import Callable, Mapping, Optional, Union

from db_access.adapters import BaseDriver
from db_access.core.connection import ConnectionHandle
from db_access.core.template_cache import QueryTemplateCache
from db_access.diagnostics import QueryLog
from db_access.errors import ConfigurationError
from db_access.models import ConnectionConfig, QueryCompiler

logger = logging.getLogger(__name__)

ConfigSource = Callable[[str], Optional[ConnectionConfig]]
DriverFactory = Callable[[ConnectionConfig], BaseDriver]


class ConnectionRegistry:
    """
    Creates connection handles lazily and keeps them for the process lifetime.

    The registry is an explicit object: create one at startup and pass it
    to the code that needs database access. All handles share one template
    cache and one query log.
    """

    def __init__(
        self,
        config_source: ConfigSource,
        compiler: Optional[QueryCompiler] = None,
        query_root: Union[str, Path] = ".",
        query_log: Optional[QueryLog] = None,
        driver_factory: Optional[DriverFactory] = None,
    ):
        """
        Initialize the registry.

        Args:
            config_source: Returns the configuration of a connection type,
                or None if the type is not configured
            compiler: Query template compiler shared by all handles
            query_root: Root directory of query templates
            query_log: Diagnostic query log shared by all handles
            driver_factory: Opens a driver for a configuration; defaults to
                ``create_driver``
        """
        self._config_source = config_source
        self._driver_factory = driver_factory
        self.query_root = Path(query_root)
        self.template_cache = QueryTemplateCache(compiler)
        self.query_log = query_log if query_log is not None else QueryLog()
        self._handles: dict[str, ConnectionHandle] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_configs(
        cls, configs: Mapping[str, ConnectionConfig], **kwargs
    ) -> "ConnectionRegistry":
        """Create a registry over a fixed mapping of type to configuration."""
        configs = dict(configs)
        return cls(configs.get, **kwargs)

    @classmethod
    def from_env(
        cls, env_file: Optional[Union[str, Path]] = None, **kwargs
    ) -> "ConnectionRegistry":
        """Create a registry configured from ``DB_*`` environment variables."""
        from db_access import settings
        from db_access.diagnostics import create_query_log

        configs = settings.load_connection_configs(env_file)
        kwargs.setdefault("query_root", settings.query_root())
        kwargs.setdefault("query_log", create_query_log())
        return cls.from_configs(configs, **kwargs)

    def get(self, type: str = "master") -> ConnectionHandle:
        """
        Get the handle for a connection type, connecting on first use.

        Args:
            type: Logical connection type

        Returns:
            The single handle for this type

        Raises:
            ConfigurationError: If the type is not configured
            DatabaseConnectionError: If the connection cannot be opened
        """
        handle = self._handles.get(type)
        if handle is not None:
            return handle

        with self._lock:
            # Another thread may have connected while we waited
            handle = self._handles.get(type)
            if handle is not None:
                return handle

            config = self._config_source(type)
            if config is None:
                raise ConfigurationError(f"DB type '{type}' is not configured.")
            if config.type != type:
                config = config.model_copy(update={"type": type})

            driver = self._driver_factory(config) if self._driver_factory else None
            handle = ConnectionHandle(
                config,
                driver=driver,
                template_cache=self.template_cache,
                query_root=self.query_root,
                query_log=self.query_log,
            )
            self._handles[type] = handle
            logger.info(f"Registered connection handle for DB type '{type}'")
            return handle

    def __contains__(self, type: str) -> bool:
        return type in self._handles

    def types(self) -> list[str]:
        """Connection types that already have a handle."""
        return list(self._handles)

    def close(self) -> None:
        """Close every driver connection; the handles stay registered."""
        with self._lock:
            for handle in self._handles.values():
                handle.close()
