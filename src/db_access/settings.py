"""Connection settings loaded from the environment.

Each logical connection type listed in ``DB_TYPES`` is configured through
``DB_<TYPE>_<FIELD>`` variables, for example::

    DB_TYPES=master,slave
    DB_MASTER_HOST=db
    DB_MASTER_DATABASE=app
    DB_MASTER_USER=app
    DB_MASTER_PASS=secret
    DB_MASTER_PREFIX=xe_
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from db_access.models.config import ConnectionConfig

logger = logging.getLogger(__name__)

# Environment suffix -> ConnectionConfig field
ENV_FIELDS = {
    "HOST": "host",
    "PORT": "port",
    "DATABASE": "database",
    "USER": "user",
    "PASS": "pass",
    "PREFIX": "prefix",
    "CHARSET": "charset",
    "ENGINE": "engine",
    "DRIVER": "driver",
    "URL": "url",
}

TRUTHY_VALUES = {"1", "true", "yes", "on"}


def configured_types() -> list[str]:
    """Logical connection types named in ``DB_TYPES``."""
    raw = os.getenv("DB_TYPES", "master")
    return [part.strip().lower() for part in raw.split(",") if part.strip()]


def load_connection_config(type: str) -> Optional[ConnectionConfig]:
    """
    Build the configuration of one connection type from the environment.

    Args:
        type: Logical connection type

    Returns:
        Connection configuration, or None if the type is not configured
    """
    env_prefix = f"DB_{type.upper()}_"
    values: dict[str, str] = {}
    for suffix, field in ENV_FIELDS.items():
        value = os.getenv(env_prefix + suffix)
        if value is not None:
            values[field] = value

    if not any(values.get(key) for key in ("host", "database", "url")):
        return None

    return ConnectionConfig(type=type, **values)


def load_connection_configs(
    env_file: Optional[Union[str, Path]] = None,
) -> dict[str, ConnectionConfig]:
    """
    Load every configured connection type.

    Args:
        env_file: Optional .env file; the default lookup is used when omitted

    Returns:
        Mapping of connection type to configuration
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    configs = {}
    for type in configured_types():
        config = load_connection_config(type)
        if config is None:
            logger.warning(f"DB type '{type}' is listed in DB_TYPES but not configured")
            continue
        configs[type] = config
    return configs


def query_root() -> Path:
    """Root directory holding ``<group>/<module>/queries/*.xml`` templates."""
    return Path(os.getenv("DB_QUERY_ROOT", "."))


def query_log_enabled() -> bool:
    return os.getenv("DB_QUERY_LOG", "").strip().lower() in TRUTHY_VALUES
