"""Connection configuration model."""

import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.engine.url import URL, make_url

_PREFIX_PATTERN = re.compile(r"^\w*$", re.ASCII)


class ConnectionConfig(BaseModel):
    """Configuration for one logical connection type."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "type": "master",
                    "host": "db",
                    "port": 3306,
                    "database": "app",
                    "user": "app",
                    "pass": "secret",
                    "prefix": "xe_",
                    "charset": "utf8mb4",
                    "engine": "innodb",
                }
            ]
        },
    )

    type: str = Field(
        default="master",
        description="Logical connection type (e.g. master, slave)",
    )
    host: str = Field(default="localhost", description="Database server host")
    port: int = Field(default=3306, ge=1, le=65535, description="Server port")
    database: str = Field(default="", description="Database name")
    user: str = Field(default="", description="Login user")
    password: str = Field(default="", alias="pass", description="Login password")
    prefix: str = Field(default="", description="Table name prefix")
    charset: str = Field(default="utf8mb4", description="Connection character set")
    engine: str = Field(default="innodb", description="Storage engine identifier")
    driver: str = Field(
        default="mysql+pymysql",
        description="SQLAlchemy drivername (e.g. mysql+pymysql, sqlite+pysqlite)",
    )
    url: Optional[str] = Field(
        default=None,
        description="Full connection URL, overrides the individual fields",
    )
    echo_sql: bool = Field(default=False, description="Echo SQL statements to stdout")

    @field_validator("prefix", mode="before")
    @classmethod
    def validate_prefix(cls, v: Any) -> str:
        """Table prefixes are spliced into identifiers, so only word characters."""
        v = v or ""
        if not _PREFIX_PATTERN.match(v):
            raise ValueError(f"Invalid table prefix: {v!r}")
        return v

    @field_validator("charset", mode="before")
    @classmethod
    def default_charset(cls, v: Any) -> str:
        return v or "utf8mb4"

    @field_validator("engine", mode="before")
    @classmethod
    def default_engine(cls, v: Any) -> str:
        return v or "innodb"

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate connection URL format."""
        if v is None:
            return v
        try:
            make_url(v)
        except Exception as e:
            raise ValueError(f"Invalid database URL: {e}")
        return v

    @property
    def sqlalchemy_url(self) -> URL:
        """Build the SQLAlchemy URL for this configuration."""
        if self.url:
            return make_url(self.url)

        drivername = self.driver
        if drivername.split("+")[0] == "sqlite":
            return URL.create(drivername, database=self.database or ":memory:")

        query = {"charset": self.charset} if self.charset else {}
        return URL.create(
            drivername,
            username=self.user or None,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database=self.database or None,
            query=query,
        )

    @property
    def dialect(self) -> str:
        """Extract database dialect from the URL."""
        return self.sqlalchemy_url.drivername.split("+")[0]
