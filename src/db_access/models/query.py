"""Query template and query log models."""

from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional, Protocol, Sequence, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field


class NavigationValue(BaseModel):
    """A pagination parameter taken from the query arguments or a default."""

    model_config = ConfigDict(frozen=True)

    var: Optional[str] = Field(None, description="Name of the argument to read")
    default: Any = Field(None, description="Value used when the argument is absent")
    is_expression: bool = Field(
        default=False, description="Whether the default is a SQL expression"
    )

    def get_value(self, args: dict[str, Any]) -> tuple[bool, Any]:
        """
        Resolve the value against the caller's arguments.

        Args:
            args: Query arguments

        Returns:
            Tuple of (is_expression, value)
        """
        if self.var is not None:
            value = args.get(self.var)
            if value is not None and value != "":
                return (False, value)
        return (self.is_expression, self.default)


class Navigation(BaseModel):
    """Pagination parameters declared by a query template."""

    model_config = ConfigDict(frozen=True)

    list_count: NavigationValue = Field(
        default_factory=lambda: NavigationValue(var="list_count", default=20)
    )
    page_count: NavigationValue = Field(
        default_factory=lambda: NavigationValue(var="page_count", default=10)
    )
    page: NavigationValue = Field(
        default_factory=lambda: NavigationValue(var="page", default=1)
    )


@runtime_checkable
class QueryDescriptor(Protocol):
    """Compiled, reusable representation of a template-declared query."""

    navigation: Optional[Navigation]

    def render(
        self,
        prefix: str,
        args: dict[str, Any],
        columns: Sequence[str],
        count_mode: bool = False,
    ) -> tuple[str, list[Any]]:
        """Return the final SQL string and its ordered bound parameters."""
        ...

    def requires_pagination(self) -> bool:
        """Whether a COUNT(*) pass must run before the main query."""
        ...


QueryCompiler = Callable[[Path], Optional[QueryDescriptor]]


class QueryLogEntry(BaseModel):
    """One executed statement, as recorded by the diagnostic query log."""

    query: str = Field(..., description="Executed SQL text")
    elapsed_time: float = Field(default=0.0, description="Elapsed time in seconds")
    result: str = Field(default="success", description="success or error")
    message: Optional[str] = Field(None, description="Driver error message")
    connection_type: str = Field(default="master", description="Logical connection type")
    called_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_error(self) -> bool:
        return self.result != "success"
