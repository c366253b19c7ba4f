"""Execution output and page navigation models."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from db_access.errors import DBError


class PageNavigation(BaseModel):
    """Page numbers for rendering a pagination control."""

    total_count: int = Field(..., description="Total number of rows")
    total_page: int = Field(..., description="Total number of pages")
    cur_page: int = Field(..., description="Current page")
    page_count: int = Field(default=10, description="Number of page links shown")
    first_page: int = Field(default=1, description="First page link shown")
    last_page: int = Field(default=1, description="Last page link shown")

    @classmethod
    def create(
        cls, total_count: int, total_page: int, cur_page: int, page_count: int = 10
    ) -> "PageNavigation":
        """Build the navigation window centered on the current page."""
        page_count = max(1, page_count)
        first_page = max(1, cur_page - page_count // 2)
        if first_page + page_count - 1 > total_page:
            first_page = max(1, total_page - page_count + 1)
        last_page = min(total_page, first_page + page_count - 1)

        return cls(
            total_count=total_count,
            total_page=total_page,
            cur_page=cur_page,
            page_count=min(page_count, total_page),
            first_page=first_page,
            last_page=last_page,
        )

    @property
    def pages(self) -> list[int]:
        """Page numbers to display, in order."""
        return list(range(self.first_page, self.last_page + 1))


class ExecutionOutput(BaseModel):
    """Result of one query execution.

    Failures on the reporting path are stored here instead of being raised,
    so callers must check ``success`` (or call ``raise_for_error``).
    """

    model_config = ConfigDict(populate_by_name=True)

    error: int = Field(default=0, description="Error code, 0 on success")
    message: str = Field(default="success", description="Error message")
    error_type: Optional[str] = Field(None, description="Name of the error kind")
    data: Any = Field(None, description="A single row or rows keyed by ordinal")
    query: Optional[str] = Field(
        None, serialization_alias="_query", description="Rendered SQL"
    )
    elapsed_time: Optional[str] = Field(
        None,
        serialization_alias="_elapsed_time",
        description="Main statement time in seconds, 5 decimals",
    )
    total_count: Optional[int] = None
    total_page: Optional[int] = None
    page: Optional[int] = None
    page_navigation: Optional[PageNavigation] = None

    _exception: Optional[DBError] = PrivateAttr(default=None)

    @classmethod
    def from_error(cls, exc: DBError) -> "ExecutionOutput":
        """Create a failed output carrying the given error."""
        output = cls(error=exc.code or -1, message=exc.message, error_type=type(exc).__name__)
        output._exception = exc
        return output

    @property
    def success(self) -> bool:
        return self.error == 0

    def to_bool(self) -> bool:
        return self.success

    def __bool__(self) -> bool:
        return self.success

    @property
    def paginated(self) -> bool:
        return self.total_page is not None

    def raise_for_error(self) -> "ExecutionOutput":
        """
        Raise the error that produced this output, if any.

        Returns:
            This output, when it is successful

        Raises:
            DBError: The reported error
        """
        if self.success:
            return self
        if self._exception is not None:
            raise self._exception
        raise DBError(self.message, self.error)

    def to_dict(self) -> dict[str, Any]:
        """Output fields keyed the way legacy callers expect (_query, _elapsed_time)."""
        exclude = set()
        if not self.paginated:
            exclude = {"total_count", "total_page", "page", "page_navigation"}
        return self.model_dump(by_alias=True, exclude=exclude)

    def to_json(self) -> str:
        from db_access.utils.serialization import dumps

        return dumps(self.to_dict())
