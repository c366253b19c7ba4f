"""Page calculation for paginated template queries."""

import math
from typing import Any

from pydantic import BaseModel, Field

from db_access.errors import QueryBuildError
from db_access.models.output import PageNavigation


def _to_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise QueryBuildError(f"Invalid pagination value for {name}: {value!r}")


class Pagination(BaseModel):
    """Page numbers derived from a COUNT(*) result."""

    total_count: int = Field(..., ge=0, description="Rows matching the query")
    list_count: int = Field(..., ge=1, description="Rows per page")
    page_count: int = Field(..., description="Page links to display")
    page: int = Field(..., description="Requested page")
    total_page: int = Field(..., ge=1, description="Number of pages, at least 1")
    last_index: int = Field(
        ..., description="Ordinal of the first row on the page, counted from the end"
    )

    @classmethod
    def calculate(
        cls, total_count: Any, list_count: Any, page: Any, page_count: Any = 10
    ) -> "Pagination":
        """
        Derive total pages and the reverse-fetch starting ordinal.

        Args:
            total_count: Result of the COUNT(*) query
            list_count: Rows per page
            page: Requested page
            page_count: Page links to display

        Returns:
            Pagination numbers

        Raises:
            QueryBuildError: If a navigation value is not a valid number
        """
        total_count = _to_int("total_count", total_count)
        list_count = _to_int("list_count", list_count)
        page = _to_int("page", page)
        page_count = _to_int("page_count", page_count)
        if list_count < 1:
            raise QueryBuildError(f"Invalid pagination value for list_count: {list_count}")

        # Zero rows still yields one (empty) page
        total_page = max(1, math.ceil(total_count / list_count))
        last_index = total_count - (page - 1) * list_count

        return cls(
            total_count=total_count,
            list_count=list_count,
            page_count=page_count,
            page=page,
            total_page=total_page,
            last_index=last_index,
        )

    @property
    def out_of_bounds(self) -> bool:
        """Whether the requested page lies past the last page."""
        return self.page > self.total_page

    def navigation(self) -> PageNavigation:
        return PageNavigation.create(
            self.total_count, self.total_page, self.page, self.page_count
        )
