"""Unit Tests for Pagination and PageNavigation

Tests page arithmetic for paginated template queries:
- total_page and last_index derivation
- Out-of-bounds detection
- Coercion and validation of navigation values
- Navigation window placement
"""

import pytest

from db_access.core import Pagination
from db_access.errors import QueryBuildError
from db_access.models import PageNavigation


class TestPaginationCalculate:
    """Test Pagination.calculate()."""

    def test_last_page_partial(self):
        """45 rows at 20 per page: page 3 holds rows 5..1 counted from the end."""
        pagination = Pagination.calculate(45, 20, 3)
        assert pagination.total_page == 3
        assert pagination.last_index == 5
        assert not pagination.out_of_bounds

    def test_first_page(self):
        """The first page starts at the total count."""
        pagination = Pagination.calculate(45, 20, 1)
        assert pagination.last_index == 45

    def test_page_past_end_is_out_of_bounds(self):
        """Requesting page 4 of 3 is flagged out of bounds."""
        pagination = Pagination.calculate(45, 20, 4)
        assert pagination.out_of_bounds

    def test_exact_multiple(self):
        """A total divisible by list_count adds no extra page."""
        assert Pagination.calculate(40, 20, 1).total_page == 2

    def test_no_rows_gives_one_page(self):
        """An empty result still has one page, and page 1 is in bounds."""
        pagination = Pagination.calculate(0, 20, 1)
        assert pagination.total_page == 1
        assert pagination.last_index == 0
        assert not pagination.out_of_bounds

    def test_string_values_are_coerced(self):
        """Navigation values from request arguments may be strings."""
        pagination = Pagination.calculate("45", "20", "2", "5")
        assert pagination.page == 2
        assert pagination.page_count == 5
        assert pagination.last_index == 25

    @pytest.mark.parametrize("list_count", [0, -5])
    def test_non_positive_list_count(self, list_count):
        """list_count must be at least 1."""
        with pytest.raises(QueryBuildError):
            Pagination.calculate(45, list_count, 1)

    def test_non_numeric_page(self):
        """A page that is not a number is a query build error."""
        with pytest.raises(QueryBuildError, match="page"):
            Pagination.calculate(45, 20, "last")

    def test_navigation(self):
        """navigation() carries the page numbers through."""
        nav = Pagination.calculate(45, 20, 3).navigation()
        assert nav.total_count == 45
        assert nav.total_page == 3
        assert nav.cur_page == 3


class TestPageNavigation:
    """Test the page link window."""

    def test_window_centered_on_current_page(self):
        """The window is centered on the current page when there is room."""
        nav = PageNavigation.create(1000, 50, 20, 10)
        assert nav.first_page == 15
        assert nav.last_page == 24
        assert nav.pages == list(range(15, 25))

    def test_window_clamped_at_start(self):
        """Early pages start the window at 1."""
        nav = PageNavigation.create(1000, 50, 2, 10)
        assert nav.first_page == 1
        assert nav.last_page == 10

    def test_window_clamped_at_end(self):
        """Late pages end the window on the last page."""
        nav = PageNavigation.create(1000, 50, 49, 10)
        assert nav.first_page == 41
        assert nav.last_page == 50

    def test_fewer_pages_than_window(self):
        """With few pages the window shrinks to the page total."""
        nav = PageNavigation.create(45, 3, 2, 10)
        assert nav.pages == [1, 2, 3]
        assert nav.page_count == 3
