"""
Unit tests for page slicing
"""
import pytest

from campaign_catalog.schemas.campaign import SearchResponse
from campaign_catalog.services.pagination import load_more, page_from_search, paginate, total_pages


class TestPaginate:
    """Client-side slicing of ordered lists"""

    @pytest.mark.parametrize("length", [0, 1, 9, 10, 11, 25])
    @pytest.mark.parametrize("page_size", [1, 3, 10])
    def test_pages_cover_list_exactly_once(self, length, page_size):
        items = list(range(length))
        pages = paginate(items, 1, page_size).total_pages

        collected = []
        for page in range(1, pages + 1):
            collected.extend(paginate(items, page, page_size).page_items)

        assert collected == items

    def test_total_pages_rounds_up(self):
        assert paginate(list(range(11)), 1, 5).total_pages == 3

    def test_empty_list_has_one_page(self):
        result = paginate([], 1, 10)
        assert result.total_pages == 1
        assert result.page_items == []
        assert result.total == 0

    def test_page_is_clamped_into_range(self):
        items = list(range(25))
        assert paginate(items, 99, 10).page == 3
        assert paginate(items, 99, 10).page_items == [20, 21, 22, 23, 24]
        assert paginate(items, 0, 10).page == 1
        assert paginate(items, -4, 10).page_items == list(range(10))

    def test_non_positive_page_size_is_treated_as_one(self):
        result = paginate(["a", "b"], 2, 0)
        assert result.page_size == 1
        assert result.total_pages == 2
        assert result.page_items == ["b"]

    def test_navigation_flags(self):
        middle = paginate(list(range(30)), 2, 10)
        assert middle.has_previous and middle.has_next
        assert not paginate(list(range(30)), 3, 10).has_next

    def test_campaign_pages(self, sample_campaigns):
        result = paginate(sample_campaigns, 2, 3)
        assert [c.id for c in result.page_items] == [4]

    def test_total_pages_helper(self):
        assert total_pages(0, 10) == 1
        assert total_pages(20, 10) == 2
        assert total_pages(21, 10) == 3


class TestPageFromSearch:
    """Wrapping a server-paginated search response"""

    def test_uses_backend_totals_without_slicing(self, sample_campaigns):
        response = SearchResponse(total=42, page=3, size=2, data=sample_campaigns[:2])
        result = page_from_search(response)

        assert result.total == 42
        assert result.page == 3
        assert result.page_size == 2
        assert result.total_pages == 21
        assert [c.id for c in result.page_items] == [1, 2]

    def test_backend_page_passed_through(self, sample_campaigns):
        # Page beyond the reported total is kept as the backend sent it
        response = SearchResponse(total=4, page=9, size=2, data=[])
        result = page_from_search(response)

        assert result.page == 9
        assert result.total_pages == 2
        assert not result.has_next

    def test_empty_search(self):
        result = page_from_search(SearchResponse(total=0, page=1, size=10, data=[]))
        assert result.total_pages == 1
        assert result.page_items == []


class TestLoadMore:
    """Leading window for 'load more' lists"""

    def test_first_window(self):
        window = load_more(list(range(30)), 1, 12)
        assert window.items == list(range(12))
        assert window.has_more
        assert window.total == 30

    def test_window_grows_until_exhausted(self):
        assert load_more(list(range(30)), 2, 12).items == list(range(24))
        final = load_more(list(range(30)), 3, 12)
        assert final.items == list(range(30))
        assert not final.has_more
