"""
Page slicing for client-filtered lists and server search results
"""
import math
from typing import List, Sequence, TypeVar

from campaign_catalog.schemas.campaign import Campaign, SearchResponse
from campaign_catalog.schemas.catalog import LoadMoreWindow, Page

T = TypeVar("T")


def total_pages(total: int, page_size: int) -> int:
    """Number of pages needed for ``total`` items, never less than 1"""
    page_size = max(page_size, 1)
    return max(1, math.ceil(max(total, 0) / page_size))


def clamp_page(page: int, pages: int) -> int:
    return min(max(page, 1), max(pages, 1))


def paginate(items: Sequence[T], page: int, page_size: int) -> Page[T]:
    """Slice one page out of an already ordered sequence.

    A page outside ``[1, total_pages]`` is clamped into range, and a
    non-positive page size is treated as 1.
    """
    page_size = max(page_size, 1)
    total = len(items)
    pages = total_pages(total, page_size)
    page = clamp_page(page, pages)

    start = (page - 1) * page_size
    return Page(
        page_items=list(items[start:start + page_size]),
        page=page,
        page_size=page_size,
        total=total,
        total_pages=pages,
    )


def page_from_search(response: SearchResponse) -> Page[Campaign]:
    """Wrap a server-paginated search result.

    ``total``, ``page`` and ``size`` come from the backend as reported; the
    items are already the requested page and are not sliced again.
    """
    page_size = max(response.size, 1)
    return Page[Campaign](
        page_items=list(response.data),
        page=response.page,
        page_size=page_size,
        total=response.total,
        total_pages=total_pages(response.total, page_size),
    )


def load_more(items: Sequence[T], pages_loaded: int, page_size: int) -> LoadMoreWindow[T]:
    """Leading ``pages_loaded * page_size`` items for a 'load more' list"""
    visible = max(pages_loaded, 1) * max(page_size, 1)
    shown: List[T] = list(items[:visible])
    return LoadMoreWindow(
        items=shown,
        total=len(items),
        has_more=len(items) > visible,
    )
