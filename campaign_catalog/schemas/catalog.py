from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from .campaign import Campaign

T = TypeVar("T")

ALL = "all"


class SortKey(str, Enum):
    """Orderings offered by the catalog and admin table"""
    NEWEST = "newest"
    ENDING_SOON = "endingSoon"
    MOST_FUNDED = "mostFunded"
    MOST_DONORS = "mostDonors"
    PROGRESS = "progress"


class CatalogCriteria(BaseModel):
    """Filter and sort selection applied to a campaign list"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    search_text: str = Field("", description="Case-insensitive substring")
    category: str = Field(ALL, description="Exact category or 'all'")
    status: str = Field(ALL, description="Status, compared case-insensitively, or 'all'")
    featured_only: bool = False
    sort_by: Optional[SortKey] = Field(None, description="None keeps input order")


class Page(BaseModel, Generic[T]):
    """A single page sliced out of an ordered collection"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page_items: List[T] = Field(default_factory=list)
    page: int = 1
    page_size: int = 1
    total: int = 0
    total_pages: int = 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1


class LoadMoreWindow(BaseModel, Generic[T]):
    """Leading slice of a list shown by a 'load more' control"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    items: List[T] = Field(default_factory=list)
    total: int = 0
    has_more: bool = False


class CatalogFacets(BaseModel):
    """Summary values shown around the public catalog"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    categories: List[str]
    statuses: List[str]
    total_funds_raised: float
    featured: List[Campaign]
