from .campaign import (
    Campaign,
    Media,
    UserSummary,
    SearchResponse,
    Envelope,
    CreateCampaignRequest,
    UpdateCampaignRequest,
    ImageUpload,
    normalize_tags,
    calculate_progress,
)
from .catalog import (
    ALL,
    SortKey,
    CatalogCriteria,
    Page,
    LoadMoreWindow,
    CatalogFacets,
)

__all__ = [
    "Campaign",
    "Media",
    "UserSummary",
    "SearchResponse",
    "Envelope",
    "CreateCampaignRequest",
    "UpdateCampaignRequest",
    "ImageUpload",
    "normalize_tags",
    "calculate_progress",
    "ALL",
    "SortKey",
    "CatalogCriteria",
    "Page",
    "LoadMoreWindow",
    "CatalogFacets",
]
