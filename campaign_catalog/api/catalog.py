from fastapi import APIRouter, Depends, Query
from typing import Optional
import structlog

from campaign_catalog.api.deps import get_store, store_failure
from campaign_catalog.core.config import get_settings
from campaign_catalog.schemas.campaign import Campaign
from campaign_catalog.schemas.catalog import ALL, CatalogCriteria, CatalogFacets, LoadMoreWindow, Page, SortKey
from campaign_catalog.services.pagination import load_more, paginate
from campaign_catalog.services.query import (
    apply_criteria,
    available_categories,
    available_statuses,
    featured_campaigns,
    total_funds_raised,
)
from campaign_catalog.services.store import CampaignStore

router = APIRouter(prefix="/catalog", tags=["catalog"])
logger = structlog.get_logger(__name__)


def catalog_criteria(
    search: str = Query("", description="Text matched against title, description, category, location and tags"),
    category: str = Query(ALL, description="Exact category, or 'all'"),
    status: str = Query(ALL, description="Campaign status, or 'all'"),
    featured: bool = Query(False, description="Only featured campaigns"),
    sort: Optional[SortKey] = Query(SortKey.NEWEST, description="Ordering"),
) -> CatalogCriteria:
    return CatalogCriteria(
        search_text=search,
        category=category,
        status=status,
        featured_only=featured,
        sort_by=sort,
    )


async def ensure_loaded(store: CampaignStore) -> None:
    """Fill the store on first use, as the catalog page does"""
    if store.campaigns:
        return
    if await store.fetch_all() is None:
        raise store_failure(store, "Failed to fetch campaigns")


@router.get("", response_model=Page[Campaign])
async def list_catalog(
    criteria: CatalogCriteria = Depends(catalog_criteria),
    page: int = Query(1, ge=1, description="Page number"),
    size: Optional[int] = Query(None, ge=1, le=100, description="Campaigns per page"),
    store: CampaignStore = Depends(get_store),
):
    """Filtered, sorted and paginated public catalog"""
    await ensure_loaded(store)
    campaigns = apply_criteria(store.campaigns, criteria)
    return paginate(campaigns, page, size or get_settings().catalog_page_size)


@router.get("/window", response_model=LoadMoreWindow[Campaign])
async def catalog_window(
    criteria: CatalogCriteria = Depends(catalog_criteria),
    pages: int = Query(1, ge=1, description="Pages already revealed"),
    store: CampaignStore = Depends(get_store),
):
    """Leading slice of the filtered catalog for 'load more' lists"""
    await ensure_loaded(store)
    campaigns = apply_criteria(store.campaigns, criteria)
    return load_more(campaigns, pages, get_settings().catalog_page_size)


@router.get("/facets", response_model=CatalogFacets)
async def catalog_facets(store: CampaignStore = Depends(get_store)):
    """Filter options and headline figures for the catalog page"""
    await ensure_loaded(store)
    return CatalogFacets(
        categories=available_categories(store.campaigns),
        statuses=available_statuses(store.campaigns),
        total_funds_raised=total_funds_raised(store.campaigns),
        featured=featured_campaigns(store.campaigns),
    )


@router.get("/{campaign_id}", response_model=Campaign)
async def get_campaign(campaign_id: int, store: CampaignStore = Depends(get_store)):
    """Campaign detail page"""
    campaign = await store.fetch_by_id(campaign_id)
    if campaign is None:
        logger.warning("Campaign detail unavailable", campaign_id=campaign_id, error=store.error)
        raise store_failure(store, f"Campaign {campaign_id} not found")
    return campaign
