from fastapi import APIRouter, Depends, File, Query, Response, UploadFile
from typing import Optional
import structlog

from campaign_catalog.api.deps import get_store, store_failure
from campaign_catalog.core.config import get_settings
from campaign_catalog.schemas.campaign import (
    Campaign,
    CreateCampaignRequest,
    ImageUpload,
    Media,
    UpdateCampaignRequest,
)
from campaign_catalog.schemas.catalog import ALL, CatalogCriteria, Page, SortKey
from campaign_catalog.services.pagination import page_from_search, paginate
from campaign_catalog.services.query import apply_criteria
from campaign_catalog.services.store import CampaignStore

router = APIRouter(prefix="/admin/campaigns", tags=["admin"])
logger = structlog.get_logger(__name__)


@router.get("", response_model=Page[Campaign])
async def search_campaigns(
    query: str = Query("", description="Search text passed to the backend"),
    page: int = Query(1, ge=1),
    size: Optional[int] = Query(None, ge=1, le=100),
    store: CampaignStore = Depends(get_store),
):
    """Server-side search backing the admin campaign table"""
    results = await store.search(query, page, size or get_settings().admin_page_size)
    if results is None:
        raise store_failure(store, "Search failed")
    return page_from_search(results)


@router.get("/table", response_model=Page[Campaign])
async def campaign_table(
    search: str = Query(""),
    status: str = Query(ALL),
    sort: Optional[SortKey] = Query(None),
    page: int = Query(1, ge=1),
    size: Optional[int] = Query(None, ge=1, le=100),
    store: CampaignStore = Depends(get_store),
):
    """Admin table filtered client-side over the cached campaigns"""
    if not store.campaigns and await store.fetch_all() is None:
        raise store_failure(store, "Failed to fetch campaigns")
    criteria = CatalogCriteria(search_text=search, status=status, sort_by=sort)
    return paginate(apply_criteria(store.campaigns, criteria), page, size or get_settings().admin_page_size)


@router.post("/refresh")
async def refresh_campaigns(store: CampaignStore = Depends(get_store)):
    """Reload the cached list from the backend"""
    campaigns = await store.fetch_all()
    if campaigns is None:
        raise store_failure(store, "Failed to fetch campaigns")
    return {"count": len(campaigns)}


@router.post("", response_model=Campaign, status_code=201)
async def create_campaign(
    campaign_data: CreateCampaignRequest,
    store: CampaignStore = Depends(get_store),
):
    """Create a campaign"""
    campaign = await store.create(campaign_data)
    if campaign is None:
        raise store_failure(store, "Failed to create campaign")
    return campaign


@router.put("/{campaign_id}", response_model=Campaign)
async def update_campaign(
    campaign_id: int,
    campaign_data: UpdateCampaignRequest,
    store: CampaignStore = Depends(get_store),
):
    """Update the fields present in the request body"""
    campaign = await store.update(campaign_id, campaign_data)
    if campaign is None:
        raise store_failure(store, f"Failed to update campaign {campaign_id}")
    return campaign


@router.delete("/{campaign_id}", status_code=204)
async def delete_campaign(campaign_id: int, store: CampaignStore = Depends(get_store)):
    """Delete a campaign"""
    if not await store.delete(campaign_id):
        raise store_failure(store, f"Failed to delete campaign {campaign_id}")
    return Response(status_code=204)


@router.post("/{campaign_id}/media", response_model=Media, status_code=201)
async def upload_media(
    campaign_id: int,
    image: UploadFile = File(...),
    store: CampaignStore = Depends(get_store),
):
    """Attach an uploaded image to a campaign"""
    upload = ImageUpload(
        filename=image.filename or "upload",
        content=await image.read(),
        content_type=image.content_type or "application/octet-stream",
    )
    media = await store.add_media(campaign_id, upload)
    if media is None:
        logger.warning("Media upload failed", campaign_id=campaign_id, error=store.error)
        raise store_failure(store, f"Failed to upload media for campaign {campaign_id}")
    return media
