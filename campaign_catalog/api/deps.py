from fastapi import HTTPException, Request

from campaign_catalog.services.store import CampaignStore


def get_store(request: Request) -> CampaignStore:
    """Session-wide campaign store created at application startup"""
    return request.app.state.store


def store_failure(store: CampaignStore, fallback: str = "Campaign service request failed") -> HTTPException:
    """Translate a failed store operation into a 502 carrying the store's message"""
    return HTTPException(status_code=502, detail=store.error or fallback)
