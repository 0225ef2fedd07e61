"""
Shared in-memory cache of campaigns backed by the campaign gateway
"""
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

import structlog

from campaign_catalog.core.exceptions import GatewayError
from campaign_catalog.middleware.metrics import store_operations_total
from campaign_catalog.schemas.campaign import (
    Campaign,
    Media,
    SearchResponse,
    CreateCampaignRequest,
    UpdateCampaignRequest,
)
from campaign_catalog.services.gateway import CampaignGateway, FileSource, file_to_base64

logger = structlog.get_logger(__name__)

T = TypeVar("T")
Listener = Callable[["CampaignStore"], None]

# Sentinel for "operation failed"; callers get None or False back
_FAILED = object()


def _with_media(campaign: Campaign, media: Media) -> Campaign:
    """Copy of ``campaign`` with ``media`` appended, keeping a single primary"""
    existing = campaign.media
    if media.is_primary:
        existing = [
            item.model_copy(update={"is_primary": False}) if item.is_primary else item
            for item in existing
        ]
    return campaign.model_copy(update={"media": [*existing, media]})


class CampaignStore:
    """The one shared, mutable source of truth for campaign data.

    Every operation marks the store as loading, calls the gateway and commits
    to the cache only once the backend has confirmed the change. Failures
    never propagate: the message is left in ``error`` and the operation
    returns ``None`` (or ``False`` for ``delete``).

    Operations are not serialized against each other. If two calls race,
    whichever response resolves last determines the final state.
    """

    def __init__(self, gateway: CampaignGateway):
        self.gateway = gateway

        self.campaigns: List[Campaign] = []
        self.current_campaign: Optional[Campaign] = None
        self.loading: bool = False
        self.error: Optional[str] = None
        self.search_results: Optional[SearchResponse] = None

        self._listeners: List[Listener] = []
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle and subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(store)`` after every state change.

        Returns a function that removes the subscription.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def close(self) -> None:
        """Tear the store down at the end of a session"""
        if self._closed:
            return
        self._closed = True
        self._listeners.clear()
        await self.gateway.aclose()
        logger.info("Campaign store closed", cached=len(self.campaigns))

    @property
    def closed(self) -> bool:
        return self._closed

    def _commit(self, **changes: Any) -> None:
        """Apply several attribute changes as one state transition"""
        for name, value in changes.items():
            setattr(self, name, value)
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.error("Store listener failed", listener=repr(listener), error=str(e))

    async def _run(
        self,
        operation: str,
        call: Callable[[], Awaitable[T]],
        on_success: Callable[[T], None],
        on_failure: Optional[Callable[[], None]] = None,
    ) -> Any:
        """Shared loading/error bookkeeping around one gateway call.

        ``on_success`` commits the confirmed result before loading is cleared.
        Returns the gateway result, or ``_FAILED``.
        """
        self._commit(loading=True, error=None)
        try:
            result = await call()
            on_success(result)
        except GatewayError as e:
            store_operations_total.labels(operation=operation, outcome="failure").inc()
            logger.warning("Campaign store operation failed", operation=operation, error=e.message)
            self._fail(e.message or f"{operation} failed", on_failure)
            return _FAILED
        except Exception as e:
            store_operations_total.labels(operation=operation, outcome="error").inc()
            logger.error("Unexpected error in campaign store", operation=operation, error=str(e), exc_info=True)
            self._fail(str(e) or f"{operation} failed", on_failure)
            return _FAILED
        finally:
            self._commit(loading=False)

        store_operations_total.labels(operation=operation, outcome="success").inc()
        return result

    def _fail(self, message: str, on_failure: Optional[Callable[[], None]]) -> None:
        if on_failure is not None:
            on_failure()
        self._commit(error=message)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def fetch_all(self) -> Optional[List[Campaign]]:
        """Replace the cached list with the backend's"""

        def commit(campaigns: List[Campaign]) -> None:
            self._commit(campaigns=list(campaigns))
            logger.info("Campaign cache refreshed", count=len(campaigns))

        result = await self._run("fetch_all", self.gateway.list_all, commit)
        return None if result is _FAILED else self.campaigns

    async def fetch_by_id(self, campaign_id: int) -> Optional[Campaign]:
        """Load one campaign into ``current_campaign``"""
        result = await self._run(
            "fetch_by_id",
            lambda: self.gateway.get_by_id(campaign_id),
            lambda campaign: self._commit(current_campaign=campaign),
            on_failure=lambda: self._commit(current_campaign=None),
        )
        return None if result is _FAILED else result

    async def create(
        self,
        campaign_data: CreateCampaignRequest,
        image_file: Optional[FileSource] = None,
    ) -> Optional[Campaign]:
        """Create remotely, then append the confirmed campaign"""

        def commit(created: Campaign) -> None:
            # Keep ids unique if the backend echoes an id already cached
            campaigns = [c for c in self.campaigns if c.id != created.id]
            campaigns.append(created)
            self._commit(campaigns=campaigns)
            logger.info("Campaign added to cache", campaign_id=created.id)

        result = await self._run(
            "create",
            lambda: self.gateway.create(campaign_data, image_file),
            commit,
        )
        return None if result is _FAILED else result

    async def update(
        self,
        campaign_id: int,
        campaign_data: UpdateCampaignRequest,
        image_file: Optional[FileSource] = None,
    ) -> Optional[Campaign]:
        """Update remotely, then replace the cached entry by id"""

        def commit(updated: Campaign) -> None:
            changes = {
                "campaigns": [updated if c.id == updated.id else c for c in self.campaigns]
            }
            if self.current_campaign is not None and self.current_campaign.id == updated.id:
                changes["current_campaign"] = updated
            self._commit(**changes)

        result = await self._run(
            "update",
            lambda: self.gateway.update(campaign_id, campaign_data, image_file),
            commit,
        )
        return None if result is _FAILED else result

    async def delete(self, campaign_id: int) -> bool:
        """Delete remotely, then drop the cached entry"""

        def commit(_: None) -> None:
            # List removal and current-campaign reset land in one transition
            changes = {"campaigns": [c for c in self.campaigns if c.id != campaign_id]}
            if self.current_campaign is not None and self.current_campaign.id == campaign_id:
                changes["current_campaign"] = None
            self._commit(**changes)
            logger.info("Campaign removed from cache", campaign_id=campaign_id)

        result = await self._run("delete", lambda: self.gateway.delete(campaign_id), commit)
        return result is not _FAILED

    async def search(self, query: str, page: int = 1, size: int = 10) -> Optional[SearchResponse]:
        """Run a server-side search; results replace ``search_results``"""
        result = await self._run(
            "search",
            lambda: self.gateway.search(query, page, size),
            lambda results: self._commit(search_results=results),
        )
        return None if result is _FAILED else result

    async def add_media(self, campaign_id: int, file: FileSource) -> Optional[Media]:
        """Encode and upload an image, then attach it wherever the campaign is cached"""

        async def upload() -> Media:
            base64_image = await file_to_base64(file)
            return await self.gateway.add_media(campaign_id, base64_image)

        def commit(media: Media) -> None:
            changes = {
                "campaigns": [
                    _with_media(c, media) if c.id == campaign_id else c
                    for c in self.campaigns
                ]
            }
            if self.current_campaign is not None and self.current_campaign.id == campaign_id:
                changes["current_campaign"] = _with_media(self.current_campaign, media)
            self._commit(**changes)

        result = await self._run("add_media", upload, commit)
        return None if result is _FAILED else result

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_cached(self, campaign_id: int) -> Optional[Campaign]:
        """Cached campaign with this id, without touching the backend"""
        for campaign in self.campaigns:
            if campaign.id == campaign_id:
                return campaign
        return None
