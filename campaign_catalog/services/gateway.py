"""
HTTP gateway to the campaign backend
"""
import asyncio
import base64
import json
import mimetypes
import time
from datetime import datetime
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterable, List, Optional, Union

import httpx
import structlog
from pydantic import ValidationError

from campaign_catalog.core.config import get_settings
from campaign_catalog.core.exceptions import (
    GatewayError,
    EnvelopeError,
    CampaignNotFoundError,
    TransportError,
    EncodingError,
)
from campaign_catalog.middleware.metrics import (
    gateway_requests_total,
    gateway_request_duration_seconds,
)
from campaign_catalog.schemas.campaign import (
    Campaign,
    Media,
    SearchResponse,
    Envelope,
    CreateCampaignRequest,
    UpdateCampaignRequest,
    ImageUpload,
)

logger = structlog.get_logger(__name__)

FileSource = Union[ImageUpload, str, Path, bytes, BinaryIO]

# Scalar fields sent as multipart form values, in the order the backend lists them
FORM_FIELDS = (
    "title",
    "description",
    "emoji",
    "category",
    "location",
    "targetAmount",
    "isFeatured",
    "startDate",
    "deadline",
    "slug",
)


def _form_value(value: Any) -> str:
    """Stringify a DTO value the way the backend's form parser expects"""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


async def read_upload(file: FileSource, max_bytes: Optional[int] = None) -> ImageUpload:
    """Load a file fully into memory as an ImageUpload.

    Uploads are held in memory in full, so anything above ``max_bytes``
    (``max_upload_bytes`` from settings by default) is refused.
    """
    if max_bytes is None:
        max_bytes = get_settings().max_upload_bytes

    if isinstance(file, ImageUpload):
        upload = file
    elif isinstance(file, (bytes, bytearray)):
        upload = ImageUpload(filename="upload", content=bytes(file))
    elif isinstance(file, (str, Path)):
        path = Path(file)
        try:
            size = path.stat().st_size
            if size > max_bytes:
                raise EncodingError(
                    f"File {path.name} is {size} bytes, above the {max_bytes} byte upload limit"
                )
            content = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            logger.error("Failed to read upload", path=str(path), error=str(e))
            raise EncodingError(f"Could not read file {path.name}: {e}") from e
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        upload = ImageUpload(filename=path.name, content=content, content_type=content_type)
    elif hasattr(file, "read"):
        name = getattr(file, "name", None)
        filename = Path(name).name if isinstance(name, (str, Path)) else "upload"
        try:
            content = await asyncio.to_thread(file.read)
        except OSError as e:
            logger.error("Failed to read upload", filename=filename, error=str(e))
            raise EncodingError(f"Could not read file {filename}: {e}") from e
        if not isinstance(content, (bytes, bytearray)):
            raise EncodingError(f"File {filename} is not opened in binary mode")
        content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        upload = ImageUpload(filename=filename, content=bytes(content), content_type=content_type)
    else:
        raise EncodingError(f"Unsupported file source: {type(file).__name__}")

    if upload.size > max_bytes:
        raise EncodingError(
            f"File {upload.filename} is {upload.size} bytes, above the {max_bytes} byte upload limit"
        )
    return upload


async def file_to_base64(file: FileSource, max_bytes: Optional[int] = None) -> str:
    """Encode a file as a ``data:<mime>;base64,...`` URI.

    The whole file is read into memory before encoding; see ``read_upload``
    for the size limit.
    """
    upload = await read_upload(file, max_bytes=max_bytes)
    content_type = upload.content_type
    if content_type == "application/octet-stream":
        content_type = mimetypes.guess_type(upload.filename)[0] or content_type
    encoded = base64.b64encode(upload.content).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


class CampaignGateway:
    """HTTP client for the campaign backend.

    Validates the ``{statusCode, message, data}`` envelope of every response
    and converts payloads into typed entities. Never caches and never retries.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = httpx.Timeout(settings.request_timeout, connect=settings.connect_timeout)
        self._client = client or httpx.AsyncClient(timeout=self.timeout)
        self._owns_client = client is None

    async def __aenter__(self) -> "CampaignGateway":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this gateway created it"""
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Campaign collection
    # ------------------------------------------------------------------

    async def list_all(self) -> List[Campaign]:
        """Fetch every campaign"""
        data = await self._request(
            "list", "GET", "/campaigns",
            failure_message="Failed to fetch campaigns",
        )
        if not isinstance(data, list):
            raise EnvelopeError("Failed to fetch campaigns: response data is not a list")

        campaigns = [self._to_campaign(item) for item in data]
        logger.info("Campaigns retrieved from backend", count=len(campaigns))
        return campaigns

    async def get_by_id(self, campaign_id: int) -> Campaign:
        """Fetch one campaign; raises CampaignNotFoundError if absent"""
        data = await self._request(
            "get", "GET", f"/campaigns/{campaign_id}",
            failure_message="Campaign not found",
        )
        if not data:
            raise CampaignNotFoundError(f"Campaign {campaign_id} not found", status_code=404)

        campaign = self._to_campaign(data)
        logger.info("Campaign retrieved from backend", campaign_id=campaign.id)
        return campaign

    async def create(
        self,
        campaign_data: CreateCampaignRequest,
        image_file: Optional[FileSource] = None,
    ) -> Campaign:
        """Create a campaign, as multipart when an image is attached"""
        payload = campaign_data.model_dump(by_alias=True, exclude_none=True, mode="json")

        if image_file is not None:
            upload = await read_upload(image_file)
            # The form always carries tags, even when empty
            payload.setdefault("tags", [])
            request_kwargs = self._multipart(payload, upload)
        else:
            request_kwargs = {"json": payload}

        data = await self._request(
            "create", "POST", "/campaigns",
            expected=(200, 201),
            failure_message="Failed to create campaign",
            **request_kwargs,
        )
        campaign = self._to_campaign(data)
        logger.info("Campaign created on backend", campaign_id=campaign.id, title=campaign.title)
        return campaign

    async def update(
        self,
        campaign_id: int,
        campaign_data: UpdateCampaignRequest,
        image_file: Optional[FileSource] = None,
    ) -> Campaign:
        """Overwrite the fields present in ``campaign_data``; others stay untouched"""
        payload = campaign_data.model_dump(by_alias=True, exclude_unset=True, mode="json")

        if image_file is not None:
            upload = await read_upload(image_file)
            request_kwargs = self._multipart(payload, upload)
        else:
            request_kwargs = {"json": payload}

        data = await self._request(
            "update", "PUT", f"/campaigns/{campaign_id}",
            failure_message=f"Failed to update campaign {campaign_id}",
            **request_kwargs,
        )
        campaign = self._to_campaign(data)
        logger.info("Campaign updated on backend", campaign_id=campaign.id, fields=sorted(payload))
        return campaign

    async def delete(self, campaign_id: int) -> None:
        """Delete a campaign; raises if it does not exist or deletion is refused"""
        await self._request(
            "delete", "DELETE", f"/campaigns/{campaign_id}",
            failure_message="Failed to delete campaign",
        )
        logger.info("Campaign deleted on backend", campaign_id=campaign_id)

    async def search(self, query: str, page: int = 1, size: int = 10) -> SearchResponse:
        """Server-side filtered and paginated query"""
        data = await self._request(
            "search", "GET", "/campaigns/search",
            failure_message="Search failed",
            params={"query": query, "page": page, "size": size},
        )
        if not isinstance(data, dict):
            raise EnvelopeError("Search failed: response data is not an object")

        try:
            results = SearchResponse(
                total=data.get("total", 0),
                page=data.get("page", page),
                size=data.get("size", size),
                data=[self._to_campaign(item) for item in data.get("data") or []],
            )
        except ValidationError as e:
            raise EnvelopeError(f"Search failed: malformed search payload ({e.error_count()} errors)") from e

        logger.info("Campaign search completed", query=query, page=results.page, total=results.total)
        return results

    async def add_media(self, campaign_id: int, base64_image: str) -> Media:
        """Attach an already-encoded image to a campaign as JSON"""
        data = await self._request(
            "add_media", "POST", f"/campaigns/{campaign_id}/media",
            expected=(200, 201),
            failure_message=f"Failed to upload media for campaign {campaign_id}",
            json={"base64Image": base64_image},
        )
        if not isinstance(data, dict):
            raise EnvelopeError("Media upload failed: response data is not an object")

        try:
            media = Media.model_validate(data)
        except ValidationError as e:
            raise EnvelopeError(f"Malformed media payload ({e.error_count()} errors)") from e

        logger.info("Media added to campaign", campaign_id=campaign_id, media_id=media.id)
        return media

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _multipart(payload: Dict[str, Any], upload: ImageUpload) -> Dict[str, Any]:
        # A field present with None is being cleared; forms carry it as an empty value
        form = {
            field: "" if payload[field] is None else _form_value(payload[field])
            for field in FORM_FIELDS
            if field in payload
        }
        if "tags" in payload:
            form["tags"] = json.dumps(payload["tags"] or [])
        return {
            "data": form,
            "files": {"image": (upload.filename, upload.content, upload.content_type)},
        }

    @staticmethod
    def _to_campaign(data: Any) -> Campaign:
        if not isinstance(data, dict):
            raise EnvelopeError("Malformed campaign payload: expected an object")
        try:
            return Campaign.model_validate(data)
        except ValidationError as e:
            raise EnvelopeError(
                f"Malformed campaign payload for id {data.get('id')} ({e.error_count()} errors)"
            ) from e

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        expected: Iterable[int] = (200,),
        failure_message: str = "Request failed",
        **kwargs,
    ) -> Any:
        """Send one request and return the envelope's ``data``"""
        url = f"{self.base_url}{path}"
        start_time = time.time()

        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            gateway_requests_total.labels(operation=operation, status="timeout").inc()
            logger.error("Timeout calling campaign backend", operation=operation, url=url)
            raise TransportError("Campaign service timeout") from e
        except httpx.TransportError as e:
            gateway_requests_total.labels(operation=operation, status="unreachable").inc()
            logger.error(
                "Connection error to campaign backend",
                operation=operation,
                url=url,
                error=str(e),
            )
            raise TransportError(f"Campaign service unavailable: {e}") from e
        finally:
            gateway_request_duration_seconds.labels(operation=operation).observe(
                time.time() - start_time
            )

        try:
            envelope = self._parse_envelope(response)
        except GatewayError:
            gateway_requests_total.labels(operation=operation, status="malformed").inc()
            raise

        if envelope.status_code not in tuple(expected):
            gateway_requests_total.labels(operation=operation, status=str(envelope.status_code)).inc()
            message = envelope.message or failure_message
            logger.warning(
                "Campaign backend rejected request",
                operation=operation,
                url=url,
                status_code=envelope.status_code,
                message=message,
            )
            if envelope.status_code == 404:
                raise CampaignNotFoundError(message, status_code=404)
            raise EnvelopeError(message, status_code=envelope.status_code)

        gateway_requests_total.labels(operation=operation, status="ok").inc()
        return envelope.data

    @staticmethod
    def _parse_envelope(response: httpx.Response) -> Envelope:
        try:
            body = response.json()
        except ValueError:
            raise EnvelopeError(
                f"Server error: {response.status_code}",
                status_code=response.status_code,
            )

        if isinstance(body, dict) and "statusCode" in body:
            try:
                return Envelope.model_validate(body)
            except ValidationError:
                pass

        # No usable envelope: fall back to the transport status and any message
        message = body.get("message") if isinstance(body, dict) else None
        if response.status_code == 404:
            raise CampaignNotFoundError(message or "Campaign not found", status_code=404)
        raise EnvelopeError(
            message or f"Server error: {response.status_code}",
            status_code=response.status_code,
        )

