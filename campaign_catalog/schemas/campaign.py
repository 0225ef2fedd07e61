from pydantic import BaseModel, Field, ConfigDict, computed_field, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime, timezone
from typing import Any, List, Optional
import json
import math
import re

_TAG_SEPARATORS = re.compile(r"[,|]")


def normalize_tags(value: Any) -> List[str]:
    """Return tags as an ordered list of non-empty strings.

    The backend sends tags either as a real list, as a JSON-encoded list
    string or as a comma/pipe separated string.
    """
    if value is None:
        return []

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        if text.startswith("["):
            try:
                decoded = json.loads(text)
            except ValueError:
                decoded = None
            if isinstance(decoded, list):
                return normalize_tags(decoded)
            text = text.strip("[]")
        parts = _TAG_SEPARATORS.split(text)
    elif isinstance(value, (list, tuple, set)):
        parts = [item for item in value if isinstance(item, (str, int, float))]
    else:
        return []

    tags = []
    for part in parts:
        tag = str(part).strip().strip('"').strip()
        if tag:
            tags.append(tag)
    return tags


def calculate_progress(collected_amount: Optional[float], target_amount: Optional[float]) -> int:
    """Funding progress in whole percent, clamped to 100"""
    if not collected_amount or not target_amount:
        return 0
    if collected_amount <= 0 or target_amount <= 0:
        return 0
    # Half-up rounding, not banker's rounding
    return min(math.floor(collected_amount / target_amount * 100 + 0.5), 100)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Naive timestamps from the backend are UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CamelModel(BaseModel):
    """Base model speaking the backend's camelCase JSON"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class UserSummary(CamelModel):
    """Campaign creator as embedded in campaign payloads"""
    id: int
    name: Optional[str] = None
    avatar: Optional[str] = None


class Media(CamelModel):
    """Image or video attached to a campaign"""
    id: Optional[int] = None
    media_type: str = "image"
    url: Optional[str] = None
    base64_image: Optional[str] = None
    caption: Optional[str] = None
    order_index: int = 0
    is_primary: bool = False
    campaign_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def display_source(self) -> Optional[str]:
        """Inline data wins over the remote path"""
        return self.base64_image or self.url


class Campaign(CamelModel):
    """Fundraising campaign as held by the catalog"""
    id: int
    slug: Optional[str] = None
    title: str
    description: Optional[str] = None
    emoji: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    target_amount: float = 0
    collected_amount: float = 0
    donation_count: int = 0

    status: str = "active"
    is_featured: bool = False

    start_date: Optional[datetime] = None
    deadline: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    created_by: Optional[UserSummary] = None
    created_by_id: Optional[int] = None
    media: List[Media] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value):
        return normalize_tags(value)

    @field_validator("target_amount", "collected_amount", "donation_count", mode="before")
    @classmethod
    def _missing_as_zero(cls, value):
        return 0 if value is None or value == "" else value

    @field_validator("is_featured", mode="before")
    @classmethod
    def _missing_as_false(cls, value):
        return False if value is None else value

    @field_validator("status", mode="before")
    @classmethod
    def _missing_status(cls, value):
        return "active" if value is None or value == "" else value

    @field_validator("media", mode="before")
    @classmethod
    def _missing_media(cls, value):
        return [] if value is None else value

    @field_validator("media")
    @classmethod
    def _order_media(cls, value: List[Media]) -> List[Media]:
        return sorted(value, key=lambda item: item.order_index)

    @field_validator("start_date", "deadline", "created_at", "updated_at")
    @classmethod
    def _utc(cls, value):
        return _as_utc(value)

    @computed_field
    @property
    def progress(self) -> int:
        return calculate_progress(self.collected_amount, self.target_amount)

    @property
    def primary_media(self) -> Optional[Media]:
        """Media flagged primary, else the first one in display order"""
        for item in self.media:
            if item.is_primary:
                return item
        return self.media[0] if self.media else None

    def __repr__(self):
        return f"<Campaign(id={self.id}, title='{self.title}', status='{self.status}')>"


class SearchResponse(CamelModel):
    """One page of a server-side campaign search"""
    total: int = 0
    page: int = 1
    size: int = 10
    data: List[Campaign] = Field(default_factory=list)


class Envelope(BaseModel):
    """Wrapper every backend response is expected to use"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status_code: int = Field(..., alias="statusCode")
    message: str = ""
    data: Any = None

    @field_validator("message", mode="before")
    @classmethod
    def _missing_message(cls, value):
        return "" if value is None else str(value)


class CreateCampaignRequest(CamelModel):
    """Fields accepted when creating a campaign"""
    title: str = Field(..., min_length=1, description="Campaign title is required")
    target_amount: float = Field(..., gt=0, description="Fundraising target must be positive")
    description: Optional[str] = None
    emoji: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    tags: Optional[List[str]] = None
    is_featured: Optional[bool] = None
    start_date: Optional[datetime] = None
    deadline: Optional[datetime] = None
    slug: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Clean water for Ha Giang",
                "targetAmount": 1000000,
                "category": "Water",
                "location": "Ha Giang",
                "tags": ["water", "children"],
                "isFeatured": False,
                "deadline": "2025-08-31T23:59:59Z",
            }
        }
    )

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value):
        return None if value is None else normalize_tags(value)


class UpdateCampaignRequest(CamelModel):
    """Partial update; only fields explicitly set are sent"""
    title: Optional[str] = Field(None, min_length=1)
    target_amount: Optional[float] = Field(None, gt=0)
    description: Optional[str] = None
    emoji: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    tags: Optional[List[str]] = None
    is_featured: Optional[bool] = None
    start_date: Optional[datetime] = None
    deadline: Optional[datetime] = None
    slug: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Clean water for Ha Giang (phase 2)",
                "deadline": "2025-09-15T23:59:59Z",
            }
        }
    )

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value):
        return None if value is None else normalize_tags(value)


class ImageUpload(BaseModel):
    """Binary image handed to the gateway for upload"""
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)
