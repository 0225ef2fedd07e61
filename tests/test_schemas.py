"""
Unit tests for campaign entities and tag normalization
"""
from datetime import timezone

import pytest
from pydantic import ValidationError

from campaign_catalog.schemas.campaign import (
    Campaign,
    CreateCampaignRequest,
    Media,
    UpdateCampaignRequest,
    normalize_tags,
)


class TestNormalizeTags:
    """Tags arrive as lists, JSON strings or delimited strings"""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            (None, []),
            ("", []),
            ("water, children", ["water", "children"]),
            ("water|children", ["water", "children"]),
            ('["water", "children"]', ["water", "children"]),
            ("[water, children]", ["water", "children"]),
            ([" water ", "", "children"], ["water", "children"]),
            (["water", None, 3], ["water", "3"]),
            (42, []),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_tags(raw) == expected

    def test_campaign_tags_normalized_on_parse(self, campaign_factory):
        assert campaign_factory(1, tags='["a","b"]').tags == ["a", "b"]


class TestCampaignModel:
    """Parsing backend payloads into campaigns"""

    def test_camel_case_payload(self, campaign_factory):
        campaign = campaign_factory(7, targetAmount="2000", collectedAmount="500", isFeatured=None)
        assert campaign.target_amount == 2000
        assert campaign.collected_amount == 500
        assert campaign.is_featured is False
        assert campaign.progress == 25

    def test_naive_dates_are_utc(self, campaign_factory):
        campaign = campaign_factory(1, createdAt="2024-01-01T08:00:00")
        assert campaign.created_at.tzinfo == timezone.utc

    def test_missing_deadline(self, campaign_factory):
        assert campaign_factory(1).deadline is None

    def test_media_ordered_by_order_index(self, campaign_factory):
        campaign = campaign_factory(1, media=[
            {"id": 2, "url": "/b.jpg", "orderIndex": 2},
            {"id": 1, "url": "/a.jpg", "orderIndex": 1},
        ])
        assert [m.id for m in campaign.media] == [1, 2]

    def test_primary_media_prefers_flag(self, campaign_factory):
        campaign = campaign_factory(1, media=[
            {"id": 1, "url": "/a.jpg", "orderIndex": 0},
            {"id": 2, "url": "/b.jpg", "orderIndex": 1, "isPrimary": True},
        ])
        assert campaign.primary_media.id == 2

    def test_primary_media_falls_back_to_first(self, campaign_factory):
        campaign = campaign_factory(1, media=[
            {"id": 5, "url": "/b.jpg", "orderIndex": 3},
            {"id": 4, "url": "/a.jpg", "orderIndex": 0},
        ])
        assert campaign.primary_media.id == 4
        assert campaign_factory(2).primary_media is None

    def test_media_display_source_prefers_inline_data(self):
        media = Media(url="/a.jpg", base64_image="data:image/png;base64,AAAA")
        assert media.display_source == "data:image/png;base64,AAAA"
        assert Media(url="/a.jpg").display_source == "/a.jpg"

    def test_serializes_camel_case_with_progress(self, campaign_factory):
        data = campaign_factory(1, collectedAmount=250000).model_dump(by_alias=True)
        assert data["targetAmount"] == 1000000
        assert data["progress"] == 25
        assert "target_amount" not in data

    def test_null_status_defaults_to_active(self, campaign_factory):
        assert campaign_factory(1, status=None).status == "active"
        assert campaign_factory(2, status="").status == "active"
        assert campaign_factory(3, status="urgent").status == "urgent"

    def test_missing_title_rejected(self):
        with pytest.raises(ValidationError):
            Campaign.model_validate({"id": 1})


class TestRequests:
    """Create and update payloads"""

    def test_create_requires_positive_target(self):
        with pytest.raises(ValidationError):
            CreateCampaignRequest(title="Water", target_amount=0)

    def test_create_accepts_camel_case_and_tag_string(self):
        request = CreateCampaignRequest.model_validate(
            {"title": "Water", "targetAmount": 100, "tags": "a, b"}
        )
        assert request.tags == ["a", "b"]

    def test_update_dumps_only_set_fields(self):
        request = UpdateCampaignRequest(title="New title", deadline=None)
        assert request.model_dump(by_alias=True, exclude_unset=True) == {
            "title": "New title",
            "deadline": None,
        }
