"""
Shared fixtures for the campaign catalog tests
"""
import sys
from pathlib import Path
# Add project root to sys.path so the package imports without installation
PROJECT_ROOT = Path(__file__).resolve().parents[1]
proj_root_str = str(PROJECT_ROOT)
if proj_root_str not in sys.path:
    sys.path.insert(0, proj_root_str)

import pytest
from unittest.mock import AsyncMock

from campaign_catalog.schemas.campaign import Campaign
from campaign_catalog.services.gateway import CampaignGateway
from campaign_catalog.services.store import CampaignStore


def make_campaign(campaign_id: int, **overrides) -> Campaign:
    """Build a campaign from backend-style camelCase fields"""
    payload = {
        "id": campaign_id,
        "title": f"Campaign {campaign_id}",
        "description": "Help families in need",
        "category": "Education",
        "location": "Hanoi",
        "tags": ["school"],
        "targetAmount": 1000000,
        "collectedAmount": 0,
        "donationCount": 0,
        "status": "active",
        "isFeatured": False,
        "startDate": "2024-01-01T00:00:00Z",
        "createdAt": "2024-01-01T00:00:00Z",
        "updatedAt": "2024-01-01T00:00:00Z",
    }
    payload.update(overrides)
    return Campaign.model_validate(payload)


@pytest.fixture
def campaign_factory():
    """Factory for campaigns with overridable fields"""
    return make_campaign


@pytest.fixture
def sample_campaigns():
    """Small catalog covering categories, statuses and sort keys"""
    return [
        make_campaign(
            1,
            title="Clean Water for Ha Giang",
            category="Water",
            location="Ha Giang",
            tags="water, children",
            collectedAmount=500000,
            donationCount=12,
            status="Active",
            deadline="2024-06-01T00:00:00Z",
            createdAt="2024-01-01T00:00:00Z",
        ),
        make_campaign(
            2,
            title="School Books",
            category="Education",
            tags=["books", "Reading"],
            collectedAmount=800000,
            donationCount=30,
            status="urgent",
            isFeatured=True,
            createdAt="2024-02-01T00:00:00Z",
        ),
        make_campaign(
            3,
            title="Flood Relief",
            category="Disaster",
            location="Hue",
            tags='["flood", "food"]',
            targetAmount=200000,
            collectedAmount=300000,
            donationCount=None,
            status="completed",
            isFeatured=True,
            deadline="2024-03-01T00:00:00Z",
            createdAt="2023-12-01T00:00:00Z",
        ),
        make_campaign(
            4,
            title="Village Library",
            description=None,
            category="Education",
            location=None,
            tags=None,
            targetAmount=0,
            collectedAmount=0,
            status="pending",
            createdAt="2024-02-01T00:00:00Z",
        ),
    ]


@pytest.fixture
def mock_gateway():
    """Gateway double; each test sets the return values it needs"""
    gateway = AsyncMock(spec=CampaignGateway)
    return gateway


@pytest.fixture
def store(mock_gateway):
    """Fresh store per test, isolated from every other instance"""
    return CampaignStore(mock_gateway)
