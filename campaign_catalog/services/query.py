"""
Filtering and sorting of campaign lists for the catalog and admin views.

Everything here is pure and synchronous: functions take a list and return a
new one, never touching the store.
"""
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from campaign_catalog.schemas.campaign import Campaign, calculate_progress, normalize_tags
from campaign_catalog.schemas.catalog import ALL, CatalogCriteria, SortKey

# Label for campaigns without a category in the category facet
UNCATEGORIZED = "Other"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def progress(collected_amount: Optional[float], target_amount: Optional[float]) -> int:
    """Funding progress in whole percent, 0 for a missing target, at most 100"""
    return calculate_progress(collected_amount, target_amount)


def funding_ratio(campaign: Campaign) -> float:
    """Unclamped collected/target ratio, 0 when the target is falsy"""
    if not campaign.target_amount:
        return 0.0
    return (campaign.collected_amount or 0) / campaign.target_amount


def matches_text(campaign: Campaign, search_text: str) -> bool:
    """Case-insensitive substring match over the searchable fields"""
    needle = search_text.lower()
    fields = (campaign.title, campaign.description, campaign.category, campaign.location)
    if any(value and needle in value.lower() for value in fields):
        return True
    return any(needle in tag.lower() for tag in normalize_tags(campaign.tags))


def _timestamp(value: Optional[datetime]) -> float:
    return (value or _EPOCH).timestamp()


_SORT_KEYS: Dict[SortKey, Callable[[Campaign], object]] = {
    SortKey.NEWEST: lambda c: -_timestamp(c.created_at),
    # Campaigns without a deadline go after every dated one
    SortKey.ENDING_SOON: lambda c: (c.deadline is None, _timestamp(c.deadline)),
    SortKey.MOST_FUNDED: lambda c: -(c.collected_amount or 0),
    SortKey.MOST_DONORS: lambda c: -(c.donation_count or 0),
    SortKey.PROGRESS: lambda c: -funding_ratio(c),
}


def filter_campaigns(campaigns: Iterable[Campaign], criteria: CatalogCriteria) -> List[Campaign]:
    """Keep campaigns satisfying every active criterion, in input order"""
    result = list(campaigns)

    if criteria.search_text:
        result = [c for c in result if matches_text(c, criteria.search_text)]

    if criteria.category != ALL:
        result = [c for c in result if c.category == criteria.category]

    if criteria.status.lower() != ALL:
        status = criteria.status.lower()
        result = [c for c in result if (c.status or "").lower() == status]

    if criteria.featured_only:
        result = [c for c in result if c.is_featured is True]

    return result


def sort_campaigns(campaigns: Iterable[Campaign], sort_by: Optional[SortKey]) -> List[Campaign]:
    """Stable sort by one of the catalog orderings; None keeps input order"""
    if sort_by is None:
        return list(campaigns)
    return sorted(campaigns, key=_SORT_KEYS[SortKey(sort_by)])


def apply_criteria(campaigns: Iterable[Campaign], criteria: Optional[CatalogCriteria] = None) -> List[Campaign]:
    """Filter then sort ``campaigns``; the input list is left untouched"""
    criteria = criteria or CatalogCriteria()
    return sort_campaigns(filter_campaigns(campaigns, criteria), criteria.sort_by)


def available_categories(campaigns: Sequence[Campaign]) -> List[str]:
    """'all' followed by every category in first-seen order"""
    categories = [ALL]
    for campaign in campaigns:
        category = campaign.category or UNCATEGORIZED
        if category not in categories:
            categories.append(category)
    return categories


def available_statuses(campaigns: Sequence[Campaign]) -> List[str]:
    """'all' followed by every status in first-seen order"""
    statuses = [ALL]
    for campaign in campaigns:
        if campaign.status and campaign.status not in statuses:
            statuses.append(campaign.status)
    return statuses


def total_funds_raised(campaigns: Iterable[Campaign]) -> float:
    return sum(campaign.collected_amount or 0 for campaign in campaigns)


def featured_campaigns(campaigns: Iterable[Campaign], limit: int = 3) -> List[Campaign]:
    """First ``limit`` featured campaigns in input order"""
    return [c for c in campaigns if c.is_featured][:max(limit, 0)]
