"""Influencer tier classification.

A tier is a pure function of the highest follower count across all
platforms; it is never summed and never set directly.
"""

from typing import Mapping, Optional, Union

from src.marketplace.config import InfluencerTier, Platform, TIER_INFO

# Highest threshold first
TIER_THRESHOLDS: list[tuple[int, InfluencerTier]] = [
    (100_000, InfluencerTier.MEGA),
    (50_000, InfluencerTier.MAJOR),
    (20_000, InfluencerTier.LARGE),
    (10_000, InfluencerTier.ESTABLISHED),
    (5_000, InfluencerTier.GROWING),
]

# Ascending rank, used for ordering and comparisons
TIER_ORDER: list[InfluencerTier] = [
    InfluencerTier.EMERGING,
    InfluencerTier.GROWING,
    InfluencerTier.ESTABLISHED,
    InfluencerTier.LARGE,
    InfluencerTier.MAJOR,
    InfluencerTier.MEGA,
]

FollowerCounts = Mapping[Union[Platform, str], Optional[int]]


def max_followers(follower_counts: Optional[FollowerCounts]) -> int:
    """Highest follower count across platforms; missing counts are 0."""
    if not follower_counts:
        return 0
    return max((count or 0 for count in follower_counts.values()), default=0)


def classify_tier(follower_counts: Optional[FollowerCounts]) -> InfluencerTier:
    """Derive the marketing tier from per-platform follower counts.

    Example:
        >>> classify_tier({"instagram": 12_000, "tiktok": 60_000})
        <InfluencerTier.MAJOR: 'major'>
    """
    highest = max_followers(follower_counts)
    for threshold, tier in TIER_THRESHOLDS:
        if highest >= threshold:
            return tier
    return InfluencerTier.EMERGING


def tier_rank(tier: InfluencerTier) -> int:
    """Position of a tier in ascending order (emerging = 0)."""
    return TIER_ORDER.index(tier)


def describe_tier(tier: InfluencerTier) -> dict:
    """Tier metadata suitable for display."""
    info = TIER_INFO[tier]
    return {
        "tier": tier.value,
        "label": info["label"],
        "description": info["description"],
        "min_followers": info["min_followers"],
        "rank": tier_rank(tier),
    }
