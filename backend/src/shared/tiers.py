"""
Reliability tiers - tag shown next to a user's name on the leaderboard.
"""
from typing import List, Dict, Any, Optional


class ReliabilityTier:
    """Tier labels, highest first."""
    PLATINUM = 'Platinum'
    ELITE = 'Elite'
    RELIABLE = 'Reliable'
    BUILDING_DISCIPLINE = 'Building Discipline'
    INCONSISTENT = 'Inconsistent'


TIER_TAG_TYPE = 'tier'

# (minimum score, label, badge color), checked in order
TIER_THRESHOLDS = [
    (3500, ReliabilityTier.PLATINUM, 'platinum'),
    (2000, ReliabilityTier.ELITE, 'blue-tier'),
    (1000, ReliabilityTier.RELIABLE, 'green'),
    (300, ReliabilityTier.BUILDING_DISCIPLINE, 'yellow'),
    (1, ReliabilityTier.INCONSISTENT, 'red'),
]


def get_reliability_tier_tag(reliability_score) -> Optional[Dict[str, str]]:
    """
    Get the tier tag for a Reliability Score.

    Rules:
    - Platinum: 3500+
    - Elite: 2000-3499
    - Reliable: 1000-1999
    - Building Discipline: 300-999
    - Inconsistent: 1-299

    Returns:
        Tag dict, or None for a score of 0 (no tier)
    """
    score = reliability_score or 0
    for minimum, label, color in TIER_THRESHOLDS:
        if score >= minimum:
            return {'type': TIER_TAG_TYPE, 'label': label, 'color': color}
    return None


def filter_out_tier_tags(tags: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """Drop stored tier tags; tiers are always computed from the score."""
    return [tag for tag in (tags or []) if not (isinstance(tag, dict) and tag.get('type') == TIER_TAG_TYPE)]
