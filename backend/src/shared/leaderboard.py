"""
Leaderboard service - reads the cached rankings and falls back to an
on-demand count when a user's rank is not cached.

Cache layout (LeaderboardCache table, hash key cacheType, range key lastUpdated):
- GLOBAL_TOP_100: one row per refresh holding the top rankings; readers take the latest.
- USER_RANK#<userId>: one row per refresh for ranks 101-500.
"""
from typing import List, Dict, Any, Optional, Callable
from datetime import datetime
from boto3.dynamodb.conditions import Key, Attr
from .analytics import AnalyticsService
from .dynamo import query_first, scan_count
from .logging import logger
from .models import (
    CacheType,
    PLACEHOLDER_USERNAME,
    PLACEHOLDER_DISPLAY_NAME,
    user_rank_cache_type,
)
from .stores import ProfileStore
from .tiers import get_reliability_tier_tag, filter_out_tier_tags
from .utils import to_iso, utc_now

# Fields returned for a single user's rank, whichever source served it
RANK_FIELDS = (
    'rank', 'userId', 'username', 'displayName', 'profilePictureUrl',
    'reliabilityScore', 'tags', 'tier'
)


def _profile_entry(user: Dict[str, Any], profile: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    profile = profile or {}
    return {
        'rank': user['rank'],
        'userId': user['userId'],
        'username': profile.get('username') or PLACEHOLDER_USERNAME,
        'displayName': profile.get('displayName') or profile.get('username') or PLACEHOLDER_DISPLAY_NAME,
        'profilePictureUrl': profile.get('profilePictureUrl'),
        'reliabilityScore': user['reliabilityScore'],
        'tags': filter_out_tier_tags(profile.get('tags')),
        'tier': get_reliability_tier_tag(user['reliabilityScore'])
    }


def enrich_with_profiles(users: List[Dict[str, Any]], profile_store: ProfileStore) -> List[Dict[str, Any]]:
    """
    Attach display profile data to ranked users.
    A failed lookup falls back to a placeholder profile so one bad record
    never blocks the batch.
    """
    enriched = []

    for user in users:
        try:
            profile = profile_store.find_profile_by_user_id(user['userId'])
        except Exception as e:
            logger.warning(f"Error fetching profile for {user['userId']}, using placeholder: {e}")
            profile = None

        enriched.append(_profile_entry(user, profile))

    return enriched


class LeaderboardService:
    """Read API over the leaderboard cache."""

    def __init__(
        self,
        leaderboard_table,
        analytics_service: AnalyticsService,
        profile_store: ProfileStore,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.table = leaderboard_table
        self.analytics_service = analytics_service
        self.profile_store = profile_store
        self.clock = clock or utc_now

    def get_top_100(self) -> Dict[str, Any]:
        """
        Get the most recent global top rankings.
        Returns empty rankings with lastUpdated None until the first refresh has run.
        """
        cached = query_first(
            self.table,
            Key('cacheType').eq(CacheType.GLOBAL_TOP_100),
            scan_forward=False
        )

        if not cached:
            return {
                'rankings': [],
                'lastUpdated': None,
                'totalUsers': 0
            }

        return {
            'rankings': cached.get('rankings') or [],
            'lastUpdated': cached.get('lastUpdated'),
            'totalUsers': cached.get('totalUsers') or 0
        }

    def get_user_rank(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Get a user's rank: top rankings first, then the individual rank cache,
        then an on-demand count.

        Returns:
            Rank dict, or None if the user has no Reliability Score
        """
        top = self.get_top_100()
        for entry in top['rankings']:
            if entry.get('userId') == user_id:
                return self._rank_result(entry, top['totalUsers'], top['lastUpdated'])

        cached = query_first(
            self.table,
            Key('cacheType').eq(user_rank_cache_type(user_id)),
            scan_forward=False
        )
        if cached and self._is_current(cached, top['lastUpdated']):
            return self._rank_result(cached, cached.get('totalUsers'), cached.get('lastUpdated'))

        logger.warning(f"Rank for {user_id} not found in cache, computing on-demand")
        return self.compute_user_rank_on_demand(user_id)

    def compute_user_rank_on_demand(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Rank a single user by counting users with a strictly higher score.

        Scans the whole analytics table, so it only runs on a cache miss.
        totalUsers is None because counting everyone would need a second scan.
        """
        analytics = self.analytics_service.get_user_analytics(user_id)
        if not analytics or not analytics.get('reliabilityScore'):
            return None

        score = analytics['reliabilityScore']
        higher_ranked = scan_count(
            self.analytics_service.table,
            Attr('reliabilityScore').gt(score)
        )

        user = {'userId': user_id, 'reliabilityScore': score, 'rank': higher_ranked + 1}
        entry = enrich_with_profiles([user], self.profile_store)[0]
        return self._rank_result(entry, None, to_iso(self.clock()))

    @staticmethod
    def _is_current(entry: Dict[str, Any], top_updated: Optional[str]) -> bool:
        # Rows from an older refresh are stale: the user may have left the cached window
        if not top_updated:
            return True
        return (entry.get('lastUpdated') or '') >= top_updated

    @staticmethod
    def _rank_result(entry: Dict[str, Any], total_users, last_updated) -> Dict[str, Any]:
        result = {field: entry.get(field) for field in RANK_FIELDS}
        result['tags'] = result['tags'] or []
        if result['tier'] is None:
            result['tier'] = get_reliability_tier_tag(result['reliabilityScore'])
        result['totalUsers'] = total_users
        result['lastUpdated'] = last_updated
        return result
