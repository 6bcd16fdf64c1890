"""
Leaderboard refresh job - rebuilds the leaderboard cache from analytics snapshots.

Stages run strictly in order: scan -> rank -> enrich top -> write individual
ranks -> write top rankings. The GLOBAL_TOP_100 row is written last: readers
judge USER_RANK# rows against its lastUpdated, so the previous run's rows stay
servable until this run's rows are all in place. Nothing is rolled back if a
later stage fails; the next scheduled run supersedes whatever was written.
"""
import time
import uuid
from typing import List, Dict, Any, Optional, Callable
from datetime import datetime
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError
from .config import config
from .dynamo import scan_all, batch_write_items, acquire_lease, release_lease, LeaseExpired
from .leaderboard import enrich_with_profiles
from .logging import logger
from .models import CacheType, REFRESH_LOCK_SORT_KEY, user_rank_cache_type
from .ranking import rank_users
from .stores import ProfileStore
from .utils import to_dynamo, to_epoch_ms, to_iso, utc_now

LEASE_KEY = {
    'cacheType': CacheType.REFRESH_LOCK,
    'lastUpdated': REFRESH_LOCK_SORT_KEY
}


class LeaderboardRefreshJob:
    """
    Scheduled batch that ranks every scored user and caches the results.

    Usage::

        job = LeaderboardRefreshJob(analytics_table, leaderboard_table, ProfileStore(profiles_table))
        summary = job.run()
    """

    def __init__(
        self,
        analytics_table,
        leaderboard_table,
        profile_store: ProfileStore,
        clock: Optional[Callable[[], datetime]] = None,
        owner: Optional[str] = None,
        top_size: Optional[int] = None,
        individual_limit: Optional[int] = None,
        batch_size: Optional[int] = None,
        lease_seconds: Optional[int] = None,
        cache_ttl_seconds: Optional[int] = None
    ):
        self.analytics_table = analytics_table
        self.leaderboard_table = leaderboard_table
        self.profile_store = profile_store
        self.clock = clock or utc_now
        self.owner = owner or str(uuid.uuid4())
        self.top_size = top_size or config.LEADERBOARD_TOP_SIZE
        self.individual_limit = individual_limit or config.LEADERBOARD_INDIVIDUAL_LIMIT
        self.batch_size = batch_size or config.BATCH_WRITE_SIZE
        self.lease_seconds = lease_seconds or config.REFRESH_LEASE_SECONDS
        self.cache_ttl_seconds = config.LEADERBOARD_CACHE_TTL_SECONDS if cache_ttl_seconds is None else cache_ttl_seconds
        self.lease_expires_at = None

    def run(self) -> Dict[str, Any]:
        """
        Refresh the leaderboard cache under a lease.

        Returns:
            Summary dict; skipped=True when another run holds the lease

        Raises:
            LeaseExpired: if the run outlives its lease before a cache write
        """
        now_epoch = int(self.clock().timestamp())
        self.lease_expires_at = now_epoch + self.lease_seconds
        if not acquire_lease(self.leaderboard_table, LEASE_KEY, self.owner, now_epoch, self.lease_seconds):
            logger.warning("Leaderboard refresh already in progress, skipping this run")
            return {
                'success': False,
                'skipped': True,
                'message': 'Refresh already in progress'
            }

        try:
            return self._refresh()
        finally:
            try:
                release_lease(self.leaderboard_table, LEASE_KEY, self.owner)
            except ClientError as e:
                # The lease expires on its own; don't mask the refresh outcome
                logger.error(f"Could not release refresh lease: {e}")

    def _refresh(self) -> Dict[str, Any]:
        logger.info("Starting leaderboard refresh...")
        start_time = time.time()

        users = self.scan_scored_users()
        logger.info(f"Found {len(users)} users with reliability scores")

        if not users:
            logger.info("No users with scores, skipping leaderboard update")
            return {
                'success': True,
                'message': 'No users to rank',
                'totalUsers': 0,
                'top100Count': 0,
                'cachedIndividualRanks': 0
            }

        ranked = rank_users(users)
        total_users = len(ranked)

        now = self.clock()
        timestamp = to_iso(now)

        top = enrich_with_profiles(ranked[:self.top_size], self.profile_store)
        logger.info(f"Enriched {len(top)} users with profile data")

        self.ensure_lease_held()
        cached_count = self.cache_individual_ranks(
            ranked[self.top_size:self.individual_limit], total_users, now
        )
        logger.info(f"Cached {cached_count} individual user ranks")

        self.ensure_lease_held()
        self.cache_top_rankings(top, total_users, now)
        logger.info("Top 100 cached successfully")

        duration = int((time.time() - start_time) * 1000)
        logger.info(f"Leaderboard refresh completed in {duration}ms")

        return {
            'success': True,
            'totalUsers': total_users,
            'top100Count': len(top),
            'cachedIndividualRanks': cached_count,
            'duration': duration,
            'timestamp': timestamp
        }

    def ensure_lease_held(self) -> None:
        """Abort before writing once the lease has run out; another run may own it now."""
        if self.lease_expires_at is None:
            return
        now_epoch = int(self.clock().timestamp())
        if now_epoch >= self.lease_expires_at:
            raise LeaseExpired(
                f"Refresh lease held by {self.owner} expired at {self.lease_expires_at}, aborting before write"
            )

    def scan_scored_users(self) -> List[Dict[str, Any]]:
        """Every analytics snapshot with a positive score (userId and score only)."""
        return scan_all(
            self.analytics_table,
            filter_expression=Attr('reliabilityScore').gt(0),
            projection='userId, reliabilityScore'
        )

    def cache_top_rankings(self, rankings: List[Dict[str, Any]], total_users: int, now: datetime) -> None:
        """Write one GLOBAL_TOP_100 row; readers always take the latest."""
        item = {
            'cacheType': CacheType.GLOBAL_TOP_100,
            'lastUpdated': to_iso(now),
            'rankings': rankings,
            'totalUsers': total_users,
            'version': to_epoch_ms(now)
        }
        self.leaderboard_table.put_item(Item=to_dynamo(self._with_ttl(item, now)))

    def cache_individual_ranks(self, ranked: List[Dict[str, Any]], total_users: int, now: datetime) -> int:
        """
        Write USER_RANK#<userId> rows for the ranks just below the top rankings.

        Returns:
            Number of rows written (failed batches are skipped)
        """
        enriched = enrich_with_profiles(ranked, self.profile_store)
        timestamp = to_iso(now)

        items = [
            to_dynamo(self._with_ttl({
                'cacheType': user_rank_cache_type(user['userId']),
                'lastUpdated': timestamp,
                'userId': user['userId'],
                'username': user['username'],
                'displayName': user['displayName'],
                'profilePictureUrl': user['profilePictureUrl'],
                'reliabilityScore': user['reliabilityScore'],
                'tags': user['tags'],
                'tier': user['tier'],
                'rank': user['rank'],
                'totalUsers': total_users
            }, now))
            for user in enriched
        ]

        return batch_write_items(self.leaderboard_table, items, batch_size=self.batch_size)

    def _with_ttl(self, item: Dict[str, Any], now: datetime) -> Dict[str, Any]:
        if self.cache_ttl_seconds > 0:
            item['expiresAt'] = int(now.timestamp()) + self.cache_ttl_seconds
        return item
