"""
Data models and status constants for the Enfora analytics and leaderboard services.
Based on the task lifecycle: Pending → Review → Completed/Failed (or Rejected evidence)
"""


class TaskStatus:
    """Task lifecycle statuses."""
    PENDING = 'pending'
    REVIEW = 'review'        # Evidence submitted, awaiting validation
    COMPLETED = 'completed'
    FAILED = 'failed'        # Stake charged


class StakeDestination:
    """Where a forfeited stake is sent (anything else goes to the platform)."""
    CHARITY = 'charity'


class CacheType:
    """Discriminators for rows in the leaderboard cache table."""
    GLOBAL_TOP_100 = 'GLOBAL_TOP_100'
    USER_RANK_PREFIX = 'USER_RANK#'
    REFRESH_LOCK = 'REFRESH_LOCK'


# Fixed sort key for the refresh lease row
REFRESH_LOCK_SORT_KEY = 'LEASE'

# Profile substituted when a lookup fails or the user has no profile
PLACEHOLDER_USERNAME = 'unknown'
PLACEHOLDER_DISPLAY_NAME = 'Unknown User'


def user_rank_cache_type(user_id: str) -> str:
    """Cache discriminator for an individual rank entry."""
    return f"{CacheType.USER_RANK_PREFIX}{user_id}"
