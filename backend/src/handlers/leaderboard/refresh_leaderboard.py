"""
Refresh Leaderboard Handler.
Triggered by EventBridge scheduler every 10 minutes to rebuild the leaderboard cache.
"""
import boto3
from shared.config import config
from shared.logging import logger, log_event
from shared.refresh import LeaderboardRefreshJob
from shared.stores import ProfileStore

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)
analytics_table = dynamodb.Table(config.ANALYTICS_TABLE)
leaderboard_table = dynamodb.Table(config.LEADERBOARD_TABLE)
profile_store = ProfileStore(dynamodb.Table(config.PROFILES_TABLE))


def handler(event, context):
    """
    Scheduled handler that ranks every scored user and rewrites the cache.
    Errors propagate so the invocation is reported as failed; the next
    scheduled run starts again from scratch.
    """
    log_event(event)

    job = LeaderboardRefreshJob(
        analytics_table,
        leaderboard_table,
        profile_store,
        owner=getattr(context, 'aws_request_id', None)
    )

    try:
        return job.run()
    except Exception as e:
        logger.error(f"Error refreshing leaderboard: {e}")
        raise
