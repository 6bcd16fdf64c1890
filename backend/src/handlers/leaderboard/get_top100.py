import boto3
from shared.analytics import AnalyticsService
from shared.config import config
from shared.leaderboard import LeaderboardService
from shared.logging import logger, log_event
from shared.stores import TaskStore, ProfileStore
from shared.utils import format_response

# Clients may cache the top rankings for 5 minutes
CACHE_CONTROL = 'public, max-age=300'

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)
service = LeaderboardService(
    dynamodb.Table(config.LEADERBOARD_TABLE),
    AnalyticsService(
        dynamodb.Table(config.ANALYTICS_TABLE),
        TaskStore(dynamodb.Table(config.TASKS_TABLE))
    ),
    ProfileStore(dynamodb.Table(config.PROFILES_TABLE))
)


def handler(event, context):
    """
    Public handler for the cached top rankings.
    GET /leaderboard/top100
    """
    log_event(event)

    try:
        result = service.get_top_100()
        return format_response(200, result, headers={'Cache-Control': CACHE_CONTROL})
    except Exception as e:
        logger.error(f"Error fetching top 100: {e}")
        return format_response(500, {'error': 'Failed to fetch leaderboard'})
