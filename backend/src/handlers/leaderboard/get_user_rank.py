import boto3
from shared.analytics import AnalyticsService
from shared.config import config
from shared.leaderboard import LeaderboardService
from shared.logging import logger, log_event
from shared.stores import TaskStore, ProfileStore
from shared.utils import format_response, get_path_param

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
    Public handler for a specific user's rank.
    GET /leaderboard/rank/{userId}
    """
    log_event(event)

    user_id = get_path_param(event, 'userId')
    if not user_id:
        return format_response(400, {'error': 'Missing userId'})

    try:
        rank = service.get_user_rank(user_id)
    except Exception as e:
        logger.error(f"Error fetching rank for {user_id}: {e}")
        return format_response(500, {'error': 'Failed to fetch user rank'})

    if not rank:
        return format_response(404, {'error': 'User not found or has no ranking'})

    return format_response(200, rank)
