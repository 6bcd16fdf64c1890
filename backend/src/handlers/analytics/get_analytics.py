import boto3
from shared.analytics import AnalyticsService
from shared.auth import get_user_sub
from shared.config import config
from shared.logging import logger, log_event
from shared.stores import TaskStore
from shared.utils import format_response

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)
service = AnalyticsService(
    dynamodb.Table(config.ANALYTICS_TABLE),
    TaskStore(dynamodb.Table(config.TASKS_TABLE))
)


def handler(event, context):
    """
    Handler to get the current user's analytics (recomputed on every call).
    GET /analytics
    """
    log_event(event)

    user_id = get_user_sub(event)
    if not user_id:
        return format_response(401, {'error': 'Unauthorized'})

    try:
        analytics = service.get_user_analytics(user_id)
        return format_response(200, analytics)
    except Exception as e:
        logger.error(f"Error fetching analytics for {user_id}: {e}")
        return format_response(500, {'error': 'Failed to fetch analytics'})
