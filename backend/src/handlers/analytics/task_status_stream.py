"""
Task Status Stream Handler.
Triggered by DynamoDB Streams on the Tasks table.
Refreshes a user's analytics when one of their tasks changes status or is deleted.
"""
import boto3
from typing import Optional
from shared.analytics import AnalyticsService
from shared.config import config
from shared.logging import logger, log_event
from shared.stores import TaskStore

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)
service = AnalyticsService(
    dynamodb.Table(config.ANALYTICS_TABLE),
    TaskStore(dynamodb.Table(config.TASKS_TABLE))
)


def handler(event, context):
    """
    Handler triggered by DynamoDB Stream on Tasks Table.
    Each affected user is refreshed once per batch, however many of their
    tasks changed.
    """
    log_event(event)

    if 'Records' not in event:
        return {'message': 'No records to process'}

    user_ids = []
    for record in event['Records']:
        user_id = affected_user(record)
        if user_id and user_id not in user_ids:
            user_ids.append(user_id)

    refreshed = 0
    for user_id in user_ids:
        try:
            service.refresh_user_analytics(user_id)
            refreshed += 1
        except Exception as e:
            logger.exception(f"Error refreshing analytics for {user_id}: {e}")

    return {'message': f'Refreshed analytics for {refreshed} of {len(user_ids)} users'}


def affected_user(record) -> Optional[str]:
    """
    Return the owner of the task in a stream record if its analytics are affected.
    INSERT and REMOVE always count; MODIFY counts only when the status changed.
    """
    event_name = record.get('eventName')
    images = record.get('dynamodb', {})
    new_image = images.get('NewImage', {})
    old_image = images.get('OldImage', {})

    if event_name == 'MODIFY':
        new_status = new_image.get('status', {}).get('S')
        old_status = old_image.get('status', {}).get('S')
        if new_status == old_status:
            return None
        image = new_image
    elif event_name == 'INSERT':
        image = new_image
    elif event_name == 'REMOVE':
        image = old_image
    else:
        return None

    user_id = image.get('userId', {}).get('S')
    if not user_id:
        logger.warning(f"No userId found in {event_name} record")
    return user_id
