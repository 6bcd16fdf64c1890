"""
Logging for the analytics and leaderboard Lambdas.
"""
import logging
import json
from collections import Counter

from .config import config

logger = logging.getLogger('enfora')
logger.setLevel(config.LOG_LEVEL)

# Lambda reuses containers; attach the handler once
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))
    logger.addHandler(handler)


def describe_event(event: dict) -> dict:
    """
    Reduce a Lambda event to what is safe and useful to log.

    - DynamoDB stream batches: record count per eventName (task images stay out of the logs)
    - EventBridge schedules: source and time
    - API Gateway requests: everything except body and headers
    """
    if 'Records' in event:
        counts = Counter(record.get('eventName', 'UNKNOWN') for record in event['Records'])
        return {'records': len(event['Records']), 'eventNames': dict(counts)}

    if event.get('source') == 'aws.events':
        return {'source': event['source'], 'time': event.get('time')}

    return {k: v for k, v in event.items() if k not in ['body', 'headers']}


def log_event(event: dict) -> None:
    try:
        logger.info(f"Lambda event: {json.dumps(describe_event(event), default=str)}")
    except Exception as e:
        logger.warning(f"Could not log event: {e}")
