"""
DynamoDB utility functions for paginated reads, batch writes and leases.

Every helper takes a boto3 Table resource so callers own client lifecycle
(handler modules build the resource once per Lambda container).
"""
from typing import List, Dict, Any, Optional
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError
from .config import config
from .logging import logger


class ScanLimitExceeded(Exception):
    """Raised when a paginated read does not finish within the page cap."""


class LeaseExpired(Exception):
    """Raised when a lease holder runs past its lease expiry."""


def _paginate(operation, params: Dict[str, Any], max_pages: int):
    """Yield raw pages from a query/scan until LastEvaluatedKey is exhausted."""
    last_evaluated_key = None
    for _ in range(max_pages):
        if last_evaluated_key:
            params['ExclusiveStartKey'] = last_evaluated_key

        response = operation(**params)
        yield response

        last_evaluated_key = response.get('LastEvaluatedKey')
        if not last_evaluated_key:
            return

    raise ScanLimitExceeded(f"Pagination did not finish within {max_pages} pages")


def scan_all(
    table,
    filter_expression: Optional[Any] = None,
    projection: Optional[str] = None,
    max_pages: Optional[int] = None
) -> List[Dict[str, Any]]:
    """
    Scan a whole table, following LastEvaluatedKey until exhausted.

    Args:
        table: boto3 Table resource
        filter_expression: Optional filter condition
        projection: Optional ProjectionExpression
        max_pages: Page cap (defaults to config.MAX_SCAN_PAGES)

    Returns:
        All matching items

    Raises:
        ScanLimitExceeded: if the page cap is hit before the scan finishes
    """
    params = {}
    if filter_expression is not None:
        params['FilterExpression'] = filter_expression
    if projection:
        params['ProjectionExpression'] = projection

    items = []
    try:
        for page in _paginate(table.scan, params, max_pages or config.MAX_SCAN_PAGES):
            items.extend(page.get('Items', []))
            logger.debug(f"Scanned {len(items)} items so far from {table.name}")
    except ClientError as e:
        logger.error(f"Error scanning {table.name}: {e}")
        raise

    return items


def scan_count(
    table,
    filter_expression: Any,
    max_pages: Optional[int] = None
) -> int:
    """Count items matching a filter with a paginated Select=COUNT scan."""
    params = {
        'FilterExpression': filter_expression,
        'Select': 'COUNT'
    }

    total = 0
    try:
        for page in _paginate(table.scan, params, max_pages or config.MAX_SCAN_PAGES):
            total += page.get('Count', 0)
    except ClientError as e:
        logger.error(f"Error counting items in {table.name}: {e}")
        raise

    return total


def query_all(
    table,
    key_condition: Any,
    index_name: Optional[str] = None,
    max_pages: Optional[int] = None
) -> List[Dict[str, Any]]:
    """Query a table or GSI and return every page of results."""
    params = {'KeyConditionExpression': key_condition}
    if index_name:
        params['IndexName'] = index_name

    items = []
    try:
        for page in _paginate(table.query, params, max_pages or config.MAX_SCAN_PAGES):
            items.extend(page.get('Items', []))
    except ClientError as e:
        logger.error(f"Error querying {table.name}: {e}")
        raise

    return items


def query_first(
    table,
    key_condition: Any,
    index_name: Optional[str] = None,
    scan_forward: bool = True
) -> Optional[Dict[str, Any]]:
    """
    Query for a single item.

    Args:
        table: boto3 Table resource
        key_condition: Key condition expression
        index_name: Optional GSI name
        scan_forward: True for ascending, False for descending (latest first)

    Returns:
        The first item, or None if the partition is empty
    """
    params = {
        'KeyConditionExpression': key_condition,
        'ScanIndexForward': scan_forward,
        'Limit': 1
    }
    if index_name:
        params['IndexName'] = index_name

    try:
        response = table.query(**params)
    except ClientError as e:
        logger.error(f"Error querying {table.name}: {e}")
        raise

    items = response.get('Items', [])
    return items[0] if items else None


def batch_write_items(
    table,
    items: List[Dict[str, Any]],
    batch_size: Optional[int] = None
) -> int:
    """
    Write items in batches of at most batch_size (25 is the BatchWriteItem limit).
    A failed batch is logged and skipped; the remaining batches are still written.

    Args:
        table: boto3 Table resource
        items: Items to put
        batch_size: Items per batch (defaults to config.BATCH_WRITE_SIZE)

    Returns:
        Number of items in batches that were written successfully
    """
    size = batch_size or config.BATCH_WRITE_SIZE
    written = 0

    for start in range(0, len(items), size):
        batch_items = items[start:start + size]
        try:
            with table.batch_writer() as batch:
                for item in batch_items:
                    batch.put_item(Item=item)
            written += len(batch_items)
        except Exception as e:
            logger.error(f"Error batch writing items {start}-{start + len(batch_items) - 1} to {table.name}: {e}")

    logger.info(f"Wrote {written}/{len(items)} items to {table.name}")
    return written


def is_conditional_check_failure(error: ClientError) -> bool:
    return error.response.get('Error', {}).get('Code') == 'ConditionalCheckFailedException'


def acquire_lease(table, key: Dict[str, Any], owner: str, now_epoch: int, lease_seconds: int) -> bool:
    """
    Take a time-bounded lease by conditionally writing a lock row.
    Succeeds when no lock row exists or the existing lease has expired.

    Returns:
        True if the lease was acquired, False if another owner holds it
    """
    hash_key = next(iter(key))
    try:
        table.put_item(
            Item={
                **key,
                'owner': owner,
                'acquiredAt': now_epoch,
                'expiresAt': now_epoch + lease_seconds
            },
            ConditionExpression=Attr(hash_key).not_exists() | Attr('expiresAt').lt(now_epoch)
        )
        return True
    except ClientError as e:
        if is_conditional_check_failure(e):
            return False
        logger.error(f"Error acquiring lease on {table.name}: {e}")
        raise


def release_lease(table, key: Dict[str, Any], owner: str) -> bool:
    """Delete the lock row if this owner still holds it."""
    try:
        table.delete_item(
            Key=key,
            ConditionExpression=Attr('owner').eq(owner)
        )
        return True
    except ClientError as e:
        if is_conditional_check_failure(e):
            logger.warning(f"Lease on {table.name} no longer held by {owner}")
            return False
        logger.error(f"Error releasing lease on {table.name}: {e}")
        raise
