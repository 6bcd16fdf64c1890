"""
Analytics service - per-user snapshot of scoring metrics.

Snapshots are recomputed from the user's tasks on every read and overwritten
wholesale. Tasks change often, so the stored copy is never served as-is.
"""
from typing import Dict, Any, Optional, Callable
from datetime import datetime
from botocore.exceptions import ClientError
from .logging import logger
from .scoring import calculate_analytics
from .stores import TaskStore
from .utils import to_dynamo, to_iso, utc_now


class AnalyticsService:
    """Computes and stores AnalyticsSnapshot rows in the analytics table."""

    def __init__(
        self,
        analytics_table,
        task_store: TaskStore,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.table = analytics_table
        self.task_store = task_store
        self.clock = clock or utc_now

    def get_user_analytics(self, user_id: str) -> Dict[str, Any]:
        """
        Get analytics for a user, recomputing and storing a fresh snapshot.

        The stored snapshot is read only to tell a first computation from an update.
        """
        try:
            existing = self.table.get_item(Key={'userId': user_id}).get('Item')
        except ClientError as e:
            logger.error(f"Error reading analytics for {user_id}: {e}")
            raise

        snapshot = self._recompute(user_id)
        if existing:
            logger.info(f"Updated analytics for {user_id}: score={snapshot['reliabilityScore']}")
        else:
            logger.info(f"Created analytics for {user_id}: score={snapshot['reliabilityScore']}")
        return snapshot

    def refresh_user_analytics(self, user_id: str) -> Dict[str, Any]:
        """
        Recompute and overwrite a user's snapshot.
        Call after a task is completed, failed, disputed or deleted.
        """
        snapshot = self._recompute(user_id)
        logger.info(f"Refreshed analytics for {user_id}: score={snapshot['reliabilityScore']}")
        return snapshot

    def delete_user_analytics(self, user_id: str) -> None:
        """Remove a user's snapshot (account deletion)."""
        try:
            self.table.delete_item(Key={'userId': user_id})
        except ClientError as e:
            logger.error(f"Error deleting analytics for {user_id}: {e}")
            raise
        logger.info(f"Deleted analytics for {user_id}")

    def _recompute(self, user_id: str) -> Dict[str, Any]:
        tasks = self.task_store.get_tasks_by_user(user_id)
        snapshot = {
            'userId': user_id,
            **calculate_analytics(tasks),
            'lastUpdated': to_iso(self.clock())
        }

        try:
            self.table.put_item(Item=to_dynamo(snapshot))
        except ClientError as e:
            logger.error(f"Error writing analytics for {user_id}: {e}")
            raise

        return snapshot
