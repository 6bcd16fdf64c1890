"""
Read-only access to records owned by other services: tasks and user profiles.
"""
from typing import List, Dict, Any, Optional
from boto3.dynamodb.conditions import Key
from .config import config
from .dynamo import query_all, query_first


class TaskStore:
    """Tasks table, queried by owner through the user GSI."""

    def __init__(self, table, index_name: str = None):
        self.table = table
        self.index_name = index_name or config.TASKS_USER_INDEX

    def get_tasks_by_user(self, user_id: str) -> List[Dict[str, Any]]:
        """Return every task owned by the user (all query pages)."""
        return query_all(
            self.table,
            Key('userId').eq(user_id),
            index_name=self.index_name
        )


class ProfileStore:
    """User profiles table (keyed by username, GSI on userId)."""

    def __init__(self, table, index_name: str = None):
        self.table = table
        self.index_name = index_name or config.PROFILES_USER_INDEX

    def find_profile_by_user_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        return query_first(
            self.table,
            Key('userId').eq(user_id),
            index_name=self.index_name
        )
