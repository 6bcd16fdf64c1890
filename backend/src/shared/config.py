"""
Configuration module for Lambda handlers.
Loads all environment variables needed by the analytics and leaderboard services.
"""
import os


class Config:
    """Centralized configuration from environment variables."""

    # AWS Region
    AWS_REGION = os.environ.get('AWS_REGION', 'us-east-1')

    # DynamoDB Tables
    TASKS_TABLE = os.environ.get('TASKS_TABLE', 'Tasks')
    ANALYTICS_TABLE = os.environ.get('ANALYTICS_TABLE', 'UserAnalytics')
    LEADERBOARD_TABLE = os.environ.get('LEADERBOARD_TABLE', 'LeaderboardCache')
    PROFILES_TABLE = os.environ.get('PROFILES_TABLE', 'UserProfiles')

    # Global Secondary Indexes
    TASKS_USER_INDEX = os.environ.get('TASKS_USER_INDEX', 'UserIdIndex')
    PROFILES_USER_INDEX = os.environ.get('PROFILES_USER_INDEX', 'userId-index')

    # Leaderboard cache shape
    LEADERBOARD_TOP_SIZE = int(os.environ.get('LEADERBOARD_TOP_SIZE', '100'))
    LEADERBOARD_INDIVIDUAL_LIMIT = int(os.environ.get('LEADERBOARD_INDIVIDUAL_LIMIT', '500'))
    LEADERBOARD_CACHE_TTL_SECONDS = int(os.environ.get('LEADERBOARD_CACHE_TTL_SECONDS', '86400'))  # 0 disables

    # DynamoDB limits and safeguards
    BATCH_WRITE_SIZE = int(os.environ.get('BATCH_WRITE_SIZE', '25'))  # BatchWriteItem max
    MAX_SCAN_PAGES = int(os.environ.get('MAX_SCAN_PAGES', '1000'))

    # Refresh job scheduling (EventBridge runs it every 10 minutes).
    # Lease covers Lambda's 900s maximum timeout; the job also stops writing once it expires.
    REFRESH_LEASE_SECONDS = int(os.environ.get('REFRESH_LEASE_SECONDS', '900'))

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


config = Config()
