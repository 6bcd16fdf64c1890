"""
Tests for the Lambda handlers (services are patched out).
"""
import json
from unittest.mock import MagicMock, patch

import pytest


def authed_event(sub='user-1', **extra):
    event = {'requestContext': {'authorizer': {'claims': {'sub': sub}}}}
    event.update(extra)
    return event


def stream_record(event_name, user_id, old_status=None, new_status=None):
    record = {'eventName': event_name, 'dynamodb': {}}
    if new_status is not None:
        record['dynamodb']['NewImage'] = {'userId': {'S': user_id}, 'status': {'S': new_status}}
    if old_status is not None:
        record['dynamodb']['OldImage'] = {'userId': {'S': user_id}, 'status': {'S': old_status}}
    return record


class TestAnalyticsHandlers:
    """Tests for GET /analytics and POST /analytics/refresh."""

    def test_requires_authentication(self):
        from handlers.analytics import get_analytics

        response = get_analytics.handler({}, None)

        assert response['statusCode'] == 401

    def test_returns_recomputed_analytics(self):
        from handlers.analytics import get_analytics

        with patch.object(get_analytics, 'service') as service:
            service.get_user_analytics.return_value = {'userId': 'user-1', 'reliabilityScore': 623}
            response = get_analytics.handler(authed_event(), None)

        service.get_user_analytics.assert_called_once_with('user-1')
        assert response['statusCode'] == 200
        assert json.loads(response['body'])['reliabilityScore'] == 623

    def test_refresh_failure_is_500(self):
        from handlers.analytics import refresh_analytics

        with patch.object(refresh_analytics, 'service') as service:
            service.refresh_user_analytics.side_effect = RuntimeError('dynamo down')
            response = refresh_analytics.handler(authed_event(), None)

        assert response['statusCode'] == 500
        assert json.loads(response['body']) == {'error': 'Failed to refresh analytics'}


class TestDeleteAnalyticsHandler:
    """Tests for DELETE /analytics (account deletion)."""

    def test_deletes_callers_snapshot(self):
        from handlers.analytics import delete_analytics

        with patch.object(delete_analytics, 'service') as service:
            response = delete_analytics.handler(authed_event('user-7'), None)

        service.delete_user_analytics.assert_called_once_with('user-7')
        assert response['statusCode'] == 200

    def test_requires_authentication(self):
        from handlers.analytics import delete_analytics

        with patch.object(delete_analytics, 'service') as service:
            response = delete_analytics.handler({}, None)

        service.delete_user_analytics.assert_not_called()
        assert response['statusCode'] == 401

    def test_failure_is_500(self):
        from handlers.analytics import delete_analytics

        with patch.object(delete_analytics, 'service') as service:
            service.delete_user_analytics.side_effect = RuntimeError('dynamo down')
            response = delete_analytics.handler(authed_event(), None)

        assert response['statusCode'] == 500
        assert json.loads(response['body']) == {'error': 'Failed to delete analytics'}


class TestTaskStatusStream:
    """Tests for the Tasks stream handler."""

    def test_status_change_refreshes_owner_once(self):
        from handlers.analytics import task_status_stream

        event = {'Records': [
            stream_record('MODIFY', 'u1', old_status='pending', new_status='completed'),
            stream_record('MODIFY', 'u1', old_status='pending', new_status='failed'),
            stream_record('INSERT', 'u2', new_status='pending'),
        ]}

        with patch.object(task_status_stream, 'service') as service:
            result = task_status_stream.handler(event, None)

        assert [c.args[0] for c in service.refresh_user_analytics.call_args_list] == ['u1', 'u2']
        assert result == {'message': 'Refreshed analytics for 2 of 2 users'}

    def test_unchanged_status_is_ignored(self):
        from handlers.analytics import task_status_stream

        event = {'Records': [stream_record('MODIFY', 'u1', old_status='pending', new_status='pending')]}

        with patch.object(task_status_stream, 'service') as service:
            task_status_stream.handler(event, None)

        service.refresh_user_analytics.assert_not_called()

    def test_removed_task_uses_old_image(self):
        from handlers.analytics import task_status_stream

        assert task_status_stream.affected_user(stream_record('REMOVE', 'u9', old_status='failed')) == 'u9'

    def test_one_failure_does_not_stop_the_batch(self):
        from handlers.analytics import task_status_stream

        event = {'Records': [
            stream_record('INSERT', 'bad', new_status='pending'),
            stream_record('INSERT', 'good', new_status='pending'),
        ]}

        with patch.object(task_status_stream, 'service') as service:
            service.refresh_user_analytics.side_effect = [RuntimeError('boom'), {}]
            result = task_status_stream.handler(event, None)

        assert service.refresh_user_analytics.call_count == 2
        assert result == {'message': 'Refreshed analytics for 1 of 2 users'}

    def test_no_records(self):
        from handlers.analytics import task_status_stream

        assert task_status_stream.handler({}, None) == {'message': 'No records to process'}


class TestLeaderboardHandlers:
    """Tests for the leaderboard read endpoints."""

    def test_top100_sets_cache_header(self):
        from handlers.leaderboard import get_top100

        with patch.object(get_top100, 'service') as service:
            service.get_top_100.return_value = {'rankings': [], 'lastUpdated': None, 'totalUsers': 0}
            response = get_top100.handler({}, None)

        assert response['statusCode'] == 200
        assert response['headers']['Cache-Control'] == 'public, max-age=300'
        assert json.loads(response['body'])['lastUpdated'] is None

    def test_top100_failure(self):
        from handlers.leaderboard import get_top100

        with patch.object(get_top100, 'service') as service:
            service.get_top_100.side_effect = RuntimeError('boom')
            response = get_top100.handler({}, None)

        assert response['statusCode'] == 500
        assert 'Cache-Control' not in response['headers']

    def test_user_rank_requires_user_id(self):
        from handlers.leaderboard import get_user_rank

        assert get_user_rank.handler({'pathParameters': None}, None)['statusCode'] == 400

    @pytest.mark.parametrize('rank, status', [({'rank': 150, 'userId': 'u1'}, 200), (None, 404)])
    def test_user_rank_found_or_missing(self, rank, status):
        from handlers.leaderboard import get_user_rank

        with patch.object(get_user_rank, 'service') as service:
            service.get_user_rank.return_value = rank
            response = get_user_rank.handler({'pathParameters': {'userId': 'u1'}}, None)

        service.get_user_rank.assert_called_once_with('u1')
        assert response['statusCode'] == status

    def test_my_rank_without_score(self):
        from handlers.leaderboard import get_my_rank

        with patch.object(get_my_rank, 'service') as service:
            service.get_user_rank.return_value = None
            response = get_my_rank.handler(authed_event(), None)

        assert response['statusCode'] == 404
        assert 'Complete tasks' in json.loads(response['body'])['error']

    def test_my_rank_requires_authentication(self):
        from handlers.leaderboard import get_my_rank

        assert get_my_rank.handler({}, None)['statusCode'] == 401


class TestRefreshLeaderboardHandler:
    """Tests for the scheduled refresh handler."""

    def test_runs_job_with_request_id_as_owner(self):
        from handlers.leaderboard import refresh_leaderboard

        context = MagicMock(aws_request_id='req-123')
        with patch.object(refresh_leaderboard, 'LeaderboardRefreshJob') as job_class:
            job_class.return_value.run.return_value = {'success': True, 'totalUsers': 3}
            result = refresh_leaderboard.handler({'source': 'aws.events'}, context)

        assert result == {'success': True, 'totalUsers': 3}
        assert job_class.call_args.kwargs['owner'] == 'req-123'

    def test_failure_propagates(self):
        from handlers.leaderboard import refresh_leaderboard

        with patch.object(refresh_leaderboard, 'LeaderboardRefreshJob') as job_class:
            job_class.return_value.run.side_effect = RuntimeError('scan failed')

            with pytest.raises(RuntimeError):
                refresh_leaderboard.handler({}, MagicMock())
