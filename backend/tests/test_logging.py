"""
Tests for event logging.
"""
import logging

from shared.logging import describe_event, log_event


class TestDescribeEvent:
    """Tests for describe_event."""

    def test_stream_batch_is_summarized(self):
        event = {'Records': [
            {'eventName': 'MODIFY', 'dynamodb': {'NewImage': {'userId': {'S': 'u1'}, 'title': {'S': 'secret'}}}},
            {'eventName': 'MODIFY', 'dynamodb': {}},
            {'eventName': 'REMOVE', 'dynamodb': {}},
        ]}

        assert describe_event(event) == {'records': 3, 'eventNames': {'MODIFY': 2, 'REMOVE': 1}}

    def test_schedule_event(self):
        event = {'source': 'aws.events', 'time': '2026-03-01T12:00:00Z', 'detail': {}}

        assert describe_event(event) == {'source': 'aws.events', 'time': '2026-03-01T12:00:00Z'}

    def test_api_request_drops_body_and_headers(self):
        event = {'path': '/analytics', 'body': '{"x": 1}', 'headers': {'Authorization': 'Bearer t'}}

        assert describe_event(event) == {'path': '/analytics'}

    def test_task_images_never_reach_the_log(self, caplog):
        event = {'Records': [{'eventName': 'INSERT', 'dynamodb': {'NewImage': {'title': {'S': 'secret'}}}}]}

        with caplog.at_level(logging.INFO, logger='enfora'):
            log_event(event)

        assert 'records' in caplog.text
        assert 'secret' not in caplog.text
