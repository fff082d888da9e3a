"""Tests for nurture.services.notifications -- Slack webhook posts."""
from unittest.mock import patch

import pytest

from nurture.services.notifications import notify_cycle_complete, notify_cycle_failed

WEBHOOK = 'https://hooks.slack.example/T000/B000/xyz'


@pytest.fixture
def webhook():
    with patch('nurture.services.notifications.SLACK_WEBHOOK_URL', WEBHOOK), \
         patch('nurture.services.notifications.requests.post') as post:
        yield post


def _result(**overrides):
    result = {
        'siteId': 'site-1',
        'runId': 'abcd1234-0000',
        'followUpsStarted': 3,
        'stats': {'reminder': 1, 'provide_value': 1, 'breakup': 1, 'resumed': 2},
        'errors': [],
        'executionTime': '1.25s',
    }
    result.update(overrides)
    return result


class TestNotifyCycleComplete:

    def test_posts_summary_blocks(self, webhook):
        assert notify_cycle_complete(_result()) is True
        webhook.assert_called_once()
        args, kwargs = webhook.call_args
        assert args[0] == WEBHOOK
        assert kwargs['timeout'] == 10
        blocks = kwargs['json']['blocks']
        assert 'site-1' in blocks[0]['text']['text']
        fields = [f['text'] for f in blocks[1]['fields']]
        assert '*Resumed:* 2' in fields
        assert '*Follow-ups started:* 3' in fields
        assert blocks[-1]['elements'][0]['text'] == 'Took 1.25s'

    def test_no_webhook_is_noop(self):
        with patch('nurture.services.notifications.SLACK_WEBHOOK_URL', ''), \
             patch('nurture.services.notifications.requests.post') as post:
            assert notify_cycle_complete(_result()) is False
        post.assert_not_called()

    def test_post_failure_is_swallowed(self, webhook):
        webhook.side_effect = ConnectionError('slack down')
        assert notify_cycle_complete(_result()) is False


class TestNotifyCycleFailed:

    def test_posts_truncated_error(self, webhook):
        notify_cycle_failed('site-1', 'run-1', 'x' * 900)
        blocks = webhook.call_args.kwargs['json']['blocks']
        assert 'FAILED' in blocks[0]['text']['text']
        assert blocks[1]['text']['text'].count('x') == 500

    def test_post_failure_is_swallowed(self, webhook):
        webhook.side_effect = ConnectionError('slack down')
        assert notify_cycle_failed('site-1', 'run-1', 'boom') is False
