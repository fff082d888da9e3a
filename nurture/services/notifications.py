"""
Notifications — Slack webhook posts for nurture cycle events.

A notification failure never blocks the cycle.
"""
import logging
import requests

from nurture.config import SLACK_WEBHOOK_URL

logger = logging.getLogger('services.notifications')

MAX_ERROR_CHARS = 500


def _header(text):
    return {"type": "header", "text": {"type": "plain_text", "text": text}}


def _post_blocks(blocks, description):
    """POST blocks to the webhook. Returns True when sent; failures are logged."""
    if not SLACK_WEBHOOK_URL:
        return False
    try:
        requests.post(SLACK_WEBHOOK_URL, json={"blocks": blocks}, timeout=10)
    except Exception:
        logger.error("Failed to send %s", description, exc_info=True)
        return False
    logger.info("Sent %s", description)
    return True


def _stat_fields(result):
    stats = result.get('stats') or {}
    counts = [
        ('Reminder', stats.get('reminder', 0)),
        ('Resumed', stats.get('resumed', 0)),
        ('Provide value', stats.get('provide_value', 0)),
        ('Break-up', stats.get('breakup', 0)),
        ('Follow-ups started', result.get('followUpsStarted', 0)),
        ('Errors', len(result.get('errors') or [])),
    ]
    return [{"type": "mrkdwn", "text": f"*{label}:* {value}"} for label, value in counts]


def notify_cycle_complete(result):
    """Post nurture cycle summary to Slack."""
    blocks = [
        _header(f"Lead Nurture Cycle — {result.get('siteId', '')}"),
        {"type": "section", "fields": _stat_fields(result)},
    ]
    if result.get('executionTime'):
        blocks.append({
            "type": "context",
            "elements": [{"type": "mrkdwn", "text": f"Took {result['executionTime']}"}],
        })
    return _post_blocks(blocks, f"nurture cycle {(result.get('runId') or '')[:8]} summary")


def notify_cycle_failed(site_id, run_id, error):
    """Post nurture cycle failure alert to Slack."""
    blocks = [
        _header(f"Lead Nurture Cycle FAILED — {site_id}"),
        {"type": "section", "text": {"type": "mrkdwn", "text": f"*Error:* ```{str(error)[:MAX_ERROR_CHARS]}```"}},
    ]
    return _post_blocks(blocks, f"nurture cycle {(run_id or '')[:8]} failure alert")
