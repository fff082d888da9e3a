"""
Stage classifier — decides which cadence step a lead is due for right now.

There is no sequence-state table. The only persisted memory of progress is the
cadence tag on the lead's latest message plus the lead's status, so the same
inputs always produce the same Decision. Pure: no I/O, no clock reads.

    last message         elapsed since it              outcome
    ─────────────────    ──────────────────────────    ──────────────────────────
    role = user          any                           PAUSE
    (none)               —                             NONE
    no tag               > max(7, daysWithoutReply)    reminder (resumed)
    no tag               ≥ daysWithoutReply            reminder (initial)
    reminder             ≥ 4d                          provide_value
    provide_value        ≥ 7d                          breakup
    breakup              ≥ 7d                          TERMINAL_COLD if contacted,
                                                       else TERMINAL_COMPLETED
    completed            any                           NONE
"""
from datetime import datetime, timezone
from typing import Optional

from nurture.sequencing.base import (
    CadenceTag,
    Decision,
    MessageSummary,
    ThresholdConfig,
    RESUMED_REASON,
)

SECONDS_PER_DAY = 86400


def elapsed_days(created_at: datetime, now: datetime) -> float:
    """Fractional days between created_at and now. Naive timestamps are UTC."""
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return (now - created_at).total_seconds() / SECONDS_PER_DAY


def _days_label(days: float) -> str:
    return f'{days:g}'


def classify(last_message: Optional[MessageSummary], lead_status: str,
             config: ThresholdConfig, now: datetime) -> Decision:
    """Map (latest message, lead status) to a Decision at time `now`."""
    if last_message is None:
        return Decision.none('no_history')

    if last_message.role == 'user':
        return Decision.pause()

    days = elapsed_days(last_message.created_at, now)
    tag = last_message.tag

    if tag is CadenceTag.NONE:
        if days > config.resume_after_days:
            return Decision.assign('reminder', RESUMED_REASON)
        if days >= config.days_without_reply:
            return Decision.assign(
                'reminder', f'initial_reminder_{_days_label(config.days_without_reply)}_days')
        return Decision.none()

    if tag is CadenceTag.REMINDER:
        wait = config.stage_duration_days['provide_value']
        if days >= wait:
            return Decision.assign(
                'provide_value', f'value_stage_{_days_label(wait)}_days_after_reminder')
        return Decision.none()

    if tag is CadenceTag.PROVIDE_VALUE:
        wait = config.stage_duration_days['breakup']
        if days >= wait:
            return Decision.assign(
                'breakup', f'breakup_stage_{_days_label(wait)}_days_after_value')
        return Decision.none()

    if tag is CadenceTag.BREAKUP:
        if days >= config.terminal_after_days:
            if lead_status == 'contacted':
                return Decision.terminal_cold()
            return Decision.terminal_completed()
        return Decision.none()

    # COMPLETED: cadence exhausted, nothing more until a new message arrives
    return Decision.none('sequence_completed')
