"""
Sequencing value types.

Everything here is plain data: the threshold config for one run, detached
snapshots of the lead/message rows the engine reads, the cadence tag parsed
out of message.custom_data, and the Decision the classifier produces.
Worker threads pass these around instead of ORM instances.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Any, List, Optional

from nurture.config import (
    CADENCE_STAGES,
    ELIGIBLE_LEAD_STATUSES,
    NURTURE_CANDIDATE_SCAN_LIMIT,
    NURTURE_DAYS_WITHOUT_REPLY,
    NURTURE_LEGACY_LIMIT,
    NURTURE_MAX_LEADS_PER_STAGE,
    RESUME_FLOOR_DAYS,
    STAGE_DURATION_DAYS,
    TERMINAL_AFTER_DAYS,
)


class CadenceTag(str, Enum):
    """Value of custom_data.sequence_stage on the latest message."""
    REMINDER = 'reminder'
    PROVIDE_VALUE = 'provide_value'
    BREAKUP = 'breakup'
    COMPLETED = 'completed'
    NONE = 'none'

    @classmethod
    def parse(cls, value) -> 'CadenceTag':
        """Normalize a raw metadata value. Anything unrecognized is NONE."""
        if isinstance(value, str):
            member = cls._value2member_map_.get(value.strip().lower())
            if member is not None:
                return member
        return cls.NONE


# ── Threshold config ─────────────────────────────────────────────────────────

def _number_or_default(value, default):
    """Accept finite real numbers only; bools, strings, None, NaN and infinities fall back to default."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if not math.isfinite(value):
        return default
    return value


@dataclass(frozen=True)
class ThresholdConfig:
    """Immutable per-run thresholds."""
    days_without_reply: float = NURTURE_DAYS_WITHOUT_REPLY
    max_leads_per_stage: int = NURTURE_MAX_LEADS_PER_STAGE
    legacy_limit: int = NURTURE_LEGACY_LIMIT
    candidate_scan_limit: int = NURTURE_CANDIDATE_SCAN_LIMIT
    eligible_statuses: tuple = tuple(ELIGIBLE_LEAD_STATUSES)
    stage_duration_days: Dict[str, float] = field(default_factory=lambda: dict(STAGE_DURATION_DAYS))
    terminal_after_days: float = TERMINAL_AFTER_DAYS
    resume_floor_days: float = RESUME_FLOOR_DAYS

    @classmethod
    def from_params(cls, days_without_reply=None, limit=None, max_leads_per_stage=None):
        """Build from loosely-typed caller input, defaulting anything that isn't a number."""
        return cls(
            days_without_reply=_number_or_default(days_without_reply, NURTURE_DAYS_WITHOUT_REPLY),
            legacy_limit=int(_number_or_default(limit, NURTURE_LEGACY_LIMIT)),
            max_leads_per_stage=int(_number_or_default(max_leads_per_stage, NURTURE_MAX_LEADS_PER_STAGE)),
        )

    @property
    def resume_after_days(self) -> float:
        return max(self.resume_floor_days, self.days_without_reply)

    def threshold_date(self, now: datetime) -> datetime:
        return now - timedelta(days=self.days_without_reply)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'daysWithoutReply': self.days_without_reply,
            'limit': self.legacy_limit,
            'maxLeadsPerStage': self.max_leads_per_stage,
        }


# ── Row snapshots ────────────────────────────────────────────────────────────

@dataclass
class LeadSummary:
    """The lead columns the engine reads and returns to callers."""
    id: str
    site_id: str
    status: str
    assignee_id: Optional[str] = None
    name: str = ''
    email: str = ''
    phone: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'status': self.status,
            'site_id': self.site_id,
            'assignee_id': self.assignee_id,
        }


@dataclass
class MessageSummary:
    """Latest message for a lead, already scoped to the lead's site."""
    id: str
    lead_id: str
    role: str
    created_at: datetime
    custom_data: Dict[str, Any] = field(default_factory=dict)

    @property
    def tag(self) -> CadenceTag:
        data = self.custom_data if isinstance(self.custom_data, dict) else {}
        return CadenceTag.parse(data.get('sequence_stage'))


# ── Decisions ────────────────────────────────────────────────────────────────

ASSIGN = 'assign'
PAUSE = 'pause'
TERMINAL_COLD = 'terminal_cold'
TERMINAL_COMPLETED = 'terminal_completed'
NO_ACTION = 'none'

RESUMED_REASON = 'resumed_from_legacy_flow'


@dataclass(frozen=True)
class Decision:
    """Outcome of classifying one lead. stage is set only for ASSIGN."""
    kind: str
    stage: Optional[str] = None
    reason: str = ''

    @classmethod
    def assign(cls, stage: str, reason: str) -> 'Decision':
        if stage not in CADENCE_STAGES:
            raise ValueError(f"Unknown cadence stage '{stage}'")
        return cls(ASSIGN, stage, reason)

    @classmethod
    def pause(cls, reason: str = 'awaiting_reply') -> 'Decision':
        return cls(PAUSE, reason=reason)

    @classmethod
    def terminal_cold(cls) -> 'Decision':
        return cls(TERMINAL_COLD, reason='breakup_timeout_mark_cold')

    @classmethod
    def terminal_completed(cls) -> 'Decision':
        return cls(TERMINAL_COMPLETED, reason='breakup_timeout_mark_completed')

    @classmethod
    def none(cls, reason: str = 'waiting') -> 'Decision':
        return cls(NO_ACTION, reason=reason)

    @property
    def is_assignment(self) -> bool:
        return self.kind == ASSIGN

    @property
    def is_terminal(self) -> bool:
        return self.kind in (TERMINAL_COLD, TERMINAL_COMPLETED)

    @property
    def is_resumed(self) -> bool:
        return self.kind == ASSIGN and self.reason == RESUMED_REASON


def empty_buckets() -> Dict[str, List[Dict[str, Any]]]:
    return {stage: [] for stage in CADENCE_STAGES}
