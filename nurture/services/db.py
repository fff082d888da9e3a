"""
Lead/message store — every SQL the nurture engine and cycle issue lives here.

Read helpers and the two terminal writes RAISE on failure: the engine decides
whether a failure is fatal (candidate scan) or per-row (lookups, commits).
Run-audit writes are wrapped in try/except so a cycle never blocks on them.

Each helper opens and closes its own session, so they are safe to call from
worker threads.
"""
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy import text

from nurture.database import get_session
from nurture.models.conversation import Conversation
from nurture.models.lead import Lead
from nurture.models.message import Message
from nurture.models.nurture_run import NurtureRun
from nurture.sequencing.base import LeadSummary, MessageSummary

logger = logging.getLogger('services.db')


# ── Connectivity ─────────────────────────────────────────────────────────────

def check_connection() -> bool:
    """True if the database answers a trivial query."""
    try:
        session = get_session()
        try:
            session.execute(text('SELECT 1'))
            return True
        finally:
            session.close()
    except Exception:
        logger.error("Database connectivity check failed", exc_info=True)
        return False


# ── Candidate loader ─────────────────────────────────────────────────────────

def list_candidate_leads(site_id: str, statuses: Iterable[str], limit: int = 500) -> List[LeadSummary]:
    """
    Leads of one site whose status is in `statuses`, most recently updated first.

    Ties on updated_at are broken by id so repeated runs see the same order.
    """
    session = get_session()
    try:
        rows = (
            session.query(Lead)
            .filter(Lead.site_id == site_id, Lead.status.in_(list(statuses)))
            .order_by(Lead.updated_at.desc(), Lead.id.asc())
            .limit(limit)
            .all()
        )
        return [_lead_summary(row) for row in rows]
    finally:
        session.close()


# ── Message history resolver ─────────────────────────────────────────────────

def get_latest_message_for_lead(lead_id: str, site_id: str) -> Optional[MessageSummary]:
    """
    Most recent message to/from a lead, considering only conversations of `site_id`.

    The conversation join is what enforces tenant isolation, so it is not optional.
    Returns None when the lead has no messages on this site.
    """
    session = get_session()
    try:
        row = (
            session.query(Message)
            .join(Conversation, Message.conversation_id == Conversation.id)
            .filter(Message.lead_id == lead_id, Conversation.site_id == site_id)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .first()
        )
        if row is None:
            return None
        return MessageSummary(
            id=row.id,
            lead_id=row.lead_id,
            role=row.role,
            created_at=row.created_at,
            custom_data=dict(row.custom_data) if isinstance(row.custom_data, dict) else {},
        )
    finally:
        session.close()


# ── Terminal writes ──────────────────────────────────────────────────────────

def update_lead_status(lead_id: str, status: str):
    """Single-row status update. Raises LookupError if the lead is gone."""
    session = get_session()
    try:
        lead = session.get(Lead, lead_id)
        if lead is None:
            raise LookupError(f"Lead {lead_id} not found")
        lead.status = status
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def update_message_tag(message_id: str, tag: str):
    """
    Set custom_data.sequence_stage on one message, keeping its other keys.

    custom_data is a plain JSON column (no mutation tracking), so a new dict is
    assigned rather than editing the loaded one in place.
    """
    session = get_session()
    try:
        message = session.get(Message, message_id)
        if message is None:
            raise LookupError(f"Message {message_id} not found")
        data = dict(message.custom_data) if isinstance(message.custom_data, dict) else {}
        data['sequence_stage'] = tag
        message.custom_data = data
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ── Nurture run audit ────────────────────────────────────────────────────────

def persist_nurture_run(run_id: str, site_id: str, status: str, params: dict = None, result: dict = None):
    """
    INSERT or UPDATE a nurture_runs row.

    Called twice per cycle:
      1. When the cycle starts (INSERT, status=running)
      2. When it completes/fails (UPDATE with counters from `result`)
    """
    session = get_session()
    try:
        row = session.get(NurtureRun, run_id)
        if row is None:
            row = NurtureRun(id=run_id, site_id=site_id, status=status, params=params or {})
            session.add(row)
        else:
            row.status = status
            if params is not None:
                row.params = params

        if result:
            row.total_checked = result.get('totalChecked', 0)
            row.considered = result.get('considered', 0)
            row.excluded_by_assignee = result.get('excludedByAssignee', 0)
            row.qualified_leads = result.get('qualifiedLeads', 0)
            row.follow_ups_started = result.get('followUpsStarted', 0)
            row.stats = result.get('stats') or {}
            row.terminal = result.get('terminal') or {}
            row.errors = list(result.get('errors') or []) + list(result.get('leadErrors') or [])
            row.threshold_date = result.get('thresholdDate') or None

        if status in ('completed', 'failed'):
            row.finished_at = datetime.now(timezone.utc)

        session.commit()
    except Exception:
        session.rollback()
        logger.error("Failed to persist nurture run %s", run_id, exc_info=True)
    finally:
        session.close()


def list_recent_runs(site_id: str = None, limit: int = 20) -> List[dict]:
    """Newest nurture runs first, optionally for one site. Empty list on DB error."""
    try:
        session = get_session()
        try:
            query = session.query(NurtureRun)
            if site_id:
                query = query.filter(NurtureRun.site_id == site_id)
            rows = query.order_by(NurtureRun.created_at.desc(), NurtureRun.id.desc()).limit(limit).all()
            return [row.to_dict() for row in rows]
        finally:
            session.close()
    except Exception:
        logger.error("Failed to list nurture runs", exc_info=True)
        return []


# ── Private helpers ──────────────────────────────────────────────────────────

def _lead_summary(row: Lead) -> LeadSummary:
    return LeadSummary(
        id=row.id,
        site_id=row.site_id,
        status=row.status,
        assignee_id=row.assignee_id,
        name=row.name or '',
        email=row.email or '',
        phone=row.phone or '',
    )
