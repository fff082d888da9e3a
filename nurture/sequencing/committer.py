"""
Side-effect committer — applies terminal decisions to the store.

Best-effort: each write is one single-row update; a failure comes back as an
error string for the run's `errors` list and never raises.
"""
import logging
from typing import Dict, List, Optional

from nurture.sequencing.base import (
    Decision,
    LeadSummary,
    MessageSummary,
    TERMINAL_COLD,
    TERMINAL_COMPLETED,
)
from nurture.services import db

logger = logging.getLogger('sequencing.committer')


class TerminalCommitter:
    """Applies TERMINAL_COLD / TERMINAL_COMPLETED and tallies what it did."""

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run
        self.applied: Dict[str, List[str]] = {'cold': [], 'completed': []}

    def commit(self, lead: LeadSummary, message: Optional[MessageSummary], decision: Decision) -> Optional[str]:
        """Apply one terminal decision. Returns an error message, or None on success."""
        if decision.kind == TERMINAL_COLD:
            return self._mark_cold(lead)
        if decision.kind == TERMINAL_COMPLETED:
            return self._mark_completed(lead, message)
        return None

    def _mark_cold(self, lead: LeadSummary) -> Optional[str]:
        if not self.dry_run:
            try:
                db.update_lead_status(lead.id, 'cold')
            except Exception as e:
                logger.error("Failed to mark lead %s as cold", lead.id, exc_info=True)
                return f"Failed to mark lead {lead.id} as cold: {e}"
        self.applied['cold'].append(lead.id)
        logger.info("Lead %s marked as cold after breakup stage timeout%s",
                    lead.id, ' (dry run)' if self.dry_run else '')
        return None

    def _mark_completed(self, lead: LeadSummary, message: Optional[MessageSummary]) -> Optional[str]:
        if message is None:
            return f"Failed to mark sequence as completed for lead {lead.id}: no message to tag"
        if not self.dry_run:
            try:
                db.update_message_tag(message.id, 'completed')
            except Exception as e:
                logger.error("Failed to mark sequence completed for lead %s", lead.id, exc_info=True)
                return f"Failed to mark sequence as completed for lead {lead.id}: {e}"
        self.applied['completed'].append(lead.id)
        logger.info("Sequence marked as completed for lead %s (status: %s)%s",
                    lead.id, lead.status, ' (dry run)' if self.dry_run else '')
        return None

    @property
    def counts(self) -> Dict[str, int]:
        return {outcome: len(ids) for outcome, ids in self.applied.items()}
