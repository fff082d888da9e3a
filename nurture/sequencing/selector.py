"""
Batch selector — per-stage capacity gating and stats.

Only the collector thread touches a StageSelector, so it carries no lock.
"""
from typing import Any, Dict, List

from nurture.config import CADENCE_STAGES
from nurture.sequencing.base import Decision, LeadSummary, empty_buckets


class StageSelector:
    """
    Accumulates assigned leads into capped per-stage buckets.

    A lead offered to a full bucket is dropped from BOTH the bucket and the
    stats. Callers still count it in totalChecked/considered, so the gap
    between those and sum(stats) is the overflow.
    """

    def __init__(self, max_per_stage: int):
        self.max_per_stage = max_per_stage
        self.leads_by_stage: Dict[str, List[Dict[str, Any]]] = empty_buckets()
        self.stats: Dict[str, int] = {stage: 0 for stage in CADENCE_STAGES}
        self.stats['resumed'] = 0
        self._seen = set()

    def offer(self, lead: LeadSummary, decision: Decision) -> bool:
        """Place the lead in its stage bucket if there is room. Returns True if placed."""
        if not decision.is_assignment or lead.id in self._seen:
            return False

        bucket = self.leads_by_stage[decision.stage]
        if len(bucket) >= self.max_per_stage:
            return False

        entry = lead.to_dict()
        entry['sequence_stage'] = decision.stage
        entry['sequence_reason'] = decision.reason
        bucket.append(entry)
        self._seen.add(lead.id)

        # Mutually exclusive: a resumed lead sits in 'reminder' but counts as 'resumed'
        if decision.is_resumed:
            self.stats['resumed'] += 1
        else:
            self.stats[decision.stage] += 1
        return True

    def is_full(self, stage: str) -> bool:
        return len(self.leads_by_stage[stage]) >= self.max_per_stage

    @property
    def placed(self) -> int:
        return sum(len(bucket) for bucket in self.leads_by_stage.values())

    def flattened(self, limit: int) -> List[Dict[str, Any]]:
        return build_legacy_leads(self.leads_by_stage, limit)


def build_legacy_leads(leads_by_stage: Dict[str, List[Dict[str, Any]]], limit: int) -> List[Dict[str, Any]]:
    """Concatenate buckets in cadence order and truncate for callers that only read `leads`."""
    combined = []
    for stage in CADENCE_STAGES:
        combined.extend(leads_by_stage.get(stage) or [])
    return combined[:max(limit, 0)]
