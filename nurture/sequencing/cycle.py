"""
Nurture cycle — one scheduled pass for a site.

  1. Record a nurture_runs row (running)
  2. get_nurture_leads() → stage buckets
  3. Hand each due lead to the follow-up dispatcher (default: RQ job for the outreach worker)
  4. Record the final row, post a Slack summary

Enqueued per site by the scheduler via enqueue_nurture_cycle(), or run inline
from scripts/run_nurture.py. Message writing and delivery happen in the
outreach worker; this module only decides who is due and hands them over.
"""
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

from nurture.config import (
    FOLLOW_UP_JOB,
    FOLLOW_UP_QUEUE,
    NURTURE_JOB_TIMEOUT,
    NURTURE_QUEUE,
)
from nurture.sequencing.engine import get_nurture_leads
from nurture.services.db import persist_nurture_run
from nurture.services.notifications import notify_cycle_complete, notify_cycle_failed

logger = logging.getLogger('sequencing.cycle')

# (lead_id, site_id, stage, payload) -> job id
Dispatcher = Callable[[str, str, str, Dict[str, Any]], str]


# ── Lazy RQ queues (avoids import-time Redis connection) ─────────────────────

_queues = {}

def _get_queue(name):
    if name not in _queues:
        from nurture.extensions import redis_client
        from rq import Queue
        _queues[name] = Queue(name, connection=redis_client)
    return _queues[name]


def enqueue_follow_up(lead_id: str, site_id: str, stage: str, payload: Dict[str, Any]) -> str:
    """Default dispatcher: enqueue the outreach worker's follow-up job by dotted path."""
    job = _get_queue(FOLLOW_UP_QUEUE).enqueue(
        FOLLOW_UP_JOB,
        kwargs={
            'lead_id': lead_id,
            'site_id': site_id,
            'sequence_stage': stage,
            'additional_data': payload,
        },
    )
    return job.id


def enqueue_nurture_cycle(site_id: str, **options) -> str:
    """Schedule run_nurture_cycle(site_id, **options) as a background RQ job. Returns the job id."""
    if not site_id:
        raise ValueError('site_id is required')
    job = _get_queue(NURTURE_QUEUE).enqueue(
        run_nurture_cycle,
        args=(site_id,),
        kwargs=options,
        job_timeout=NURTURE_JOB_TIMEOUT,
    )
    logger.info("Enqueued nurture cycle for site %s as job %s", site_id, job.id)
    return job.id


# ── Cycle runner (enqueued via RQ) ───────────────────────────────────────────

def run_nurture_cycle(
    site_id: str,
    days_without_reply=None,
    max_leads=None,
    max_leads_per_stage=None,
    user_id: str = None,
    additional_data: Dict[str, Any] = None,
    dispatcher: Dispatcher = None,
) -> Dict[str, Any]:
    """
    Run the engine for one site and dispatch a follow-up per due lead.

    A failed engine run (e.g. database down) still finishes the cycle as
    'completed' with success=False; only an unexpected exception marks the
    run row 'failed'. Per-lead dispatch failures are recorded and skipped.
    """
    if not site_id:
        raise ValueError('site_id is required')

    dispatcher = dispatcher or enqueue_follow_up
    run_id = str(uuid.uuid4())
    started = time.monotonic()
    params = {
        'daysWithoutReply': days_without_reply,
        'maxLeads': max_leads,
        'maxLeadsPerStage': max_leads_per_stage,
        'userId': user_id,
    }
    persist_nurture_run(run_id, site_id, 'running', params=params)
    log_context = {'site_id': site_id, 'run_id': run_id}
    logger.info("Starting nurture cycle %s for site %s", run_id, site_id, extra=log_context)

    errors: List[str] = []
    results: List[Dict[str, Any]] = []
    nurture: Dict[str, Any] = {}
    status = 'completed'

    try:
        nurture = get_nurture_leads(
            site_id,
            days_without_reply=days_without_reply,
            limit=max_leads,
            max_leads_per_stage=max_leads_per_stage,
        )

        if not nurture.get('success'):
            errors.extend(nurture.get('errors') or ['Unknown error fetching nurture leads'])
        else:
            for lead in nurture.get('leads') or []:
                results.append(_dispatch(lead, site_id, nurture, user_id, additional_data, dispatcher, errors))
    except Exception as e:
        logger.error("Nurture cycle %s for site %s failed", run_id, site_id, exc_info=True, extra=log_context)
        errors.append(str(e))
        status = 'failed'

    result = _build_result(run_id, site_id, nurture, results, errors, started)
    persist_nurture_run(run_id, site_id, status, result=result)

    if status == 'failed':
        notify_cycle_failed(site_id, run_id, errors[-1] if errors else '')
    else:
        notify_cycle_complete(result)

    logger.info("Nurture cycle %s done: %d/%d follow-ups started, %d errors",
                run_id, result['followUpsStarted'], result['qualifiedLeads'], len(errors),
                extra=log_context)
    return result


def _dispatch(lead, site_id, nurture, user_id, additional_data, dispatcher, errors):
    """Hand one lead to the dispatcher. Failures go to `errors`, never raise."""
    lead_id = lead.get('id')
    stage = lead.get('sequence_stage')
    payload = {
        'triggeredBy': 'leadNurtureCycle',
        'reason': 'nurture_stage_due',
        'sequence_stage': stage,
        'sequence_reason': lead.get('sequence_reason'),
        'thresholdDate': nurture.get('thresholdDate'),
        'userId': user_id,
    }
    payload.update(additional_data or {})

    try:
        job_id = dispatcher(lead_id, site_id, stage, payload)
        return {'lead_id': lead_id, 'stage': stage, 'success': True, 'jobId': job_id}
    except Exception as e:
        logger.error("Failed to dispatch follow-up for lead %s", lead_id, exc_info=True)
        errors.append(f"Lead {lead_id}: {e}")
        return {'lead_id': lead_id, 'stage': stage, 'success': False, 'error': str(e)}


def _build_result(run_id, site_id, nurture, results, errors, started):
    return {
        'success': len(errors) == 0,
        'siteId': site_id,
        'runId': run_id,
        'qualifiedLeads': len(results),
        'followUpsStarted': sum(1 for r in results if r['success']),
        'thresholdDate': nurture.get('thresholdDate', ''),
        'totalChecked': nurture.get('totalChecked', 0),
        'considered': nurture.get('considered', 0),
        'excludedByAssignee': nurture.get('excludedByAssignee', 0),
        'stats': nurture.get('stats') or {},
        'terminal': nurture.get('terminal') or {},
        # Per-lead engine problems (lookup/commit failures) don't fail the cycle
        'leadErrors': list(nurture.get('errors') or []) if nurture.get('success') else [],
        'results': results,
        'errors': errors,
        'executionTime': f"{time.monotonic() - started:.2f}s",
        'completedAt': datetime.now(timezone.utc).isoformat(),
    }
