"""
Nurture engine — which leads are due for which cadence stage, right now.

    candidates ──► [assignee filter] ──► worker pool: resolve latest message + classify
                                              │
                          collector (this thread, candidate order)
                             ├─ ASSIGN   → StageSelector (capacity + stats)
                             ├─ TERMINAL → TerminalCommitter (cold / completed)
                             └─ PAUSE / NONE → skip

All state the engine needs is already persisted (latest message tag + lead
status), so re-running with unchanged data gives the same buckets. Results are
consumed in candidate order, never completion order, so which leads win a
nearly-full bucket doesn't depend on thread timing.

Callers always get a result dict back; nothing here raises.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from nurture.config import NURTURE_LOOKUP_TIMEOUT, NURTURE_MAX_WORKERS
from nurture.sequencing.base import (
    Decision,
    LeadSummary,
    MessageSummary,
    ThresholdConfig,
    empty_buckets,
)
from nurture.sequencing.classifier import classify
from nurture.sequencing.committer import TerminalCommitter
from nurture.sequencing.selector import StageSelector
from nurture.services import db

logger = logging.getLogger('sequencing.engine')


# ── Public API ────────────────────────────────────────────────────────────────

def get_nurture_leads(
    site_id: str,
    days_without_reply=None,
    limit=None,
    max_leads_per_stage=None,
    *,
    now: datetime = None,
    dry_run: bool = False,
    cancel_event: threading.Event = None,
    max_workers: int = None,
    lookup_timeout: float = None,
) -> Dict[str, Any]:
    """
    Classify a site's candidate leads into cadence buckets.

    Args:
        site_id:             Tenant to scan.
        days_without_reply:  Days of silence before the first reminder (default 7).
        limit:               Cap on the flattened legacy `leads` list (default 30).
        max_leads_per_stage: Cap on each stage bucket (default 10).
        now:                 Clock override; defaults to the current UTC time.
        dry_run:             Classify and report terminal outcomes without writing them.
        cancel_event:        When set, stops between leads; the result has cancelled=True.
        max_workers:         Size of the lookup pool.
        lookup_timeout:      Seconds the collector waits on any one lead's lookup.

    Returns:
        Dict with success, leads, leadsByStage, totalChecked, considered,
        excludedByAssignee, thresholdDate, stats, terminal, cancelled, dryRun
        and (only when non-empty) errors.
    """
    threshold_iso = ''
    try:
        config = ThresholdConfig.from_params(days_without_reply, limit, max_leads_per_stage)
        now = _as_utc(now or datetime.now(timezone.utc))
        # Out-of-range windows (e.g. a million days) overflow here
        threshold_iso = _iso(config.threshold_date(now))

        if not db.check_connection():
            logger.error("Database not available — skipping nurture run for site %s", site_id)
            return _failure(threshold_iso, 'Database not available', dry_run)

        try:
            candidates = db.list_candidate_leads(
                site_id, config.eligible_statuses, config.candidate_scan_limit)
        except Exception as e:
            logger.error("Failed to load candidate leads for site %s", site_id, exc_info=True)
            return _failure(threshold_iso, str(e), dry_run)

        return _run(
            site_id, candidates, config, now, threshold_iso,
            dry_run=dry_run,
            cancel_event=cancel_event,
            max_workers=max_workers or NURTURE_MAX_WORKERS,
            lookup_timeout=lookup_timeout if lookup_timeout is not None else NURTURE_LOOKUP_TIMEOUT,
        )
    except Exception as e:
        logger.error("Nurture run for site %s failed", site_id, exc_info=True)
        return _failure(threshold_iso, str(e), dry_run)


# ── Run body ─────────────────────────────────────────────────────────────────

def _run(site_id, candidates, config, now, threshold_iso, dry_run, cancel_event, max_workers, lookup_timeout):
    errors: List[str] = []
    selector = StageSelector(config.max_leads_per_stage)
    committer = TerminalCommitter(dry_run=dry_run)

    eligible, excluded_by_assignee = _split_by_assignee(candidates)
    total_checked = excluded_by_assignee
    cancelled = False

    if eligible:
        executor = ThreadPoolExecutor(
            max_workers=max(1, min(max_workers, len(eligible))),
            thread_name_prefix='nurture-lookup',
        )
        try:
            futures = [
                executor.submit(_evaluate, lead, site_id, config, now, cancel_event)
                for lead in eligible
            ]
            for lead, future in zip(eligible, futures):
                if _is_cancelled(cancel_event):
                    cancelled = True
                    break

                try:
                    evaluation = future.result(timeout=lookup_timeout)
                except FuturesTimeout:
                    total_checked += 1
                    errors.append(f"Timed out fetching messages for lead {lead.id} after {lookup_timeout:g}s")
                    logger.warning("Message lookup for lead %s timed out", lead.id,
                                   extra={'site_id': site_id, 'lead_id': lead.id})
                    continue
                except Exception as e:
                    total_checked += 1
                    errors.append(f"Failed to fetch messages for lead {lead.id}: {e}")
                    logger.warning("Message lookup for lead %s failed: %s", lead.id, e,
                                   extra={'site_id': site_id, 'lead_id': lead.id})
                    continue

                if evaluation is None:
                    # Worker saw the cancel flag before starting this lookup
                    cancelled = True
                    break

                total_checked += 1
                message, decision = evaluation
                logger.debug("lead=%s decision=%s stage=%s reason=%s",
                             lead.id, decision.kind, decision.stage, decision.reason)

                if decision.is_terminal:
                    error = committer.commit(lead, message, decision)
                    if error:
                        errors.append(error)
                elif decision.is_assignment:
                    if not selector.offer(lead, decision):
                        logger.debug("Stage '%s' full — lead %s dropped this run", decision.stage, lead.id)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    if cancelled:
        logger.warning("Nurture run for site %s cancelled after %d of %d candidates",
                       site_id, total_checked, len(candidates))

    leads = selector.flattened(config.legacy_limit)
    logger.info("Nurture summary site=%s: %d leads across stages %s, terminal=%s, "
                "%d excluded by assignee, %d checked, %d errors",
                site_id, len(leads), selector.stats, committer.counts,
                excluded_by_assignee, total_checked, len(errors),
                extra={'site_id': site_id})

    result = {
        'success': True,
        'leads': leads,
        'leadsByStage': selector.leads_by_stage,
        'totalChecked': total_checked,
        'considered': len(candidates),
        'excludedByAssignee': excluded_by_assignee,
        'thresholdDate': threshold_iso,
        'stats': selector.stats,
        'terminal': committer.counts,
        'cancelled': cancelled,
        'dryRun': dry_run,
    }
    if errors:
        result['errors'] = errors
    return result


def _evaluate(lead: LeadSummary, site_id: str, config: ThresholdConfig, now: datetime,
              cancel_event) -> Optional[Tuple[Optional[MessageSummary], Decision]]:
    """Worker body: resolve the latest site-scoped message and classify it."""
    if _is_cancelled(cancel_event):
        return None
    message = db.get_latest_message_for_lead(lead.id, site_id)
    return message, classify(message, lead.status, config, now)


def _split_by_assignee(candidates: List[LeadSummary]):
    """Drop assigned leads (and duplicate ids) before any message lookup."""
    eligible = []
    excluded = 0
    seen = set()
    for lead in candidates:
        # Repeated rows are neither re-checked nor counted in totalChecked
        if lead.id in seen:
            continue
        seen.add(lead.id)
        if lead.assignee_id:
            logger.debug("Skipping lead %s — has assignee_id (%s)", lead.id, lead.assignee_id)
            excluded += 1
            continue
        eligible.append(lead)
    return eligible, excluded


# ── Private helpers ──────────────────────────────────────────────────────────

def _failure(threshold_iso: str, message: str, dry_run: bool) -> Dict[str, Any]:
    """The whole-run failure shape: empty buckets, one error, nothing applied."""
    return {
        'success': False,
        'leads': [],
        'leadsByStage': empty_buckets(),
        'totalChecked': 0,
        'considered': 0,
        'excludedByAssignee': 0,
        'thresholdDate': threshold_iso,
        'stats': {'reminder': 0, 'provide_value': 0, 'breakup': 0, 'resumed': 0},
        'terminal': {'cold': 0, 'completed': 0},
        'cancelled': False,
        'dryRun': dry_run,
        'errors': [message],
    }


def _is_cancelled(cancel_event) -> bool:
    return cancel_event is not None and cancel_event.is_set()


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a Z suffix."""
    return _as_utc(dt).isoformat(timespec='milliseconds').replace('+00:00', 'Z')
