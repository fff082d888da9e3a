"""
Centralized configuration — all env vars, cadence constants, status sets.
"""
import os


# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'text')

# ── Redis / RQ ────────────────────────────────────────────────────────────────
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
NURTURE_QUEUE = os.getenv('NURTURE_QUEUE', 'nurture')
NURTURE_JOB_TIMEOUT = int(os.getenv('NURTURE_JOB_TIMEOUT', '1800'))

# Follow-up delivery lives in the outreach worker; we only enqueue by name
FOLLOW_UP_QUEUE = os.getenv('FOLLOW_UP_QUEUE', 'follow_ups')
FOLLOW_UP_JOB = os.getenv('FOLLOW_UP_JOB', 'outreach.jobs.send_lead_follow_up')

# ── PostgreSQL ────────────────────────────────────────────────────────────────
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///local.db')
DB_STATEMENT_TIMEOUT_MS = int(os.getenv('DB_STATEMENT_TIMEOUT_MS', '10000'))

# ── Slack notifications ──────────────────────────────────────────────────────
SLACK_WEBHOOK_URL = os.getenv('SLACK_WEBHOOK_URL')

# ── Nurture engine defaults ──────────────────────────────────────────────────
NURTURE_DAYS_WITHOUT_REPLY = float(os.getenv('NURTURE_DAYS_WITHOUT_REPLY', '7'))
NURTURE_LEGACY_LIMIT = int(os.getenv('NURTURE_LEGACY_LIMIT', '30'))
NURTURE_MAX_LEADS_PER_STAGE = int(os.getenv('NURTURE_MAX_LEADS_PER_STAGE', '10'))
NURTURE_CANDIDATE_SCAN_LIMIT = int(os.getenv('NURTURE_CANDIDATE_SCAN_LIMIT', '500'))
NURTURE_MAX_WORKERS = int(os.getenv('NURTURE_MAX_WORKERS', '8'))
NURTURE_LOOKUP_TIMEOUT = float(os.getenv('NURTURE_LOOKUP_TIMEOUT', '15'))

# ── Cadence definitions ──────────────────────────────────────────────────────
# Order matters: buckets are flattened in this order for legacy callers
CADENCE_STAGES = [
    'reminder',
    'provide_value',
    'breakup',
]

# Days to wait after the tagged message before moving on
STAGE_DURATION_DAYS = {
    'provide_value': 4,   # after 'reminder'
    'breakup': 7,         # after 'provide_value'
}
TERMINAL_AFTER_DAYS = 7   # after 'breakup'

# Untagged history older than this floor is folded back in as a resumed reminder
RESUME_FLOOR_DAYS = 7

# ── Lead statuses ─────────────────────────────────────────────────────────────
LEAD_STATUSES = [
    'new',
    'contacted',
    'qualified',
    'converted',
    'lost',
    'cold',
    'not_qualified',
    'canceled',
]

ELIGIBLE_LEAD_STATUSES = ['contacted', 'qualified']

# ── Nurture run status values ────────────────────────────────────────────────
RUN_STATUSES = [
    'running',
    'completed',
    'failed',
]
