"""
Structured logging configuration.

configure_logging() is called once from create_app(), the CLI, or an RQ
worker. LOG_FORMAT picks text or JSON, LOG_LEVEL defaults to INFO.

Engine lookups run on a thread pool, so both formats carry the thread name.
Run context (site_id, run_id, lead_id) passed through `extra=` is emitted as
top-level JSON keys and appended to text lines.
"""
import json
import logging
import os
import sys
from datetime import datetime, timezone

# Keys callers may attach with logger.info(..., extra={...})
CONTEXT_FIELDS = ('site_id', 'run_id', 'lead_id')

# Third-party loggers that are noisy at INFO
_NOISY_LOGGERS = [
    'urllib3',
    'sqlalchemy.engine',
    'rq.worker',
]


def _context(record):
    return {key: getattr(record, key) for key in CONTEXT_FIELDS if getattr(record, key, None) is not None}


class JSONFormatter(logging.Formatter):
    """Single-line JSON log formatter for production log aggregators."""

    def format(self, record):
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'thread': record.threadName,
            'message': record.getMessage(),
        }
        entry.update(_context(record))
        if record.exc_info and record.exc_info[0] is not None:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines with run context appended as key=value pairs."""

    def __init__(self):
        super().__init__(
            '[%(asctime)s] %(levelname)s %(name)s (%(threadName)s) %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S',
        )

    def format(self, record):
        line = super().format(record)
        context = _context(record)
        if context:
            # exception text, if any, stays at the end
            head, sep, tail = line.partition('\n')
            pairs = ' '.join(f'{k}={v}' for k, v in context.items())
            line = f'{head} [{pairs}]{sep}{tail}'
        return line


def configure_logging(app=None, level=None):
    """
    Set up root logger with format/level from env vars.

    Args:
        app:   Flask app, if called from create_app(); its logger propagates to root.
        level: Explicit level name, overriding LOG_LEVEL (the CLI's --verbose).

    Environment variables:
        LOG_LEVEL  — Python log level name (default: INFO)
        LOG_FORMAT — "text" (default) or "json"
    """
    level_name = (level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    resolved = getattr(logging, level_name, None)
    if not isinstance(resolved, int):
        resolved = logging.INFO

    root = logging.getLogger()
    root.setLevel(resolved)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(resolved)
    if os.getenv('LOG_FORMAT', 'text').lower() == 'json':
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter())
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if app is not None:
        app.logger.handlers.clear()
        app.logger.propagate = True
