"""
Shared client instances — Redis connection for RQ queues.

redis.from_url() does not connect until first use, so importing this module is
always safe (even when Redis is down during tests). RQ pickles job payloads,
so responses are left as bytes.
"""
import redis

from nurture.config import REDIS_URL

# ── Redis ─────────────────────────────────────────────────────────────────────
redis_client = redis.from_url(REDIS_URL)
