"""
backend/wakala/services/events.py

Audit event emitter: pushes booking status changes to a Redis list for
the case-notes log to consume. Fire-and-forget: a Redis outage never
fails the booking operation that triggered the event.
"""

import json
import time
import logging

from redis import Redis

logger = logging.getLogger(__name__)

AUDIT_QUEUE = "events:audit"


def emit_event(redis: Redis | None, event_type: str, payload: dict) -> None:
    """
    Emit an audit event.

    Pushed to Redis list `events:audit`; silently skipped without Redis.
    """
    if redis is None:
        return

    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        redis.rpush(AUDIT_QUEUE, json.dumps(event))
        logger.info(f"Event emitted: {event_type} → {AUDIT_QUEUE}")
    except Exception as e:
        logger.error(f"Failed to emit event {event_type}: {e}")
