"""
Cache invalidation for day stats.

Triggers:
✓ Slot claimed / released (reservation, cancellation)
✓ Slot blocked / unblocked by staff
✓ Date regenerated
✓ Blocked date added / removed, day-specific hours changed (all services)

Failures are logged, never raised: a stale entry expires with its TTL.
"""

import logging
from datetime import date
from redis import Redis, RedisError

from .redis_store import StatsRedisStore

logger = logging.getLogger(__name__)


def invalidate_stats_cache(
    redis: Redis | None,
    service_id: int | None,
    dates: list[date] | None = None,
) -> int:
    """
    Invalidate cached stats.

    Args:
        redis: Redis client (None → nothing cached, nothing to do)
        service_id: Service ID, or None for all services
        dates: Dates to invalidate, or None for all cached dates

    Returns:
        Number of deleted cache keys
    """
    if redis is None:
        return 0
    try:
        return StatsRedisStore(redis).delete_day_stats(service_id, dates)
    except RedisError as e:
        logger.warning(f"Stats cache invalidation failed for service={service_id}: {e}")
        return 0
