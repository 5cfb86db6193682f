"""
Redis cache for per-day availability stats.

Key format: stats:day:{service_id}:{date}
Value: JSON-encoded AvailabilityStat fields, expiring after ttl.

The database stays the source of truth; every mutation that can change
a day's counts deletes the key (see invalidator.py).
"""

import json
from datetime import date
from redis import Redis

from .config import BookingConfig, get_booking_config


class StatsRedisStore:
    """Redis storage wrapper for cached day stats."""

    KEY_PREFIX = "stats:day"

    def __init__(self, redis: Redis, config: BookingConfig | None = None):
        self.redis = redis
        self.config = config or get_booking_config()

    def _key(self, service_id: int, dt: date) -> str:
        return f"{self.KEY_PREFIX}:{service_id}:{dt.isoformat()}"

    # ── Write ────────────────────────────────────────────────────────────

    def store_multiple_days(
        self,
        service_id: int,
        days_stats: dict[date, dict],
    ) -> None:
        """Batch store stats for multiple days via pipeline."""
        if not days_stats:
            return

        pipe = self.redis.pipeline()
        for dt, stats in days_stats.items():
            pipe.set(
                self._key(service_id, dt),
                json.dumps(stats),
                ex=self.config.stats_cache_ttl_seconds,
            )
        pipe.execute()

    # ── Read ─────────────────────────────────────────────────────────────

    def mget_stats(
        self,
        service_id: int,
        dates: list[date],
    ) -> dict[date, dict | None]:
        """
        Batch get cached stats for multiple dates.

        Returns:
            Dict mapping date → stats dict (or None on cache miss).
        """
        if not dates:
            return {}

        raw = self.redis.mget([self._key(service_id, dt) for dt in dates])
        result = {}
        for dt, value in zip(dates, raw):
            if value is None:
                result[dt] = None
                continue
            if isinstance(value, bytes):
                value = value.decode()
            result[dt] = json.loads(value)
        return result

    # ── Delete ───────────────────────────────────────────────────────────

    def delete_day_stats(
        self,
        service_id: int | None,
        dates: list[date] | None = None,
    ) -> int:
        """
        Delete cached stats.

        Args:
            service_id: Service ID, or None for every service
            dates: Specific dates, or None to delete all dates.

        Returns:
            Number of deleted keys.
        """
        if service_id is not None and dates:
            keys = [self._key(service_id, dt) for dt in dates]
        else:
            service_part = "*" if service_id is None else str(service_id)
            if dates:
                keys = []
                for dt in dates:
                    keys.extend(self.redis.keys(f"{self.KEY_PREFIX}:{service_part}:{dt.isoformat()}"))
            else:
                keys = self.redis.keys(f"{self.KEY_PREFIX}:{service_part}:*")

        if not keys:
            return 0

        return self.redis.delete(*keys)
