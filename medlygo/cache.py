"""
Redis caching for appointment list views
Mutations invalidate the patient's and the hospital's cached lists
"""

import json
import logging
import os
from datetime import date
from typing import Any, Optional

import redis

from .config import APPOINTMENT_CACHE_TTL

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None


def get_redis_client() -> redis.Redis:
    """Get or create the shared Redis client (REDIS_URL or host/port settings)"""
    global redis_client

    if redis_client is None:
        redis_url = os.getenv("REDIS_URL")
        if redis_url:
            client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
        else:
            client = redis.Redis(
                host=os.getenv("REDIS_HOST", "localhost"),
                port=int(os.getenv("REDIS_PORT", "6379")),
                password=os.getenv("REDIS_PASSWORD"),
                ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
        client.ping()
        redis_client = client
        logger.info("✅ Redis connection established")

    return redis_client


class Cache:
    """Redis cache wrapper with JSON serialization; every failure degrades to a miss"""

    def __init__(self, client_factory=get_redis_client):
        self._client_factory = client_factory
        self.redis_client = None

    def _get_client(self):
        """Lazy load Redis client"""
        if self.redis_client is None:
            try:
                self.redis_client = self._client_factory()
            except Exception as e:
                logger.warning(f"⚠️ Redis cache unavailable: {e}")
                return None
        return self.redis_client

    def get(self, key: str) -> Optional[Any]:
        client = self._get_client()
        if not client:
            return None

        try:
            value = client.get(key)
            if value:
                logger.debug(f"✅ Cache HIT: {key}")
                return json.loads(value)
            logger.debug(f"❌ Cache MISS: {key}")
            return None
        except Exception as e:
            logger.error(f"❌ Cache get error for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: int = APPOINTMENT_CACHE_TTL) -> bool:
        client = self._get_client()
        if not client:
            return False

        try:
            client.setex(key, ttl, json.dumps(value, default=str))
            logger.debug(f"✅ Cache SET: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"❌ Cache set error for {key}: {e}")
            return False

    def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching pattern (e.g., 'appointments:patient:12:*')"""
        client = self._get_client()
        if not client:
            return 0

        try:
            keys = list(client.scan_iter(match=pattern))
            if keys:
                deleted = client.delete(*keys)
                logger.debug(f"✅ Cache DELETE pattern: {pattern} ({deleted} keys)")
                return deleted
            return 0
        except Exception as e:
            logger.error(f"❌ Cache delete pattern error for {pattern}: {e}")
            return 0


# Global cache instance
cache = Cache()


def patient_appointments_key(patient_id: int, status: Optional[str] = None) -> str:
    return f"appointments:patient:{patient_id}:{status or 'all'}"


def hospital_appointments_key(
    hospital_id: int, status: Optional[str] = None, on_date: Optional[date] = None
) -> str:
    key = f"appointments:hospital:{hospital_id}:{status or 'all'}"
    return f"{key}:{on_date.isoformat()}" if on_date else key


def invalidate_appointment_views(
    patient_id: Optional[int] = None, hospital_id: Optional[int] = None
) -> None:
    """Tell the patient dashboard and the provider portal lists to refresh"""
    if patient_id is not None:
        cache.delete_pattern(f"appointments:patient:{patient_id}:*")
    if hospital_id is not None:
        cache.delete_pattern(f"appointments:hospital:{hospital_id}:*")
