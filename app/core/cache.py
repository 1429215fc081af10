from __future__ import annotations

import copy
import json
import logging
import threading
import time
from collections import deque
from typing import Any, Optional

import redis

from .config import REDIS_URL

logger = logging.getLogger(__name__)

# How often the in-process maps drop expired keys.
_SWEEP_INTERVAL_SECONDS = 60


class CacheClient:
    """JSON cache and fixed-window rate limiter.

    Backed by Redis when ``REDIS_URL`` is set, so the API and the bot share one
    cache and one set of counters. With no URL everything stays in this process.
    """

    def __init__(self, url: Optional[str] = None, client: Optional[redis.Redis] = None) -> None:
        self.url = REDIS_URL if url is None else url
        self._redis: Optional[redis.Redis] = client
        self._lock = threading.Lock()
        self._values: dict[str, tuple[float, Any]] = {}
        self._hits: dict[str, tuple[int, deque[float]]] = {}
        self._last_sweep = time.monotonic()

    @property
    def is_redis(self) -> bool:
        return self._redis is not None

    def connect(self) -> None:
        if self._redis is not None or not self.url:
            return
        client = redis.Redis.from_url(self.url, decode_responses=True)
        client.ping()
        self._redis = client
        logger.info("Connected to Redis cache")

    def disconnect(self) -> None:
        if self._redis is None:
            return
        try:
            self._redis.close()
        finally:
            self._redis = None

    def get_json(self, key: str) -> Optional[Any]:
        if self._redis is not None:
            try:
                raw = self._redis.get(key)
            except redis.RedisError as exc:
                logger.warning("Redis get %s failed: %s", key, exc)
                return None
            return json.loads(raw) if raw else None

        now = time.monotonic()
        with self._lock:
            cached = self._values.get(key)
            if cached is None:
                return None
            expires_at, value = cached
            if expires_at <= now:
                self._values.pop(key, None)
                return None
            return copy.deepcopy(value)

    def set_json(self, key: str, value: Any, ttl: int = 60) -> None:
        if ttl <= 0:
            return
        if self._redis is not None:
            try:
                self._redis.setex(key, ttl, json.dumps(value))
            except redis.RedisError as exc:
                logger.warning("Redis set %s failed: %s", key, exc)
            return

        now = time.monotonic()
        with self._lock:
            self._values[key] = (now + ttl, copy.deepcopy(value))
            self._sweep(now)

    def check_rate_limit(self, key: str, limit: int, window_seconds: int = 60) -> bool:
        if limit <= 0:
            return True
        if self._redis is not None:
            bucket = f"{key}:{int(time.time() // window_seconds)}"
            try:
                pipe = self._redis.pipeline()
                pipe.incr(bucket)
                pipe.expire(bucket, window_seconds)
                count, _ = pipe.execute()
            except redis.RedisError as exc:
                logger.warning("Redis rate limit check failed, allowing request: %s", exc)
                return True
            return int(count) <= limit

        now = time.monotonic()
        with self._lock:
            _, hits = self._hits.get(key) or (window_seconds, deque())
            while hits and now - hits[0] >= window_seconds:
                hits.popleft()
            if len(hits) >= limit:
                self._hits[key] = (window_seconds, hits)
                return False
            hits.append(now)
            self._hits[key] = (window_seconds, hits)
            self._sweep(now)
            return True

    def _sweep(self, now: float) -> None:
        # Caller holds the lock.
        if now - self._last_sweep < _SWEEP_INTERVAL_SECONDS:
            return
        self._last_sweep = now
        for key in [key for key, (expires_at, _) in self._values.items() if expires_at <= now]:
            del self._values[key]
        for key in [
            key
            for key, (window, hits) in self._hits.items()
            if not hits or now - hits[-1] >= window
        ]:
            del self._hits[key]

    def clear(self) -> None:
        """Drop the in-process entries. Redis keys expire on their own."""
        with self._lock:
            self._values.clear()
            self._hits.clear()


cache_client = CacheClient()
