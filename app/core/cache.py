import json
import time
import fnmatch
import threading
from abc import ABC, abstractmethod
from typing import Any, Optional, Dict
import logging

import redis

from app.core.config import settings

logger = logging.getLogger(__name__)

class CacheBackend(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        pass

    @abstractmethod
    def delete_pattern(self, pattern: str) -> int:
        pass

    @abstractmethod
    def ping(self) -> bool:
        pass

class MemoryCacheBackend(CacheBackend):
    def __init__(self):
        self._cache: Dict[str, Dict] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            self._cleanup_expired()
            item = self._cache.get(key)
            if item and (item.get("expiry", 0) == 0 or time.time() < item["expiry"]):
                return item["value"]
            elif key in self._cache:
                del self._cache[key]
            return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        with self._lock:
            expiry = time.time() + (ttl or settings.CACHE_TTL) if ttl != 0 else 0
            self._cache[key] = {
                "value": value,
                "expiry": expiry,
                "created_at": time.time()
            }
            return True

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._cache.pop(key, None) is not None

    def delete_pattern(self, pattern: str) -> int:
        with self._lock:
            keys_to_delete = [key for key in self._cache if fnmatch.fnmatch(key, pattern)]
            for key in keys_to_delete:
                del self._cache[key]
            return len(keys_to_delete)

    def ping(self) -> bool:
        return True

    def _cleanup_expired(self):
        current_time = time.time()
        expired_keys = [
            key for key, item in self._cache.items()
            if item.get("expiry", 0) > 0 and current_time >= item["expiry"]
        ]
        for key in expired_keys:
            del self._cache[key]

class RedisCacheBackend(CacheBackend):
    def __init__(self, redis_url: str):
        self.redis = redis.Redis.from_url(redis_url, decode_responses=True)

    def _serialize(self, value: Any) -> str:
        return json.dumps(value, default=str)

    def _deserialize(self, value: str) -> Any:
        try:
            return json.loads(value)
        except (json.JSONDecodeError, TypeError):
            return value

    def get(self, key: str) -> Optional[Any]:
        try:
            value = self.redis.get(key)
            return self._deserialize(value) if value else None
        except redis.RedisError as e:
            logger.error(f"Redis GET error for key {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        try:
            serialized = self._serialize(value)
            if ttl is None:
                ttl = settings.CACHE_TTL
            if ttl == 0:
                self.redis.set(key, serialized)
            else:
                self.redis.setex(key, ttl, serialized)
            return True
        except redis.RedisError as e:
            logger.error(f"Redis SET error for key {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        try:
            return self.redis.delete(key) > 0
        except redis.RedisError as e:
            logger.error(f"Redis DELETE error for key {key}: {e}")
            return False

    def delete_pattern(self, pattern: str) -> int:
        try:
            keys = list(self.redis.scan_iter(match=pattern))
            if keys:
                return self.redis.delete(*keys)
            return 0
        except redis.RedisError as e:
            logger.error(f"Redis pattern delete error: {e}")
            return 0

    def ping(self) -> bool:
        try:
            return bool(self.redis.ping())
        except redis.RedisError as e:
            logger.error(f"Redis PING error: {e}")
            return False

def create_cache_backend() -> CacheBackend:
    if settings.REDIS_URL:
        logger.info("Initializing Redis cache backend")
        return RedisCacheBackend(settings.REDIS_URL)

    logger.info("Using in-memory cache backend")
    return MemoryCacheBackend()

class CacheManager:
    """Namespaced front for a cache backend.

    Keys are prefixed with ``CACHE_KEY_PREFIX`` so several deployments can
    share one Redis database. Reads and writes are no-ops while caching is
    disabled; deletes always go through so invalidation is never skipped.
    """

    def __init__(self, backend: CacheBackend, prefix: Optional[str] = None):
        self.backend = backend
        self.prefix = settings.CACHE_KEY_PREFIX if prefix is None else prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str) -> Optional[Any]:
        if not settings.CACHE_ENABLED:
            return None
        return self.backend.get(self._key(key))

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        if not settings.CACHE_ENABLED:
            return False
        return self.backend.set(self._key(key), value, ttl)

    def delete(self, key: str) -> bool:
        return self.backend.delete(self._key(key))

    def delete_pattern(self, pattern: str) -> int:
        return self.backend.delete_pattern(self._key(pattern))

    def clear(self) -> int:
        return self.delete_pattern("*")

    def healthy(self) -> bool:
        return self.backend.ping()

cache = CacheManager(create_cache_backend())
