"""
Redis Repository Base Class

Provides JSON persistence, atomic script execution and distributed locking
for Redis-backed repositories.
"""

import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import redis
from redis.exceptions import LockError, RedisError

from ..domain.errors import StorageError

logger = logging.getLogger(__name__)


class RedisRepository:
    """
    Base Redis repository with atomic operations and distributed locking.

    Backend failures are raised as StorageError so callers can tell an
    outage apart from a missing key.
    """

    def __init__(self, redis_client: redis.Redis, key_prefix: str = ""):
        self.redis = redis_client
        self.key_prefix = key_prefix

    def _make_key(self, key: str) -> str:
        """Create a prefixed key for Redis storage."""
        return f"{self.key_prefix}:{key}" if self.key_prefix else key

    @staticmethod
    def _decode(value: Any) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    def get_json(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Get JSON data from Redis.

        Args:
            key: Redis key (without prefix)

        Returns:
            Dictionary if found, None if the key is absent or holds invalid JSON
        """
        redis_key = self._make_key(key)
        try:
            data = self.redis.get(redis_key)
        except RedisError as e:
            logger.error(f"Error getting JSON data for key {key}: {e}")
            raise StorageError(f"Redis read failed for key {key}: {e}", e) from e

        return self.loads(data, key)

    def loads(self, data: Any, key: str = "") -> Optional[Dict[str, Any]]:
        """Decode a raw Redis value into a dictionary."""
        if data is None:
            return None
        try:
            return json.loads(self._decode(data))
        except json.JSONDecodeError as e:
            logger.warning(f"Discarding corrupt JSON at key {key}: {e}")
            return None

    def get_string(self, key: str) -> Optional[str]:
        """Get a plain string value."""
        try:
            return self._decode(self.redis.get(self._make_key(key)))
        except RedisError as e:
            logger.error(f"Error reading key {key}: {e}")
            raise StorageError(f"Redis read failed for key {key}: {e}", e) from e

    def exists(self, key: str) -> bool:
        """Check if a key exists in Redis."""
        try:
            return self.redis.exists(self._make_key(key)) > 0
        except RedisError as e:
            logger.error(f"Error checking existence of key {key}: {e}")
            raise StorageError(f"Redis read failed for key {key}: {e}", e) from e

    def eval(self, script: str, keys: List[str], args: List[Any]) -> Any:
        """
        Run a Lua script atomically.

        Args:
            script: Lua source
            keys: Redis keys (already prefixed)
            args: Script arguments

        Returns:
            Script result as returned by redis-py
        """
        try:
            return self.redis.eval(script, len(keys), *keys, *args)
        except RedisError as e:
            logger.error(f"Error running Lua script on {keys[:1]}: {e}")
            raise StorageError(f"Redis script failed: {e}", e) from e

    def mget_json(self, keys: List[str]) -> List[Optional[Dict[str, Any]]]:
        """Fetch several JSON values in one round trip."""
        if not keys:
            return []
        try:
            values = self.redis.mget([self._make_key(key) for key in keys])
        except RedisError as e:
            logger.error(f"Error reading {len(keys)} keys: {e}")
            raise StorageError(f"Redis read failed: {e}", e) from e
        return [self.loads(value, key) for key, value in zip(keys, values)]

    @contextmanager
    def distributed_lock(self, lock_name: str, timeout: int = 10, blocking_timeout: int = 5):
        """
        Distributed lock context manager using Redis.

        Args:
            lock_name: Name of the lock
            timeout: Lock timeout in seconds
            blocking_timeout: How long to wait for lock acquisition

        Yields:
            Lock object if acquired successfully

        Raises:
            LockError: If lock cannot be acquired
        """
        lock_key = self._make_key(f"lock:{lock_name}")
        lock = self.redis.lock(lock_key, timeout=timeout, blocking_timeout=blocking_timeout)

        if not lock.acquire(blocking=True, blocking_timeout=blocking_timeout):
            raise LockError(f"Could not acquire lock: {lock_name}")

        try:
            yield lock
        finally:
            try:
                lock.release()
            except LockError:
                # Lock may have expired
                logger.debug(f"Lock {lock_name} expired before release")


class RedisConnectionManager:
    """Manages Redis connection with connection pooling."""

    def __init__(self, host: str = 'localhost', port: int = 6379, db: int = 0,
                 max_connections: int = 20, password: Optional[str] = None,
                 decode_responses: bool = False):
        self.connection_pool = redis.ConnectionPool(
            host=host,
            port=port,
            db=db,
            password=password,
            max_connections=max_connections,
            decode_responses=decode_responses,
            retry_on_timeout=True,
            socket_keepalive=True,
        )
        self._client = None

    @property
    def client(self) -> redis.Redis:
        """Get Redis client instance with connection pooling."""
        if self._client is None:
            self._client = redis.Redis(connection_pool=self.connection_pool)
        return self._client

    def health_check(self) -> bool:
        """Check if Redis connection is healthy."""
        try:
            return bool(self.client.ping())
        except RedisError:
            return False

    def close(self):
        """Close the connection pool."""
        if self.connection_pool:
            self.connection_pool.disconnect()
