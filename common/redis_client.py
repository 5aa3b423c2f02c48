"""
Redis client for the session store.

This module provides a Redis client with:
- Connection pooling (reuse connections, don't create new ones each time)
- Health checks and automatic reconnection
- Graceful degradation (callers see False/None when Redis is down)
- TTL support for automatic expiration

Environment Variables:
    REDIS_HOST: Redis server host (default: localhost)
    REDIS_PORT: Redis server port (default: 6379)
    REDIS_PASSWORD: Redis password (optional, can be base64 encoded)
    REDIS_DB: Redis database number (default: 0)
"""

import base64
import binascii
import json
import logging
import os
import time
from typing import List, Optional, Set

import redis
from redis.exceptions import ConnectionError, RedisError, TimeoutError

from common.constants import REDIS_DB, REDIS_HOST, REDIS_PORT

logger = logging.getLogger(__name__)


def _decode_password(password: str) -> str:
    """Passwords mounted from K8s secrets may arrive base64 encoded."""
    try:
        decoded = base64.b64decode(password, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return password
    return decoded or password


class RedisClient:
    """
    Redis client wrapper with connection pooling and automatic reconnection.

    Connection Management:
    - Uses connection pool (max 50 connections)
    - Connection timeout: 5 seconds
    - Socket timeout: 5 seconds
    - Health check interval: 30 seconds
    """

    def __init__(self):
        """Initialize Redis client from environment configuration."""
        self.host = REDIS_HOST
        self.port = REDIS_PORT
        self.db = REDIS_DB

        password = os.getenv("REDIS_PASSWORD", "")
        self.password = _decode_password(password) if password else None

        self.pool = redis.ConnectionPool(
            host=self.host,
            port=self.port,
            db=self.db,
            password=self.password,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            max_connections=50,
            health_check_interval=30,
        )

        self.client: Optional[redis.Redis] = None
        self._last_health_check = 0
        self._health_check_interval = 30
        self._connect()

    def _connect(self) -> None:
        """Create Redis client connection using the connection pool."""
        try:
            self.client = redis.Redis(connection_pool=self.pool)
            self.client.ping()
            self._last_health_check = time.time()
        except (ConnectionError, RedisError, TimeoutError) as e:
            self.client = None
            logger.warning(
                "Redis connection to %s:%s failed: %s. Sessions will be unavailable.",
                self.host,
                self.port,
                e,
            )

    def _ensure_connected(self) -> bool:
        """Periodic health check; reconnects if the connection was lost."""
        if not self.client:
            return False

        current_time = time.time()
        if current_time - self._last_health_check > self._health_check_interval:
            try:
                self.client.ping()
                self._last_health_check = current_time
                return True
            except (ConnectionError, RedisError, TimeoutError):
                self.client = None
                self._connect()
                return self.client is not None

        return True

    def is_connected(self) -> bool:
        """
        Check if Redis is connected and healthy.

        Returns:
            True if connected and healthy, False otherwise
        """
        if not self._ensure_connected():
            return False
        return self.client is not None

    def _fail(self, op: str, e: Exception) -> None:
        logger.warning("Redis %s error: %s", op, e)
        # Mark as disconnected for next health check
        self.client = None

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        if not self.is_connected():
            return False

        try:
            if ttl:
                return bool(self.client.setex(key, ttl, value))
            return bool(self.client.set(key, value))
        except (ConnectionError, RedisError, TimeoutError) as e:
            self._fail("set", e)
            return False

    def get(self, key: str) -> Optional[str]:
        if not self.is_connected():
            return None

        try:
            value = self.client.get(key)
            return value if value else None
        except (ConnectionError, RedisError, TimeoutError) as e:
            self._fail("get", e)
            return None

    def delete(self, key: str) -> bool:
        if not self.is_connected():
            return False

        try:
            return bool(self.client.delete(key))
        except (ConnectionError, RedisError, TimeoutError) as e:
            self._fail("delete", e)
            return False

    def set_json(self, key: str, value: dict, ttl: Optional[int] = None) -> bool:
        """
        Store a JSON-serializable dict in Redis.

        Args:
            key: Redis key
            value: Dictionary to store
            ttl: Time to live in seconds (optional)

        Returns:
            True if successful, False otherwise
        """
        try:
            json_str = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.warning("JSON serialization error for %s: %s", key, e)
            return False
        return self.set(key, json_str, ttl)

    def get_json(self, key: str) -> Optional[dict]:
        json_str = self.get(key)
        if not json_str:
            return None

        try:
            return json.loads(json_str)
        except (TypeError, ValueError) as e:
            logger.warning("JSON deserialization error for %s: %s", key, e)
            return None

    def delete_many(self, keys: List[str]) -> int:
        if not self.is_connected() or not keys:
            return 0

        try:
            return self.client.delete(*keys)
        except (ConnectionError, RedisError, TimeoutError) as e:
            self._fail("delete_many", e)
            return 0

    # ========= Redis Set Operations (for user_sessions:<user_id>) =========

    def sadd(self, key: str, *values: str) -> int:
        if not self.is_connected() or not values:
            return 0

        try:
            return self.client.sadd(key, *values)
        except (ConnectionError, RedisError, TimeoutError) as e:
            self._fail("sadd", e)
            return 0

    def smembers(self, key: str) -> Set[str]:
        """
        Get all members of a Redis Set.

        Used for: getting all session IDs for a user on sign-out.
        """
        if not self.is_connected():
            return set()

        try:
            members = self.client.smembers(key)
            return set(members) if members else set()
        except (ConnectionError, RedisError, TimeoutError) as e:
            self._fail("smembers", e)
            return set()

    def close(self) -> None:
        """Close the connection pool on shutdown."""
        if self.client:
            self.client.close()
        if self.pool:
            self.pool.disconnect()


# Singleton instance
_redis_client: Optional[RedisClient] = None


def get_redis_client() -> RedisClient:
    """
    Get singleton Redis client instance.

    Returns:
        RedisClient instance
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = RedisClient()
    return _redis_client
