"""Redis client configuration and device-local durable storage."""

import json
from typing import Any, cast

import redis
import structlog
from redis import asyncio as aioredis

from oneclick.config import settings

logger = structlog.get_logger(__name__)

# Global Redis client instance
_redis_client: redis.Redis | None = None

DEFAULT_DEVICE_ID = "default"
HIDDEN_VOLUNTEERS_KEY = "hiddenVolunteers"


def role_key(user_id: str) -> str:
    """Storage key of a user's locally persisted role."""
    return f"user-role-{user_id}"


def get_redis_client() -> redis.Redis:
    """
    Get or create Redis client instance.

    Returns:
        Redis client instance
    """
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            username=settings.redis_username,
            password=settings.redis_password,
            decode_responses=settings.redis_decode_responses,
            socket_connect_timeout=5,
            socket_keepalive=True,
            health_check_interval=30,
        )

    return _redis_client


def create_async_redis_client() -> aioredis.Redis:
    """
    Create an asyncio Redis client.

    Used for pub/sub, where a blocking client would stall the event loop.
    The caller owns the client and closes it.
    """
    return aioredis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        db=settings.redis_db,
        username=settings.redis_username,
        password=settings.redis_password,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_keepalive=True,
        health_check_interval=30,
    )


async def check_redis_connection() -> bool:
    """
    Check if Redis connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        client = get_redis_client()
        client.ping()
        return True
    except Exception:
        return False


def close_redis_connection() -> None:
    """Close Redis connection."""
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


class LocalStorage:
    """
    Durable key/value storage scoped to one browser or device.

    Keys are namespaced as ``device:<device_id>:<key>`` so two devices of the
    same account never share entries. Nothing here is readable by the remote
    data store.
    """

    def __init__(self, redis_client: redis.Redis, device_id: str = DEFAULT_DEVICE_ID):
        """Initialize storage with Redis client and device namespace."""
        self.redis = redis_client
        self.device_id = device_id or DEFAULT_DEVICE_ID

    def _key(self, key: str) -> str:
        return f"device:{self.device_id}:{key}"

    def get_item(self, key: str) -> str | None:
        """Get a value; read failures behave like a missing key."""
        try:
            return cast(str | None, self.redis.get(self._key(key)))
        except Exception as e:
            logger.warning("local_storage_read_failed", key=key, error=str(e))
            return None

    def set_item(self, key: str, value: str) -> bool:
        """
        Store a value without expiry.

        Returns:
            True if successful, False otherwise
        """
        try:
            self.redis.set(self._key(key), value)
            return True
        except Exception as e:
            logger.warning("local_storage_write_failed", key=key, error=str(e))
            return False

    def remove_item(self, key: str) -> bool:
        """Delete a key."""
        try:
            self.redis.delete(self._key(key))
            return True
        except Exception as e:
            logger.warning("local_storage_delete_failed", key=key, error=str(e))
            return False

    def get_json(self, key: str, default: Any = None) -> Any:
        """Get a JSON value; unreadable or malformed values yield ``default``."""
        value = self.get_item(key)
        if not value:
            return default
        try:
            return json.loads(value)
        except ValueError:
            logger.warning("local_storage_malformed_json", key=key)
            return default

    def set_json(self, key: str, value: Any) -> bool:
        """Serialize and store a JSON value."""
        return self.set_item(key, json.dumps(value, default=str))
