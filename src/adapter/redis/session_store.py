"""Redis implementation of SessionStore.

Each session is a single key holding the bound user id, expiring after the
session TTL. Nothing else about the user is cached here.
"""

import logging
import os
from typing import Optional

import redis
from redis.exceptions import RedisError

from domain.model.errors import SessionStoreError

logger = logging.getLogger(__name__)

REDIS_URL = os.getenv('REDIS_URL', '')
KEY_PREFIX = 'storefront:session:'


class RedisSessionStore:
    def __init__(self, url: str | None = None):
        self._url = url if url is not None else REDIS_URL
        self._client_cache: Optional[redis.Redis] = None
        self._connection_attempted: bool = False
        self._connection_failed: bool = False

    def _get_client(self) -> Optional[redis.Redis]:
        """Get Redis client with caching and reconnection logic."""
        if self._client_cache:
            try:
                self._client_cache.ping()
                return self._client_cache
            except RedisError:
                self._client_cache = None
                logger.debug("[REDIS] Cached client failed ping, attempting reconnection...")

        if self._connection_failed:
            return None

        if not self._url:
            logger.error("[REDIS] REDIS_URL not configured.")
            self._connection_failed = True
            return None

        try:
            client = redis.from_url(
                self._url,
                decode_responses=True,
                socket_connect_timeout=5,
            )
            client.ping()

            is_first = not self._connection_attempted
            self._connection_attempted = True
            self._client_cache = client

            if is_first:
                logger.info("[REDIS] Connected successfully")

            return client
        except (RedisError, ValueError, OSError) as e:
            if not self._connection_attempted:
                logger.error(f"[REDIS] Initial connection failed: {str(e)[:200]}")
                self._connection_failed = True
            return None

    def _require_client(self) -> redis.Redis:
        client = self._get_client()
        if client is None:
            raise SessionStoreError("Session store unavailable")
        return client

    # ── SessionStore implementation ──────────────────────────

    def save(self, token: str, user_id: str, ttl_seconds: int) -> None:
        client = self._require_client()
        try:
            client.set(KEY_PREFIX + token, user_id, ex=ttl_seconds)
        except RedisError as e:
            logger.error("Failed to save session", extra={"userId": user_id, "error": str(e)})
            raise SessionStoreError("Failed to save session") from e

    def get(self, token: str) -> str | None:
        client = self._require_client()
        try:
            return client.get(KEY_PREFIX + token)
        except RedisError as e:
            logger.error("Failed to read session", extra={"error": str(e)})
            raise SessionStoreError("Failed to read session") from e

    def delete(self, token: str) -> None:
        client = self._require_client()
        try:
            client.delete(KEY_PREFIX + token)
        except RedisError as e:
            logger.error("Failed to delete session", extra={"error": str(e)})
            raise SessionStoreError("Failed to delete session") from e

    def ping(self) -> bool:
        return self._get_client() is not None
