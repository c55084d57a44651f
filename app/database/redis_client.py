"""Redis connection management for the application.

Provides a Redis connection with:
- Connection pooling with health monitoring
- Lazy reconnection after failures
- Timeout handling and structured logging
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

from app.utils.logger import get_logger

logger = get_logger("database.redis")


class RedisManager:
    """Redis connection manager with health monitoring and auto-recovery."""

    def __init__(self, url: str, max_connections: int = 10):
        self.url = url
        self.max_connections = max_connections
        self._client: redis.Redis | None = None
        self._pool: ConnectionPool | None = None
        self._last_health_check = 0.0
        self._health_check_interval = 30  # seconds
        self._is_healthy = True

    def _create_pool(self) -> ConnectionPool:
        """Create Redis connection pool with proper configuration."""
        return ConnectionPool.from_url(
            self.url,
            max_connections=self.max_connections,
            health_check_interval=30,
            socket_connect_timeout=5,
            socket_timeout=5,
            decode_responses=True,
            encoding="utf-8",
        )

    async def get_client(self) -> redis.Redis:
        """Get Redis client, rebuilding it when the last health check failed."""
        now = time.time()
        if self._client is not None and (now - self._last_health_check) > self._health_check_interval:
            await self._health_check()
            self._last_health_check = now

        if self._client is None or not self._is_healthy:
            if self._pool is None:
                self._pool = self._create_pool()
            self._client = redis.Redis(connection_pool=self._pool)
            self._is_healthy = True
            logger.info("Redis client initialized")

        return self._client

    async def _health_check(self) -> bool:
        """Perform health check on Redis connection."""
        if self._client is None:
            self._is_healthy = False
            return False

        try:
            await asyncio.wait_for(self._client.ping(), timeout=2.0)
            self._is_healthy = True
            logger.debug("Redis health check passed")
            return True
        except Exception as e:
            logger.warning(f"Redis health check failed: {e}")
            self._is_healthy = False
            return False

    def mark_unhealthy(self) -> None:
        self._is_healthy = False

    async def ping(self) -> bool:
        try:
            client = await self.get_client()
            await asyncio.wait_for(client.ping(), timeout=2.0)
            return True
        except Exception:
            return False

    async def info(self) -> dict[str, Any]:
        """Get Redis server information for health checks."""
        try:
            client = await self.get_client()
            info = await client.info()
            return {
                "connected": True,
                "version": info.get("redis_version"),
                "memory_used": info.get("used_memory_human"),
                "connections": info.get("connected_clients"),
            }
        except Exception as e:
            return {"connected": False, "error": str(e)}

    async def close(self) -> None:
        """Close Redis connections gracefully."""
        if self._client:
            try:
                await self._client.aclose()
            except Exception as e:
                logger.warning(f"Error closing Redis client: {e}")
            finally:
                self._client = None

        if self._pool:
            try:
                await self._pool.aclose()
            except Exception as e:
                logger.warning(f"Error closing Redis pool: {e}")
            finally:
                self._pool = None

        logger.info("Redis connections closed")
