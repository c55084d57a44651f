"""Storage backends and the store factory."""

from app.database.base import BaseStore
from app.database.memory_store import InMemoryStore


def create_store(settings) -> BaseStore:
    backend = settings.storage_backend.strip().lower()
    if backend == "memory":
        return InMemoryStore()
    if backend == "redis":
        from app.database.redis_client import RedisManager
        from app.database.redis_store import RedisStore

        manager = RedisManager(settings.redis_url, max_connections=settings.redis_max_connections)
        return RedisStore(manager, analysis_ttl_seconds=settings.analysis_ttl_seconds)
    raise ValueError(f"Unknown storage_backend '{settings.storage_backend}'")


__all__ = ["BaseStore", "InMemoryStore", "create_store"]
