"""Ledger store factory — one shared store per process.

LEDGER_BACKEND=memory keeps everything in-process (local dev, tests).
LEDGER_BACKEND=redis connects to REDIS_URL.
"""

import logging

import redis.asyncio as aioredis

from config.settings import settings
from src.tk_store.domain.store import LedgerStoreProtocol
from src.tk_store.infrastructure.memory_store import InMemoryLedgerStore
from src.tk_store.infrastructure.redis_store import RedisLedgerStore

logger = logging.getLogger(__name__)

_store: LedgerStoreProtocol | None = None


def _create_store() -> LedgerStoreProtocol:
    backend = settings.LEDGER_BACKEND.lower()
    if backend == "memory":
        return InMemoryLedgerStore()
    if backend == "redis":
        client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
        return RedisLedgerStore(client, prefix=settings.LEDGER_KEY_PREFIX)
    raise ValueError(f"Unknown LEDGER_BACKEND: {settings.LEDGER_BACKEND}")


async def get_store() -> LedgerStoreProtocol:
    """Get or create the process-wide ledger store."""
    global _store  # noqa: PLW0603
    if _store is None:
        _store = _create_store()
        logger.info("ledger store backend: %s", settings.LEDGER_BACKEND)
    return _store


async def close_store() -> None:
    """Cancel live subscriptions and release the store."""
    global _store  # noqa: PLW0603
    if _store is not None:
        await _store.close()
        _store = None
