"""RedisLedgerStore — Redis-backed implementation of LedgerStoreProtocol.

Key layout (prefix defaults to "ledger"):
  {prefix}:{collection}:{doc_id}   HASH  flattened leaf path -> JSON value
  {prefix}:{collection}:_ids       SET   doc ids present in the collection
  {prefix}:changes:{collection}    PUB/SUB channel, message = changed path

A document is the node two segments deep ("orders/o1", "users/u1").
Nested values are flattened to leaf fields ("tickets/t1/quantity"), so a
partial update is a plain HSET of the touched leaves and never rewrites
sibling fields. Writes that must first drop a subtree run under
WATCH/MULTI and retry on conflict.

Every write publishes its path inside the same MULTI; subscriptions run a
background task that re-reads the subscribed subtree on each message.
A failed re-read or a closed change stream ends the subscription and is
reported once through the on_error callback.
"""

import asyncio
import contextlib
import json
import logging
from collections.abc import Iterator
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError, ResponseError, WatchError

from src.tk_common.errors import StoreUnavailableError, WriteRejectedError
from src.tk_store.domain.store import ErrorHandler, SnapshotHandler, is_related, split_path

logger = logging.getLogger(__name__)

_INDEX_SUFFIX = "_ids"


@contextlib.contextmanager
def _store_errors(write_path: str | None = None) -> Iterator[None]:
    """Map Redis failures to store errors. A server reply error on a write is a rejection."""
    try:
        yield
    except ResponseError as exc:
        if write_path is None:
            raise StoreUnavailableError(f"Ledger store unavailable: {exc}") from exc
        raise WriteRejectedError(write_path, str(exc)) from exc
    except RedisError as exc:
        raise StoreUnavailableError(f"Ledger store unavailable: {exc}") from exc


# ---------------------------------------------------------------------------
# Flattening
# ---------------------------------------------------------------------------

def flatten(value: Any, prefix: str = "") -> dict[str, str]:
    """{'a': {'b': 1}} -> {'a/b': '1'}. Lists become index-keyed objects."""
    if isinstance(value, list):
        value = {str(i): v for i, v in enumerate(value) if v is not None}
    if isinstance(value, dict):
        out: dict[str, str] = {}
        for key, child in value.items():
            if child is None:
                continue
            out.update(flatten(child, f"{prefix}/{key}" if prefix else str(key)))
        return out
    return {prefix: json.dumps(value)}


def unflatten(fields: dict[str, str]) -> dict[str, Any]:
    root: dict[str, Any] = {}
    for path, raw in sorted(fields.items()):
        parts = path.split("/")
        node = root
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = json.loads(raw)
    return root


def _descend(node: Any, parts: list[str]) -> Any | None:
    for part in parts:
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def _overlaps(field: str, prefix: str) -> bool:
    return field == prefix or field.startswith(prefix + "/") or prefix.startswith(field + "/")


# ---------------------------------------------------------------------------
# Subscription
# ---------------------------------------------------------------------------

class RedisSubscription:
    def __init__(
        self,
        store: "RedisLedgerStore",
        path: str,
        handler: SnapshotHandler,
        pubsub: Any,
        on_error: ErrorHandler | None = None,
    ) -> None:
        self._store = store
        self._path = path
        self._handler = handler
        self._pubsub = pubsub
        self._on_error = on_error
        self._active = True
        self._task: asyncio.Task[None] | None = None

    @property
    def path(self) -> str:
        return self._path

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> None:
        self._task = asyncio.create_task(self._listen())

    def deliver(self, snapshot: Any) -> None:
        if self._active:
            self._handler(snapshot)

    async def _listen(self) -> None:
        try:
            async for message in self._pubsub.listen():
                if not self._active:
                    break
                if message.get("type") != "message":
                    continue
                changed = message["data"]
                if not is_related(self._path, changed):
                    continue
                snapshot = await self._store.get(self._path)
                try:
                    self.deliver(snapshot)
                except Exception:
                    logger.exception("snapshot handler for %s failed", self._path)
            if self._active:
                self._lost(StoreUnavailableError(f"Change stream for {self._path} closed"))
        except (RedisError, StoreUnavailableError) as exc:
            self._lost(exc)

    def _lost(self, exc: Exception) -> None:
        if not self._active:
            return
        self._active = False
        logger.warning("subscription to %s lost: %s", self._path, exc)
        if self._on_error is None:
            return
        if not isinstance(exc, StoreUnavailableError):
            exc = StoreUnavailableError(f"Subscription to {self._path} lost: {exc}")
        try:
            self._on_error(exc)
        except Exception:
            logger.exception("error handler for %s failed", self._path)

    async def cancel(self) -> None:
        self._active = False
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        with contextlib.suppress(RedisError):
            await self._pubsub.unsubscribe()
            await self._pubsub.aclose()
        self._store._detach(self)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class RedisLedgerStore:
    def __init__(self, redis: aioredis.Redis, prefix: str = "ledger") -> None:
        self._redis = redis
        self._prefix = prefix
        self._subscriptions: list[RedisSubscription] = []

    def _doc_key(self, collection: str, doc_id: str) -> str:
        return f"{self._prefix}:{collection}:{doc_id}"

    def _index_key(self, collection: str) -> str:
        return f"{self._prefix}:{collection}:{_INDEX_SUFFIX}"

    def _channel(self, collection: str) -> str:
        return f"{self._prefix}:changes:{collection}"

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, path: str) -> Any | None:
        parts = split_path(path)
        with _store_errors():
            if len(parts) == 1:
                return await self._read_collection(parts[0])
            fields = await self._redis.hgetall(self._doc_key(parts[0], parts[1]))
        if not fields:
            return None
        value = _descend(unflatten(fields), parts[2:])
        return None if value in ({}, None) else value

    async def _read_collection(self, collection: str) -> dict[str, Any] | None:
        ids = sorted(await self._redis.smembers(self._index_key(collection)))
        if not ids:
            return None
        pipe = self._redis.pipeline(transaction=False)
        for doc_id in ids:
            pipe.hgetall(self._doc_key(collection, doc_id))
        docs = await pipe.execute()
        result = {doc_id: unflatten(fields) for doc_id, fields in zip(ids, docs) if fields}
        return result or None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def set(self, path: str, value: Any) -> None:
        parts = split_path(path)
        if len(parts) == 1:
            await self._replace_collection(parts[0], value)
            return
        await self._apply(parts[0], {parts[1]: [("/".join(parts[2:]), value)]})

    async def update(self, path: str, fields: dict[str, Any]) -> None:
        base = split_path(path)
        if not fields:
            return
        targets = [base + split_path(rel) for rel in fields]
        collections = {t[0] for t in targets}
        if len(collections) != 1 or any(len(t) < 2 for t in targets):
            # Collection-wide writes go through set().
            raise ValueError(f"update on {path!r} must target documents of one collection")
        by_doc: dict[str, list[tuple[str, Any]]] = {}
        for target, value in zip(targets, fields.values()):
            by_doc.setdefault(target[1], []).append(("/".join(target[2:]), value))
        await self._apply(targets[0][0], by_doc)

    async def remove(self, path: str) -> None:
        parts = split_path(path)
        if len(parts) == 1:
            await self._replace_collection(parts[0], None)
            return
        await self._apply(parts[0], {parts[1]: [("/".join(parts[2:]), None)]})

    async def _apply(
        self, collection: str, by_doc: dict[str, list[tuple[str, Any]]]
    ) -> None:
        """Write (prefix, value) pairs per document atomically.

        An empty prefix addresses the whole document. A value of None deletes.
        """
        for writes in by_doc.values():
            for prefix, value in writes:
                if not prefix and value is not None and not isinstance(value, (dict, list)):
                    raise ValueError(f"{collection} documents must be objects")
        keys = [self._doc_key(collection, doc_id) for doc_id in by_doc]
        changed = [
            "/".join(p for p in (collection, doc_id, prefix) if p)
            for doc_id, writes in by_doc.items()
            for prefix, _ in writes
        ]
        with _store_errors(changed[0]):
            async with self._redis.pipeline(transaction=True) as pipe:
                while True:
                    try:
                        await pipe.watch(*keys)
                        existing = {key: await pipe.hkeys(key) for key in keys}
                        pipe.multi()
                        for doc_id, writes in by_doc.items():
                            self._queue_doc_writes(pipe, collection, doc_id, writes, existing)
                        for path in changed:
                            pipe.publish(self._channel(collection), path)
                        await pipe.execute()
                        break
                    except WatchError:
                        logger.debug("write conflict on %s, retrying", keys)
                        continue

    def _queue_doc_writes(
        self,
        pipe: Any,
        collection: str,
        doc_id: str,
        writes: list[tuple[str, Any]],
        existing: dict[str, list[str]],
    ) -> None:
        key = self._doc_key(collection, doc_id)
        remaining = set(existing[key])
        for prefix, value in writes:
            stale = [f for f in remaining if not prefix or _overlaps(f, prefix)]
            if stale:
                pipe.hdel(key, *stale)
                remaining.difference_update(stale)
            mapping = flatten(value, prefix) if value is not None else {}
            if mapping:
                pipe.hset(key, mapping=mapping)
                remaining.update(mapping)
        if remaining:
            pipe.sadd(self._index_key(collection), doc_id)
        else:
            pipe.delete(key)
            pipe.srem(self._index_key(collection), doc_id)

    async def _replace_collection(self, collection: str, value: Any) -> None:
        with _store_errors(collection):
            ids = await self._redis.smembers(self._index_key(collection))
            pipe = self._redis.pipeline(transaction=True)
            for doc_id in ids:
                pipe.delete(self._doc_key(collection, doc_id))
            pipe.delete(self._index_key(collection))
            for doc_id, doc in (value or {}).items():
                mapping = flatten(doc)
                if mapping:
                    pipe.hset(self._doc_key(collection, doc_id), mapping=mapping)
                    pipe.sadd(self._index_key(collection), doc_id)
            pipe.publish(self._channel(collection), collection)
            await pipe.execute()

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    async def subscribe(
        self, path: str, handler: SnapshotHandler, on_error: ErrorHandler | None = None
    ) -> RedisSubscription:
        collection = split_path(path)[0]
        with _store_errors():
            pubsub = self._redis.pubsub()
            await pubsub.subscribe(self._channel(collection))
        sub = RedisSubscription(self, path, handler, pubsub, on_error)
        self._subscriptions.append(sub)
        sub.deliver(await self.get(path))
        sub.start()
        logger.debug("subscribed to %s via %s", path, self._channel(collection))
        return sub

    def _detach(self, sub: RedisSubscription) -> None:
        if sub in self._subscriptions:
            self._subscriptions.remove(sub)

    async def close(self) -> None:
        for sub in list(self._subscriptions):
            await sub.cancel()
        await self._redis.aclose()
