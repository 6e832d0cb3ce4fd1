"""InMemoryLedgerStore — process-local implementation of LedgerStoreProtocol.

Holds the whole tree in nested dicts. Change delivery is synchronous:
every subscriber whose path overlaps a written path receives a fresh
snapshot before the write call returns, so a session always sees its own
write on the next delivery.

Lists are treated like objects keyed by index ("0", "1", ...), the way a
real-time JSON store exposes arrays.
"""

import copy
import logging
from typing import Any

from src.tk_store.domain.store import ErrorHandler, SnapshotHandler, is_related, split_path

logger = logging.getLogger(__name__)


class InMemorySubscription:
    def __init__(
        self, store: "InMemoryLedgerStore", path: str, handler: SnapshotHandler
    ) -> None:
        self._store = store
        self._path = path
        self._handler = handler
        self._active = True

    @property
    def path(self) -> str:
        return self._path

    @property
    def active(self) -> bool:
        return self._active

    def deliver(self, snapshot: Any) -> None:
        if self._active:
            self._handler(snapshot)

    async def cancel(self) -> None:
        self._active = False
        self._store._detach(self)


def _as_dict(node: Any) -> dict[str, Any] | None:
    if isinstance(node, dict):
        return node
    if isinstance(node, list):
        return {str(i): v for i, v in enumerate(node) if v is not None}
    return None


class InMemoryLedgerStore:
    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._root: dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self._subscriptions: list[InMemorySubscription] = []

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, path: str) -> Any | None:
        return self._snapshot(split_path(path))

    def _snapshot(self, parts: list[str]) -> Any | None:
        node: Any = self._root
        for part in parts:
            container = _as_dict(node)
            if container is None or part not in container:
                return None
            node = container[part]
        if node is None or node == {} or node == []:
            return None
        return copy.deepcopy(node)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def set(self, path: str, value: Any) -> None:
        parts = split_path(path)
        self._write(parts, value)
        self._notify([path])

    async def update(self, path: str, fields: dict[str, Any]) -> None:
        base = split_path(path)
        # Validate every key before touching the tree: all-or-nothing.
        targets = [(base + split_path(rel), value) for rel, value in fields.items()]
        for parts, value in targets:
            self._write(parts, value)
        self._notify(["/".join(parts) for parts, _ in targets])

    async def remove(self, path: str) -> None:
        self._write(split_path(path), None)
        self._notify([path])

    def _write(self, parts: list[str], value: Any) -> None:
        if value is None:
            self._delete(parts)
            return
        node = self._root
        for part in parts[:-1]:
            child = node.get(part)
            converted = _as_dict(child)
            if converted is None:
                converted = {}
            if converted is not child:
                node[part] = converted
            node = converted
        node[parts[-1]] = copy.deepcopy(value)

    def _delete(self, parts: list[str]) -> None:
        node: Any = self._root
        for part in parts[:-1]:
            child = _as_dict(node.get(part)) if isinstance(node, dict) else None
            if child is None:
                return
            if child is not node.get(part):
                node[part] = child
            node = child
        node.pop(parts[-1], None)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    async def subscribe(
        self, path: str, handler: SnapshotHandler, on_error: ErrorHandler | None = None
    ) -> InMemorySubscription:
        """In-process delivery cannot be lost, so on_error is never called."""
        split_path(path)
        sub = InMemorySubscription(self, path, handler)
        self._subscriptions.append(sub)
        logger.debug("subscribed to %s (%d listeners)", path, len(self._subscriptions))
        sub.deliver(await self.get(path))
        return sub

    def _detach(self, sub: InMemorySubscription) -> None:
        if sub in self._subscriptions:
            self._subscriptions.remove(sub)
            logger.debug("unsubscribed from %s", sub.path)

    def _notify(self, changed: list[str]) -> None:
        for sub in list(self._subscriptions):
            if not any(is_related(sub.path, c) for c in changed):
                continue
            try:
                sub.deliver(self._snapshot(split_path(sub.path)))
            except Exception:
                # A broken listener must not fail the writer.
                logger.exception("snapshot handler for %s failed", sub.path)

    async def close(self) -> None:
        for sub in list(self._subscriptions):
            await sub.cancel()
