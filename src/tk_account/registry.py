"""SessionRegistry — live AccountSession per signed-in user for the HTTP layer.

A session is opened on the first authenticated request and stays
subscribed until the user signs out, it sits idle for longer than
SESSION_IDLE_SECONDS, or the process shuts down. Idle sessions are swept
on every lookup; an evicted user simply gets a fresh session (and a fresh
snapshot) on their next request. Pending edits do not survive eviction.

A session whose order stream was lost is re-subscribed on lookup.
"""

import asyncio
import logging
from time import monotonic

from config.settings import settings
from src.tk_account.session import AccountSession, Identity
from src.tk_store.client import get_store

logger = logging.getLogger(__name__)


class SessionRegistry:
    def __init__(self, idle_seconds: float | None = None) -> None:
        self._sessions: dict[str, AccountSession] = {}
        self._last_seen: dict[str, float] = {}
        # 0 disables idle eviction
        self._idle_seconds = (
            settings.SESSION_IDLE_SECONDS if idle_seconds is None else idle_seconds
        )
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    async def session_for(self, identity: Identity) -> AccountSession:
        async with self._lock:
            now = monotonic()
            await self._evict_idle(now)
            session = self._sessions.get(identity.user_id)
            if session is None:
                session = AccountSession(await get_store())
                await session.on_auth_state_changed(identity)
                self._sessions[identity.user_id] = session
            elif session.sync_lost:
                await session.resync()
            self._last_seen[identity.user_id] = now
            return session

    async def evict_idle(self) -> int:
        async with self._lock:
            return await self._evict_idle(monotonic())

    async def _evict_idle(self, now: float) -> int:
        if self._idle_seconds <= 0:
            return 0
        expired = [
            user_id
            for user_id, seen in self._last_seen.items()
            if now - seen > self._idle_seconds
        ]
        for user_id in expired:
            del self._last_seen[user_id]
            await self._sessions.pop(user_id).sign_out()
        if expired:
            logger.info("evicted %d idle account sessions", len(expired))
        return len(expired)

    async def end(self, user_id: str) -> bool:
        async with self._lock:
            session = self._sessions.pop(user_id, None)
            self._last_seen.pop(user_id, None)
        if session is None:
            return False
        await session.on_auth_state_changed(None)
        return True

    async def close_all(self) -> None:
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
            self._last_seen.clear()
        for session in sessions:
            await session.sign_out()
        logger.info("closed %d account sessions", len(sessions))


_registry: SessionRegistry | None = None


def get_registry() -> SessionRegistry:
    global _registry  # noqa: PLW0603
    if _registry is None:
        _registry = SessionRegistry()
    return _registry


async def close_registry() -> None:
    global _registry  # noqa: PLW0603
    if _registry is not None:
        await _registry.close_all()
        _registry = None
